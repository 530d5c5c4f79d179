"""
CLI argument builder for the HTTP exporter.
"""

from gpfs_exporter.cli.common_args import HELP_MESSAGES
from gpfs_exporter.config import DEFAULT_LISTEN_ADDRESS, DEFAULT_TELEMETRY_PATH


def add_web_arguments(parser):
    """Add web server and target configuration arguments.

    Args:
        parser: Argparse parser to add arguments to.
    """
    web_args = parser.add_argument_group("Web")
    web_args.add_argument(
        "--web.listen-address",
        dest="listen_address",
        type=str,
        default=DEFAULT_LISTEN_ADDRESS,
        help=HELP_MESSAGES['listen_address']
    )
    web_args.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        type=str,
        default=DEFAULT_TELEMETRY_PATH,
        help=HELP_MESSAGES['telemetry_path']
    )
    web_args.add_argument(
        "--web.disable-exporter-metrics",
        dest="disable_exporter_metrics",
        action="store_true",
        help=HELP_MESSAGES['disable_exporter_metrics']
    )
    web_args.add_argument(
        "--config.file",
        dest="config_file",
        type=str,
        default=None,
        help=HELP_MESSAGES['config_file']
    )

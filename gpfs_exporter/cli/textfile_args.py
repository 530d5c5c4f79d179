"""
CLI argument builder for the textfile exporters.

Provides arguments for:
- gpfs_mmdf_exporter: mmdf capacity written for the node exporter
- gpfs_mmlssnapshot_exporter: snapshot listing written for the node exporter
"""

from gpfs_exporter.cli.common_args import HELP_MESSAGES
from gpfs_exporter.config import TEXTFILE_LOCK_TEMPLATE


def add_textfile_arguments(parser, collector_name: str):
    """Add output and lock file arguments.

    Args:
        parser: Argparse parser to add arguments to.
        collector_name: Collector name, used for the default lock file path.
    """
    textfile_args = parser.add_argument_group("Textfile")
    textfile_args.add_argument(
        "--output",
        type=str,
        required=True,
        help=HELP_MESSAGES['output']
    )
    textfile_args.add_argument(
        "--lock-file", "--lockfile",
        dest="lock_file",
        type=str,
        default=TEXTFILE_LOCK_TEMPLATE.format(collector=collector_name),
        help=HELP_MESSAGES['lock_file']
    )

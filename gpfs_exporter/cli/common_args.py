"""
Common CLI arguments and help messages shared by the exporter programs.

This module contains:
- Help message definitions
- Logging arguments
- GPFS command execution arguments
"""

from gpfs_exporter.config import GPFS_BIN_DIR, MMLSFS_TIMEOUT, SUDO_COMMAND


# Help messages dictionary - shared across all argument builders
HELP_MESSAGES = {
    # Web server
    'listen_address': "Address on which to expose metrics and web interface, as [host]:port.",
    'telemetry_path': "Path under which to expose metrics.",
    'disable_exporter_metrics': (
        "Exclude metrics about the exporter itself (process, platform, gc and python metrics)."
    ),
    'config_file': (
        "Path to YAML file defining scrape targets. A target is selected with ?target=<name> "
        "\nand may enable its own collectors, mounts, filesystems, thresholds and timeouts."
    ),

    # Command execution
    'sudo_command': "Command used to run GPFS commands with privileges. An empty value runs them directly.",
    'gpfs_bin_dir': "Directory holding the GPFS administration commands.",
    'mmlsfs_timeout': "Timeout in seconds for mmlsfs execution when listing filesystems.",

    # Collectors
    'collector_timeout': "Timeout in seconds for {name} command execution.",
    'filesystems': "Filesystems to query with {name}, comma separated. Defaults to all filesystems.",
    'waiter_threshold': "Log waiters that have waited longer than this many seconds. 0 disables the log.",
    'waiter_exclude': "Pattern of waiter thread names to exclude.",
    'waiter_include': "Pattern of waiter thread names to include. Empty includes every waiter.",
    'waiter_buckets': "Comma separated histogram buckets for waiter durations, e.g. 1s,5s,15s,1m,5m,1h.",
    'waiter_log_reason': "Log the reason of every counted waiter.",
    'mount_mounts': "Mount paths to check, comma separated. Defaults to mounted and fstab GPFS mounts.",
    'mount_fstab': "Path to fstab used to find configured GPFS mounts.",
    'states': "Known {name} states, comma separated. Any other reported state is exported as unknown.",
    'mmces_nodename': "CES node name to check. Defaults to the host FQDN.",
    'mmces_ignored_services': "Pattern of CES services to ignore.",
    'mmhealth_ignored': "Pattern of {field} values to ignore.",
    'mmhealth_ignored_event': "Pattern of events to ignore. Empty ignores no event.",
    'mmrepquota_quota_types': "Quota types to collect, comma separated from user, group and fileset.",
    'mmlssnapshot_get_size': "Collect snapshot data and metadata sizes. This can be slow.",
    'mmlsqos_seconds': (
        "Display the I/O performance values for the previous number of seconds. "
        "The valid range of seconds is 1-999."
    ),

    # Textfile exporters
    'output': "Path to the node exporter textfile collector file to write.",
    'lock_file': "Lock file path. A run that cannot take the lock exits without collecting.",

    # Logging
    'log_level': "Stream log level, e.g. DEBUG, INFO, WARNING. Overrides --verbose and --debug.",
}

# Program descriptions
PROGRAM_DESCRIPTIONS = {
    'gpfs_exporter': "Prometheus exporter for GPFS metrics",
    'gpfs_mmdf_exporter': "Write GPFS mmdf metrics to a node exporter textfile",
    'gpfs_mmlssnapshot_exporter': "Write GPFS mmlssnapshot metrics to a node exporter textfile",
}


def add_universal_arguments(parser):
    """Add logging arguments common to every program.

    Args:
        parser: Argparse parser to add arguments to.
    """
    output_control = parser.add_argument_group("Output Control")
    output_control.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )
    output_control.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose mode"
    )
    output_control.add_argument(
        "--log-level",
        type=str,
        default=None,
        help=HELP_MESSAGES['log_level']
    )


def add_command_arguments(parser):
    """Add arguments controlling how GPFS commands are executed.

    Args:
        parser: Argparse parser to add arguments to.
    """
    command_args = parser.add_argument_group("Command Execution")
    command_args.add_argument(
        "--config.sudo-command",
        dest="sudo_command",
        type=str,
        default=SUDO_COMMAND,
        help=HELP_MESSAGES['sudo_command']
    )
    command_args.add_argument(
        "--config.gpfs-bin-dir",
        dest="gpfs_bin_dir",
        type=str,
        default=GPFS_BIN_DIR,
        help=HELP_MESSAGES['gpfs_bin_dir']
    )
    command_args.add_argument(
        "--config.mmlsfs.timeout",
        dest="mmlsfs_timeout",
        type=float,
        default=MMLSFS_TIMEOUT,
        help=HELP_MESSAGES['mmlsfs_timeout']
    )

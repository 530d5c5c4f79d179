import enum
import os

VERSION = "1.0.0"

NAMESPACE = "gpfs"
EXPORTER_SUBSYSTEM = "exporter"

GPFS_BIN_DIR = "/usr/lpp/mmfs/bin"
SUDO_COMMAND = "sudo"
CLEAN_ENV = {
    "PATH": "/usr/sbin:/usr/bin:/sbin:/bin",
    "LC_ALL": "C",
}

PROC_MOUNTS = "/proc/mounts"
FSTAB = "/etc/fstab"

DEFAULT_LISTEN_ADDRESS = ":9303"
DEFAULT_TELEMETRY_PATH = "/metrics"

# Seconds between SIGTERM and SIGKILL for a command that overran its deadline
KILL_GRACE_SECONDS = 2.0

MMLSFS_TIMEOUT = 5

DEFAULT_WAITER_BUCKETS = (1.0, 5.0, 15.0, 60.0, 300.0, 3600.0)
DEFAULT_WAITER_EXCLUDE = "(EventsExporterSenderThread|Fsck)"

# Parsing timestamps in output of mmlsfileset/mmlssnapshot
ANSIC_TIME_FORMAT = "%a %b %d %H:%M:%S %Y"

TEXTFILE_LOCK_TEMPLATE = os.path.join("/tmp", "gpfs_{collector}_exporter.lock")


class EXIT_CODE(enum.IntEnum):
    SUCCESS = 0
    FAILURE = 1
    CONFIG_ERROR = 2
    BIND_ERROR = 3

    def __str__(self):
        return f"{self.name} ({self.value})"


class TEXTFILE_EXIT_CODE(enum.IntEnum):
    """Exit status of the cron driven textfile exporters."""
    SUCCESS = 0
    LOCK_HELD = 1
    FATAL = 2

    def __str__(self):
        return f"{self.name} ({self.value})"

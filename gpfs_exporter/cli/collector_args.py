"""
CLI argument builders for the collectors.

Every collector gets ``--collector.<name>``/``--no-collector.<name>`` and
``--collector.<name>.timeout``. Collectors with tuning options register one
of the ``add_<name>_arguments`` builders below. Option values are stored as
``<name>_<option>`` so a collector reads them with ``self.option(option)``.
"""

import argparse

from gpfs_exporter.cli.common_args import HELP_MESSAGES


def add_collector_toggle(parser, name: str, default_enabled: bool, description: str = ""):
    """Add --collector.<name> and --no-collector.<name>.

    Args:
        parser: Argparse parser to add arguments to.
        name: Collector name.
        default_enabled: Value when neither flag is given.
        description: Help text for the collector.
    """
    parser.add_argument(
        f"--collector.{name}",
        dest=f"collector_{name}",
        action=argparse.BooleanOptionalAction,
        default=default_enabled,
        help=f"Enable the {name} collector: {description}."
    )


def add_collector_timeout(parser, name: str, default_timeout: float):
    parser.add_argument(
        f"--collector.{name}.timeout",
        dest=f"{name}_timeout",
        type=float,
        default=default_timeout,
        help=HELP_MESSAGES['collector_timeout'].format(name=name)
    )


def _add_filesystems(parser, name: str):
    parser.add_argument(
        f"--collector.{name}.filesystems",
        dest=f"{name}_filesystems",
        type=str,
        default="",
        help=HELP_MESSAGES['filesystems'].format(name=name)
    )


def _add_states(parser, name: str):
    parser.add_argument(
        f"--collector.{name}.states",
        dest=f"{name}_states",
        type=str,
        default="",
        help=HELP_MESSAGES['states'].format(name=name)
    )


def add_mount_arguments(parser):
    group = parser.add_argument_group("Collector: mount")
    group.add_argument(
        "--collector.mount.mounts",
        dest="mount_mounts",
        type=str,
        default="",
        help=HELP_MESSAGES['mount_mounts']
    )
    group.add_argument(
        "--collector.mount.fstab",
        dest="mount_fstab",
        type=str,
        default=None,
        help=HELP_MESSAGES['mount_fstab']
    )


def add_mmgetstate_arguments(parser):
    group = parser.add_argument_group("Collector: mmgetstate")
    _add_states(group, "mmgetstate")


def add_mmhealth_arguments(parser):
    group = parser.add_argument_group("Collector: mmhealth")
    _add_states(group, "mmhealth")
    for field in ("component", "entityname", "entitytype"):
        group.add_argument(
            f"--collector.mmhealth.ignored-{field}",
            dest=f"mmhealth_ignored_{field}",
            type=str,
            default="^$",
            help=HELP_MESSAGES['mmhealth_ignored'].format(field=field)
        )
    group.add_argument(
        "--collector.mmhealth.ignored-event",
        dest="mmhealth_ignored_event",
        type=str,
        default="",
        help=HELP_MESSAGES['mmhealth_ignored_event']
    )


def add_mmces_arguments(parser):
    group = parser.add_argument_group("Collector: mmces")
    _add_states(group, "mmces")
    group.add_argument(
        "--collector.mmces.nodename",
        dest="mmces_nodename",
        type=str,
        default="",
        help=HELP_MESSAGES['mmces_nodename']
    )
    group.add_argument(
        "--collector.mmces.ignored-services",
        dest="mmces_ignored_services",
        type=str,
        default="^$",
        help=HELP_MESSAGES['mmces_ignored_services']
    )


def add_waiter_arguments(parser):
    group = parser.add_argument_group("Collector: waiter")
    group.add_argument(
        "--collector.mmdiag.waiter-threshold",
        dest="mmdiag_waiter_threshold",
        type=float,
        default=0,
        help=HELP_MESSAGES['waiter_threshold']
    )
    group.add_argument(
        "--collector.waiter.exclude",
        dest="waiter_exclude",
        type=str,
        default=None,
        help=HELP_MESSAGES['waiter_exclude']
    )
    group.add_argument(
        "--collector.waiter.include",
        dest="waiter_include",
        type=str,
        default="",
        help=HELP_MESSAGES['waiter_include']
    )
    group.add_argument(
        "--collector.waiter.buckets",
        dest="waiter_buckets",
        type=str,
        default=None,
        help=HELP_MESSAGES['waiter_buckets']
    )
    group.add_argument(
        "--collector.waiter.log-reason",
        dest="waiter_log_reason",
        action="store_true",
        help=HELP_MESSAGES['waiter_log_reason']
    )


def add_mmdf_arguments(parser):
    group = parser.add_argument_group("Collector: mmdf")
    _add_filesystems(group, "mmdf")


def add_mmrepquota_arguments(parser):
    group = parser.add_argument_group("Collector: mmrepquota")
    _add_filesystems(group, "mmrepquota")
    group.add_argument(
        "--collector.mmrepquota.quota-types",
        dest="mmrepquota_quota_types",
        type=str,
        default="fileset",
        help=HELP_MESSAGES['mmrepquota_quota_types']
    )


def add_mmlssnapshot_arguments(parser):
    group = parser.add_argument_group("Collector: mmlssnapshot")
    _add_filesystems(group, "mmlssnapshot")
    group.add_argument(
        "--collector.mmlssnapshot.get-size",
        dest="mmlssnapshot_get_size",
        action="store_true",
        help=HELP_MESSAGES['mmlssnapshot_get_size']
    )


def add_mmlsfileset_arguments(parser):
    group = parser.add_argument_group("Collector: mmlsfileset")
    _add_filesystems(group, "mmlsfileset")


def add_mmlsdisk_arguments(parser):
    group = parser.add_argument_group("Collector: mmlsdisk")
    _add_filesystems(group, "mmlsdisk")


def add_mmlspool_arguments(parser):
    group = parser.add_argument_group("Collector: mmlspool")
    _add_filesystems(group, "mmlspool")


def add_mmlsqos_arguments(parser):
    group = parser.add_argument_group("Collector: mmlsqos")
    _add_filesystems(group, "mmlsqos")
    group.add_argument(
        "--collector.mmlsqos.seconds",
        dest="mmlsqos_seconds",
        type=int,
        default=60,
        help=HELP_MESSAGES['mmlsqos_seconds']
    )

"""
CLI argument parsing for the GPFS exporter programs.

This module provides the argument parsing entry points, using the modular
argument builders from the cli package and the collector flags registered
in the CollectorRegistry.
"""

import argparse

from gpfs_exporter.cli import (
    PROGRAM_DESCRIPTIONS,
    add_command_arguments,
    add_textfile_arguments,
    add_universal_arguments,
    add_web_arguments,
)
from gpfs_exporter.collectors import register_collectors
from gpfs_exporter.config import VERSION
from gpfs_exporter.errors import ConfigurationError, ErrorCode
from gpfs_exporter.registry import CollectorRegistry


def build_exporter_parser() -> argparse.ArgumentParser:
    """Parser for the HTTP exporter with flags for every registered collector."""
    register_collectors()
    parser = argparse.ArgumentParser(prog="gpfs_exporter", description=PROGRAM_DESCRIPTIONS['gpfs_exporter'])
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    add_web_arguments(parser)
    add_command_arguments(parser)

    for name in CollectorRegistry.get_all_names():
        CollectorRegistry.build_cli_args(name, parser)

    add_universal_arguments(parser)
    return parser


def build_textfile_parser(collector_name: str) -> argparse.ArgumentParser:
    """Parser for a textfile exporter running the ``collector_name`` collector only."""
    register_collectors()
    prog = f"gpfs_{collector_name}_exporter"
    parser = argparse.ArgumentParser(prog=prog, description=PROGRAM_DESCRIPTIONS.get(prog, ""))
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    add_textfile_arguments(parser, collector_name)
    add_command_arguments(parser)
    CollectorRegistry.build_cli_args(collector_name, parser, toggle=False)
    add_universal_arguments(parser)
    return parser


def validate_args(args):
    """Validate parsed arguments that argparse cannot check on its own.

    Raises:
        ConfigurationError: An argument has an invalid value.
    """
    telemetry_path = getattr(args, "telemetry_path", None)
    if telemetry_path is not None and not telemetry_path.startswith("/"):
        raise ConfigurationError(
            "Telemetry path must start with '/'",
            parameter="--web.telemetry-path",
            expected="/metrics",
            actual=telemetry_path,
            code=ErrorCode.CONFIG_INVALID_VALUE,
        )

    for name in CollectorRegistry.get_all_names():
        timeout = getattr(args, f"{name}_timeout", None)
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(
                f"Timeout for {name} must be positive",
                parameter=f"--collector.{name}.timeout",
                expected="> 0",
                actual=timeout,
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )

    mmlsfs_timeout = getattr(args, "mmlsfs_timeout", None)
    if mmlsfs_timeout is not None and mmlsfs_timeout <= 0:
        raise ConfigurationError("Timeout for mmlsfs must be positive", parameter="--config.mmlsfs.timeout",
                                 expected="> 0", actual=mmlsfs_timeout, code=ErrorCode.CONFIG_INVALID_VALUE)


def parse_exporter_arguments(argv=None) -> argparse.Namespace:
    """Parse and validate the HTTP exporter command line.

    Returns:
        argparse.Namespace: Parsed and validated arguments.
    """
    args = build_exporter_parser().parse_args(argv)
    validate_args(args)
    return args


def parse_textfile_arguments(collector_name: str, argv=None) -> argparse.Namespace:
    args = build_textfile_parser(collector_name).parse_args(argv)
    validate_args(args)
    return args

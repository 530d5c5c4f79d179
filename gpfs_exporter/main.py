#!/usr/bin/env python3
"""
GPFS Exporter - Main Entry Points

This module provides the entry points of the HTTP exporter and of the
mmdf and mmlssnapshot textfile exporters, with error handling that maps
failures to exit codes.
"""

import signal
import sys

from gpfs_exporter.cli_parser import parse_exporter_arguments, parse_textfile_arguments
from gpfs_exporter.config import EXIT_CODE, TEXTFILE_EXIT_CODE, VERSION
from gpfs_exporter.errors import ConfigurationError, GPFSExporterException
from gpfs_exporter.gpfs_logging import apply_logging_options, setup_logging
from gpfs_exporter.registry import CollectorRegistry
from gpfs_exporter.runner import CommandRunner
from gpfs_exporter.server import Exporter, make_server
from gpfs_exporter.targets import Targets
from gpfs_exporter.textfile import TextfileExporter

logger = setup_logging()


def signal_handler(sig, frame):
    """Handle SIGINT and SIGTERM by shutting down cleanly."""
    signal_name = signal.Signals(sig).name
    logger.warning(f"Received signal {signal_name} ({sig})")
    logger.info("Exiting due to signal")
    sys.exit(EXIT_CODE.SUCCESS)


def build_runner(args) -> CommandRunner:
    return CommandRunner(sudo_command=args.sudo_command, gpfs_bin_dir=args.gpfs_bin_dir)


def run_exporter(args) -> int:
    """
    Serve metrics until interrupted.

    Returns:
        Exit code.

    Raises:
        ConfigurationError: Invalid targets or collector options.
    """
    targets = Targets.load(args.config_file)
    targets.validate_collectors(CollectorRegistry.get_all_names())

    enabled = CollectorRegistry.enabled_from_args(args)
    # Targets may enable collectors that are off on the command line
    needed = list(enabled)
    for target in targets:
        needed.extend(name for name in target.collectors if name not in needed)

    collectors = CollectorRegistry.create_collectors(needed, build_runner(args), args)
    exporter = Exporter(collectors, enabled, targets=targets, telemetry_path=args.telemetry_path,
                        exporter_metrics=not args.disable_exporter_metrics)

    try:
        server = make_server(exporter, args.listen_address)
    except OSError as e:
        logger.error(f"Unable to listen on {args.listen_address}: {e}")
        return EXIT_CODE.BIND_ERROR

    logger.status(f"Starting gpfs_exporter {VERSION} on {args.listen_address}")
    logger.info(f"Enabled collectors: {', '.join(enabled) or '(none)'}")
    for name in targets.names:
        logger.verbose(f"Configured target {name}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
    return EXIT_CODE.SUCCESS


def main(argv=None):
    """
    HTTP exporter entry point with error handling.

    Returns:
        0 on clean shutdown, 2 on configuration errors, 3 when the listen
        address cannot be bound and 1 on any other fatal error.
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    try:
        args = parse_exporter_arguments(argv)
        apply_logging_options(logger, args)
        return run_exporter(args)

    except ConfigurationError as e:
        logger.error(str(e))
        if e.suggestion:
            logger.info(f"Suggestion: {e.suggestion}")
        return EXIT_CODE.CONFIG_ERROR

    except GPFSExporterException as e:
        logger.error(str(e))
        if e.suggestion:
            logger.info(f"Suggestion: {e.suggestion}")
        return EXIT_CODE.FAILURE

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_CODE.SUCCESS

    except SystemExit:
        raise

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug("Stack trace:", exc_info=True)
        return EXIT_CODE.FAILURE


def textfile_main(collector_name: str, argv=None) -> int:
    """
    Textfile exporter entry point.

    Returns:
        0 when the output was refreshed or preserved, 1 when another run
        holds the lock and 2 on fatal errors.
    """
    try:
        args = parse_textfile_arguments(collector_name, argv)
        apply_logging_options(logger, args)
        collector = CollectorRegistry.create_collectors([collector_name], build_runner(args), args)[collector_name]
        exporter = TextfileExporter(collector_name, collector, args.output, lock_file=args.lock_file, logger=logger)
        return exporter.run()

    except GPFSExporterException as e:
        logger.error(str(e))
        if e.suggestion:
            logger.info(f"Suggestion: {e.suggestion}")
        return TEXTFILE_EXIT_CODE.FATAL

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug("Stack trace:", exc_info=True)
        return TEXTFILE_EXIT_CODE.FATAL


def mmdf_main(argv=None):
    return textfile_main("mmdf", argv)


def mmlssnapshot_main(argv=None):
    return textfile_main("mmlssnapshot", argv)


def exporter_entry():
    sys.exit(main())


def mmdf_entry():
    sys.exit(mmdf_main())


def mmlssnapshot_entry():
    sys.exit(mmlssnapshot_main())


if __name__ == "__main__":
    sys.exit(main())

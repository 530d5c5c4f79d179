"""
Tests for CLI argument parsing in gpfs_exporter.cli_parser.

Tests cover:
- Exporter defaults and collector toggles
- Per-collector tuning flags
- Argument validation
- Textfile exporter arguments
"""

import pytest

from gpfs_exporter.cli_parser import (
    build_exporter_parser,
    parse_exporter_arguments,
    parse_textfile_arguments,
    validate_args,
)
from gpfs_exporter.config import DEFAULT_LISTEN_ADDRESS, GPFS_BIN_DIR
from gpfs_exporter.errors import ConfigurationError
from gpfs_exporter.registry import CollectorRegistry


class TestExporterArguments:
    """Tests for parse_exporter_arguments."""

    def test_defaults(self):
        args = parse_exporter_arguments([])

        assert args.listen_address == DEFAULT_LISTEN_ADDRESS
        assert args.telemetry_path == "/metrics"
        assert args.disable_exporter_metrics is False
        assert args.config_file is None
        assert args.sudo_command == "sudo"
        assert args.gpfs_bin_dir == GPFS_BIN_DIR
        assert args.mmlsfs_timeout == 5
        assert args.debug is False
        assert args.log_level is None

    def test_default_enabled_collectors(self):
        args = parse_exporter_arguments([])
        assert CollectorRegistry.enabled_from_args(args) == ["mount", "mmpmon", "mmgetstate", "config"]

    def test_enable_and_disable_collectors(self):
        args = parse_exporter_arguments(["--no-collector.mount", "--collector.mmdf", "--collector.waiter"])

        assert args.collector_mount is False
        assert args.collector_mmdf is True
        enabled = CollectorRegistry.enabled_from_args(args)
        assert "mount" not in enabled
        assert "mmdf" in enabled
        assert "waiter" in enabled

    def test_collector_timeouts(self):
        args = parse_exporter_arguments(["--collector.mmdf.timeout", "120"])
        assert args.mmdf_timeout == 120.0
        assert args.mmgetstate_timeout == 5
        assert args.mmrepquota_timeout == 20

    def test_collector_options(self):
        args = parse_exporter_arguments([
            "--collector.mount.mounts", "/fs/scratch,/fs/project",
            "--collector.mmdiag.waiter-threshold", "30",
            "--collector.waiter.log-reason",
            "--collector.mmrepquota.quota-types", "user,fileset",
            "--collector.mmlsqos.seconds", "30",
            "--collector.mmces.nodename", "ces1",
        ])

        assert args.mount_mounts == "/fs/scratch,/fs/project"
        assert args.mmdiag_waiter_threshold == 30.0
        assert args.waiter_log_reason is True
        assert args.mmrepquota_quota_types == "user,fileset"
        assert args.mmlsqos_seconds == 30
        assert args.mmces_nodename == "ces1"

    def test_option_defaults(self):
        args = parse_exporter_arguments([])
        assert args.mmrepquota_quota_types == "fileset"
        assert args.mmhealth_ignored_component == "^$"
        assert args.mmces_ignored_services == "^$"
        assert args.waiter_exclude is None
        assert args.mmlssnapshot_get_size is False
        assert args.mmdf_filesystems == ""

    def test_web_and_command_flags(self):
        args = parse_exporter_arguments([
            "--web.listen-address", "127.0.0.1:9999",
            "--web.telemetry-path", "/gpfs",
            "--web.disable-exporter-metrics",
            "--config.file", "/etc/gpfs_exporter.yaml",
            "--config.sudo-command", "sudo -n",
            "--config.mmlsfs.timeout", "10",
        ])

        assert args.listen_address == "127.0.0.1:9999"
        assert args.telemetry_path == "/gpfs"
        assert args.disable_exporter_metrics is True
        assert args.config_file == "/etc/gpfs_exporter.yaml"
        assert args.sudo_command == "sudo -n"
        assert args.mmlsfs_timeout == 10.0

    def test_every_collector_has_a_toggle(self):
        parser = build_exporter_parser()
        options = {opt for action in parser._actions for opt in action.option_strings}
        for name in CollectorRegistry.get_all_names():
            assert f"--collector.{name}" in options
            assert f"--no-collector.{name}" in options
            assert f"--collector.{name}.timeout" in options

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_exporter_arguments(["--version"])
        assert exc_info.value.code == 0
        assert "gpfs_exporter" in capsys.readouterr().out


class TestValidation:
    """Tests for validate_args."""

    def test_telemetry_path_needs_slash(self):
        with pytest.raises(ConfigurationError, match="Telemetry path"):
            parse_exporter_arguments(["--web.telemetry-path", "metrics"])

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_collector_timeout_positive(self, value):
        with pytest.raises(ConfigurationError, match="Timeout for mmdf"):
            parse_exporter_arguments(["--collector.mmdf.timeout", value])

    def test_mmlsfs_timeout_positive(self):
        with pytest.raises(ConfigurationError, match="mmlsfs"):
            parse_exporter_arguments(["--config.mmlsfs.timeout", "0"])

    def test_valid_args_pass(self):
        validate_args(parse_exporter_arguments([]))


class TestTextfileArguments:
    """Tests for parse_textfile_arguments."""

    def test_output_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_textfile_arguments("mmdf", [])
        assert exc_info.value.code == 2
        assert "--output" in capsys.readouterr().err

    def test_mmdf_arguments(self):
        args = parse_textfile_arguments("mmdf", [
            "--output", "/var/lib/node_exporter/textfile_collector/gpfs_mmdf.prom",
            "--collector.mmdf.filesystems", "project,scratch",
        ])

        assert args.output.endswith("gpfs_mmdf.prom")
        assert args.lock_file == "/tmp/gpfs_mmdf_exporter.lock"
        assert args.mmdf_filesystems == "project,scratch"
        assert args.mmdf_timeout == 60
        assert not hasattr(args, "collector_mmdf")

    def test_lockfile_alias(self):
        args = parse_textfile_arguments("mmlssnapshot", ["--output", "/tmp/snap.prom", "--lockfile", "/tmp/x.lock",
                                                         "--collector.mmlssnapshot.get-size"])
        assert args.lock_file == "/tmp/x.lock"
        assert args.mmlssnapshot_get_size is True

    def test_textfile_has_no_other_collectors(self):
        with pytest.raises(SystemExit):
            parse_textfile_arguments("mmdf", ["--output", "/tmp/x.prom", "--collector.mmlsdisk.filesystems", "a"])

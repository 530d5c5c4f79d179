"""
Integration tests for the mmdf and mmlssnapshot textfile exporters.

Runs the entry points end to end with the command runner replaced by a
MockCommandRunner, as a cron job would run them.
"""

import pytest

from gpfs_exporter import main as main_module
from gpfs_exporter.config import TEXTFILE_EXIT_CODE
from gpfs_exporter.runner import RunStatus
from tests.fixtures import SAMPLE_MMDF, SAMPLE_MMLSFS, SAMPLE_MMLSSNAPSHOT, MockCommandRunner

pytestmark = pytest.mark.integration


@pytest.fixture
def runner(monkeypatch):
    runner = MockCommandRunner({
        r"^mmlsfs all": SAMPLE_MMLSFS,
        r"^mmdf": SAMPLE_MMDF,
        r"^mmlssnapshot": SAMPLE_MMLSSNAPSHOT,
    })
    monkeypatch.setattr(main_module, "build_runner", lambda args: runner)
    return runner


def read(path):
    with open(path) as f:
        return f.read()


class TestMmdfExporter:
    """gpfs_mmdf_exporter end to end."""

    def test_all_filesystems(self, runner, tmp_path):
        output = tmp_path / "gpfs_mmdf.prom"
        code = main_module.mmdf_main(["--output", str(output), "--lock-file", str(tmp_path / "lock")])

        assert code == TEXTFILE_EXIT_CODE.SUCCESS
        content = read(output)
        for fs in ("project", "ess"):
            assert f'gpfs_exporter_collect_error{{collector="mmdf-{fs}"}} 0.0' in content
        assert "gpfs_mmdf_success 1.0" in content
        runner.assert_command_executed(r"^mmlsfs all -Y -T$")

    def test_selected_filesystems(self, runner, tmp_path):
        output = tmp_path / "gpfs_mmdf.prom"
        main_module.mmdf_main(["--output", str(output), "--lock-file", str(tmp_path / "lock"),
                               "--collector.mmdf.filesystems", "project"])

        assert runner.get_commands_matching(r"^mmdf") == ["mmdf project -Y"]
        runner.assert_command_not_executed(r"^mmlsfs")

    def test_failure_keeps_previous_metrics(self, runner, tmp_path):
        output = tmp_path / "gpfs_mmdf.prom"
        args = ["--output", str(output), "--lock-file", str(tmp_path / "lock"),
                "--collector.mmdf.filesystems", "project"]
        assert main_module.mmdf_main(args) == TEXTFILE_EXIT_CODE.SUCCESS
        first = read(output)

        runner.add_response(r"^mmdf", "", RunStatus.TIMEOUT)
        assert main_module.mmdf_main(args) == TEXTFILE_EXIT_CODE.SUCCESS
        second = read(output)

        assert "gpfs_mmdf_success 0.0" in second
        assert 'gpfs_exporter_collect_error{collector="mmdf-project"} 1.0' in second
        timestamp = [line for line in first.splitlines() if line.startswith("gpfs_mmdf_last_collection_timestamp")]
        assert timestamp and timestamp[0] in second.splitlines()

    def test_unwritable_output(self, runner, tmp_path):
        output = tmp_path / "missing" / "gpfs_mmdf.prom"
        code = main_module.mmdf_main(["--output", str(output), "--lock-file", str(tmp_path / "lock")])
        assert code == TEXTFILE_EXIT_CODE.FATAL

    def test_missing_output_argument(self, runner):
        with pytest.raises(SystemExit) as exc_info:
            main_module.mmdf_main([])
        assert exc_info.value.code == 2


def test_mmlssnapshot_exporter(runner, tmp_path):
    output = tmp_path / "gpfs_mmlssnapshot.prom"
    code = main_module.mmlssnapshot_main(["--output", str(output), "--lock-file", str(tmp_path / "lock"),
                                          "--collector.mmlssnapshot.filesystems", "ess"])

    assert code == TEXTFILE_EXIT_CODE.SUCCESS
    content = read(output)
    assert 'snapshot="20201115_PAS1736"' in content
    assert "gpfs_mmlssnapshot_success 1.0" in content
    runner.assert_command_executed(r"^mmlssnapshot ess")

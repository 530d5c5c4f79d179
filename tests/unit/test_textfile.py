"""
Tests for the textfile exporters.

Tests cover:
- Rendering with the success and last collection timestamp markers
- Keeping the previous output and flagging failed labels on errors
- Lock handling and exit codes
- Atomic replacement of the output file
"""

import fcntl
import os
from argparse import Namespace

import pytest

from gpfs_exporter.collectors import MmdfCollector, MmlssnapshotCollector
from gpfs_exporter.config import EXIT_CODE, TEXTFILE_EXIT_CODE
from gpfs_exporter.errors import ErrorCode, FileSystemError, LockError
from gpfs_exporter.metrics import Sample
from gpfs_exporter.dispatcher import COLLECT_ERROR, COLLECT_TIMEOUT
from gpfs_exporter.runner import RunStatus
from gpfs_exporter.textfile import TextfileExporter, failed_labels, mark_failed
from tests.fixtures import SAMPLE_MMDF, SAMPLE_MMLSSNAPSHOT, MockCommandRunner

PREVIOUS_OUTPUT = """\
# HELP gpfs_fs_free_percent GPFS filesystem free percent
# TYPE gpfs_fs_free_percent gauge
gpfs_fs_free_percent{fs="project"} 20.0
# HELP gpfs_exporter_collect_error Indicates if error has occurred during collection
# TYPE gpfs_exporter_collect_error gauge
gpfs_exporter_collect_error{collector="mmdf"} 0.0
gpfs_exporter_collect_error{collector="mmdf-project"} 0.0
# HELP gpfs_mmdf_success Indicates the last mmdf collection succeeded
# TYPE gpfs_mmdf_success gauge
gpfs_mmdf_success 1.0
# HELP gpfs_mmdf_last_collection_timestamp Unix time of the last successful mmdf collection
# TYPE gpfs_mmdf_last_collection_timestamp gauge
gpfs_mmdf_last_collection_timestamp 1.6e+09
"""


@pytest.fixture
def paths(tmp_path):
    return str(tmp_path / "gpfs_mmdf.prom"), str(tmp_path / "gpfs_mmdf.lock")


def make_exporter(runner, paths, logger, collector_name="mmdf", collector=None):
    output, lock_file = paths
    if collector is None:
        collector = MmdfCollector(runner, Namespace(mmdf_filesystems="project"), logger=logger)
    return TextfileExporter(collector_name, collector, output, lock_file=lock_file, logger=logger)


def read(path):
    with open(path) as f:
        return f.read()


class TestRender:
    """Tests for a successful run."""

    def test_writes_metrics_and_markers(self, paths, capturing_logger):
        runner = MockCommandRunner({r"^mmdf": SAMPLE_MMDF})
        exporter = make_exporter(runner, paths, capturing_logger)

        assert exporter.run() == TEXTFILE_EXIT_CODE.SUCCESS
        content = read(paths[0])
        assert 'gpfs_fs_free_percent{fs="project"} 14.0' in content
        assert 'gpfs_exporter_collect_error{collector="mmdf"} 0.0' in content
        assert 'gpfs_exporter_collect_error{collector="mmdf-project"} 0.0' in content
        assert "gpfs_mmdf_success 1.0" in content
        assert "# TYPE gpfs_mmdf_last_collection_timestamp gauge" in content
        runner.assert_command_executed(r"^mmdf project -Y$")

    def test_render_returns_failed_labels(self, paths, capturing_logger):
        runner = MockCommandRunner({r"^mmdf": ("", RunStatus.TIMEOUT)})
        content, failed = make_exporter(runner, paths, capturing_logger).render()

        assert set(failed) == {"mmdf", "mmdf-project"}
        assert "gpfs_mmdf_success 0.0" in content
        assert "gpfs_mmdf_last_collection_timestamp" not in content

    def test_snapshot_collector(self, tmp_path, capturing_logger, est_zone):
        runner = MockCommandRunner({r"^mmlssnapshot": SAMPLE_MMLSSNAPSHOT})
        collector = MmlssnapshotCollector(runner, Namespace(mmlssnapshot_filesystems="ess"),
                                          logger=capturing_logger, tz=est_zone)
        output = str(tmp_path / "snapshot.prom")
        exporter = TextfileExporter("mmlssnapshot", collector, output, lock_file=str(tmp_path / "lock"),
                                    logger=capturing_logger)

        assert exporter.run() == TEXTFILE_EXIT_CODE.SUCCESS
        content = read(output)
        assert "gpfs_mmlssnapshot_success 1.0" in content
        assert 'snapshot="20201115_PAS1736"' in content

    def test_default_lock_file(self, capturing_logger):
        exporter = TextfileExporter("mmdf", None, "/tmp/out.prom", logger=capturing_logger)
        assert exporter.lock_file == "/tmp/gpfs_mmdf_exporter.lock"


class TestFailedRun:
    """Tests for runs where the collector fails."""

    def test_previous_output_preserved(self, paths, capturing_logger):
        with open(paths[0], "w") as f:
            f.write(PREVIOUS_OUTPUT)
        runner = MockCommandRunner({r"^mmdf": ("", RunStatus.TIMEOUT)})

        assert make_exporter(runner, paths, capturing_logger).run() == TEXTFILE_EXIT_CODE.SUCCESS
        content = read(paths[0])
        assert 'gpfs_fs_free_percent{fs="project"} 20.0' in content
        assert 'gpfs_exporter_collect_error{collector="mmdf"} 1.0' in content
        assert 'gpfs_exporter_collect_error{collector="mmdf-project"} 1.0' in content
        assert "gpfs_mmdf_success 0.0" in content
        assert "gpfs_mmdf_last_collection_timestamp 1.6e+09" in content
        capturing_logger.assert_logged("error", "mmdf-project")

    def test_no_previous_output(self, paths, capturing_logger):
        runner = MockCommandRunner({r"^mmdf": ("", RunStatus.NONZERO_EXIT)})

        assert make_exporter(runner, paths, capturing_logger).run() == TEXTFILE_EXIT_CODE.SUCCESS
        content = read(paths[0])
        assert "gpfs_mmdf_success 0.0" in content
        assert 'gpfs_exporter_collect_error{collector="mmdf-project"} 1.0' in content
        assert "gpfs_fs_free_percent" not in content
        assert "gpfs_mmdf_last_collection_timestamp" not in content

    def test_success_after_failure_refreshes(self, paths, capturing_logger):
        with open(paths[0], "w") as f:
            f.write(PREVIOUS_OUTPUT)
        runner = MockCommandRunner({r"^mmdf": SAMPLE_MMDF})

        make_exporter(runner, paths, capturing_logger).run()
        content = read(paths[0])
        assert 'gpfs_fs_free_percent{fs="project"} 14.0' in content
        assert "gpfs_mmdf_last_collection_timestamp 1.6e+09" not in content


class TestLocking:
    """Tests for the lock file."""

    def test_lock_held_skips_run(self, paths, capturing_logger):
        output, lock_file = paths
        runner = MockCommandRunner({r"^mmdf": SAMPLE_MMDF})
        fd = os.open(lock_file, os.O_RDWR | os.O_CREAT)
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        try:
            assert make_exporter(runner, paths, capturing_logger).run() == TEXTFILE_EXIT_CODE.LOCK_HELD
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

        assert runner.executed_commands == []
        assert not os.path.exists(output)
        capturing_logger.assert_logged("warning", "locked")

    def test_exit_codes_name_the_textfile_outcome(self, paths, capturing_logger):
        output, lock_file = paths
        fd = os.open(lock_file, os.O_RDWR | os.O_CREAT)
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        try:
            code = make_exporter(MockCommandRunner(), paths, capturing_logger).run()
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

        assert str(code) == "LOCK_HELD (1)"
        assert str(TEXTFILE_EXIT_CODE(2)) == "FATAL (2)"
        assert str(EXIT_CODE(2)) == "CONFIG_ERROR (2)"

    def test_lock_released_after_run(self, paths, capturing_logger):
        runner = MockCommandRunner({r"^mmdf": SAMPLE_MMDF})
        exporter = make_exporter(runner, paths, capturing_logger)
        assert exporter.run() == TEXTFILE_EXIT_CODE.SUCCESS
        assert exporter.run() == TEXTFILE_EXIT_CODE.SUCCESS

    def test_lock_open_failure(self, tmp_path, capturing_logger):
        paths = (str(tmp_path / "out.prom"), str(tmp_path / "missing" / "lock"))
        exporter = make_exporter(MockCommandRunner(), paths, capturing_logger)

        with pytest.raises(LockError) as exc_info:
            exporter.acquire_lock()
        assert exc_info.value.code == ErrorCode.LOCK_OPEN_FAILED
        assert exporter.run() == TEXTFILE_EXIT_CODE.FATAL


class TestWrite:
    """Tests for atomic writes."""

    def test_write_atomic_replaces_file(self, paths, capturing_logger):
        exporter = make_exporter(MockCommandRunner(), paths, capturing_logger)
        exporter.write_atomic("first\n")
        exporter.write_atomic("second\n")

        assert read(paths[0]) == "second\n"
        assert os.listdir(os.path.dirname(paths[0])) == [os.path.basename(paths[0])]

    def test_unwritable_output_is_fatal(self, tmp_path, capturing_logger):
        paths = (str(tmp_path / "missing" / "out.prom"), str(tmp_path / "lock"))
        exporter = make_exporter(MockCommandRunner({r"^mmdf": SAMPLE_MMDF}), paths, capturing_logger)

        with pytest.raises(FileSystemError):
            exporter.write_atomic("content\n")
        assert exporter.run() == TEXTFILE_EXIT_CODE.FATAL


class TestHelpers:
    """Tests for failed_labels, mark_failed and preserve."""

    def test_failed_labels(self):
        samples = [
            Sample(COLLECT_ERROR, ("mmdf",), 1.0),
            Sample(COLLECT_TIMEOUT, ("mmdf",), 0.0),
            Sample(COLLECT_ERROR, ("mmdf-project",), 0.0),
            Sample(COLLECT_TIMEOUT, ("mmdf-scratch",), 1.0),
        ]
        assert failed_labels(samples) == ["mmdf", "mmdf-scratch"]

    def test_mark_failed_only_touches_labels(self):
        content = mark_failed(PREVIOUS_OUTPUT, ["mmdf-project"])
        assert 'gpfs_exporter_collect_error{collector="mmdf-project"} 1.0' in content
        assert 'gpfs_exporter_collect_error{collector="mmdf"} 0.0' in content

    def test_preserve_appends_missing_success(self, paths, capturing_logger):
        exporter = make_exporter(MockCommandRunner(), paths, capturing_logger)
        content = exporter.preserve('gpfs_fs_inodes{fs="project"} 1.0', ["mmdf"])

        assert content.startswith('gpfs_fs_inodes{fs="project"} 1.0\n')
        assert content.endswith("gpfs_mmdf_success 0.0\n")
        assert "# TYPE gpfs_mmdf_success gauge" in content

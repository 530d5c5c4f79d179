"""
Command runner for GPFS administration binaries.

Every collector reaches the OS through a ``CommandRunner`` handed to it at
construction, so tests can substitute canned output and no collector calls
``subprocess`` itself.

Classes:
    RunStatus: Classification of a finished invocation.
    RunResult: Captured output and status of one invocation.
    CommandRunner: Runs ``sudo <bin dir>/<binary> args`` under a deadline.
"""

import enum
import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import psutil

from gpfs_exporter.config import CLEAN_ENV, GPFS_BIN_DIR, KILL_GRACE_SECONDS, SUDO_COMMAND
from gpfs_exporter.errors import CommandExecutionError, CommandTimeoutError, ErrorCode
from gpfs_exporter.gpfs_logging import get_logger


class RunStatus(enum.Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    NONZERO_EXIT = "nonzero-exit"
    SPAWN_ERROR = "spawn-error"


@dataclass
class RunResult:
    """
    Result of a single command invocation.

    Attributes:
        command: The argument vector that was executed.
        stdout: Decoded standard output (possibly partial on timeout).
        stderr: Decoded standard error.
        status: Outcome classification.
        exit_code: Process exit code, None when the process never ran or was killed.
        duration: Wall-clock seconds spent in the call.
    """
    command: List[str]
    stdout: str = ""
    stderr: str = ""
    status: RunStatus = RunStatus.OK
    exit_code: Optional[int] = None
    duration: float = 0.0

    @property
    def command_line(self) -> str:
        return " ".join(shlex.quote(part) for part in self.command)

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.OK

    def check(self) -> str:
        """Return stdout, raising the matching exception for a failed run.

        Raises:
            CommandTimeoutError: The deadline expired.
            CommandExecutionError: Non-zero exit or spawn failure.
        """
        if self.status == RunStatus.OK:
            return self.stdout
        if self.status == RunStatus.TIMEOUT:
            raise CommandTimeoutError(
                f"Command timed out after {self.duration:.1f}s",
                command=self.command_line,
                timeout=self.duration,
            )
        if self.status == RunStatus.SPAWN_ERROR:
            raise CommandExecutionError(
                "Unable to start command",
                command=self.command_line,
                stderr=self.stderr,
                code=ErrorCode.COMMAND_SPAWN_FAILED,
            )
        raise CommandExecutionError(
            "Command exited with an error",
            command=self.command_line,
            exit_code=self.exit_code,
            stderr=self.stderr,
        )


class CommandRunner:
    """
    Run GPFS administration commands with a deadline.

    Commands run as ``[sudo_command, <gpfs_bin_dir>/<binary>, *args]`` in a
    clean environment. When the deadline fires the child and its descendants
    (sudo forks the real binary) receive SIGTERM, then SIGKILL after
    ``grace`` seconds.

    The runner holds no per-call state and is safe to share between
    collector threads.

    Example:
        >>> runner = CommandRunner()
        >>> result = runner.run("mmgetstate", ["-Y"], timeout=5)
        >>> result.status
        <RunStatus.OK: 'ok'>
    """

    def __init__(self, sudo_command: str = SUDO_COMMAND, gpfs_bin_dir: str = GPFS_BIN_DIR,
                 grace: float = KILL_GRACE_SECONDS, env: Optional[dict] = None, logger=None):
        self.sudo_command = sudo_command
        self.gpfs_bin_dir = gpfs_bin_dir
        self.grace = grace
        self.env = dict(env) if env is not None else dict(CLEAN_ENV)
        self.logger = logger or get_logger("runner")

    def build_command(self, binary: str, args: Sequence[str]) -> List[str]:
        if os.path.isabs(binary) or not self.gpfs_bin_dir:
            path = binary
        else:
            path = os.path.join(self.gpfs_bin_dir, binary)
        cmd = shlex.split(self.sudo_command) if self.sudo_command else []
        return cmd + [path] + [str(arg) for arg in args]

    def run(self, binary: str, args: Sequence[str] = (), stdin: Optional[str] = None,
            timeout: Optional[float] = None) -> RunResult:
        """
        Execute a GPFS command.

        Args:
            binary: Binary name relative to the GPFS bin dir, or an absolute path.
            args: Command arguments.
            stdin: Text written to the process standard input.
            timeout: Deadline in seconds, None for no deadline.

        Returns:
            RunResult describing the outcome. This method does not raise for
            command failures; call ``RunResult.check()`` for that.
        """
        cmd = self.build_command(binary, args)
        result = RunResult(command=cmd)
        self.logger.debug(f"Executing command: {result.command_line} (timeout={timeout})")

        start = time.monotonic()
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self.env,
                text=True,
                start_new_session=True,
            )
        except OSError as e:
            result.status = RunStatus.SPAWN_ERROR
            result.stderr = str(e)
            result.duration = time.monotonic() - start
            self.logger.error(f"Failed to start {result.command_line}: {e}")
            return result

        try:
            stdout, stderr = process.communicate(input=stdin, timeout=timeout)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Command {result.command_line} exceeded {timeout}s deadline, terminating")
            self._terminate_tree(process)
            stdout, stderr = self._drain(process)
            result.status = RunStatus.TIMEOUT
        finally:
            if process.poll() is None:
                self._terminate_tree(process)

        result.stdout = stdout or ""
        result.stderr = stderr or ""
        result.duration = time.monotonic() - start
        if result.status != RunStatus.TIMEOUT:
            result.exit_code = process.returncode
            if process.returncode != 0:
                result.status = RunStatus.NONZERO_EXIT
                self.logger.error(
                    f"Command {result.command_line} exited with {process.returncode}: {result.stderr.strip()}"
                )
        if result.stderr:
            self.logger.debug(f"stderr from {result.command_line}: {result.stderr.strip()}")
        return result

    def _terminate_tree(self, process: subprocess.Popen):
        try:
            children = psutil.Process(process.pid).children(recursive=True)
        except psutil.Error:
            children = []

        for proc in [process] + children:
            try:
                proc.terminate()
            except (psutil.Error, ProcessLookupError, PermissionError):
                continue

        grace_deadline = time.monotonic() + self.grace
        try:
            process.wait(timeout=self.grace)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Process {process.pid} ignored SIGTERM, killing")
            process.kill()
            process.wait()

        _, alive = psutil.wait_procs(children, timeout=max(0.0, grace_deadline - time.monotonic()))
        for proc in alive:
            try:
                proc.kill()
            except psutil.Error:
                continue

    @staticmethod
    def _drain(process: subprocess.Popen):
        try:
            return process.communicate(timeout=1)
        except (subprocess.TimeoutExpired, ValueError, OSError):
            return "", ""

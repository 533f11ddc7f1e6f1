"""Remote command execution over SSH with proper resource handling."""

import asyncio
import os
from typing import Protocol

import structlog

from ..utils import build_ssh_command, wrap_privileged
from .config_loader import RemoteHost
from .exceptions import RemoteCommandError

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 60  # Default timeout in seconds
KILL_TIMEOUT = 5  # Time to wait after SIGTERM before SIGKILL


class CommandExecutor(Protocol):
    """Runs one remote command and returns its stdout."""

    async def run(self, command: str) -> str: ...


class CommandResult:
    """Result of a remote command."""

    def __init__(self, returncode: int, stdout: str, stderr: str, argv: list[str]):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.argv = argv

    @property
    def success(self) -> bool:
        """Check if the command succeeded."""
        return self.returncode == 0

    def check_returncode(self) -> None:
        """Raise RemoteCommandError if the command failed."""
        if self.returncode != 0:
            error_msg = self.stderr.strip() or self.stdout.strip() or "Command failed"
            raise RemoteCommandError(
                f"Command failed with exit code {self.returncode}: {error_msg}"
            )


class SSHExecutor:
    """Executes remote shell commands on one host through the ssh client."""

    def __init__(
        self,
        host: RemoteHost,
        *,
        timeout: float | None = None,
        connect_timeout: int = 10,
    ):
        self.host = host
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.connect_timeout = connect_timeout
        self.logger = logger.bind(component="ssh_executor", hostname=host.hostname)

    def build_argv(self, command: str) -> list[str]:
        """Full ssh argv for a remote command, with sudo wrapping if enabled."""
        remote = wrap_privileged(command) if self.host.privileged else command
        return [*build_ssh_command(self.host, self.connect_timeout), remote]

    async def run(self, command: str) -> str:
        """Run a remote command and return its stdout.

        Raises:
            RemoteCommandError: On non-zero exit, timeout or if ssh cannot start
        """
        result = await self.execute(command)
        result.check_returncode()
        return result.stdout

    async def execute(self, command: str) -> CommandResult:
        """Run a remote command without checking its exit status."""
        argv = self.build_argv(command)
        self.logger.debug("Executing remote command", command=command, timeout=self.timeout)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
        except OSError as e:
            raise RemoteCommandError(f"Failed to start ssh: {e}") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            self.logger.warning(
                "Command timed out, terminating process",
                command=command,
                timeout=self.timeout,
                pid=process.pid,
            )
            await self._terminate(process)
            raise RemoteCommandError(
                f"Command timed out after {self.timeout} seconds: {command}"
            ) from e

        return CommandResult(
            returncode=process.returncode or 0,
            stdout=stdout_bytes.decode(errors="replace") if stdout_bytes else "",
            stderr=stderr_bytes.decode(errors="replace") if stderr_bytes else "",
            argv=argv,
        )

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        # Try graceful termination first
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=KILL_TIMEOUT)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Process did not terminate gracefully, sending SIGKILL", pid=process.pid
            )
            process.kill()
            await process.wait()

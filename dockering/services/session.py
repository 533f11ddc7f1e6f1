"""
Docker Session

Ties one host's inventory, orchestrator and executor together and drains the
command queue one remote command at a time.
"""

import structlog

from ..core.config_loader import RemoteHost
from ..core.exceptions import RemoteCommandError
from ..core.executor import CommandExecutor, SSHExecutor
from ..core.settings import DockeringSettings
from ..models.enums import BrowserKind, ContainerOperation
from ..models.inventory import InventoryState
from ..models.script import DeploymentScript, EnvVar
from .orchestrator import CommandOrchestrator


class DockerSession:
    """A connected host."""

    def __init__(
        self,
        host_name: str,
        host: RemoteHost,
        settings: DockeringSettings | None = None,
        executor: CommandExecutor | None = None,
    ):
        self.host_name = host_name
        self.host = host
        self.settings = settings or DockeringSettings()
        self.executor = executor or SSHExecutor(
            host,
            timeout=self.settings.command_timeout,
            connect_timeout=self.settings.connect_timeout,
        )
        self.inventory = InventoryState(host=host_name)
        self.orchestrator = CommandOrchestrator(
            self.inventory,
            self.settings,
            clients_path=host.clients_path or self.settings.clients_path,
        )
        self.logger = structlog.get_logger().bind(component="session", host=host_name)

    @property
    def status_message(self) -> str | None:
        return self.orchestrator.status_message

    @property
    def error_message(self) -> str | None:
        return self.orchestrator.error_message

    async def pump(self) -> int:
        """Run queued commands until the queue is empty.

        Returns:
            Number of commands executed
        """
        executed = 0
        command = self.orchestrator.take_next_if_idle()
        while command is not None:
            executed += 1
            try:
                output = await self.executor.run(command.command)
            except RemoteCommandError as e:
                command = self.orchestrator.on_failure(command, e)
                continue
            command = self.orchestrator.on_result(command.kind, output)
        self.logger.debug("Queue drained", executed=executed)
        return executed

    async def refresh(self) -> InventoryState:
        """Run a full discovery pass and return the updated inventory."""
        self.orchestrator.start_discovery()
        await self.pump()
        self.logger.info(
            "Discovery complete",
            containers=len(self.inventory.containers),
            projects=len(self.inventory.projects),
            scripts=len(self.inventory.scripts),
        )
        return self.inventory

    async def stats(self, container: str):
        self.orchestrator.request_stats(container)
        await self.pump()
        return self.inventory.stats.get(container)

    async def top(self, container: str):
        self.orchestrator.request_top(container)
        await self.pump()
        return self.inventory.processes.get(container, [])

    async def inspect(self, container: str):
        self.orchestrator.request_inspect(container)
        await self.pump()
        return self.inventory.inspections.get(container)

    async def logs(self, container: str, tail: int | None = None) -> list[str]:
        self.orchestrator.request_logs(container, tail=tail)
        await self.pump()
        return self.inventory.logs.get(container, [])

    async def env(self, container: str) -> list[EnvVar]:
        self.orchestrator.request_env(container)
        await self.pump()
        return self.inventory.runtime_env.get(container, [])

    async def container_action(self, container: str, operation: ContainerOperation) -> None:
        self.orchestrator.request_container_action(container, operation)
        await self.pump()

    async def run_script(self, path: str) -> None:
        self.orchestrator.request_run_script(path)
        await self.pump()

    async def browse(self, path: str, kind: BrowserKind = BrowserKind.REMOTE):
        self.orchestrator.browse(path, kind)
        await self.pump()
        return self.orchestrator.browser

    async def save_script(
        self,
        script: DeploymentScript,
        original_env_vars: list[EnvVar],
        original: DeploymentScript | None = None,
    ) -> bool:
        """Patch or generate a script and write it to the host."""
        if not self.orchestrator.save_script(script, original_env_vars, original):
            return False
        await self.pump()
        return True

    def associate(self, container_name: str, script_path: str) -> None:
        self.orchestrator.associate(container_name, script_path)

    def disconnect(self) -> None:
        self.orchestrator.disconnect()
        self.logger.info("Session closed")

"""
Command Orchestrator

Drives discovery and editing for one connected host. Holds at most one
in-flight remote command plus a FIFO of follow-ups, and turns each result into
inventory updates and further commands.
"""

from collections import deque

import structlog
from pydantic import Field

from ..core.commands import (
    container_operation_command,
    docker_exec_env_command,
    docker_inspect_command,
    docker_logs_command,
    docker_ps_command,
    docker_stats_command,
    docker_top_command,
    find_scripts_command,
    list_directory_command,
    list_projects_command,
    read_script_command,
    run_script_command,
    write_script_command,
)
from ..core.exceptions import ScriptPatchError
from ..core.parsers import (
    parse_directory_listing,
    parse_docker_inspect,
    parse_docker_ps,
    parse_docker_stats,
    parse_docker_top,
    parse_env_output,
    parse_log_lines,
    parse_project_listing,
    parse_script_paths,
)
from ..core.script_codec import (
    apply_script_changes,
    create_script_from_content,
    generate_script,
    parse_script,
)
from ..core.settings import DockeringSettings
from ..models.commands import (
    CommandKind,
    ContainerAction,
    DockerEnv,
    DockerInspect,
    DockerLogs,
    DockerPs,
    DockerStats,
    DockerTop,
    FindScripts,
    ListDirectory,
    ListProjects,
    PendingCommand,
    ReadScript,
    RsyncListDirectory,
    RunScript,
    WriteScript,
)
from ..models.container import DockeringModel, FileEntry
from ..models.enums import BrowserKind, ContainerOperation
from ..models.inventory import InventoryState
from ..models.script import DeploymentScript, EnvVar

_DISCOVERY_KINDS = (DockerPs, ListProjects, FindScripts, ReadScript)

_OPERATION_DONE = {
    ContainerOperation.START: "started",
    ContainerOperation.STOP: "stopped",
    ContainerOperation.RESTART: "restarted",
    ContainerOperation.REMOVE: "removed",
    ContainerOperation.REMOVE_WITH_VOLUMES: "removed with volumes",
}


class FileBrowserView(DockeringModel):
    """The directory the UI is currently showing in a file browser."""

    path: str
    kind: BrowserKind = BrowserKind.REMOTE
    entries: list[FileEntry] = Field(default_factory=list)


class CommandOrchestrator:
    """Sequences remote commands for one host and applies their results."""

    def __init__(
        self,
        inventory: InventoryState,
        settings: DockeringSettings | None = None,
        clients_path: str | None = None,
    ):
        self.inventory = inventory
        self.settings = settings or DockeringSettings()
        self.clients_path = clients_path or self.settings.clients_path
        self.queue: deque[PendingCommand] = deque()
        self.in_flight: PendingCommand | None = None
        self.discovery_generation = 0
        self.browser: FileBrowserView | None = None
        self.status_message: str | None = None
        self.error_message: str | None = None
        self.logger = structlog.get_logger().bind(component="orchestrator", host=inventory.host)

    @property
    def host(self) -> str:
        return self.inventory.host

    @property
    def is_idle(self) -> bool:
        return self.in_flight is None and not self.queue

    # -- queue ---------------------------------------------------------------

    def enqueue(self, command: PendingCommand) -> None:
        self.queue.append(command)
        self.logger.debug("Command queued", kind=command.kind.kind, queued=len(self.queue))

    def take_next_if_idle(self) -> PendingCommand | None:
        """Move the queue head into the in-flight slot if nothing is running."""
        if self.in_flight is not None or not self.queue:
            return None
        self.in_flight = self.queue.popleft()
        self.logger.debug("Command dispatched", kind=self.in_flight.kind.kind)
        return self.in_flight

    def on_result(self, kind: CommandKind, output: str) -> PendingCommand | None:
        """Apply a completed command's output, then promote the next command.

        Returns:
            The command now in flight, or None when the queue is empty
        """
        command, self.in_flight = self.in_flight, None
        if self._is_stale(command, kind):
            self.logger.debug("Discarding result from an earlier discovery", kind=kind.kind)
        else:
            self._handle(kind, output)
        return self.take_next_if_idle()

    def on_failure(self, command: PendingCommand, error: Exception) -> PendingCommand | None:
        """Report a failed command and move on; its follow-ups are never queued."""
        self.in_flight = None
        self.error_message = f"{command.describe().capitalize()} failed: {error}"
        self.logger.warning(
            "Remote command failed",
            kind=command.kind.kind,
            command=command.command,
            error=str(error),
            error_type=type(error).__name__,
        )
        return self.take_next_if_idle()

    def _command(self, text: str, kind: CommandKind) -> PendingCommand:
        return PendingCommand(
            host=self.host, command=text, kind=kind, generation=self.discovery_generation
        )

    def _is_stale(self, command: PendingCommand | None, kind: CommandKind) -> bool:
        """A discovery result queued before the latest start_discovery()."""
        return (
            command is not None
            and command.kind == kind
            and isinstance(kind, _DISCOVERY_KINDS)
            and command.generation != self.discovery_generation
        )

    # -- operations ----------------------------------------------------------

    def start_discovery(self) -> None:
        """Queue a full refresh: containers first, then projects and their scripts."""
        self.queue = deque(c for c in self.queue if not isinstance(c.kind, _DISCOVERY_KINDS))
        self.discovery_generation += 1
        self.inventory.reset()
        self.enqueue(
            self._command(docker_ps_command(self.settings.show_all_containers), DockerPs())
        )
        self.enqueue(
            self._command(
                list_projects_command(self.clients_path),
                ListProjects(clients_path=self.clients_path),
            )
        )
        self.status_message = f"Discovering containers and scripts on {self.host}"
        self.logger.info("Discovery started", clients_path=self.clients_path)

    def refresh_containers(self) -> None:
        command = docker_ps_command(self.settings.show_all_containers)
        self.enqueue(self._command(command, DockerPs()))

    def request_stats(self, container: str) -> None:
        command = docker_stats_command(container)
        self.enqueue(self._command(command, DockerStats(container=container)))

    def request_top(self, container: str) -> None:
        self.enqueue(self._command(docker_top_command(container), DockerTop(container=container)))

    def request_inspect(self, container: str) -> None:
        self.enqueue(
            self._command(docker_inspect_command(container), DockerInspect(container=container))
        )

    def request_logs(self, container: str, tail: int | None = None) -> None:
        tail = tail if tail is not None else self.settings.log_tail
        command = docker_logs_command(container, tail=tail)
        self.enqueue(self._command(command, DockerLogs(container=container)))

    def request_env(self, container: str) -> None:
        command = docker_exec_env_command(container)
        self.enqueue(self._command(command, DockerEnv(container=container)))

    def request_container_action(self, container: str, operation: ContainerOperation) -> None:
        self.enqueue(
            self._command(
                container_operation_command(container, operation),
                ContainerAction(container=container, operation=operation),
            )
        )

    def request_run_script(self, path: str) -> None:
        self.enqueue(self._command(run_script_command(path), RunScript(path=path)))

    def browse(self, path: str, kind: BrowserKind = BrowserKind.REMOTE) -> None:
        """Show a directory in the file browser and request its listing."""
        self.browser = FileBrowserView(path=path, kind=kind)
        if kind is BrowserKind.RSYNC:
            listing = RsyncListDirectory(path=path)
        else:
            listing = ListDirectory(path=path)
        self.enqueue(self._command(list_directory_command(path), listing))

    def close_browser(self) -> None:
        self.browser = None

    def associate(self, container_name: str, script_path: str) -> None:
        """Record an operator-confirmed container to script association."""
        self.inventory.associate(container_name, script_path)
        self.inventory.link_scripts()
        self.status_message = f"Linked {container_name} to {script_path}"
        self.logger.info("Association recorded", container=container_name, path=script_path)

    def save_script(
        self,
        script: DeploymentScript,
        original_env_vars: list[EnvVar],
        original: DeploymentScript | None = None,
    ) -> bool:
        """Write an edited script back to the host.

        Scripts that already have remote content are patched in place; brand
        new scripts are generated. The inventory is updated before the write
        command is queued.

        Args:
            script: Edited copy of the script
            original_env_vars: Env vars as they were before editing
            original: Unedited script; when given, port, volume and network
                edits are patched too

        Returns:
            False if the edit could not be placed (error_message is set)
        """
        if script.raw_content:
            extra = {}
            if original is not None:
                extra = {
                    "original_ports": original.ports,
                    "original_volumes": original.volumes,
                    "original_network": original.network,
                }
            try:
                content = apply_script_changes(script, original_env_vars, **extra)
            except ScriptPatchError as e:
                self.error_message = str(e)
                return False
        else:
            content = generate_script(script)

        updated = parse_script(content, script.path, script.client_name)
        self.inventory.replace_script(updated)
        self.inventory.link_scripts()
        self.enqueue(
            self._command(write_script_command(script.path, content), WriteScript(path=script.path))
        )
        self.logger.info("Script write queued", path=script.path, generated=not script.raw_content)
        return True

    def disconnect(self) -> None:
        """Drop all queued work and everything known about the host."""
        self.queue.clear()
        self.in_flight = None
        self.browser = None
        self.inventory.clear()
        self.status_message = None
        self.error_message = None
        self.logger.info("Disconnected")

    # -- result handling -----------------------------------------------------

    def _handle(self, kind: CommandKind, output: str) -> None:
        match kind:
            case DockerPs():
                self._handle_containers(output)
            case ListProjects(clients_path=clients_path):
                self._handle_projects(output, clients_path)
            case FindScripts(project=project):
                self._handle_script_paths(project, output)
            case ReadScript(project=project, path=path):
                self._handle_script(project, path, output)
            case WriteScript(path=path):
                self.status_message = f"Saved {path}"
                self.logger.info("Script written", path=path)
            case ListDirectory(path=path):
                self._deliver_listing(path, BrowserKind.REMOTE, output)
            case RsyncListDirectory(path=path):
                self._deliver_listing(path, BrowserKind.RSYNC, output)
            case DockerStats(container=container):
                self.inventory.stats[container] = parse_docker_stats(output)
            case DockerTop(container=container):
                self.inventory.processes[container] = parse_docker_top(output)
            case DockerInspect(container=container):
                self.inventory.inspections[container] = parse_docker_inspect(output)
            case DockerLogs(container=container):
                self.inventory.logs[container] = parse_log_lines(output)
            case DockerEnv(container=container):
                self.inventory.runtime_env[container] = parse_env_output(output)
            case ContainerAction(container=container, operation=operation):
                self.status_message = f"Container {container} {_OPERATION_DONE[operation]}"
                self.logger.info(
                    "Container action done", container=container, operation=operation.value
                )
                self.refresh_containers()
            case RunScript(path=path):
                self.status_message = f"Ran {path}"
                self.logger.info("Script run", path=path)
                self.refresh_containers()

    def _handle_containers(self, output: str) -> None:
        self.inventory.containers = parse_docker_ps(output, self.host)
        linked = self.inventory.link_scripts()
        self.logger.info(
            "Containers discovered", containers=len(self.inventory.containers), linked=linked
        )

    def _handle_projects(self, output: str, clients_path: str) -> None:
        self.inventory.projects = parse_project_listing(output, clients_path)
        self.inventory.scripts = []
        for project in self.inventory.projects:
            self.enqueue(
                self._command(find_scripts_command(project.path), FindScripts(project=project.name))
            )
        self.logger.info("Projects discovered", projects=len(self.inventory.projects))

    def _handle_script_paths(self, project_name: str, output: str) -> None:
        if self.inventory.find_project(project_name) is None:
            self.logger.debug("Script paths for unknown project ignored", project=project_name)
            return
        for path in parse_script_paths(output):
            command = read_script_command(path)
            self.enqueue(self._command(command, ReadScript(project=project_name, path=path)))

    def _handle_script(self, project_name: str, path: str, output: str) -> None:
        script = create_script_from_content(path, output, project_name)
        if script is None:
            self.logger.debug("Skipping non-deployment script", path=path)
            return

        if self.inventory.find_script(path) is not None:
            self.inventory.replace_script(script)
        else:
            self.inventory.add_script(script)
        self.inventory.link_scripts()
        self.status_message = f"Found {len(self.inventory.scripts)} deployment scripts"
        self.logger.debug("Deployment script parsed", path=path, container=script.container_name)

    def _deliver_listing(self, path: str, kind: BrowserKind, output: str) -> None:
        browser = self.browser
        if browser is None or browser.path != path or browser.kind is not kind:
            self.logger.debug("Discarding stale directory listing", path=path, kind=kind.value)
            return
        browser.entries = parse_directory_listing(output, include_parent=path.rstrip("/") != "")

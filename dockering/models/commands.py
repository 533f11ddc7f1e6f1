"""Remote command models.

Each command kind carries only the context its result handler needs. The set
of kinds is closed; CommandKind is a discriminated union on the ``kind`` tag.
"""

from typing import Annotated, Literal

from pydantic import Field

from .container import DockeringModel
from .enums import ContainerOperation


class DockerPs(DockeringModel):
    kind: Literal["docker_ps"] = "docker_ps"


class ListProjects(DockeringModel):
    kind: Literal["list_projects"] = "list_projects"
    clients_path: str


class FindScripts(DockeringModel):
    kind: Literal["find_scripts"] = "find_scripts"
    project: str


class ReadScript(DockeringModel):
    kind: Literal["read_script"] = "read_script"
    project: str
    path: str


class WriteScript(DockeringModel):
    kind: Literal["write_script"] = "write_script"
    path: str


class ListDirectory(DockeringModel):
    kind: Literal["list_directory"] = "list_directory"
    path: str


class RsyncListDirectory(DockeringModel):
    kind: Literal["rsync_list_directory"] = "rsync_list_directory"
    path: str


class DockerStats(DockeringModel):
    kind: Literal["docker_stats"] = "docker_stats"
    container: str


class DockerTop(DockeringModel):
    kind: Literal["docker_top"] = "docker_top"
    container: str


class DockerInspect(DockeringModel):
    kind: Literal["docker_inspect"] = "docker_inspect"
    container: str


class DockerLogs(DockeringModel):
    kind: Literal["docker_logs"] = "docker_logs"
    container: str


class DockerEnv(DockeringModel):
    kind: Literal["docker_env"] = "docker_env"
    container: str


class ContainerAction(DockeringModel):
    kind: Literal["container_action"] = "container_action"
    container: str
    operation: ContainerOperation


class RunScript(DockeringModel):
    kind: Literal["run_script"] = "run_script"
    path: str


CommandKind = Annotated[
    DockerPs
    | ListProjects
    | FindScripts
    | ReadScript
    | WriteScript
    | ListDirectory
    | RsyncListDirectory
    | DockerStats
    | DockerTop
    | DockerInspect
    | DockerLogs
    | DockerEnv
    | ContainerAction
    | RunScript,
    Field(discriminator="kind"),
]


class PendingCommand(DockeringModel):
    """A remote command waiting in the queue or in flight."""

    host: str
    command: str
    kind: CommandKind
    generation: int = 0  # discovery pass the command was queued in

    def describe(self) -> str:
        """Short label for status messages and logs."""
        return self.kind.kind.replace("_", " ")

"""Container-related data models."""

from typing import Any

from pydantic import BaseModel, Field

from ..constants import PLACEHOLDER
from .enums import ContainerState


class DockeringModel(BaseModel):
    """Base model with common dockering settings."""

    def model_dump(self, **kwargs) -> dict[str, Any]:
        """Convert to dict with exclude_none by default."""
        kwargs.setdefault("exclude_none", True)
        return super().model_dump(**kwargs)


class ContainerStatus(DockeringModel):
    """Tagged container status: an exit code for Exited, raw text for Unknown."""

    state: ContainerState
    exit_code: int | None = None
    raw: str | None = None

    @classmethod
    def from_docker_status(cls, status: str) -> "ContainerStatus":
        """Classify a docker ps Status column such as 'Up 3 hours' or 'Exited (1) 2 days ago'."""
        status_lower = status.lower()
        if status_lower.startswith("up"):
            return cls(state=ContainerState.RUNNING)
        if status_lower.startswith("exited"):
            code = _parenthesized_int(status_lower)
            if code is None:
                return cls(state=ContainerState.STOPPED)
            return cls(state=ContainerState.EXITED, exit_code=code)
        if "paused" in status_lower:
            return cls(state=ContainerState.PAUSED)
        if "restarting" in status_lower:
            return cls(state=ContainerState.RESTARTING)
        if "dead" in status_lower:
            return cls(state=ContainerState.DEAD)
        return cls(state=ContainerState.UNKNOWN, raw=status)

    def display(self) -> str:
        labels = {
            ContainerState.RUNNING: "Up",
            ContainerState.STOPPED: "Stopped",
            ContainerState.PAUSED: "Paused",
            ContainerState.RESTARTING: "Restarting",
            ContainerState.EXITED: "Exited",
            ContainerState.DEAD: "Dead",
            ContainerState.UNKNOWN: "Unknown",
        }
        return labels[self.state]

    @property
    def is_running(self) -> bool:
        return self.state is ContainerState.RUNNING


def _parenthesized_int(text: str) -> int | None:
    if "(" not in text:
        return None
    inner = text.split("(", 1)[1].split(")", 1)[0]
    try:
        return int(inner)
    except ValueError:
        return None


class PortMapping(DockeringModel):
    """Host to container port mapping."""

    host_port: int
    container_port: int
    protocol: str = "tcp"

    def display(self) -> str:
        return f"{self.host_port}:{self.container_port}"


class Container(DockeringModel):
    """A container as listed by docker ps on one host."""

    id: str
    name: str
    image: str
    status: ContainerStatus
    ports: list[PortMapping] = Field(default_factory=list)
    server_name: str
    script_path: str | None = None
    networks: list[str] = Field(default_factory=list)

    @property
    def has_script(self) -> bool:
        return self.script_path is not None

    def ports_display(self) -> str:
        if not self.ports:
            return "-"
        return ", ".join(port.display() for port in self.ports)

    def short_image(self) -> str:
        """Image name without registry path or tag ('ghcr.io/acme/api:1.2' -> 'api')."""
        return self.image.rsplit("/", 1)[-1].split(":", 1)[0]

    def matches_search(self, query: str) -> bool:
        query = query.lower()
        return (
            query in self.name.lower()
            or query in self.image.lower()
            or self.id.lower().startswith(query)
        )


class ContainerStats(DockeringModel):
    """One docker stats sample; every field is display text."""

    cpu_percent: str = PLACEHOLDER
    memory_usage: str = PLACEHOLDER
    memory_limit: str = PLACEHOLDER
    memory_percent: str = PLACEHOLDER
    net_io: str = PLACEHOLDER
    block_io: str = PLACEHOLDER
    pids: str = PLACEHOLDER


class ProcessInfo(DockeringModel):
    """A row of docker top output."""

    pid: str
    user: str
    cpu: str
    mem: str
    command: str


class ContainerInspect(DockeringModel):
    """Summary fields pulled out of docker inspect."""

    id: str = ""
    name: str = ""
    image: str = ""
    status: str = ""
    created: str = ""
    started: str = ""
    ip_address: str = ""


class FileEntry(DockeringModel):
    """A row of a remote directory listing."""

    name: str
    is_dir: bool
    is_script: bool = False

    @classmethod
    def create(cls, name: str, is_dir: bool) -> "FileEntry":
        is_script = not is_dir and (name.endswith(".sh") or name.startswith("start"))
        return cls(name=name, is_dir=is_dir, is_script=is_script)

    @classmethod
    def parent(cls) -> "FileEntry":
        return cls(name="..", is_dir=True)

"""Data models for dockering."""

from .commands import (  # noqa: F401
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
from .container import (  # noqa: F401
    Container,
    ContainerInspect,
    ContainerStats,
    ContainerStatus,
    FileEntry,
    PortMapping,
    ProcessInfo,
)
from .enums import BrowserKind, ContainerOperation, ContainerState  # noqa: F401
from .inventory import InventoryState  # noqa: F401
from .script import DeploymentScript, EnvVar, Project, VolumeMount  # noqa: F401

__all__ = [
    # Container models
    "Container",
    "ContainerInspect",
    "ContainerStats",
    "ContainerStatus",
    "FileEntry",
    "PortMapping",
    "ProcessInfo",
    # Script models
    "DeploymentScript",
    "EnvVar",
    "Project",
    "VolumeMount",
    # Inventory
    "InventoryState",
    # Enums
    "BrowserKind",
    "ContainerOperation",
    "ContainerState",
    # Commands
    "CommandKind",
    "ContainerAction",
    "DockerEnv",
    "DockerInspect",
    "DockerLogs",
    "DockerPs",
    "DockerStats",
    "DockerTop",
    "FindScripts",
    "ListDirectory",
    "ListProjects",
    "PendingCommand",
    "ReadScript",
    "RsyncListDirectory",
    "RunScript",
    "WriteScript",
]

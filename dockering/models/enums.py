"""Enum definitions for dockering models."""

from enum import Enum


class ContainerState(Enum):
    """Coarse container state as reported by docker ps."""

    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    RESTARTING = "restarting"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"


class ContainerOperation(Enum):
    """Lifecycle operations an operator can request for a container."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    REMOVE = "remove"
    REMOVE_WITH_VOLUMES = "remove_with_volumes"


class BrowserKind(Enum):
    """Which file browser a directory listing was requested for."""

    REMOTE = "remote"
    RSYNC = "rsync"

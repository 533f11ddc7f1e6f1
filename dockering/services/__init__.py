"""Services layer for dockering."""

from .orchestrator import CommandOrchestrator, FileBrowserView
from .session import DockerSession

__all__ = [
    "CommandOrchestrator",
    "DockerSession",
    "FileBrowserView",
]

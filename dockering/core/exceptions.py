"""Core exceptions for dockering operations."""


class DockeringError(Exception):
    """Base exception for dockering operations."""


class RemoteCommandError(DockeringError):
    """Remote command execution failed."""


class ConfigurationError(DockeringError):
    """Configuration validation or loading failed."""


class ScriptPatchError(DockeringError):
    """A structured edit could not be placed into a deployment script."""

    def __init__(self, message: str, keys: list[str] | None = None):
        super().__init__(message)
        self.keys = keys or []

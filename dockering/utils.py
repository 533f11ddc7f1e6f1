"""Utility functions shared by the command builders and the executor."""

import shlex
from typing import TYPE_CHECKING

from .constants import (
    PRIVILEGE_PREFIX,
    SSH_BATCH_MODE,
    SSH_ERROR_LOG_LEVEL,
    SSH_NO_HOST_CHECK,
)

if TYPE_CHECKING:
    from .core.config_loader import RemoteHost


def expand_remote_path(path: str) -> str:
    """Replace a leading '~' with $HOME so the remote shell expands it.

    Examples:
        >>> expand_remote_path("~/clients")
        '$HOME/clients'
        >>> expand_remote_path("/srv/clients")
        '/srv/clients'
    """
    if path == "~":
        return "$HOME"
    if path.startswith("~/"):
        return "$HOME" + path[1:]
    return path


def quote_remote_path(path: str) -> str:
    """Shell-quote a remote path while keeping a $HOME prefix expandable.

    Examples:
        >>> quote_remote_path("~/my clients")
        '"$HOME"/\\'my clients\\''
        >>> quote_remote_path("/srv/app")
        '/srv/app'
    """
    expanded = expand_remote_path(path)
    if expanded == "$HOME":
        return '"$HOME"'
    if expanded.startswith("$HOME/"):
        return '"$HOME"/' + shlex.quote(expanded[len("$HOME/"):])
    return shlex.quote(expanded)


def wrap_privileged(command: str) -> str:
    """Run a command through a root login shell.

    Example:
        >>> wrap_privileged("docker ps")
        "sudo -i sh -c 'docker ps'"
    """
    return f"{PRIVILEGE_PREFIX} sh -c {shlex.quote(command)}"


def build_ssh_command(host: "RemoteHost", connect_timeout: int = 10) -> list[str]:
    """Build the ssh argv prefix for running one remote command on a host.

    Args:
        host: Host connection details
        connect_timeout: Seconds before the connection attempt is abandoned

    Returns:
        List of SSH command components; append the remote command to run it

    Example:
        >>> build_ssh_command(RemoteHost(hostname="server.com", user="docker"))
        ['ssh', '-o', 'StrictHostKeyChecking=no', '-o', 'LogLevel=ERROR',
         '-o', 'BatchMode=yes', '-o', 'ConnectTimeout=10', '-l', 'docker', 'server.com']
    """
    ssh_cmd = [
        "ssh",
        "-o", SSH_NO_HOST_CHECK,
        "-o", SSH_ERROR_LOG_LEVEL,
        "-o", SSH_BATCH_MODE,  # Fully automated connections (no prompts)
        "-o", f"ConnectTimeout={connect_timeout}",
    ]

    if host.user:
        ssh_cmd.extend(["-l", host.user])

    if host.port != 22:
        ssh_cmd.extend(["-p", str(host.port)])

    if host.identity_file:
        ssh_cmd.extend(["-i", host.identity_file])

    if host.proxy_jump:
        ssh_cmd.extend(["-J", host.proxy_jump])

    ssh_cmd.append(host.hostname)
    return ssh_cmd

"""Builders for the remote shell commands dockering runs over SSH."""

import shlex

from ..constants import (
    DOCKER_PS_FORMAT,
    DOCKER_STATS_FORMAT,
    DOCKER_TOP_COLUMNS,
    SCRIPT_EXCLUDED_PATHS,
    SCRIPT_HEREDOC_MARKER,
    SCRIPT_NAME_PATTERNS,
)
from ..models.enums import ContainerOperation
from ..utils import quote_remote_path


def docker_ps_command(all_containers: bool = False) -> str:
    all_flag = "-a " if all_containers else ""
    return f"docker ps {all_flag}--format '{DOCKER_PS_FORMAT}'"


def docker_start_command(container: str) -> str:
    return f"docker start {shlex.quote(container)}"


def docker_stop_command(container: str) -> str:
    return f"docker stop {shlex.quote(container)}"


def docker_restart_command(container: str) -> str:
    return f"docker restart {shlex.quote(container)}"


def docker_rm_command(container: str, volumes: bool = False) -> str:
    volume_flag = "-v " if volumes else ""
    return f"docker rm {volume_flag}{shlex.quote(container)}"


def container_operation_command(container: str, operation: ContainerOperation) -> str:
    """Command text for a lifecycle operation."""
    if operation is ContainerOperation.START:
        return docker_start_command(container)
    if operation is ContainerOperation.STOP:
        return docker_stop_command(container)
    if operation is ContainerOperation.RESTART:
        return docker_restart_command(container)
    if operation is ContainerOperation.REMOVE:
        return docker_rm_command(container)
    return docker_rm_command(container, volumes=True)


def docker_logs_command(container: str, tail: int | None = None, follow: bool = False) -> str:
    parts = ["docker logs"]
    if tail is not None:
        parts.append(f"--tail {tail}")
    if follow:
        parts.append("-f")
    # docker logs writes the container's stderr to stderr
    parts.append(f"{shlex.quote(container)} 2>&1")
    return " ".join(parts)


def docker_exec_env_command(container: str) -> str:
    return f"docker exec {shlex.quote(container)} env"


def docker_stats_command(container: str) -> str:
    return f"docker stats --no-stream --format '{DOCKER_STATS_FORMAT}' {shlex.quote(container)}"


def docker_top_command(container: str) -> str:
    return f"docker top {shlex.quote(container)} -o {DOCKER_TOP_COLUMNS}"


def docker_inspect_command(container: str) -> str:
    return f"docker inspect {shlex.quote(container)}"


def list_directory_command(path: str) -> str:
    """ls -la without the leading 'total' line."""
    return f"ls -la {quote_remote_path(path)} 2>/dev/null | tail -n +2"


def list_projects_command(clients_path: str) -> str:
    """List project directory names directly under the clients path."""
    return (
        f"find {quote_remote_path(clients_path)} -maxdepth 1 -mindepth 1 -type d "
        "-exec basename {} \\; 2>/dev/null | sort"
    )


def find_scripts_command(project_path: str) -> str:
    """Find docker-related shell scripts anywhere below a project directory."""
    names = " -o ".join(f'-name "{pattern}"' for pattern in SCRIPT_NAME_PATTERNS)
    excluded = " ".join(f'! -path "{pattern}"' for pattern in SCRIPT_EXCLUDED_PATHS)
    return (
        f"find {quote_remote_path(project_path)} -type f \\( {names} \\) "
        f"{excluded} 2>/dev/null"
    )


def read_script_command(script_path: str) -> str:
    return f"cat {quote_remote_path(script_path)}"


def write_script_command(script_path: str, content: str) -> str:
    """Overwrite a remote script through a quoted heredoc and make it executable.

    The heredoc body is written verbatim; exactly one trailing newline ends up
    in the file.
    """
    quoted = quote_remote_path(script_path)
    body = content[:-1] if content.endswith("\n") else content
    return (
        f"cat > {quoted} << '{SCRIPT_HEREDOC_MARKER}' && chmod +x {quoted}\n"
        f"{body}\n"
        f"{SCRIPT_HEREDOC_MARKER}"
    )


def run_script_command(script_path: str) -> str:
    quoted = quote_remote_path(script_path)
    return f'cd "$(dirname {quoted})" && bash {quoted}'

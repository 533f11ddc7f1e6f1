"""Parsers for the text output of remote docker and shell commands.

Every parser is a pure function and lenient: malformed lines are skipped and
an empty or unexpected payload yields an empty result, never an exception.
"""

from ..constants import FIELD_DELIMITER, PLACEHOLDER
from ..models.container import (
    Container,
    ContainerInspect,
    ContainerStats,
    ContainerStatus,
    FileEntry,
    PortMapping,
    ProcessInfo,
)
from ..models.script import EnvVar, Project
from ..utils import expand_remote_path


def parse_docker_ps(output: str, server_name: str) -> list[Container]:
    """Parse `docker ps --format '{{.ID}}|{{.Names}}|{{.Image}}|{{.Status}}|{{.Ports}}'`.

    Args:
        output: Raw command output, one container per line
        server_name: Host the containers belong to

    Returns:
        Containers in output order
    """
    containers = []
    for line in output.splitlines():
        if not line.strip():
            continue
        container = _parse_container_line(line, server_name)
        if container is not None:
            containers.append(container)
    return containers


def _parse_container_line(line: str, server_name: str) -> Container | None:
    parts = line.split(FIELD_DELIMITER)
    if len(parts) < 4:
        return None

    return Container(
        id=parts[0],
        name=parts[1],
        image=parts[2],
        status=ContainerStatus.from_docker_status(parts[3]),
        ports=parse_ports(parts[4]) if len(parts) > 4 else [],
        server_name=server_name,
    )


def parse_ports(ports_str: str) -> list[PortMapping]:
    """Parse the docker ps Ports column.

    Examples:
        "0.0.0.0:8096->8080/tcp, :::8096->8080/tcp" -> one 8096:8080/tcp mapping
        "5432/tcp" -> exposed port 5432:5432/tcp
    """
    result: list[PortMapping] = []
    for entry in ports_str.split(", "):
        mapping = _parse_single_port(entry.strip())
        if mapping is None:
            continue
        # IPv4 and IPv6 bindings are listed separately
        if any(
            p.host_port == mapping.host_port and p.container_port == mapping.container_port
            for p in result
        ):
            continue
        result.append(mapping)
    return result


def _parse_single_port(port_str: str) -> PortMapping | None:
    if not port_str:
        return None

    if "->" in port_str:
        left, right = port_str.split("->", 1)
        host_port = _parse_port_number(left.rsplit(":", 1)[-1])
        container = _parse_port_protocol(right)
        if host_port is None or container is None:
            return None
        container_port, protocol = container
        return PortMapping(host_port=host_port, container_port=container_port, protocol=protocol)

    container = _parse_port_protocol(port_str)
    if container is None:
        return None
    container_port, protocol = container
    return PortMapping(host_port=container_port, container_port=container_port, protocol=protocol)


def _parse_port_protocol(text: str) -> tuple[int, str] | None:
    port_text, _, protocol = text.partition("/")
    port = _parse_port_number(port_text)
    if port is None:
        return None
    return port, protocol or "tcp"


def _parse_port_number(text: str) -> int | None:
    try:
        port = int(text.strip())
    except ValueError:
        return None
    if not 0 <= port <= 65535:
        return None
    return port


def parse_docker_stats(output: str) -> ContainerStats:
    """Parse one line of `docker stats --no-stream` with the pipe format.

    Fields: CPU% | MemUsage ("used / limit") | Mem% | NetIO | BlockIO | PIDs.
    Missing fields stay as the placeholder.
    """
    lines = output.splitlines()
    line = lines[0] if lines else ""
    parts = [part.strip() for part in line.split(FIELD_DELIMITER)] if line else []

    def field(index: int) -> str:
        return parts[index] if index < len(parts) and parts[index] else PLACEHOLDER

    memory_usage = memory_limit = PLACEHOLDER
    if len(parts) > 1 and parts[1]:
        used, _, limit = parts[1].partition("/")
        memory_usage = used.strip() or PLACEHOLDER
        memory_limit = limit.strip() or PLACEHOLDER

    return ContainerStats(
        cpu_percent=field(0),
        memory_usage=memory_usage,
        memory_limit=memory_limit,
        memory_percent=field(2),
        net_io=field(3),
        block_io=field(4),
        pids=field(5),
    )


def parse_docker_top(output: str) -> list[ProcessInfo]:
    """Parse `docker top <name> -o pid,user,%cpu,%mem,comm`.

    The header line is dropped. The command column may contain spaces, so it
    is rebuilt from the fifth token onward.
    """
    processes = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 5:
            continue
        processes.append(
            ProcessInfo(
                pid=parts[0],
                user=parts[1],
                cpu=parts[2],
                mem=parts[3],
                command=" ".join(parts[4:]),
            )
        )
    return processes


# Inspect field marker -> ContainerInspect attribute
_INSPECT_FIELDS = (
    ('"Id":', "id"),
    ('"Name":', "name"),
    ('"Image":', "image"),
    ('"Status":', "status"),
    ('"Created":', "created"),
    ('"StartedAt":', "started"),
    ('"IPAddress":', "ip_address"),
)


def parse_docker_inspect(output: str) -> ContainerInspect:
    """Pull summary fields out of `docker inspect` JSON with a line scan.

    Nested objects repeat some labels (Image, Status, Name), so the first
    non-empty occurrence of each field wins.
    """
    info = ContainerInspect()
    for raw_line in output.splitlines():
        line = raw_line.strip()
        for marker, attribute in _INSPECT_FIELDS:
            if marker in line and not getattr(info, attribute):
                value = _extract_json_value(line)
                if attribute == "name":
                    value = value.lstrip("/")
                setattr(info, attribute, value)
                break
    return info


def _extract_json_value(line: str) -> str:
    _, _, value = line.partition(":")
    return value.strip().rstrip(",").strip().strip('"')


def parse_directory_listing(output: str, include_parent: bool = True) -> list[FileEntry]:
    """Parse `ls -la <path> | tail -n +2` for the file browser.

    Example line: drwxr-xr-x  2 user group  4096 Jan  1 12:00 dirname

    Returns:
        ".." first (unless suppressed), then directories, then files, each
        group sorted case-insensitively
    """
    entries = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) < 9:
            continue
        # Names may contain spaces
        name = " ".join(parts[8:])
        if name in (".", ".."):
            continue
        entries.append(FileEntry.create(name, is_dir=parts[0].startswith("d")))

    entries.sort(key=lambda entry: (not entry.is_dir, entry.name.lower()))
    if include_parent:
        entries.insert(0, FileEntry.parent())
    return entries


def parse_project_listing(output: str, clients_path: str) -> list[Project]:
    """One project per directory name printed by the project discovery find."""
    base = expand_remote_path(clients_path).rstrip("/")
    projects = []
    for line in output.splitlines():
        name = line.strip()
        if not name:
            continue
        projects.append(Project(name=name, path=f"{base}/{name}"))
    return projects


def parse_script_paths(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def parse_env_output(output: str) -> list[EnvVar]:
    """Parse `docker exec <name> env` into variables, skipping lines without '='."""
    env_vars = []
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            continue
        env_vars.append(EnvVar(key=key.strip(), value=value))
    return env_vars


def parse_log_lines(output: str) -> list[str]:
    return output.splitlines()

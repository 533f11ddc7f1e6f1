"""Deployment script codec.

Turns a bash deployment script into a DeploymentScript, generates a script
for a container that has none yet, and patches edits back into an existing
script. Patching works line by line and leaves every line that does not carry
the edited flag byte-identical, so comments, extra flags and the author's
layout survive.
"""

import re

import structlog

from ..constants import (
    CONTINUATION_INDENT,
    DEFAULT_RESTART_POLICY,
    DOCKER_MARKER,
    SCRIPT_SHEBANG,
)
from ..models.container import PortMapping
from ..models.script import DeploymentScript, EnvVar, VolumeMount
from .exceptions import ScriptPatchError

logger = structlog.get_logger()

# A bare shell word; a backslash escapes the next non-space character
_BARE_WORD = r"(?:[^\s\\]|\\\S)+"
_DOUBLE_QUOTED = r'"(?:[^"\\]|\\.)*"'
_SINGLE_QUOTED = r"'[^']*'"
_ENV_KEY = r"[A-Za-z_][A-Za-z0-9_]*"
_FLAG_START = r"(?<![\w-])"

_ENV_RE = re.compile(
    _FLAG_START
    + rf"-e[ \t]*({_ENV_KEY})="
    + rf'(?:"((?:[^"\\]|\\.)*)"|\'([^\']*)\'|({_BARE_WORD}))'
)
_ANY_ENV_FLAG_RE = re.compile(
    _FLAG_START + rf"-e[ \t]*{_ENV_KEY}=(?:{_DOUBLE_QUOTED}|{_SINGLE_QUOTED}|{_BARE_WORD})?"
)
_VOLUME_RE = re.compile(_FLAG_START + r"-v[ \t]+[\"']?([^:\s\"']+):([^:\s\"']+)(:ro)?")
_ANY_VOLUME_FLAG_RE = re.compile(_FLAG_START + r"-v[ \t]+\S+")
_PORT_RE = re.compile(
    _FLAG_START + r"-p[ \t]+[\"']?(?:\d{1,3}(?:\.\d{1,3}){3}:)?(\d+):(\d+)(?:/(\w+))?"
)
_ANY_PORT_FLAG_RE = re.compile(_FLAG_START + r"-p[ \t]+\S+")
_NETWORK_PATTERNS = (
    re.compile(_FLAG_START + r"--net=(\S+)"),
    re.compile(_FLAG_START + r"--network=(\S+)"),
    re.compile(_FLAG_START + r"--net[ \t]+(\S+)"),
    re.compile(_FLAG_START + r"--network[ \t]+(\S+)"),
)
_NETWORK_FLAG_RE = re.compile(_FLAG_START + r"--net(?:work)?(?:=|[ \t]+)(?P<value>[^\s\\]+)")
_RESTART_PATTERNS = (
    re.compile(_FLAG_START + r"--restart=(\S+)"),
    re.compile(_FLAG_START + r"--restart[ \t]+(\S+)"),
)
_NAME_FLAG_RE = re.compile(_FLAG_START + r"--name(?:=|[ \t]+)([\"']?)([^\s\"']+)\1")
_INVOCATION_RE = re.compile(r"(?<![\w-])docker[ \t]+(?:container[ \t]+)?(?:run|create)\b")
_START_RE = re.compile(r"(?<![\w-])docker[ \t]+(?:container[ \t]+)?start\b")
_UNESCAPE_RE = re.compile(r'\\([\\"$`])')
_NEEDS_QUOTING_RE = re.compile(r"[\s$\\\"'!`;&|<>()*?#~{}\[\]]")


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


def parse_script(content: str, path: str, client_name: str) -> DeploymentScript:
    """Extract the container configuration from a deployment script.

    Args:
        content: Raw script text
        path: Remote path of the script
        client_name: Project the script belongs to

    Returns:
        DeploymentScript with raw_content set to ``content``. Fields that
        cannot be found are left empty.
    """
    script = DeploymentScript(path=path, client_name=client_name, raw_content=content)
    live = _live_text(content)

    script.container_name = _extract_variable(live, "NAME") or _extract_name_flag(live) or ""
    script.repo = _extract_variable(live, "REPO") or _extract_trailing_image(live) or ""
    script.env_vars = _extract_env_vars(live)
    script.volumes = _extract_volumes(live)
    script.ports = _extract_ports(live)
    script.network = _first_capture(_NETWORK_PATTERNS, live)
    script.restart_policy = _first_capture(_RESTART_PATTERNS, live)
    return script


def create_script_from_content(
    path: str, content: str, client_name: str
) -> DeploymentScript | None:
    """Parse a script only if it looks like a container deployment script.

    Returns:
        The parsed script, or None when the text never mentions docker or no
        container name can be resolved
    """
    if DOCKER_MARKER not in content:
        return None

    script = parse_script(content, path, client_name)
    if not script.container_name:
        return None
    return script


def _live_text(content: str) -> str:
    """The script with commented-out lines blanked, so they never parse as flags."""
    return "\n".join("" if _is_comment(line) else line for line in content.split("\n"))


def _extract_variable(content: str, var_name: str) -> str | None:
    """Shell assignment NAME='v', NAME="v" or NAME=v, tried in that order."""
    name = re.escape(var_name)
    patterns = (
        rf"(?<![\w$]){name}='([^']*)'",
        rf'(?<![\w$]){name}="([^"]*)"',
        rf"(?<![\w$]){name}=(\S+)",
    )
    for pattern in patterns:
        match = re.search(pattern, content)
        if match:
            return match.group(1)
    return None


def _extract_name_flag(content: str) -> str | None:
    for match in _NAME_FLAG_RE.finditer(content):
        value = match.group(2)
        if not value.startswith("$"):
            return value
    return None


def _extract_trailing_image(content: str) -> str | None:
    """Last word of a docker run/create invocation, if it looks like an image."""
    lines = content.split("\n")
    for start, end in _invocation_spans(lines):
        words = " ".join(_strip_continuation(line) for line in lines[start : end + 1]).split()
        if not words:
            continue
        candidate = words[-1].strip("\"'")
        if (
            candidate
            and not candidate.startswith(("-", "$"))
            and candidate not in ("run", "create")
        ):
            return candidate
    return None


def _extract_env_vars(content: str) -> list[EnvVar]:
    env_vars: list[EnvVar] = []
    seen: set[str] = set()
    for match in _ENV_RE.finditer(content):
        key = match.group(1)
        if key in seen:
            continue
        seen.add(key)
        if match.group(2) is not None:
            value = _UNESCAPE_RE.sub(r"\1", match.group(2))
        elif match.group(3) is not None:
            value = match.group(3)
        else:
            value = match.group(4)
        env_vars.append(EnvVar(key=key, value=value))
    return env_vars


def _extract_volumes(content: str) -> list[VolumeMount]:
    return [
        VolumeMount(
            host_path=match.group(1),
            container_path=match.group(2),
            read_only=match.group(3) is not None,
        )
        for match in _VOLUME_RE.finditer(content)
    ]


def _extract_ports(content: str) -> list[PortMapping]:
    ports = []
    for match in _PORT_RE.finditer(content):
        host_port, container_port = int(match.group(1)), int(match.group(2))
        if host_port > 65535 or container_port > 65535:
            continue
        ports.append(
            PortMapping(
                host_port=host_port,
                container_port=container_port,
                protocol=match.group(3) or "tcp",
            )
        )
    return ports


def _first_capture(patterns: tuple[re.Pattern, ...], content: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(content)
        if match:
            return match.group(1).strip("\"'")
    return None


# ---------------------------------------------------------------------------
# Generate
# ---------------------------------------------------------------------------


def generate_script(script: DeploymentScript) -> str:
    """Render a fresh deployment script.

    Only for scripts that do not exist on the remote host yet; existing
    scripts are edited with apply_script_changes().
    """
    flags = []
    if script.network:
        flags.append(f"--net={script.network}")
    flags.append(f"--name $NAME --restart={script.restart_policy or DEFAULT_RESTART_POLICY}")
    flags.extend(_port_token(port) for port in script.ports)
    flags.extend(_volume_token(volume) for volume in script.volumes)
    flags.extend(_env_token(env.key, env.value) for env in script.env_vars)
    flags.append("$REPO")

    create_lines = ["docker create \\"]
    create_lines.extend(f"{CONTINUATION_INDENT}{flag} \\" for flag in flags[:-1])
    create_lines.append(f"{CONTINUATION_INDENT}{flags[-1]}")

    lines = [
        SCRIPT_SHEBANG,
        "",
        "#Configuration",
        f"NAME='{script.container_name}'",
        f'REPO="{script.repo}"',
        "",
        "docker pull $REPO",
        "docker stop $NAME",
        "docker rm $NAME",
        "",
        *create_lines,
        "",
        "docker start $NAME",
    ]
    return "\n".join(lines) + "\n"


def quote_env_value(value: str) -> str:
    """Quote a value for use in -e KEY=VALUE.

    Values with whitespace, shell metacharacters or quotes, and empty values,
    are wrapped in double quotes with backslash, quote, dollar and backtick
    escaped. Anything else is returned as is.

    Examples:
        >>> quote_env_value("plain")
        'plain'
        >>> quote_env_value("two words")
        '"two words"'
        >>> quote_env_value("")
        '""'
    """
    if value and not _NEEDS_QUOTING_RE.search(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
    )
    return f'"{escaped}"'


def _env_token(key: str, value: str) -> str:
    return f"-e {key}={quote_env_value(value)}"


def _port_token(port: PortMapping) -> str:
    protocol = "" if port.protocol == "tcp" else f"/{port.protocol}"
    return f"-p {port.host_port}:{port.container_port}{protocol}"


def _volume_token(volume: VolumeMount) -> str:
    ro = ":ro" if volume.read_only else ""
    return f"-v {volume.host_path}:{volume.container_path}{ro}"


# ---------------------------------------------------------------------------
# Patch
# ---------------------------------------------------------------------------


def add_env_var(content: str, key: str, value: str) -> str:
    """Insert ``-e KEY=VALUE`` into the docker run/create invocation.

    An existing key is updated in place instead. Returns the text unchanged
    when no insertion point exists.
    """
    if _find_flag(content.split("\n"), _env_flag_re(key)) is not None:
        return update_env_var(content, key, value)
    return _insert_flag(content, _env_token(key, value), _ANY_ENV_FLAG_RE)


def update_env_var(content: str, key: str, value: str) -> str:
    """Rewrite only the value of the first ``-e KEY=`` flag.

    Falls back to add_env_var() when the key is not in the script.
    """
    lines = content.split("\n")
    found = _find_flag(lines, _env_flag_re(key))
    if found is None:
        return _insert_flag(content, _env_token(key, value), _ANY_ENV_FLAG_RE)

    index, match = found
    line = lines[index]
    start, end = match.span("value")
    lines[index] = line[:start] + _requote(match.group("value"), value) + line[end:]
    return "\n".join(lines)


def _requote(old: str, value: str) -> str:
    """Quote a new value the way the value it replaces was quoted."""
    quoted = quote_env_value(value)
    if quoted.startswith('"'):
        return quoted
    if old.startswith('"'):
        return f'"{quoted}"'
    if old.startswith("'") and "'" not in value:
        return f"'{value}'"
    return quoted


def remove_env_var(content: str, key: str) -> str:
    """Delete the ``-e KEY=`` flag; the text is unchanged if the key is absent."""
    return _remove_flag(content, _env_flag_re(key))


def add_port(content: str, port: PortMapping) -> str:
    return _insert_flag(content, _port_token(port), _ANY_PORT_FLAG_RE)


def remove_port(content: str, port: PortMapping) -> str:
    pattern = re.compile(
        _FLAG_START
        + r"-p[ \t]+[\"']?(?:\d{1,3}(?:\.\d{1,3}){3}:)?"
        + rf"{port.host_port}:{port.container_port}(?!\d)(?:/\w+)?[\"']?"
    )
    return _remove_flag(content, pattern)


def add_volume(content: str, volume: VolumeMount) -> str:
    return _insert_flag(content, _volume_token(volume), _ANY_VOLUME_FLAG_RE)


def remove_volume(content: str, volume: VolumeMount) -> str:
    ro = ":ro" if volume.read_only else ""
    pattern = re.compile(
        _FLAG_START
        + r"-v[ \t]+[\"']?"
        + re.escape(f"{volume.host_path}:{volume.container_path}{ro}")
        + r"[\"']?(?=\s|$)"
    )
    return _remove_flag(content, pattern)


def set_network(content: str, network: str | None) -> str:
    """Replace, add or (with None) remove the --net/--network flag."""
    if network is None:
        return _remove_flag(content, _NETWORK_FLAG_RE)

    lines = content.split("\n")
    found = _find_flag(lines, _NETWORK_FLAG_RE)
    if found is None:
        return _insert_flag(content, f"--net={network}", _NETWORK_FLAG_RE)

    index, match = found
    line = lines[index]
    lines[index] = line[: match.start("value")] + network + line[match.end("value") :]
    return "\n".join(lines)


_UNSET = object()


def apply_script_changes(
    script: DeploymentScript,
    original_env_vars: list[EnvVar],
    *,
    original_ports: list[PortMapping] | None = None,
    original_volumes: list[VolumeMount] | None = None,
    original_network: object = _UNSET,
) -> str:
    """Write structured edits back into ``script.raw_content``.

    Env vars present in ``original_env_vars`` but no longer on the script are
    removed, changed values are rewritten in place and new keys are inserted.
    Ports, volumes and the network are patched the same way when their
    original values are passed in.

    Args:
        script: Edited script whose raw_content is the text on the remote host
        original_env_vars: Env vars as they were when editing started
        original_ports: Ports before editing, or None to leave ports alone
        original_volumes: Volumes before editing, or None to leave volumes alone
        original_network: Network before editing; omit to leave it alone

    Returns:
        Patched script text

    Raises:
        ScriptPatchError: If an added setting had no place to go in the script
    """
    content = script.raw_content
    original = {env.key: env.value for env in original_env_vars}
    current_keys = {env.key for env in script.env_vars}
    skipped: list[str] = []

    for env in original_env_vars:
        if env.key not in current_keys:
            content = remove_env_var(content, env.key)

    for env in script.env_vars:
        if env.key in original and env.value == original[env.key]:
            continue
        if env.key in original:
            patched = update_env_var(content, env.key, env.value)
        else:
            patched = add_env_var(content, env.key, env.value)
        if patched == content:
            skipped.append(env.key)
        content = patched

    if original_ports is not None:
        for port in original_ports:
            if port not in script.ports:
                content = remove_port(content, port)
        for port in script.ports:
            if port not in original_ports:
                patched = add_port(content, port)
                if patched == content:
                    skipped.append(_port_token(port))
                content = patched

    if original_volumes is not None:
        for volume in original_volumes:
            if volume not in script.volumes:
                content = remove_volume(content, volume)
        for volume in script.volumes:
            if volume not in original_volumes:
                patched = add_volume(content, volume)
                if patched == content:
                    skipped.append(_volume_token(volume))
                content = patched

    if original_network is not _UNSET and script.network != original_network:
        patched = set_network(content, script.network)
        if patched == content and script.network is not None:
            skipped.append(f"--net={script.network}")
        content = patched

    if skipped:
        logger.warning("Script edit could not be placed", path=script.path, keys=skipped)
        raise ScriptPatchError(
            f"No docker run/create or docker start line to insert {', '.join(skipped)} "
            f"into {script.path}",
            keys=skipped,
        )

    return content


def _env_flag_re(key: str) -> re.Pattern:
    return re.compile(
        _FLAG_START
        + r"-e[ \t]*"
        + re.escape(key)
        + rf"=(?P<value>{_DOUBLE_QUOTED}|{_SINGLE_QUOTED}|{_BARE_WORD}|)"
    )


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def _has_continuation(line: str) -> bool:
    return line.rstrip().endswith("\\")


def _strip_continuation(line: str) -> str:
    stripped = line.rstrip()
    if stripped.endswith("\\"):
        return stripped[:-1].rstrip()
    return line


def _indentation(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _find_flag(lines: list[str], pattern: re.Pattern) -> tuple[int, re.Match] | None:
    for index, line in enumerate(lines):
        if _is_comment(line):
            continue
        match = pattern.search(line)
        if match:
            return index, match
    return None


def _remove_flag(content: str, pattern: re.Pattern) -> str:
    lines = content.split("\n")
    found = _find_flag(lines, pattern)
    if found is None:
        return content

    index, match = found
    line = lines[index]
    if _strip_continuation(line).strip() == match.group(0):
        del lines[index]
        # The removed line ended the invocation; the one before must end it now
        if not _has_continuation(line) and index > 0 and _has_continuation(lines[index - 1]):
            lines[index - 1] = _strip_continuation(lines[index - 1])
    else:
        start = match.start()
        while start > 0 and line[start - 1] in " \t":
            start -= 1
        lines[index] = line[:start] + line[match.end() :]
    return "\n".join(lines)


def _invocation_spans(lines: list[str]) -> list[tuple[int, int]]:
    """(first, last) line indexes of every docker run/create command."""
    spans = []
    index = 0
    while index < len(lines):
        line = lines[index]
        if not _is_comment(line) and _INVOCATION_RE.search(line):
            end = index
            while _has_continuation(lines[end]) and end + 1 < len(lines):
                end += 1
            spans.append((index, end))
            index = end + 1
        else:
            index += 1
    return spans


def _select_invocation(lines: list[str], anchor: re.Pattern) -> tuple[int, int] | None:
    spans = _invocation_spans(lines)
    if not spans:
        return None
    for start, end in spans:
        if any(anchor.search(lines[i]) for i in range(start, end + 1) if not _is_comment(lines[i])):
            return start, end
    return max(spans, key=lambda span: span[1] - span[0])


def _last_matching_line(lines: list[str], start: int, end: int, pattern: re.Pattern) -> int | None:
    for index in range(end, start - 1, -1):
        if not _is_comment(lines[index]) and pattern.search(lines[index]):
            return index
    return None


def _last_flag_line(lines: list[str], start: int, end: int) -> int | None:
    for index in range(end, start, -1):
        if lines[index].lstrip().startswith("-"):
            return index
    head = lines[start]
    invocation = _INVOCATION_RE.search(head)
    if invocation and re.search(r"\s-", head[invocation.end() :]):
        return start
    return None


def _insert_flag(content: str, token: str, anchor: re.Pattern) -> str:
    """Place a new flag next to its siblings in the docker run/create command.

    Anchors, in order: the last line carrying a flag of the same kind, the
    last flag line of the command, the image line closing the command, and
    finally a docker start line.
    """
    lines = content.split("\n")
    span = _select_invocation(lines, anchor)

    if span is not None:
        start, end = span
        if start == end:
            lines[start] = _insert_inline(lines[start], token, anchor)
            return "\n".join(lines)

        target = _last_matching_line(lines, start, end, anchor)
        if target is None:
            target = _last_flag_line(lines, start, end)
        if target is not None:
            indent = _indentation(lines[target if target != start else start + 1])
            if target == end:
                lines[target] = lines[target].rstrip() + " \\"
                lines.insert(target + 1, f"{indent}{token}")
            else:
                lines.insert(target + 1, f"{indent}{token} \\")
            return "\n".join(lines)

        if not lines[end].lstrip().startswith("-"):
            lines.insert(end, f"{_indentation(lines[end])}{token} \\")
            return "\n".join(lines)

    for index, line in enumerate(lines):
        if not _is_comment(line) and _START_RE.search(line):
            logger.debug("Inserting flag before docker start", token=token, line=index)
            lines.insert(index, f"{_indentation(line)}{token}")
            return "\n".join(lines)

    return content


def _insert_inline(line: str, token: str, anchor: re.Pattern) -> str:
    """Add a flag to a one-line docker run/create command."""
    matches = list(anchor.finditer(line))
    if matches:
        position = matches[-1].end()
    else:
        position = _INVOCATION_RE.search(line).end()
    return f"{line[:position]} {token}{line[position:]}"

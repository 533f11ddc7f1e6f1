"""Configuration management for dockering."""

import asyncio
import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from ..constants import ENV_HOSTS_CONFIG
from .exceptions import ConfigurationError
from .settings import DockeringSettings

logger = structlog.get_logger()


class RemoteHost(BaseModel):
    """Connection details for one SSH host."""

    hostname: str
    user: str | None = None
    port: int = 22
    identity_file: str | None = None
    proxy_jump: str | None = None
    clients_path: str | None = None  # Overrides settings.clients_path for this host
    privileged: bool = False  # Wrap remote commands in sudo -i
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    enabled: bool = True


class DockeringConfig(BaseSettings):
    """Main configuration for dockering."""

    hosts: dict[str, RemoteHost] = Field(default_factory=dict)
    settings: DockeringSettings = Field(default_factory=DockeringSettings)
    config_file: str = Field(default="config/hosts.yml", alias=ENV_HOSTS_CONFIG)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_config_dir() -> Path:
    """User configuration directory."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "dockering"


def load_config(config_path: str | None = None) -> DockeringConfig:
    """Load configuration from multiple sources (synchronous interface).

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Loaded configuration

    Note:
        For async code, use load_config_async() instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(load_config_async(config_path))
    raise RuntimeError(
        "load_config() cannot be called from within an async context. "
        "Use 'await load_config_async()' instead."
    )


async def load_config_async(config_path: str | None = None) -> DockeringConfig:
    """Load configuration from multiple sources (async interface).

    Order of precedence, lowest first: defaults, user hosts.yml, project
    hosts.yml, environment variables.
    """
    load_dotenv()

    config = DockeringConfig()

    user_config_path = get_config_dir() / "hosts.yml"
    await _load_config_file(config, user_config_path)

    default_config_file = os.getenv(ENV_HOSTS_CONFIG, "config/hosts.yml")
    project_config_path = Path(config_path or default_config_file)
    await _load_config_file(config, project_config_path)

    config.config_file = str(project_config_path)

    logger.debug(
        "Configuration loaded",
        config_file=config.config_file,
        hosts=len(config.hosts),
        clients_path=config.settings.clients_path,
    )
    return config


async def _load_config_file(config: DockeringConfig, config_path: Path) -> None:
    """Load and apply configuration from a YAML file."""
    if not config_path.exists():
        return

    yaml_config = await _load_yaml_config(config_path)
    try:
        _apply_host_config(config, yaml_config)
        _apply_settings_config(config, yaml_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def _apply_host_config(config: DockeringConfig, yaml_config: dict[str, Any]) -> None:
    """Apply host configuration from YAML data."""
    if "hosts" in yaml_config and yaml_config["hosts"]:
        for host_name, host_data in yaml_config["hosts"].items():
            config.hosts[host_name] = RemoteHost(**(host_data or {}))


def _apply_settings_config(config: DockeringConfig, yaml_config: dict[str, Any]) -> None:
    """Apply settings from YAML data; environment variables keep priority."""
    section = yaml_config.get("settings")
    if not section:
        return

    fields = DockeringSettings.model_fields
    values = config.settings.model_dump()
    for key, value in section.items():
        field = fields.get(key)
        if field is None:
            logger.warning("Unknown setting in config file", setting=key)
            continue
        if field.alias and field.alias in os.environ:
            continue
        values[key] = value
    config.settings = DockeringSettings(**values)


async def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML configuration file."""
    try:
        content = await asyncio.to_thread(config_path.read_text)
        content = _expand_yaml_config(content)
        loaded = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e
    # yaml.safe_load can return None, str, list, etc.
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _expand_yaml_config(content: str) -> str:
    """Securely expand environment variables with allowlist."""

    allowed_env_vars = {
        "HOME",
        "USER",
        "XDG_CONFIG_HOME",
        ENV_HOSTS_CONFIG,
        "DOCKERING_CLIENTS_PATH",
        "LOG_LEVEL",
    }

    def replace_var(match):
        var_name = match.group(1)
        if var_name in allowed_env_vars:
            return os.getenv(var_name, match.group(0))
        logger.warning(
            "Environment variable not in allowlist, skipping expansion",
            variable=var_name,
        )
        return match.group(0)

    return re.sub(r"\$\{([^}]+)\}", replace_var, content)

"""Runtime settings for dockering.

Provides centralized tunables using Pydantic BaseSettings
with environment variable support for operational tuning.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DockeringSettings(BaseSettings):
    """Discovery and remote execution configuration."""

    clients_path: str = Field(
        "~/clients",
        alias="DOCKERING_CLIENTS_PATH",
        description="Remote directory whose subdirectories are projects",
    )

    show_all_containers: bool = Field(
        False, alias="DOCKERING_SHOW_ALL_CONTAINERS", description="Use docker ps -a"
    )

    command_timeout: int = Field(
        60, alias="DOCKERING_COMMAND_TIMEOUT", description="Remote command timeout in seconds"
    )

    connect_timeout: int = Field(
        10, alias="DOCKERING_CONNECT_TIMEOUT", description="SSH connect timeout in seconds"
    )

    log_tail: int = Field(200, alias="DOCKERING_LOG_TAIL", description="docker logs --tail value")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    log_dir: str = Field("logs", alias="LOG_DIR")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

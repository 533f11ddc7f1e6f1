"""Deployment script data models."""

from pydantic import Field, model_validator

from ..constants import SECRET_KEY_MARKERS, SECRET_MASK
from .container import DockeringModel, PortMapping


def is_secret_key(key: str) -> bool:
    """True when an env var key looks like it holds a credential."""
    key_upper = key.upper()
    return any(marker in key_upper for marker in SECRET_KEY_MARKERS)


class EnvVar(DockeringModel):
    """An environment variable passed with -e."""

    key: str
    value: str
    is_secret: bool = False  # display masking only

    @model_validator(mode="after")
    def _detect_secret(self) -> "EnvVar":
        self.is_secret = is_secret_key(self.key)
        return self

    def display_value(self) -> str:
        return SECRET_MASK if self.is_secret else self.value

    def display_value_truncated(self, max_len: int) -> str:
        value = self.display_value()
        if len(value) > max_len:
            return f"{value[: max(max_len - 3, 0)]}..."
        return value


class VolumeMount(DockeringModel):
    """A -v HOST:CONTAINER[:ro] bind."""

    host_path: str
    container_path: str
    read_only: bool = False

    def display(self) -> str:
        ro = ":ro" if self.read_only else ""
        return f"{self.host_path} -> {self.container_path}{ro}"


class DeploymentScript(DockeringModel):
    """Structured view of a shell script that (re)creates one container.

    raw_content is the source of truth for persistence. The other fields are
    derived from it by the script codec and may lag behind until re-parsed.
    """

    path: str
    client_name: str
    container_name: str = ""
    repo: str = ""
    env_vars: list[EnvVar] = Field(default_factory=list)
    volumes: list[VolumeMount] = Field(default_factory=list)
    ports: list[PortMapping] = Field(default_factory=list)
    network: str | None = None
    restart_policy: str | None = None
    raw_content: str = ""

    def add_env_var(self, key: str, value: str) -> None:
        """Set a variable, keeping its position if the key already exists."""
        existing = self.get_env_var(key)
        if existing is not None:
            existing.value = value
        else:
            self.env_vars.append(EnvVar(key=key, value=value))

    def remove_env_var(self, key: str) -> None:
        self.env_vars = [env for env in self.env_vars if env.key != key]

    def get_env_var(self, key: str) -> EnvVar | None:
        for env in self.env_vars:
            if env.key == key:
                return env
        return None


class Project(DockeringModel):
    """A project folder on the remote host and the scripts found in it."""

    name: str
    path: str
    scripts: list[DeploymentScript] = Field(default_factory=list)

    def find_script_for_container(self, container_name: str) -> DeploymentScript | None:
        for script in self.scripts:
            if script.container_name == container_name:
                return script
        return None

    @property
    def script_count(self) -> int:
        return len(self.scripts)

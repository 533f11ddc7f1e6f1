"""Per-host inventory of discovered containers, projects and scripts."""

from pydantic import Field

from .container import Container, ContainerInspect, ContainerStats, DockeringModel, ProcessInfo
from .script import DeploymentScript, EnvVar, Project


class InventoryState(DockeringModel):
    """Everything discovered on one connected host.

    Discovery replaces containers, projects and scripts wholesale. The
    association index survives refreshes and is only dropped by clear().
    """

    host: str
    containers: list[Container] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    scripts: list[DeploymentScript] = Field(default_factory=list)
    associations: dict[tuple[str, str], str] = Field(default_factory=dict)

    # Last detail results, keyed by container name
    stats: dict[str, ContainerStats] = Field(default_factory=dict)
    processes: dict[str, list[ProcessInfo]] = Field(default_factory=dict)
    inspections: dict[str, ContainerInspect] = Field(default_factory=dict)
    logs: dict[str, list[str]] = Field(default_factory=dict)
    runtime_env: dict[str, list[EnvVar]] = Field(default_factory=dict)

    def reset(self) -> None:
        """Forget discovered data before a refresh; associations are kept."""
        self.containers = []
        self.projects = []
        self.scripts = []
        self.stats = {}
        self.processes = {}
        self.inspections = {}
        self.logs = {}
        self.runtime_env = {}

    def clear(self) -> None:
        """Tear down on disconnect."""
        self.reset()
        self.associations = {}

    def find_container(self, name: str) -> Container | None:
        for container in self.containers:
            if container.name == name:
                return container
        return None

    def find_project(self, name: str) -> Project | None:
        for project in self.projects:
            if project.name == name:
                return project
        return None

    def find_script(self, path: str) -> DeploymentScript | None:
        for script in self.scripts:
            if script.path == path:
                return script
        return None

    def add_script(self, script: DeploymentScript) -> None:
        """Record a parsed script under its project and in the flat list."""
        project = self.find_project(script.client_name)
        if project is not None:
            project.scripts.append(script)
        self.scripts.append(script)

    def replace_script(self, script: DeploymentScript) -> None:
        """Swap in an edited script (same path) everywhere it is referenced."""
        self.scripts = [script if s.path == script.path else s for s in self.scripts]
        for project in self.projects:
            project.scripts = [script if s.path == script.path else s for s in project.scripts]
        if self.find_script(script.path) is None:
            self.add_script(script)

    def associate(self, container_name: str, script_path: str) -> None:
        self.associations[(self.host, container_name)] = script_path

    def association_for(self, container_name: str) -> str | None:
        return self.associations.get((self.host, container_name))

    def link_scripts(self) -> int:
        """Point each container at its deployment script.

        An entry in the association index wins; otherwise the first script
        whose container name matches is used and remembered in the index.

        Returns:
            Number of containers with a script after linking
        """
        linked = 0
        for container in self.containers:
            path = self.association_for(container.name)
            if path is None:
                script = next(
                    (s for s in self.scripts if s.container_name == container.name), None
                )
                if script is not None:
                    path = script.path
                    self.associate(container.name, path)
            container.script_path = path
            if path is not None:
                linked += 1
        return linked

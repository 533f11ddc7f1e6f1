"""Shared pytest fixtures for dockering tests."""

import pytest
import structlog

from dockering.core.config_loader import RemoteHost
from dockering.core.exceptions import RemoteCommandError
from dockering.core.settings import DockeringSettings

WEB_SCRIPT = """#!/bin/bash
# Deploy the web app
NAME='web'
REPO="ghcr.io/acme/web:latest"

docker pull $REPO
docker stop $NAME
docker rm $NAME

docker run -d \\
  --name $NAME \\
  --restart=always \\
  --net=proxy \\
  -p 8080:80 \\
  -v /srv/web/data:/data \\
  -e FOO=bar \\
  -e DB_PASSWORD="s3cr3t value" \\
  $REPO
"""

DB_SCRIPT = """#!/bin/bash
docker run -d --name=database -p 127.0.0.1:5432:5432 -e POSTGRES_DB=app postgres:16
"""

NOT_DEPLOYMENT_SCRIPT = """#!/bin/bash
rsync -a ./build/ /var/www/
"""

DOCKER_PS_OUTPUT = (
    "abc123|web|ghcr.io/acme/web:latest|Up 3 hours|0.0.0.0:8080->80/tcp, :::8080->80/tcp\n"
    "def456|db|postgres:16|Exited (0) 2 days ago|\n"
)


@pytest.fixture(scope="session", autouse=True)
def configure_structlog():
    """Route structlog through stdlib logging so log lines stay off stdout."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class FakeExecutor:
    """Answers remote commands from canned outputs, matched by substring.

    The first matching rule wins. Unmatched commands return an empty string.
    """

    def __init__(self, responses: list[tuple[str, str]] | None = None, failures=()):
        self.responses = list(responses or [])
        self.failures = list(failures)
        self.commands: list[str] = []

    async def run(self, command: str) -> str:
        self.commands.append(command)
        for marker in self.failures:
            if marker in command:
                raise RemoteCommandError(f"Command failed with exit code 1: {marker}")
        for marker, output in self.responses:
            if marker in command:
                return output
        return ""


@pytest.fixture
def remote_host() -> RemoteHost:
    """Remote host used by session and executor tests."""
    return RemoteHost(hostname="prod.example.com", user="ops")


@pytest.fixture
def settings() -> DockeringSettings:
    """Settings that do not depend on the test runner's environment."""
    return DockeringSettings(
        clients_path="~/clients",
        show_all_containers=False,
        command_timeout=30,
        connect_timeout=5,
        log_tail=100,
    )


@pytest.fixture
def discovery_responses() -> list[tuple[str, str]]:
    """Remote outputs for a host with two projects, one of them with scripts."""
    return [
        ("docker ps", DOCKER_PS_OUTPUT),
        ("-maxdepth 1", "acme\nglobex\n"),
        (
            "clients/acme -type f",
            "/home/ops/clients/acme/start.sh\n"
            "/home/ops/clients/acme/deploy-db.sh\n"
            "/home/ops/clients/acme/run-sync.sh\n",
        ),
        ("clients/globex -type f", ""),
        ("cat /home/ops/clients/acme/start.sh", WEB_SCRIPT),
        ("cat /home/ops/clients/acme/deploy-db.sh", DB_SCRIPT),
        ("cat /home/ops/clients/acme/run-sync.sh", NOT_DEPLOYMENT_SCRIPT),
    ]


@pytest.fixture
def fake_executor(discovery_responses) -> FakeExecutor:
    return FakeExecutor(discovery_responses)


@pytest.fixture
def web_script() -> str:
    """Hand-written multi-line deployment script using NAME/REPO variables."""
    return WEB_SCRIPT


@pytest.fixture
def db_script() -> str:
    """One-line docker run with --name and a trailing image."""
    return DB_SCRIPT


@pytest.fixture
def docker_ps_output() -> str:
    return DOCKER_PS_OUTPUT


@pytest.fixture
def executor_factory():
    """Build FakeExecutors with custom responses or failures."""
    return FakeExecutor

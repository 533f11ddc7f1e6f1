"""Tests for remote command text builders and path helpers."""

import pytest

from dockering.core.commands import (
    container_operation_command,
    docker_exec_env_command,
    docker_inspect_command,
    docker_logs_command,
    docker_ps_command,
    docker_stats_command,
    docker_top_command,
    find_scripts_command,
    list_directory_command,
    list_projects_command,
    read_script_command,
    run_script_command,
    write_script_command,
)
from dockering.models import ContainerOperation
from dockering.utils import expand_remote_path, quote_remote_path, wrap_privileged


class TestPathHelpers:
    """Test remote path expansion and quoting."""

    @pytest.mark.parametrize(
        ("path", "expanded"),
        [("~", "$HOME"), ("~/clients", "$HOME/clients"), ("/srv/clients", "/srv/clients")],
    )
    def test_expand_remote_path(self, path, expanded):
        """Test a leading ~ becomes $HOME."""
        assert expand_remote_path(path) == expanded

    def test_quote_keeps_home_expandable(self):
        """Test $HOME stays outside the quotes."""
        assert quote_remote_path("~/my clients") == "\"$HOME\"/'my clients'"
        assert quote_remote_path("~") == '"$HOME"'
        assert quote_remote_path("/srv/app") == "/srv/app"

    def test_wrap_privileged(self):
        """Test commands are run through a root login shell."""
        assert wrap_privileged("docker ps --format '{{.ID}}'") == (
            "sudo -i sh -c 'docker ps --format '\"'\"'{{.ID}}'\"'\"''"
        )


class TestDockerCommands:
    """Test docker command text."""

    def test_docker_ps(self):
        """Test the pipe-delimited listing format."""
        assert docker_ps_command() == (
            "docker ps --format '{{.ID}}|{{.Names}}|{{.Image}}|{{.Status}}|{{.Ports}}'"
        )
        assert docker_ps_command(all_containers=True).startswith("docker ps -a --format ")

    def test_stats_top_inspect_env(self):
        """Test detail commands."""
        assert docker_stats_command("web") == (
            "docker stats --no-stream --format "
            "'{{.CPUPerc}}|{{.MemUsage}}|{{.MemPerc}}|{{.NetIO}}|{{.BlockIO}}|{{.PIDs}}' web"
        )
        assert docker_top_command("web") == "docker top web -o pid,user,%cpu,%mem,comm"
        assert docker_inspect_command("web") == "docker inspect web"
        assert docker_exec_env_command("web") == "docker exec web env"

    def test_logs(self):
        """Test optional tail and follow flags and stderr merging."""
        assert docker_logs_command("web") == "docker logs web 2>&1"
        assert docker_logs_command("web", tail=100, follow=True) == (
            "docker logs --tail 100 -f web 2>&1"
        )

    @pytest.mark.parametrize(
        ("operation", "command"),
        [
            (ContainerOperation.START, "docker start web"),
            (ContainerOperation.STOP, "docker stop web"),
            (ContainerOperation.RESTART, "docker restart web"),
            (ContainerOperation.REMOVE, "docker rm web"),
            (ContainerOperation.REMOVE_WITH_VOLUMES, "docker rm -v web"),
        ],
    )
    def test_lifecycle(self, operation, command):
        """Test each container operation."""
        assert container_operation_command("web", operation) == command

    def test_container_name_quoted(self):
        """Test container names cannot inject shell syntax."""
        assert docker_inspect_command("web; rm -rf /") == "docker inspect 'web; rm -rf /'"


class TestDiscoveryCommands:
    """Test project, script and directory commands."""

    def test_list_projects(self):
        """Test project discovery under the clients path."""
        assert list_projects_command("~/clients") == (
            'find "$HOME"/clients -maxdepth 1 -mindepth 1 -type d '
            "-exec basename {} \\; 2>/dev/null | sort"
        )

    def test_find_scripts(self):
        """Test script name patterns and excluded directories."""
        assert find_scripts_command("/srv/acme") == (
            "find /srv/acme -type f "
            '\\( -name "start*.sh" -o -name "deploy*.sh" -o -name "run*.sh" -o -name "docker*.sh" \\) '
            '! -path "*/node_modules/*" ! -path "*/.git/*" ! -path "*/vendor/*" 2>/dev/null'
        )

    def test_read_script(self):
        """Test paths with spaces are quoted."""
        assert read_script_command("/srv/my app/start.sh") == "cat '/srv/my app/start.sh'"

    def test_list_directory(self):
        """Test ls output without the total line."""
        assert list_directory_command("~") == 'ls -la "$HOME" 2>/dev/null | tail -n +2'


class TestScriptCommands:
    """Test writing and running scripts."""

    def test_write_script_heredoc(self):
        """Test the body is written through a quoted heredoc with one trailing newline."""
        command = write_script_command("/srv/a/start.sh", "#!/bin/bash\necho $HOME\n")
        assert command == (
            "cat > /srv/a/start.sh << 'DOCKERING_SCRIPT_EOF' && chmod +x /srv/a/start.sh\n"
            "#!/bin/bash\n"
            "echo $HOME\n"
            "DOCKERING_SCRIPT_EOF"
        )

    def test_write_script_without_trailing_newline(self):
        """Test content without a final newline is written the same way."""
        assert write_script_command("/a.sh", "x") == (
            "cat > /a.sh << 'DOCKERING_SCRIPT_EOF' && chmod +x /a.sh\nx\nDOCKERING_SCRIPT_EOF"
        )

    def test_run_script(self):
        """Test scripts run from their own directory."""
        assert run_script_command("~/clients/acme/start.sh") == (
            'cd "$(dirname "$HOME"/clients/acme/start.sh)" && bash "$HOME"/clients/acme/start.sh'
        )

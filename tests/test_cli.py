"""Tests for the command line entry point."""

import json
import textwrap
from unittest.mock import patch

import pytest

from dockering.cli import main, parse_args


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("DOCKERING_CLIENTS_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    # Leave the test runner's logging alone
    monkeypatch.setattr("dockering.cli.setup_logging", lambda **kwargs: None)
    path = tmp_path / "hosts.yml"
    path.write_text(
        textwrap.dedent(
            """
            hosts:
              prod:
                hostname: prod.example.com
                user: ops
              old:
                hostname: old.example.com
                enabled: false
            """
        )
    )
    return str(path)


class TestParseArgs:
    """Test argument parsing."""

    def test_subcommands(self):
        """Test discover and scripts take a host name."""
        args = parse_args(["--log-level", "DEBUG", "scripts", "prod", "--show-secrets"])
        assert args.command == "scripts"
        assert args.host == "prod"
        assert args.show_secrets is True
        assert args.log_level == "DEBUG"

    def test_no_subcommand(self):
        """Test the command is optional."""
        assert parse_args([]).command is None


class TestMain:
    """Test running the CLI end to end with a fake executor."""

    def test_validate_config(self, config_file, capsys):
        """Test validation prints nothing to stdout."""
        main(["--config", config_file, "--validate-config"])
        assert capsys.readouterr().out == ""

    def test_lists_hosts(self, config_file, capsys):
        """Test no subcommand lists configured hosts."""
        main(["--config", config_file])
        assert capsys.readouterr().out.split() == ["old", "prod"]

    def test_unknown_host_exits(self, config_file):
        """Test an unknown host is an error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", config_file, "discover", "missing"])
        assert exc_info.value.code == 1

    def test_disabled_host_exits(self, config_file):
        """Test a disabled host is refused."""
        with pytest.raises(SystemExit):
            main(["--config", config_file, "discover", "old"])

    def test_discover(self, config_file, fake_executor, capsys):
        """Test discover prints containers with their scripts."""
        with patch("dockering.services.session.SSHExecutor", return_value=fake_executor):
            main(["--config", config_file, "discover", "prod"])

        result = json.loads(capsys.readouterr().out)
        assert result["host"] == "prod"
        web = result["containers"][0]
        assert web["name"] == "web"
        assert web["status"] == "Up"
        assert web["ports"] == "8080:80"
        assert web["script"] == "/home/ops/clients/acme/start.sh"
        assert [p["name"] for p in result["projects"]] == ["acme", "globex"]
        assert result["error"] is None

    def test_scripts_mask_secrets(self, config_file, fake_executor, capsys):
        """Test secret env values are masked unless asked for."""
        with patch("dockering.services.session.SSHExecutor", return_value=fake_executor):
            main(["--config", config_file, "scripts", "prod"])

        scripts = json.loads(capsys.readouterr().out)["scripts"]
        web = scripts[0]
        assert web["container"] == "web"
        assert web["env"]["FOO"] == "bar"
        assert web["env"]["DB_PASSWORD"] != "s3cr3t value"
        assert web["ports"] == ["8080:80"]

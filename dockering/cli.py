"""Command line entry point for dockering."""

import argparse
import asyncio
import json
import os
import sys

import structlog

from .core.config_loader import DockeringConfig, get_config_dir, load_config
from .core.exceptions import DockeringError
from .core.logging_config import setup_logging
from .services.session import DockerSession


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    default_log_level = os.getenv("LOG_LEVEL", "INFO")
    default_config = os.getenv("DOCKERING_HOSTS_CONFIG", str(get_config_dir() / "hosts.yml"))

    parser = argparse.ArgumentParser(
        prog="dockering", description="Inventory Docker containers and deployment scripts over SSH"
    )
    parser.add_argument("--config", default=default_config, help="Configuration file path")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--validate-config", action="store_true", help="Validate configuration and exit"
    )

    subparsers = parser.add_subparsers(dest="command")
    discover = subparsers.add_parser("discover", help="List containers and their scripts")
    discover.add_argument("host", help="Host name from the configuration")
    scripts = subparsers.add_parser("scripts", help="Show parsed deployment scripts")
    scripts.add_argument("host", help="Host name from the configuration")
    scripts.add_argument(
        "--show-secrets", action="store_true", help="Print secret env values unmasked"
    )

    return parser.parse_args(argv)


def _session_for(config: DockeringConfig, host_name: str) -> DockerSession:
    host = config.hosts.get(host_name)
    if host is None:
        raise DockeringError(f"Host '{host_name}' not found in configuration")
    if not host.enabled:
        raise DockeringError(f"Host '{host_name}' is disabled")
    return DockerSession(host_name, host, config.settings)


async def _discover(session: DockerSession) -> dict:
    inventory = await session.refresh()
    return {
        "host": session.host_name,
        "containers": [
            {
                "id": c.id,
                "name": c.name,
                "image": c.image,
                "status": c.status.display(),
                "ports": c.ports_display(),
                "script": c.script_path,
            }
            for c in inventory.containers
        ],
        "projects": [
            {"name": p.name, "path": p.path, "scripts": p.script_count}
            for p in inventory.projects
        ],
        "error": session.error_message,
    }


async def _scripts(session: DockerSession, show_secrets: bool) -> dict:
    inventory = await session.refresh()
    return {
        "host": session.host_name,
        "scripts": [
            {
                "path": s.path,
                "project": s.client_name,
                "container": s.container_name,
                "image": s.repo,
                "network": s.network,
                "restart": s.restart_policy,
                "ports": [p.display() for p in s.ports],
                "volumes": [v.display() for v in s.volumes],
                "env": {
                    e.key: e.value if show_secrets else e.display_value() for e in s.env_vars
                },
            }
            for s in inventory.scripts
        ],
        "error": session.error_message,
    }


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(log_dir=os.getenv("LOG_DIR", "logs"), log_level=args.log_level)
    logger = structlog.get_logger().bind(component="cli")

    try:
        config = load_config(args.config)
    except DockeringError as e:
        logger.error("Configuration load failed", error=str(e))
        sys.exit(1)

    if args.validate_config:
        logger.info("Configuration is valid", hosts=len(config.hosts))
        return

    if args.command is None:
        print("\n".join(sorted(config.hosts)))
        return

    try:
        session = _session_for(config, args.host)
        if args.command == "discover":
            result = asyncio.run(_discover(session))
        else:
            result = asyncio.run(_scripts(session, args.show_secrets))
    except DockeringError as e:
        logger.error("Command failed", error=str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()

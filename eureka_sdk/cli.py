"""Command-line inspection of a registry.

Usage:
    eureka-sdk apps [--config NAME] [--env ENV] [--all]
    eureka-sdk resolve NAME [--config NAME] [--env ENV]
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .application.client import EurekaClient
from .domain.exceptions import ConfigurationError, ResolutionError
from .domain.models import RegistrySnapshot
from .infrastructure.config import DEFAULT_CONFIG_FILENAME, load_client_config
from .infrastructure.simple_logger import SimpleLogger

# One-shot commands only read the registry.
_READ_ONLY = {"eureka": {"registerWithEureka": False, "fetchRegistry": True}}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eureka-sdk", description="Inspect a Eureka-style service registry"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILENAME,
        help=f"Base name of the YAML config files (default: {DEFAULT_CONFIG_FILENAME})",
    )
    parser.add_argument("--env", default=None, help="Environment config overlay")
    parser.add_argument("--config-dir", default=".", help="Directory holding the config files")
    parser.add_argument("--verbose", action="store_true", help="Log client activity")

    commands = parser.add_subparsers(dest="command", required=True)
    apps = commands.add_parser("apps", help="List registered applications")
    apps.add_argument("--all", action="store_true", help="Include instances that are not UP")

    resolve = commands.add_parser("resolve", help="Resolve a service to an endpoint")
    resolve.add_argument("name", help="Application name")
    return parser


def render_snapshot(snapshot: RegistrySnapshot, show_all: bool = False) -> Table:
    """Build a table of every cached instance."""
    table = Table(title="Registered Applications", show_header=True, header_style="bold magenta")
    table.add_column("Application", style="cyan")
    table.add_column("Instance ID")
    table.add_column("Address")
    table.add_column("Status")
    table.add_column("VIP")

    for name in snapshot.service_names():
        for instance in snapshot.instances(name):
            if not show_all and not instance.is_up():
                continue
            status_style = "green" if instance.is_up() else "red"
            table.add_row(
                name,
                instance.instance_id,
                f"{instance.host_name or instance.ip_address}:{instance.port}",
                f"[{status_style}]{instance.status.value}[/{status_style}]",
                instance.vip_address,
            )
    return table


async def run(args: argparse.Namespace, console: Console) -> int:
    """Execute one command and return the exit code."""
    try:
        config = load_client_config(
            filename=args.config,
            env=args.env,
            overrides=_READ_ONLY,
            config_dir=args.config_dir,
        )
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        return 2

    level = logging.INFO if args.verbose else logging.ERROR
    client = EurekaClient(config, logger=SimpleLogger(level=level))
    try:
        if not await client.refresh():
            console.print(f"[red]Could not fetch the registry at {config.eureka.base_url}[/red]")
            return 1

        if args.command == "apps":
            console.print(render_snapshot(client.snapshot, show_all=args.all))
            return 0

        try:
            endpoint = client.resolve(args.name)
        except ResolutionError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            return 1
        console.print(endpoint.url)
        return 0
    finally:
        await client.stop()


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``eureka-sdk`` command."""
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args, Console()))


if __name__ == "__main__":
    raise SystemExit(main())

"""toolkeeper CLI - catalog sync and registry search for agent assets.

Usage:
    toolkeeper config ...          # Set backend URL / token
    toolkeeper status              # Show catalog status
    toolkeeper seed                # Install the default repositories
    toolkeeper repos               # List tracked repositories
    toolkeeper repo add URL        # Track a repository
    toolkeeper repo remove <id>    # Stop tracking a repository
    toolkeeper repo enable <id>    # Enable a repository
    toolkeeper repo disable <id>   # Disable a repository
    toolkeeper sync [<id>|--all]   # Sync repositories
    toolkeeper items               # List discovered items
    toolkeeper import <id>         # Import an item
    toolkeeper registry search Q   # Search the connector registry
    toolkeeper registry list       # Browse the connector registry
    toolkeeper ratelimit           # Show the GitHub rate limit
"""

from __future__ import annotations

import argparse

from rich.console import Console

from . import __version__
from .config import Settings
from .logger import configure_logging
from .urls import root_url

console = Console()


def run_config(args: argparse.Namespace) -> int:
    settings = Settings.load()

    changed = False
    if args.url:
        settings.backend_url = root_url(args.url)
        changed = True
    if args.token is not None:
        settings.token = args.token.strip()
        changed = True
    if args.log_level:
        settings.log_level = args.log_level.upper()
        changed = True

    if changed:
        path = settings.save()
        console.print(f"[green]Saved[/green] {path}")

    console.print(f"backend_url: [bold]{settings.backend_url}[/bold]")
    console.print(f"token: {'[green]set[/green]' if settings.token else '[dim]not set[/dim]'}")
    console.print(f"log_level: {settings.log_level}")
    console.print(f"max_registry_pages: {settings.max_registry_pages}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="toolkeeper",
        description="toolkeeper: keep a local catalog of connectors, skills and sub-agents in sync",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override log level (ERROR, WARNING, INFO, DEBUG)")

    sub = parser.add_subparsers(dest="subcmd")

    # config subcommand
    p_config = sub.add_parser("config", help="Show or change backend settings")
    p_config.add_argument("--url", help="Backend base URL (e.g. http://localhost:7420)")
    p_config.add_argument("--token", help="Backend bearer token (empty string clears it)")
    p_config.add_argument("--log-level", dest="config_log_level", help="Default log level")

    # Catalog commands (flat top-level: status, repos, sync, items, registry, ...)
    from .catalog.commands import add_catalog_commands
    add_catalog_commands(parser, sub)

    args = parser.parse_args()

    configure_logging(args.log_level or Settings.load().log_level)

    if args.subcmd == "config":
        args.log_level = args.config_log_level
        raise SystemExit(run_config(args))

    from .catalog.commands import run_catalog_command
    catalog_result = run_catalog_command(args)
    if catalog_result != -1:
        raise SystemExit(catalog_result)

    parser.print_help()
    raise SystemExit(0)


if __name__ == "__main__":
    main()

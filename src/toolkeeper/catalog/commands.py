"""Catalog CLI Commands for toolkeeper.

Top-level commands for catalog management:
- status/seed/ratelimit
- repos, repo add/remove/enable/disable
- sync
- items/import
- registry search/list
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Settings
from .client import CatalogError, HttpCatalogBackend
from .library import RepoLibrary
from .models import ALL_TYPES, ContentKind, RepoDescriptor, RepoLayout, SyncOutcome

console = Console()


def _library(settings: Optional[Settings] = None) -> RepoLibrary:
    settings = settings or Settings.load()
    return RepoLibrary(HttpCatalogBackend(settings), settings=settings)


def _format_ts(value: Optional[str]) -> str:
    if not value:
        return "[dim]Never[/dim]"
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return ts.strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return value


def _print_outcome(outcome: SyncOutcome) -> None:
    console.print("[green]Sync complete![/green]")
    console.print(f"  Added: {outcome.added}")
    console.print(f"  Updated: {outcome.updated}")
    console.print(f"  Removed: {outcome.removed}")
    if outcome.errors:
        console.print(f"  [yellow]Errors: {len(outcome.errors)}[/yellow]")
        for err in outcome.errors:
            console.print(f"    - {err}")


# --- Status Commands ---

def cmd_status(args: argparse.Namespace) -> int:
    """Show catalog status."""
    settings = Settings.load()
    lib = _library(settings)
    asyncio.run(lib.refresh())

    lines = [f"[bold]Backend:[/bold] {settings.backend_url}"]
    if lib.error:
        lines.append(f"  Status: [red]Unreachable[/red] ({lib.error})")
        console.print(Panel("\n".join(lines), title="toolkeeper Status", border_style="cyan"))
        return 1

    lines.append("  Status: [green]Reachable[/green]")
    lines.append("")

    enabled = [r for r in lib.repos if r.enabled]
    lines.append(f"[bold]Repositories:[/bold] {len(enabled)} enabled, {len(lib.repos)} total")
    synced = [r.last_synced_at for r in lib.repos if r.last_synced_at]
    lines.append(f"  Last sync: {_format_ts(max(synced) if synced else None)}")
    lines.append("")

    imported = [i for i in lib.items if i.is_imported]
    lines.append(f"[bold]Items:[/bold] {len(lib.items)} ({len(imported)} imported)")
    lines.append(f"  Connectors: {len(lib.mcp_items)}  Skills: {len(lib.skill_items)}  Sub-agents: {len(lib.subagent_items)}")

    info = lib.rate_limit_info
    if info:
        lines.append("")
        style = "red" if info.is_exhausted else "green"
        lines.append(f"[bold]GitHub rate limit:[/bold] [{style}]{info.remaining}/{info.limit}[/{style}]")
        lines.append(f"  Resets: {_format_ts(info.reset_at)}")

    console.print(Panel("\n".join(lines), title="toolkeeper Status", border_style="cyan"))
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    """Install the default repositories."""
    lib = _library()
    asyncio.run(lib.seed_default_repos())
    if lib.error:
        console.print(f"[red]Error:[/red] {lib.error}")
        return 1
    console.print(f"[green]Default repositories ready.[/green] {len(lib.repos)} tracked.")
    return 0


def cmd_ratelimit(args: argparse.Namespace) -> int:
    """Show the remote API rate limit."""
    lib = _library()
    info = asyncio.run(lib.check_rate_limit())
    if info is None:
        console.print("[yellow]Rate limit unavailable.[/yellow]")
        return 0
    style = "red" if info.is_exhausted else "green"
    console.print(f"Remaining: [{style}]{info.remaining}[/{style}] of {info.limit}")
    console.print(f"Resets: {_format_ts(info.reset_at)} (in {int(info.seconds_until_reset())}s)")
    return 0


# --- Repository Commands ---

def cmd_repos(args: argparse.Namespace) -> int:
    """List tracked repositories."""
    lib = _library()
    asyncio.run(lib.load_repos())
    if lib.error:
        console.print(f"[red]Error:[/red] {lib.error}")
        return 1

    if not lib.repos:
        console.print("[yellow]No repositories tracked.[/yellow]")
        console.print("Run [bold]toolkeeper seed[/bold] or [bold]toolkeeper repo add URL[/bold].")
        return 0

    table = Table(title="Source Repositories")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Layout")
    table.add_column("Content", style="magenta")
    table.add_column("Enabled", justify="center")
    table.add_column("Last sync")

    for repo in lib.repos:
        enabled = "[green]Yes[/green]" if repo.enabled else "[red]No[/red]"
        name = repo.full_name + (" [dim](default)[/dim]" if repo.is_default else "")
        table.add_row(
            str(repo.id),
            name,
            repo.layout.value,
            repo.content_kind.value,
            enabled,
            _format_ts(repo.last_synced_at),
        )

    console.print(table)
    console.print(f"\nTotal: {len(lib.repos)} repo(s)")
    return 0


def cmd_repo_add(args: argparse.Namespace) -> int:
    """Track a new repository."""
    lib = _library()
    descriptor = RepoDescriptor(
        url=args.url,
        layout=RepoLayout(args.layout),
        content_kind=ContentKind(args.content),
    )
    try:
        repo = asyncio.run(lib.add_repo(descriptor))
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    console.print(f"[green]Added '{repo.full_name}' (id {repo.id}).[/green]")
    console.print(f"Run [bold]toolkeeper sync {repo.id}[/bold] to fetch its items.")
    return 0


def cmd_repo_remove(args: argparse.Namespace) -> int:
    """Stop tracking a repository and drop its items."""
    if not args.force:
        answer = console.input(f"Remove repository {args.id} and all its items? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            console.print("[yellow]Cancelled.[/yellow]")
            return 0

    lib = _library()
    try:
        asyncio.run(lib.remove_repo(args.id))
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    console.print(f"[green]Repository {args.id} removed.[/green]")
    return 0


def _toggle(repo_id: int, enabled: bool) -> int:
    lib = _library()
    try:
        asyncio.run(lib.toggle_repo(repo_id, enabled))
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    if enabled:
        console.print(f"[green]Repository {repo_id} enabled.[/green]")
    else:
        console.print(f"[yellow]Repository {repo_id} disabled.[/yellow] Its items are kept.")
    return 0


def cmd_repo_enable(args: argparse.Namespace) -> int:
    """Enable a repository."""
    return _toggle(args.id, True)


def cmd_repo_disable(args: argparse.Namespace) -> int:
    """Disable a repository."""
    return _toggle(args.id, False)


# --- Sync Commands ---

def cmd_sync(args: argparse.Namespace) -> int:
    """Sync one repository, or every enabled one."""
    if args.id is None and not args.all:
        console.print("[red]Give a repository ID or --all.[/red]")
        return 2

    lib = _library()

    async def run() -> Optional[SyncOutcome]:
        await lib.load_repos()
        if args.all:
            return await lib.sync_all_repos()
        return await lib.sync_repo(args.id)

    target = "all enabled repositories" if args.all else f"repository {args.id}"
    console.print(f"Syncing {target}...")

    try:
        outcome = asyncio.run(run())
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    if outcome is None:
        console.print("[yellow]A sync is already running.[/yellow]")
        return 0

    _print_outcome(outcome)
    console.print(f"  Items now cached: {len(lib.items)}")
    return 0


# --- Item Commands ---

def cmd_items(args: argparse.Namespace) -> int:
    """List discovered items."""
    lib = _library()

    async def run() -> None:
        await lib.load_repos()
        await lib.load_items(args.repo)

    asyncio.run(run())
    if lib.error:
        console.print(f"[red]Error:[/red] {lib.error}")
        return 1

    lib.set_search(args.search or "")
    lib.set_type_filter(args.type)
    items = lib.filtered_items

    if not items:
        console.print("[yellow]No items found.[/yellow]")
        return 0

    table = Table(title="Catalog Items")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Name", style="bold")
    table.add_column("Repo")
    table.add_column("Imported", justify="center")
    table.add_column("Description", max_width=50)

    for item in items:
        repo = lib.get_repo_by_id(item.repo_id)
        imported = "[green]Yes[/green]" if item.is_imported else "[dim]No[/dim]"
        table.add_row(
            str(item.id),
            item.asset_type.value,
            item.name,
            repo.full_name if repo else str(item.repo_id),
            imported,
            item.description,
        )

    console.print(table)
    console.print(f"\nShowing {len(items)} of {len(lib.items)} item(s)")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import a catalog item into its library."""
    lib = _library()

    async def run():
        await lib.load_items()
        return await lib.import_item(args.id)

    try:
        result = asyncio.run(run())
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    kind = result.asset_type.value if result.asset_type else "asset"
    if not result.success:
        console.print(f"[yellow]{result.message}[/yellow]")
    elif result.message == "Already imported":
        console.print(f"[yellow]Already imported[/yellow] as {kind} {result.asset_id}.")
    else:
        console.print(f"[green]Imported as {kind} {result.asset_id}.[/green]")
    return 0


# --- Registry Commands ---

def _print_entries(title: str, entries) -> None:
    table = Table(title=title)
    table.add_column("Registry ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Transport")
    table.add_column("Version")
    table.add_column("Description", max_width=50)
    for e in entries:
        table.add_row(e.registry_id, e.name, e.transport, e.version or "", e.description)
    console.print(table)


def cmd_registry_search(args: argparse.Namespace) -> int:
    """Search the connector registry."""
    lib = _library()
    asyncio.run(lib.search_registry(args.query))
    if lib.registry_error:
        console.print(f"[red]Error:[/red] {lib.registry_error}")
        return 1

    if not lib.registry_results:
        console.print(f"[yellow]No registry entries match '{args.query}'.[/yellow]")
        return 0

    _print_entries(f"Registry: '{args.query}'", lib.registry_results)
    console.print(f"\nTotal: {len(lib.registry_results)} entr(ies)")
    return 0


def cmd_registry_list(args: argparse.Namespace) -> int:
    """Browse the connector registry page by page."""
    lib = _library()

    async def run() -> None:
        await lib.load_registry()
        pages = 1
        while lib.registry_has_more and pages < args.pages and not lib.registry_error:
            await lib.load_registry(load_more=True)
            pages += 1

    asyncio.run(run())
    if lib.registry_error:
        console.print(f"[red]Error:[/red] {lib.registry_error}")
        if not lib.registry_results:
            return 1

    _print_entries("Registry", lib.registry_results)
    more = " (more available)" if lib.registry_has_more else ""
    console.print(f"\nTotal: {len(lib.registry_results)} entr(ies){more}")
    return 0


# --- Parser Setup ---

def add_catalog_commands(parser: argparse.ArgumentParser, subparsers: argparse._SubParsersAction) -> None:
    """Add catalog commands to the main parser."""

    # status
    p_status = subparsers.add_parser("status", help="Show catalog status")
    p_status.set_defaults(func=cmd_status)

    # seed
    p_seed = subparsers.add_parser("seed", help="Install the default repositories")
    p_seed.set_defaults(func=cmd_seed)

    # ratelimit
    p_rate = subparsers.add_parser("ratelimit", help="Show the GitHub API rate limit")
    p_rate.set_defaults(func=cmd_ratelimit)

    # repos
    p_repos = subparsers.add_parser("repos", help="List tracked repositories")
    p_repos.set_defaults(func=cmd_repos)

    # repo add/remove/enable/disable
    p_repo = subparsers.add_parser("repo", help="Manage tracked repositories")
    repo_sub = p_repo.add_subparsers(dest="repo_cmd", required=True)

    p_add = repo_sub.add_parser("add", help="Track a GitHub repository")
    p_add.add_argument("url", help="Repository URL (e.g., https://github.com/owner/repo)")
    p_add.add_argument("--layout", choices=[l.value for l in RepoLayout], default=RepoLayout.FILE_BASED.value)
    p_add.add_argument("--content", choices=[c.value for c in ContentKind], default=ContentKind.SKILL.value)
    p_add.set_defaults(func=cmd_repo_add)

    p_remove = repo_sub.add_parser("remove", help="Stop tracking a repository")
    p_remove.add_argument("id", type=int, help="Repository ID")
    p_remove.add_argument("--force", "-f", action="store_true", help="Skip confirmation")
    p_remove.set_defaults(func=cmd_repo_remove)

    p_enable = repo_sub.add_parser("enable", help="Enable a repository")
    p_enable.add_argument("id", type=int, help="Repository ID")
    p_enable.set_defaults(func=cmd_repo_enable)

    p_disable = repo_sub.add_parser("disable", help="Disable a repository")
    p_disable.add_argument("id", type=int, help="Repository ID")
    p_disable.set_defaults(func=cmd_repo_disable)

    # sync
    p_sync = subparsers.add_parser("sync", help="Sync repositories")
    p_sync.add_argument("id", type=int, nargs="?", help="Repository ID")
    p_sync.add_argument("--all", "-a", action="store_true", help="Sync every enabled repository")
    p_sync.set_defaults(func=cmd_sync)

    # items
    p_items = subparsers.add_parser("items", help="List discovered items")
    p_items.add_argument("--type", "-t", choices=[ALL_TYPES, "mcp", "skill", "subagent"], default=ALL_TYPES)
    p_items.add_argument("--search", "-s", help="Filter by name or description")
    p_items.add_argument("--repo", "-r", type=int, help="Only items from this repository")
    p_items.set_defaults(func=cmd_items)

    # import
    p_import = subparsers.add_parser("import", help="Import a catalog item")
    p_import.add_argument("id", type=int, help="Item ID")
    p_import.set_defaults(func=cmd_import)

    # registry search/list
    p_registry = subparsers.add_parser("registry", help="Browse the connector registry")
    registry_sub = p_registry.add_subparsers(dest="registry_cmd", required=True)

    p_search = registry_sub.add_parser("search", help="Search the registry")
    p_search.add_argument("query", help="Search text")
    p_search.set_defaults(func=cmd_registry_search)

    p_list = registry_sub.add_parser("list", help="List registry entries")
    p_list.add_argument("--pages", "-p", type=int, default=1, help="Pages to load (default 1)")
    p_list.set_defaults(func=cmd_registry_list)


def run_catalog_command(args: argparse.Namespace) -> int:
    """Run a catalog command if func is set."""
    if hasattr(args, "func") and args.func:
        return args.func(args)
    return -1  # Not a catalog command

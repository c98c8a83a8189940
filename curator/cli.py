"""Curator CLI: serve the admin API and run curation tasks from a terminal."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.table import Table

from curator import __version__
from curator.config import Settings, configure_logging
from curator.generations.filters import GenerationFilters
from curator.generations.models import ListingPage

console = Console()

CLI_ADMIN = "cli"


def _services():
    from curator.services import build_services

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return build_services(settings)


async def _with_services(func):
    services = _services()
    try:
        return await func(services)
    finally:
        await services.close()


def _print_page(title: str, page: ListingPage) -> None:
    if not page.items:
        console.print("[yellow]No generations found.[/]")
        return

    table = Table(title=f"{title} ({len(page.items)} shown)")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Model")
    table.add_column("Owner")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Created")
    table.add_column("Prompt")

    for record in page.items:
        table.add_row(
            record.id,
            record.generation_type or "",
            record.model or "",
            record.owner.username or record.owner.email or record.owner.uid,
            f"{record.score:.1f}" if record.score is not None else "-",
            record.created_at.strftime("%Y-%m-%d %H:%M") if record.created_at else "",
            (record.prompt or "")[:50],
        )

    console.print(table)
    if page.has_more:
        console.print(f"[dim]More results: --cursor {page.next_cursor}[/]")


@click.group()
@click.version_option(version=__version__)
def main():
    """Curator: admin tooling for generation scoring and the curated feed."""


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5001, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve(host: str, port: int, reload: bool):
    """Run the admin API with uvicorn."""
    import uvicorn

    console.print(f"\n[bold blue]Curator[/] API listening on http://{host}:{port}\n")
    uvicorn.run(
        "web.backend.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        access_log=False,
    )


# ── Listings ─────────────────────────────────────────────────────────


@main.command()
@click.option("--limit", "-n", default=20, show_default=True, type=int)
@click.option("--cursor", default=None, help="Resume after this generation id")
@click.option("--type", "generation_types", multiple=True, help="Generation type (repeatable)")
@click.option("--owner", default=None, help="User id, username or email")
@click.option("--search", default=None, help="Prompt substring")
@click.option("--unscored", is_flag=True, help="Only generations without a score")
def generations(
    limit: int,
    cursor: str | None,
    generation_types: tuple[str, ...],
    owner: str | None,
    search: str | None,
    unscored: bool,
):
    """List the scoring queue: public generations with media, newest first."""
    filters = GenerationFilters.from_params(generation_types=generation_types, search=search, unscored_only=unscored)
    page = asyncio.run(
        _with_services(lambda s: s.generations.list_for_scoring(filters, max(1, limit), cursor, owner=owner))
    )
    _print_page("Scoring queue", page)


@main.command()
@click.option("--limit", "-n", default=20, show_default=True, type=int)
@click.option("--cursor", default=None, help="Resume after this generation id")
@click.option("--mode", default="all", type=click.Choice(["all", "image", "video", "music", "branding"]))
def feed(limit: int, cursor: str | None, mode: str):
    """List the curated feed, best score first."""
    filters = GenerationFilters.from_params(mode=mode)
    page = asyncio.run(_with_services(lambda s: s.generations.list_feed(filters, max(1, limit), cursor)))
    _print_page("Curated feed", page)


# ── Scoring ──────────────────────────────────────────────────────────


@main.command()
@click.argument("generation_id")
@click.argument("score", type=float)
def score(generation_id: str, score: float):
    """Set the aesthetic score of GENERATION_ID."""
    try:
        change = asyncio.run(_with_services(lambda s: s.scores.set_score(generation_id, score, CLI_ADMIN)))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SCORE") from None
    if change is None:
        console.print(f"[red]Generation not found:[/] {generation_id}")
        raise SystemExit(1)
    previous = f"{change.old_score:g}" if change.old_score is not None else "unscored"
    console.print(f"[green]Scored[/] {generation_id}: {previous} -> {change.new_score:g}")


@main.command()
@click.argument("generation_id")
def unscore(generation_id: str):
    """Remove GENERATION_ID from the curated feed."""
    change = asyncio.run(_with_services(lambda s: s.scores.remove_score(generation_id, CLI_ADMIN)))
    if change is None:
        console.print(f"[red]Generation not found:[/] {generation_id}")
        raise SystemExit(1)
    console.print(f"[green]Removed[/] {generation_id} from the feed")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--limit", "-n", default=50, show_default=True, type=int)
@click.option("--admin", "admin_email", default=None, help="Filter by admin email")
@click.option("--target", "target_uid", default=None, help="Filter by target user id")
def audit(limit: int, admin_email: str | None, target_uid: str | None):
    """Show recent admin actions."""
    page = asyncio.run(
        _with_services(lambda s: s.audit.get_entries(admin_email=admin_email, target_uid=target_uid, limit=limit))
    )
    if not page.entries:
        console.print("[yellow]No audit entries.[/]")
        return

    table = Table(title="Audit log")
    table.add_column("When", style="dim")
    table.add_column("Admin")
    table.add_column("Action", style="cyan")
    table.add_column("Target")
    table.add_column("Details")
    for entry in page.entries:
        table.add_row(
            entry.timestamp[:19],
            entry.admin_email,
            entry.action,
            entry.target_uid or entry.resource_id or "",
            ", ".join(f"{k}={v}" for k, v in entry.details.items())[:60],
        )
    console.print(table)


if __name__ == "__main__":
    main()

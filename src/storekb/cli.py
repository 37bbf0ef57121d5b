"""CLI interface for storekb."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from storekb import __version__
from storekb.cache import build_cache_store
from storekb.chunks.payloads import ScanRequest, SourceKind
from storekb.config import settings
from storekb.errors import InvalidArgument, SourceUnavailable
from storekb.repository import SnapshotRepository
from storekb.scanner import Scanner, build_scanner

# Configure logging with Rich
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="storekb",
    help="Scan store content into knowledge base chunks for the AI assistant",
)

console = Console()

SnapshotOption = typer.Option(
    None,
    "--snapshot",
    help="Read content from a JSON store export instead of the REST API",
    exists=True,
    dir_okay=False,
)


def _build(snapshot: Optional[Path]) -> Scanner:
    try:
        repository = SnapshotRepository.from_file(snapshot) if snapshot else None
        return build_scanner(repository=repository)
    except SourceUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _set_verbose_logging(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def scan(
    products: bool = typer.Option(True, "--products/--no-products", help="Include catalog items"),
    pages: bool = typer.Option(True, "--pages/--no-pages", help="Include static pages"),
    posts: bool = typer.Option(False, "--posts/--no-posts", help="Include blog posts"),
    store_settings: bool = typer.Option(True, "--settings/--no-settings", help="Include store settings"),
    categories: bool = typer.Option(True, "--categories/--no-categories", help="Include categories and tags"),
    force_refresh: bool = typer.Option(False, "--force-refresh", "-f", help="Bypass cached results"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    snapshot: Optional[Path] = SnapshotOption,
):
    """
    Scan every enabled source kind and print the combined report.
    """
    _set_verbose_logging(verbose)
    scanner = _build(snapshot)
    report = scanner.scan_all(
        {
            "include_products": products,
            "include_pages": pages,
            "include_posts": posts,
            "include_settings": store_settings,
            "include_categories": categories,
            "force_refresh": force_refresh,
        }
    )

    if as_json:
        console.print_json(json.dumps(report.to_dict(), default=str))
        raise typer.Exit(0 if report.success else 2)

    console.print("\n[bold blue]Knowledge Base Scan[/bold blue]\n")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Source")
    table.add_column("Chunks", justify="right")
    table.add_column("Status", justify="center")

    failed = set(report.failed_sources)
    for kind, count in report.summary.items():
        status_text = "[red]failed[/red]" if kind in failed else "[green]ok[/green]"
        table.add_row(kind, str(count), status_text)
    console.print(table)

    if report.errors:
        console.print("\n[bold red]Errors:[/bold red]")
        for error in report.errors:
            console.print(f"  • {error.source}: {error.message}")

    console.print(f"\n[dim]{report.total} chunk(s) in {report.duration:.2f}s[/dim]\n")
    if not report.success:
        raise typer.Exit(2)


@app.command("scan-source")
def scan_source(
    kind: SourceKind = typer.Argument(..., help="Source kind to scan"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Maximum chunks to return"),
    offset: int = typer.Option(0, "--offset", min=0, help="Pagination offset"),
    force_refresh: bool = typer.Option(False, "--force-refresh", "-f", help="Bypass cached results"),
    snapshot: Optional[Path] = SnapshotOption,
):
    """
    Scan a single source kind and list its chunks.
    """
    scanner = _build(snapshot)
    try:
        chunks = scanner.scan(kind, ScanRequest(limit=limit, offset=offset, force_refresh=force_refresh))
    except (SourceUnavailable, InvalidArgument) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    if not chunks:
        console.print("[yellow]No chunks produced[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False)
    table.add_column("Lang", justify="center", width=5)
    table.add_column("Chars", justify="right", width=7)
    table.add_column("URL", overflow="fold")

    for chunk in chunks:
        table.add_row(str(chunk.id), chunk.title, chunk.language, str(len(chunk.content)), chunk.url or "-")

    console.print(table)
    stats = scanner.get_last_scan_stats(kind)
    console.print(
        f"\n[dim]{len(chunks)} chunk(s), {stats.get('skipped', 0)} skipped, "
        f"cache {'hit' if stats.get('cache_hit') else 'miss'}[/dim]\n"
    )


@app.command()
def stats(snapshot: Optional[Path] = SnapshotOption):
    """Show scanner configuration and language settings."""
    scanner = _build(snapshot)
    statistics = scanner.get_statistics()

    console.print("\n[bold blue]Scanner Statistics[/bold blue]\n")
    for key, value in statistics.items():
        if key == "last_scan":
            continue
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        console.print(f"  [cyan]{key:18}[/cyan]: {value}")
    console.print()


@app.command("clear-cache")
def clear_cache(
    key: Optional[str] = typer.Option(None, "--key", help="Delete a single cache key"),
):
    """Flush cached scan results from the shared Redis cache."""
    if settings.cache_backend != "redis":
        console.print(
            f"[yellow]The {settings.cache_backend} cache backend keeps nothing between commands; "
            "set CACHE_BACKEND=redis to manage a shared cache[/yellow]"
        )
        return

    cache = build_cache_store(prefix=settings.cache_prefix)
    if key:
        if cache.delete(key):
            console.print(f"[green]Deleted {key}[/green]")
        else:
            console.print(f"[yellow]Key not cached: {key}[/yellow]")
        return

    if not cache.flush():
        console.print("[red]Cache flush failed: Redis unreachable[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Cache cleared under {settings.cache_prefix}[/green]")


@app.command()
def enqueue(
    posts: bool = typer.Option(False, "--posts/--no-posts", help="Include blog posts"),
    force_refresh: bool = typer.Option(False, "--force-refresh", "-f", help="Bypass cached results"),
):
    """Queue a background full scan on the Redis worker queue."""
    from storekb.tasks import enqueue_scan_all

    job = enqueue_scan_all({"include_posts": posts, "force_refresh": force_refresh})
    console.print(f"  ↻ Enqueued job → [cyan]{job.id}[/cyan] on [cyan]{settings.redis_queue_scan}[/cyan]")


@app.command()
def version():
    """Show version information."""
    console.print(f"[cyan]storekb[/cyan] v{__version__}")


def main():
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red]Error: {e}[/red]")
        logger.exception("Unhandled exception")
        sys.exit(1)


if __name__ == "__main__":
    main()

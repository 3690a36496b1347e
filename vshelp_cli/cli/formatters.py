"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vshelp_cli.core.reconciler import summarize_book
from vshelp_cli.models.catalog import BookGroup, Locale
from vshelp_cli.models.config import VS_VERSIONS, AppConfig
from vshelp_cli.models.stats import SyncStats
from vshelp_cli.utils.formatting import format_duration, format_megabytes, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "NetworkError": [
            "• Check your internet connection.",
            "• The help service might be temporarily unavailable.",
            "• Configure 'proxy_address' if you are behind a proxy.",
        ],
        "CatalogParseError": [
            "• The help service returned an unexpected document.",
            "• Check that the Visual Studio version is still published.",
        ],
        "FilesystemError": [
            "• Check that the cache directory exists and is writable.",
            "• Close the help viewer if it holds the index files open.",
        ],
        "IntegrityError": [
            "• The package was deleted; run the download again.",
            "• A proxy may be rewriting downloads; try without it.",
        ],
        "ConfigurationError": [
            "• Review the configuration with `vshelp-cli --show-config`.",
            "• Run `vshelp-cli init --force` to recreate it.",
        ],
        "InvalidArgumentError": [
            "• Pass a cache directory with --cache or set it in the configuration.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "proxy_password" and value:
            value = "********"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_versions_table():
    console = Console()
    table = Table(box=box.SIMPLE)
    table.add_column("Token", style="cyan")
    table.add_column("Product")
    for token, name in VS_VERSIONS.items():
        table.add_row(token, name)
    console.print(table)


def print_locales_table(vs_version: str, locales: list[Locale]):
    console = Console()
    table = Table(
        title=f"Locales for {VS_VERSIONS.get(vs_version, vs_version)}",
        box=box.SIMPLE,
    )
    table.add_column("Locale", style="cyan")
    table.add_column("Catalog", style="dim")
    for locale in locales:
        table.add_row(locale.code, locale.catalog_link)
    console.print(table)


def print_books_table(book_groups: list[BookGroup]):
    """
    Lists every book grouped by category with its size, how much of it would
    be downloaded and whether it is selected.
    """
    console = Console()
    table = Table(box=box.ROUNDED, show_lines=False)
    table.add_column("", width=1)
    table.add_column("Book", style="bold")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Packages", justify="right")
    table.add_column("Download (MB)", justify="right")
    table.add_column("Out of date", justify="right")

    rows_by_category: dict[str, list] = {}
    for book_group in book_groups:
        for book in book_group.books:
            rows_by_category.setdefault(book.category or book_group.name, []).append(
                book
            )

    for category, books in rows_by_category.items():
        table.add_row("", f"[cyan]{category}[/cyan]", "", "", "", "", end_section=False)
        for book in books:
            summary = summarize_book(book)
            table.add_row(
                "[green]✓[/green]" if book.wanted else "",
                f"  {book.name}",
                format_megabytes(summary.total_size),
                str(summary.package_count),
                format_megabytes(summary.download_size),
                str(summary.packages_out_of_date),
            )
    console.print(table)


def print_summary_panel(stats: SyncStats, cache_directory: Path):
    """Displays a final summary of the sync."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Cache:", str(cache_directory))
    table.add_row("Packages:", str(stats.packages_total))
    table.add_row("Downloaded:", f"[green]{stats.packages_downloaded}[/green]")
    table.add_row("Up to date:", f"[yellow]{stats.packages_skipped}[/yellow]")
    table.add_row("Removed:", f"[red]{stats.orphans_removed}[/red]")
    table.add_row("Indexes written:", str(stats.indexes_written))
    table.add_row("Transferred:", format_size(stats.total_size_downloaded))
    table.add_row("Duration:", format_duration(stats.elapsed_seconds))
    if stats.total_size_downloaded:
        table.add_row("Avg Speed:", f"{format_size(int(stats.average_speed_bps))}/s")

    console.print(
        Panel(
            table,
            title="[bold green]Download completed successfully[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def print_validation_table(config: AppConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Cache Directory:", config.cache_directory)
    table.add_row(
        "Version:",
        f"{config.vs_version} ({VS_VERSIONS.get(config.vs_version, 'Unknown')})",
    )
    table.add_row("Locale:", config.locale or "[dim]not set[/dim]")
    table.add_row("Catalog Service:", f"[dim]{config.catalog_base_url}[/dim]")
    table.add_row("Package Service:", f"[dim]{config.packages_base_url}[/dim]")
    table.add_row("Max Attempts:", str(config.max_attempts))
    table.add_row(
        "Proxy:", config.proxy_address if config.proxy_address else "✗ Disabled"
    )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )

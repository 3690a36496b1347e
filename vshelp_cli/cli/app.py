"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from vshelp_cli import __version__
from vshelp_cli.api.client import CatalogClient
from vshelp_cli.api.proxy import ProxySettings
from vshelp_cli.core.reconciler import apply_default_selection, reconcile
from vshelp_cli.core.sync_engine import SyncEngine
from vshelp_cli.exceptions import InvalidArgumentError
from vshelp_cli.models.catalog import BookGroup, Locale
from vshelp_cli.models.config import AppConfig
from vshelp_cli.storage.config_manager import ConfigManager
from vshelp_cli.transfer.downloader import PackageDownloader
from vshelp_cli.utils.path import get_config_dir

from .formatters import (
    print_books_table,
    print_config,
    print_locales_table,
    print_summary_panel,
    print_validation_table,
    print_versions_table,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("vshelp_cli")

app = typer.Typer(
    name="vshelp-cli",
    help=(
        "Mirror the Visual Studio offline help catalog into a local cache for the"
        " Help Viewer. Use 'vshelp-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

VS_VERSION_OPTION = typer.Option(
    None, "--vs", help="Visual Studio version token (see 'vshelp-cli versions')."
)
LOCALE_OPTION = typer.Option(None, "-l", "--locale", help="Locale code, e.g. en-us.")
CACHE_OPTION = typer.Option(
    None, "-c", "--cache", help="Local cache directory for the help content."
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Visual Studio Help Downloader CLI"""
    if version:
        console.print(f"[bold]vshelp-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("vshelp_cli").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]vshelp-cli init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config = ConfigManager(CONFIG_FILE).load_config()
        print_config(CONFIG_FILE, config.model_dump(exclude={"config_path"}))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _load_config(**cli_options) -> AppConfig:
    overrides = {key: value for key, value in cli_options.items() if value is not None}
    return ConfigManager(CONFIG_FILE).load_config(overrides)


def _catalog_client(config: AppConfig) -> CatalogClient:
    return CatalogClient(
        config.catalog_base_url,
        proxy=ProxySettings.from_config(config),
        max_attempts=config.max_attempts,
    )


def _find_locale(locales: list[Locale], code: str) -> Locale:
    for locale in locales:
        if locale.code.lower() == code.lower():
            return locale
    available = ", ".join(locale.code for locale in locales) or "none"
    raise InvalidArgumentError(
        f"Locale '{code}' is not published. Available: {available}"
    )


async def _load_books(config: AppConfig) -> list[BookGroup]:
    if not config.locale:
        raise InvalidArgumentError(
            "No locale selected. Pass --locale or set 'locale' in the configuration."
        )
    async with _catalog_client(config) as client:
        console.print("[cyan]Updating locales ...[/cyan]")
        locale = _find_locale(await client.load_locales(config.vs_version), config.locale)
        console.print(f"[cyan]Loading books for {locale.code} ...[/cyan]")
        return await client.load_books(locale.catalog_link)


def _select_books(
    book_groups: list[BookGroup], names: list[str] | None, select_all: bool
) -> None:
    """Marks wanted books: all, the named ones, or the default pre-selection."""
    if select_all:
        for book_group in book_groups:
            for book in book_group.books:
                book.wanted = True
        return
    if not names:
        apply_default_selection(book_groups)
        return

    remaining = {name.lower() for name in names}
    for book_group in book_groups:
        for book in book_group.books:
            matched = {book.name.lower(), book.code.lower()} & remaining
            book.wanted = bool(matched)
            remaining -= matched
    if remaining:
        raise InvalidArgumentError(f"Unknown book(s): {', '.join(sorted(remaining))}")


@app.command()
def init(
    cache: Path | None = CACHE_OPTION,
    vs_version: str | None = VS_VERSION_OPTION,
    locale: str | None = LOCALE_OPTION,
    proxy_address: str | None = typer.Option(
        None, "--proxy", help="Forward proxy URL, e.g. http://proxy:8080."
    ),
    proxy_login: str | None = typer.Option(None, "--proxy-login"),
    proxy_password: str | None = typer.Option(None, "--proxy-password"),
    proxy_domain: str | None = typer.Option(None, "--proxy-domain"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Create the configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_new_config(
        {
            "cache_directory": str(cache) if cache else None,
            "vs_version": vs_version,
            "locale": locale,
            "proxy_address": proxy_address,
            "proxy_login": proxy_login,
            "proxy_password": proxy_password,
            "proxy_domain": proxy_domain,
        }
    )
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command()
def validate():
    """Validate the current configuration."""
    print_validation_table(_load_config())


@app.command()
def versions():
    """List the Visual Studio versions the help service publishes."""
    print_versions_table()


@app.command()
def locales(vs_version: str | None = VS_VERSION_OPTION):
    """List the locales available for a Visual Studio version."""
    config = _load_config(vs_version=vs_version)

    async def _locales_async():
        async with _catalog_client(config) as client:
            return await client.load_locales(config.vs_version)

    print_locales_table(config.vs_version, asyncio.run(_locales_async()))


@app.command()
def books(
    vs_version: str | None = VS_VERSION_OPTION,
    locale: str | None = LOCALE_OPTION,
    cache: Path | None = CACHE_OPTION,
):
    """Show the books of a locale and what is already cached."""
    config = _load_config(
        vs_version=vs_version,
        locale=locale,
        cache_directory=str(cache) if cache else None,
    )
    book_groups = asyncio.run(_load_books(config))
    reconcile(book_groups, config.cache_directory)
    apply_default_selection(book_groups)
    print_books_table(book_groups)


@app.command(name="download")
def download_command(
    vs_version: str | None = VS_VERSION_OPTION,
    locale: str | None = LOCALE_OPTION,
    cache: Path | None = CACHE_OPTION,
    book: list[str] | None = typer.Option(  # noqa: B008
        None, "-b", "--book", help="Book name or id to download; repeatable."
    ),
    select_all: bool = typer.Option(False, "--all", help="Download every book."),
):
    """
    Download the selected books and regenerate the Help Viewer indexes.

    Without --book or --all, books that already have more than one cached
    package are selected.
    """
    config = _load_config(
        vs_version=vs_version,
        locale=locale,
        cache_directory=str(cache) if cache else None,
    )
    cache_directory = Path(config.cache_directory)

    async def _download_async():
        book_groups = await _load_books(config)
        reconcile(book_groups, cache_directory)
        _select_books(book_groups, book, select_all)

        if not any(b.wanted for g in book_groups for b in g.books):
            console.print(
                "[yellow]⚠️  No books selected.[/yellow] Use [cyan]--book[/cyan] or"
                " [cyan]--all[/cyan]."
            )
            return None, book_groups

        console.print("[bold cyan]Initializing books download ...[/bold cyan]")
        async with (
            PackageDownloader(
                config.packages_base_url,
                proxy=ProxySettings.from_config(config),
                max_attempts=config.max_attempts,
            ) as downloader,
            ProgressManager(console) as progress_manager,
        ):
            stats = await SyncEngine(downloader).sync_books(
                book_groups, cache_directory, progress_manager
            )
        return stats, book_groups

    stats, book_groups = asyncio.run(_download_async())
    if stats is None:
        raise typer.Exit(code=1)

    reconcile(book_groups, cache_directory)
    print_books_table(book_groups)
    print_summary_panel(stats, cache_directory)

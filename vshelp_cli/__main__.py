"""
Main entry point for the vshelp-cli application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from vshelp_cli.cli.app import app
from vshelp_cli.cli.formatters import format_error_with_suggestions
from vshelp_cli.exceptions import VsHelpError


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("vshelp_cli")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except VsHelpError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Thin CLI wrapper for mixed_build.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from mixed_build import __version__
from mixed_build.config import get_settings, print_settings_json
from mixed_build.errors import MixedBuildError

app = typer.Typer(
    name="mixed-build",
    help="Mixed build assembler - combine a system build with a device build",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


class LogLevel(str, Enum):
    """Log levels accepted on the command line."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"mixed-build version {__version__}")
        raise typer.Exit()


def show_config_callback(value: bool) -> None:
    """Print the effective settings as JSON and exit."""
    if value:
        console.print(
            print_settings_json(), markup=False, highlight=False, soft_wrap=True
        )
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(ctx: typer.Context, message: str) -> NoReturn:
    err_console.print(
        f"[red]Error: {escape(message)}[/red]", highlight=False, soft_wrap=True
    )
    err_console.print(ctx.get_usage(), markup=False, highlight=False)
    raise typer.Exit(code=1)


@app.command(context_settings={"allow_interspersed_args": False})
def main(
    ctx: typer.Context,
    system_build_dir: Annotated[
        Path, typer.Argument(help="Directory containing the system build")
    ],
    device_build_dir: Annotated[
        Path, typer.Argument(help="Directory containing the device build")
    ],
    out_dir: Annotated[Path, typer.Argument(help="Output directory")],
    check_tool: Annotated[
        Path | None,
        typer.Argument(help="Compatibility checker (verification skipped if absent)"),
    ] = None,
    vendor_version: Annotated[
        str | None,
        typer.Option(
            "--vendor-version",
            "-v",
            help="Vendor version for legacy ABI patching (requires -m)",
        ),
    ] = None,
    modify_system_script: Annotated[
        Path | None,
        typer.Option(
            "--modify-system-script",
            "-m",
            help="Script that patches the system image (requires -v)",
        ),
    ] = None,
    override_vbmeta: Annotated[
        Path | None,
        typer.Option(
            "--override-vbmeta",
            "-p",
            help="vbmeta image to use instead of the system build's",
        ),
    ] = None,
    otatools: Annotated[
        Path | None,
        typer.Option("--otatools", "-t", help="Archive of host tools"),
    ] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option(
            "--log-level",
            case_sensitive=False,
            help="Override the configured log level",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output result as JSON"),
    ] = False,
    show_config: Annotated[
        bool | None,
        typer.Option(
            "--show-config",
            help="Show effective settings as JSON and exit",
            callback=show_config_callback,
            is_eager=True,
        ),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Build a mixed image set from SYSTEM_BUILD_DIR and DEVICE_BUILD_DIR.

    The device image archive is rebuilt with the system build's system.img
    (and vbmeta.img, when the device has one) and written to OUT_DIR along
    with the rest of the device build. Options must precede arguments.
    """
    from mixed_build.pipeline import run_mixed_build
    from mixed_build.schema import parse_request

    settings = get_settings()
    configure_logging(log_level.value if log_level else settings.log_level)

    try:
        request = parse_request(
            {
                "system_build_dir": system_build_dir,
                "device_build_dir": device_build_dir,
                "out_dir": out_dir,
                "check_tool": check_tool,
                "vendor_version": vendor_version,
                "modify_system_script": modify_system_script,
                "override_vbmeta_image": override_vbmeta,
                "otatools_zip": otatools,
            }
        )
        result = run_mixed_build(request, settings)
    except (MixedBuildError, OSError) as e:
        _fail(ctx, str(e))

    if json_output:
        console.print(
            json.dumps(result.to_dict(), indent=2), highlight=False, soft_wrap=True
        )
        return

    console.print("[green]✓ Mixed build succeeded[/green]")
    console.print(f"  Archive: {result.published_archive}")
    console.print(f"  SHA-256: {result.sha256}")
    console.print(
        "  Compatibility: "
        + ("verified" if result.verified else "[yellow]skipped[/yellow]")
    )
    console.print(f"  System image patched: {result.patched}")
    console.print(f"  vbmeta: {result.vbmeta_source.value}")


def safe_main() -> None:
    """Run the CLI and map every failure to exit code 1."""
    try:
        rv = app(standalone_mode=False)
    except click.UsageError as e:
        err_console.print(
            f"[red]Error: {escape(e.format_message())}[/red]",
            highlight=False,
            soft_wrap=True,
        )
        if e.ctx is not None:
            err_console.print(e.ctx.get_usage(), markup=False, highlight=False)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        err_console.print("[red]Aborted[/red]")
        sys.exit(1)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    safe_main()

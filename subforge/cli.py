"""
subforge.cli - Typer CLI entry point.

Provides the commands for generating, inspecting, and checking subtitle
generation.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from subforge import __version__
from subforge.catalog import DirectoryCatalog, MediaItem
from subforge.config import (
    CONFIG_FILENAME,
    SubforgeConfig,
    create_default_config,
    load_config,
    write_config,
)
from subforge.exceptions import SubforgeError
from subforge.logging import configure_logging

app = typer.Typer(
    name="subforge",
    help="Generate sidecar subtitles for media files.\n\n"
    "Extracts audio with FFmpeg, transcribes it with a pluggable backend "
    "(whisper.cpp by default), and writes <name>.<lang>.generated.srt next "
    "to each video.",
    add_completion=False,
)
console = Console()

CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help=f"Path to {CONFIG_FILENAME} (searched upwards by default)"
)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"subforge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Subforge - generated subtitles for media libraries."""
    configure_logging(verbose)


def _load_config(config_path: Path | None) -> SubforgeConfig:
    try:
        return load_config(config_path)
    except SubforgeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _build_pipeline(config: SubforgeConfig, catalog: DirectoryCatalog, provider: str | None):
    from subforge.pipeline import SubtitlePipeline
    from subforge.providers import create_provider

    try:
        return SubtitlePipeline(config, create_provider(config, provider), catalog)
    except SubforgeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _print_summary(results: dict, title: str) -> None:
    table = Table(title=title)
    table.add_column("Item", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Details")

    for output in results["outputs"].values():
        table.add_row(Path(output).name, "[green]✓ Generated[/green]", output)
    for error in results["errors"]:
        table.add_row(escape(error["name"]), "[red]✗ Failed[/red]", escape(error["error"]))

    if results["outputs"] or results["errors"]:
        console.print(table)

    console.print(
        f"\n[green]✓[/green] Generated {results['generated']}, "
        f"skipped {results['skipped']}, failed {results['failed']}"
    )


@app.command("init")
def init_config(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config into"),
    provider: str = typer.Option("whisper", "--provider", "-p", help="whisper, command, faster"),
    model: str | None = typer.Option(None, "--model", "-m", help="whisper.cpp ggml model file"),
) -> None:
    """Write a default subforge.yaml."""
    config_path = Path(path) / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    defaults = create_default_config(provider, model)
    try:
        SubforgeConfig(**defaults)
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    write_config(defaults, config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")
    if not model and provider == "whisper":
        console.print("[dim]  Set whisper_model_path before generating subtitles[/dim]")


@app.command("generate")
def generate(
    media: list[Path] = typer.Argument(..., help="Media file(s) to subtitle"),
    language: str | None = typer.Option(None, "--language", "-l", help="Language code"),
    provider: str | None = typer.Option(
        None, "--provider", "-p", help="Override the configured provider"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Regenerate even if a generated subtitle exists"
    ),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Generate subtitles for specific media files."""
    config = _load_config(config_path)
    catalog = DirectoryCatalog(media, config.media_extensions)
    pipeline = _build_pipeline(config, catalog, provider)

    items = []
    for path in media:
        if not path.is_file():
            console.print(f"[yellow]Skipping {path}: not found[/yellow]")
            continue
        items.append(MediaItem.from_path(path))

    if not items:
        console.print("[yellow]No media files to process.[/yellow]")
        raise typer.Exit(0)

    console.print(f"[cyan]Generating subtitles with {pipeline.provider.name}...[/cyan]\n")
    try:
        results = asyncio.run(pipeline.generate_all(items, language=language, force=force))
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)

    _print_summary(results, "Subtitle Generation")
    if results["failed"] > 0:
        raise typer.Exit(1)


@app.command("scan")
def scan_library(
    libraries: list[Path] | None = typer.Argument(
        None, help="Library directories (default: enabled_libraries from config)"
    ),
    language: str | None = typer.Option(None, "--language", "-l", help="Language code"),
    force: bool = typer.Option(False, "--force", "-f", help="Regenerate existing subtitles"),
    ignore_disabled: bool = typer.Option(
        False, "--ignore-disabled", help="Run even if enable_auto_generation is false"
    ),
    concurrency: int | None = typer.Option(
        None, "--concurrency", "-j", min=1, help="Simultaneous items"
    ),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Generate missing subtitles for every video in the libraries."""
    config = _load_config(config_path)

    if not config.enable_auto_generation and not ignore_disabled:
        console.print("[yellow]Auto-generation is disabled in configuration.[/yellow]")
        raise typer.Exit(0)

    roots = list(libraries) if libraries else [Path(p) for p in config.enabled_libraries]
    if not roots:
        console.print("[yellow]No libraries given and none enabled in configuration.[/yellow]")
        raise typer.Exit(0)

    catalog = DirectoryCatalog(roots, config.media_extensions)
    pipeline = _build_pipeline(config, catalog, None)

    console.print(f"[cyan]Scanning {len(roots)} library path(s)...[/cyan]\n")
    try:
        results = asyncio.run(
            pipeline.generate_all(
                catalog.scan(), language=language, force=force, concurrency=concurrency
            )
        )
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)

    _print_summary(results, "Library Scan")
    if results["failed"] > 0:
        raise typer.Exit(1)


@app.command("status")
def show_status(
    media: list[Path] = typer.Argument(..., help="Media file(s) to check"),
    language: str | None = typer.Option(None, "--language", "-l", help="Language code"),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Show whether generated subtitles exist."""
    from subforge.pipeline import subtitle_status

    config = _load_config(config_path)
    language = language or config.default_language

    table = Table(title="Generated Subtitles")
    table.add_column("Media", style="cyan")
    table.add_column("Subtitle", style="green")
    table.add_column("Path")

    for path in media:
        if not path.is_file():
            table.add_row(path.name, "[red]Media not found[/red]", "-")
            continue
        status = subtitle_status(MediaItem.from_path(path), language)
        if status["has_generated_subtitle"]:
            table.add_row(path.name, "✓", status["subtitle_path"])
        else:
            table.add_row(path.name, "[dim]-[/dim]", "-")

    console.print(table)


@app.command("doctor")
def run_doctor(config_path: Path | None = CONFIG_OPTION) -> None:
    """Check dependencies and environment setup."""
    from subforge.validation import run_preflight_checks

    config = _load_config(config_path)
    console.print("[cyan]Running preflight checks...[/cyan]\n")

    results = asyncio.run(run_preflight_checks(config))
    checks = results["checks"]

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    ffmpeg = checks["ffmpeg"]
    if "error" in ffmpeg:
        table.add_row("FFmpeg", "✗ Missing", ffmpeg.get("install_hint") or ffmpeg["error"])
    else:
        table.add_row("FFmpeg", "✓ Installed", f"{ffmpeg['version']} ({ffmpeg['executable']})")

    transcriber = checks["transcriber"]
    if "error" in transcriber:
        table.add_row(
            "Transcriber",
            "✗ Unavailable",
            transcriber["error"]
            + (f"\n{transcriber['install_hint']}" if transcriber.get("install_hint") else ""),
        )
    else:
        details = transcriber.get("executable") or ""
        if transcriber.get("model"):
            details = f"{details} model={transcriber['model']}".strip()
        table.add_row(f"Transcriber ({transcriber['provider']})", "✓ Ready", details)

    disk = checks["disk_space"]
    if "error" in disk:
        table.add_row("Temp space", "?", disk["error"])
    else:
        status = "✓ OK" if disk["sufficient"] else "✗ Low"
        table.add_row("Temp space", status, f"{disk['available_mb']} MB free")

    console.print(table)

    if results["passed"]:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        console.print("[dim]Fix the issues above before generating subtitles[/dim]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

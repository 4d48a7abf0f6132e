"""
youcast.cli - Typer CLI entry point.

Provides subcommands for writing a starter config, listing profiles,
checking dependencies and streaming a video's audio to a file or stdout.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import BinaryIO

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from youcast import __version__
from youcast.config import (
    BUILTIN_PROFILES,
    ExtractorSettings,
    ProfileConfig,
    create_default_config,
    load_config,
    resolve_profile,
    write_config,
)
from youcast.exceptions import ConfigError, ValidationError, YoucastError
from youcast.extract.diagnostics import classify_failure
from youcast.extract.pipeline import extract_audio_stream
from youcast.extract.topology import select_topology
from youcast.logging import configure_logging
from youcast.utils import format_size
from youcast.validation import check_dependencies, validate_source_id

app = typer.Typer(
    name="youcast",
    help="Stream audio from online videos.\n\n"
    "Runs yt-dlp, optionally piped through ffmpeg, according to an audio profile.",
    add_completion=False,
)
# stdout may carry audio, so all messages go to stderr
console = Console(stderr=True)

CONFIG_FILENAME = "youcast.yaml"


def find_config_file() -> Path | None:
    """Find youcast.yaml in the current directory or its parents."""
    current = Path.cwd()
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists():
            return current / CONFIG_FILENAME
        current = current.parent
    return None


def _load(config_path: str | None):
    path = Path(config_path) if config_path else find_config_file()
    try:
        return load_config(path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"youcast {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """YouCast - stream audio from online videos."""
    configure_logging(verbose=verbose)


@app.command("init")
def init_config(
    profile: str = typer.Option(None, "--profile", "-p", help="Default audio profile"),
    path: str = typer.Option(".", "--path", "-d", help="Directory to write youcast.yaml in"),
) -> None:
    """Write a starter youcast.yaml."""
    config_path = Path(path) / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    if profile and profile not in BUILTIN_PROFILES:
        console.print(f"[red]Error: Unknown profile '{profile}'[/red]")
        console.print(f"[dim]  Built-in profiles: {', '.join(BUILTIN_PROFILES)}[/dim]")
        raise typer.Exit(1)

    write_config(create_default_config(profile), config_path)
    console.print(f"[green]✓[/green] Created {config_path}")


@app.command("profiles")
def list_profiles(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to youcast.yaml"),
) -> None:
    """List available audio profiles."""
    config = _load(config_path)

    table = Table(title="Audio Profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("Format", style="green")
    table.add_column("Content Type")
    table.add_column("Pipeline", style="yellow")
    table.add_column("Description", style="dim")

    for name, profile in sorted(config.profiles.items()):
        marker = " (default)" if name == config.default_profile else ""
        table.add_row(
            f"{name}{marker}",
            profile.audio_format,
            profile.content_type,
            select_topology(profile).value,
            profile.description,
        )

    console.print(table)


@app.command("doctor")
def doctor(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to youcast.yaml"),
) -> None:
    """Check that yt-dlp and ffmpeg are installed."""
    config = _load(config_path)
    results = check_dependencies(config.extractor)

    for binary, check in results["checks"].items():
        if "error" in check:
            console.print(f"[red]✗[/red] {check['error']}")
            if check.get("install_hint"):
                console.print(f"[dim]  {check['install_hint']}[/dim]")
        else:
            console.print(
                f"[green]✓[/green] {binary} {check['version']} [dim]({check['path']})[/dim]"
            )

    if not results["passed"]:
        raise typer.Exit(1)


async def stream_to(
    out: BinaryIO,
    source_id: str,
    profile: ProfileConfig,
    profile_name: str,
    settings: ExtractorSettings,
) -> int:
    """Run the pipeline and copy every chunk into ``out``. Returns bytes written."""
    handle = await extract_audio_stream(source_id, profile, profile_name, settings)
    async with handle.stream as stream:
        async for chunk in stream:
            out.write(chunk)
    return stream.bytes_delivered


def extract_to_file(
    path: Path,
    source_id: str,
    profile: ProfileConfig,
    profile_name: str,
    settings: ExtractorSettings,
) -> int:
    """Stream into ``<path>.part`` and move it to ``path`` only on success."""
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_name(f"{path.name}.part")
    try:
        with open(partial, "wb") as f:
            written = asyncio.run(stream_to(f, source_id, profile, profile_name, settings))
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(path)
    return written


@app.command("extract")
def extract_cmd(
    source_id: str = typer.Argument(..., help="YouTube video ID"),
    profile: str = typer.Option(None, "--profile", "-p", help="Audio profile name"),
    output: str = typer.Option(
        None, "--output", "-o", help="Output file, or '-' for stdout (default: <id>.<ext>)"
    ),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to youcast.yaml"),
) -> None:
    """Stream a video's audio to a file or stdout."""
    config = _load(config_path)

    try:
        validate_source_id(source_id)
    except ValidationError as e:
        console.print(f"[yellow]Warning: {e}[/yellow]")

    try:
        profile_name, profile_config = resolve_profile(profile, config)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    if profile and profile != profile_name:
        console.print(f"[yellow]Unknown profile '{profile}', using '{profile_name}'[/yellow]")

    to_stdout = output == "-"
    default_name = f"{source_id}.{profile_config.file_extension}"
    output_path = None if to_stdout else Path(output or default_name)

    console.print(f"[dim]Extracting {source_id} with profile '{profile_name}'...[/dim]")

    try:
        if to_stdout:
            written = asyncio.run(
                stream_to(
                    sys.stdout.buffer, source_id, profile_config, profile_name, config.extractor
                )
            )
            sys.stdout.buffer.flush()
        else:
            written = extract_to_file(
                output_path, source_id, profile_config, profile_name, config.extractor
            )
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
    except YoucastError as e:
        kind = classify_failure(getattr(e, "diagnostics", "") or str(e))
        console.print(f"[red]Error ({kind.value}): {escape(str(e))}[/red]")
        raise typer.Exit(1)

    target = "stdout" if to_stdout else str(output_path)
    console.print(f"[green]✓[/green] Wrote {format_size(written)} to {target}")

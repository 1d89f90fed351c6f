"""CLI for the activity meme generator.

Runs the same pipeline a server integration would, against live Strava and the
configured LLM provider, and writes the resulting JPEG to disk.
"""

import asyncio
import json
from pathlib import Path

import httpx
import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from memegen.config.settings import Settings, settings
from memegen.core.logger import setup_logger
from memegen.errors import MemeError
from memegen.integrations.strava.client import StravaClient
from memegen.models.activity import ActivityRecord, ActivityRef
from memegen.models.meme import MemeRunResult
from memegen.pipeline.normalizer import normalize_activity
from memegen.pipeline.orchestrator import MemePipeline

console = Console()

app = typer.Typer(
    name="memegen",
    help="Turn Strava activities into duck memes",
    add_completion=False,
)


def build_pipeline(config: Settings) -> MemePipeline:
    return MemePipeline.from_settings(config)


def _load_telemetry(path: Path) -> ActivityRecord:
    raw = json.loads(path.read_text(encoding="utf-8"))
    return ActivityRecord.from_raw(raw)


def _render_result(result: MemeRunResult, output: Path) -> None:
    artifact = result.artifact
    body = Text()
    body.append("Mood: ", style="bold")
    body.append(f"{artifact.mood.value}\n")
    body.append("Photo: ", style="bold")
    body.append(f"{artifact.photo_path}\n")
    body.append("Caption: ", style="bold")
    body.append(f"{artifact.caption}\n")
    if result.motivation:
        body.append("Motivation: ", style="bold")
        body.append(f"{result.motivation.message}\n")
    body.append("Saved to: ", style="bold")
    body.append(str(output))
    if result.from_cache:
        body.append("\n(cached)", style="dim")

    console.print(Panel(body, title=f"Activity {artifact.activity_id}", border_style="green"))

    outcome = result.upload_outcome
    if outcome is None:
        return
    if outcome.succeeded:
        console.print("[green]Uploaded to Strava[/green]")
    else:
        console.print(f"[yellow]Upload failed ({outcome.error_kind}): {outcome.error}[/yellow]")


@app.command()
def generate(
    activity_id: str = typer.Argument(..., help="Strava activity ID"),
    telemetry: Path | None = typer.Option(None, "--telemetry", "-t", help="Use activity JSON from a file instead of fetching it"),
    upload: bool | None = typer.Option(None, "--upload/--no-upload", help="Publish the meme to the activity (default: AUTO_UPLOAD)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Where to write the JPEG"),
    regenerate: bool = typer.Option(False, "--regenerate", help="Ignore any cached meme"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Generate a meme for one activity."""
    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file or None)

    ref = ActivityRef(
        activity_id=activity_id,
        telemetry=_load_telemetry(telemetry) if telemetry else None,
    )
    pipeline = build_pipeline(settings)

    try:
        result = asyncio.run(pipeline.generate_meme(ref, auto_upload=upload, regenerate=regenerate))
    except MemeError as e:
        logger.error(f"Meme generation failed: {e}")
        console.print(Panel(Text(str(e), style="bold red"), title="Meme generation failed", border_style="red"))
        raise typer.Exit(1) from e

    target = result.artifact.save(output or Path(f"meme_{activity_id}.jpg"))
    _render_result(result, target)


@app.command()
def recent(
    page: int = typer.Option(1, "--page", help="Page number"),
    per_page: int = typer.Option(10, "--per-page", "-n", help="Activities per page"),
) -> None:
    """List recent activities."""
    setup_logger(level=settings.log_level, log_file=settings.log_file or None)

    if not settings.strava_access_token:
        console.print("[red]STRAVA_ACCESS_TOKEN is not set[/red]")
        raise typer.Exit(1)

    client = StravaClient(settings.strava_access_token, timeout=settings.strava_timeout_seconds)
    try:
        activities = asyncio.run(client.list_activities(page=page, per_page=per_page))
    except httpx.HTTPError as e:
        console.print(f"[red]Failed to fetch activities: {e}[/red]")
        raise typer.Exit(1) from e

    if not activities:
        console.print("No activities yet? Even ducks have to start somewhere!")
        return

    table = Table(title="Recent activities")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Distance", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Avg Speed", justify="right")

    for record in activities:
        normalized = normalize_activity(record)
        table.add_row(
            str(record.id),
            record.name or "",
            normalized.type,
            f"{normalized.distance_km} km",
            normalized.duration,
            f"{normalized.avg_speed_kmh} km/h",
        )

    console.print(table)


if __name__ == "__main__":
    app()

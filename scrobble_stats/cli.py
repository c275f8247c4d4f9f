"""Command-line interface for scrobble-stats."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config.database import DatabaseHandler
from .config.settings import Settings
from .errors import ScrobbleImportError
from .service import ScrobbleStatsService
from .utils import get_config_dir

app = typer.Typer(help="Scrobble history importer and listening statistics")
console = Console()


def get_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from file or defaults."""
    return Settings.from_file_or_default(config_path)


def get_database(settings: Settings) -> DatabaseHandler:
    """Get database handler."""
    return DatabaseHandler(settings.database.path, timeout=settings.database.timeout_seconds)


def format_when(value: Optional[str]) -> str:
    """Shorten a stored ISO timestamp for display."""
    if not value:
        return "-"
    return value.replace('T', ' ')[:16]


def print_rows(title: str, columns: List[str], rows: List[Dict[str, Any]], empty: str) -> None:
    """Render query rows as a table."""
    if not rows:
        console.print(f"[yellow]{empty}[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    for column in columns:
        justify = "right" if isinstance(rows[0].get(column), (int, float)) else "left"
        table.add_column(column.replace('_', ' ').title(), justify=justify)

    for position, row in enumerate(rows, start=1):
        cells = []
        for column in columns:
            value = row.get(column)
            if column in ('timestamp', 'first_play', 'last_play', 'last_played'):
                value = format_when(value)
            cells.append("" if value is None else str(value))
        table.add_row(str(position), *cells)

    console.print(table)


@app.command(name="import")
def import_file(
    file: Path = typer.Argument(..., help="Path to a JSON scrobble export"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Import a scrobble history export."""
    if not file.exists():
        console.print(f"[red]Error: File not found: {file}[/red]")
        raise typer.Exit(1)

    service = ScrobbleStatsService(config_path=config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task(f"Importing {file.name}...", total=None)

            def on_progress(processed: int) -> None:
                progress.update(task, description=f"Imported {processed} scrobbles...")

            result = service.import_file(file, progress_callback=on_progress)

    except ScrobbleImportError as e:
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]Imported {result.processed_count} of {result.total_count} scrobbles[/green]"
    )
    if result.skipped_count:
        console.print(f"[yellow]Skipped {result.skipped_count} record(s), see log for details[/yellow]")


@app.command()
def stats(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Show headline listening statistics."""
    db = get_database(get_settings(config))
    overview = db.get_overview()

    console.print("[cyan]Listening Overview[/cyan]\n")
    console.print(f"Scrobbles: {overview['total_scrobbles']}")
    console.print(f"Artists: {overview['unique_artists']}")
    console.print(f"Albums: {overview['unique_albums']}")
    console.print(f"First scrobble: {format_when(overview['first_scrobble'])}")
    console.print(f"Last scrobble: {format_when(overview['last_scrobble'])}")


@app.command(name="top-artists")
def top_artists(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of artists"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """List the most played artists."""
    settings = get_settings(config)
    rows = get_database(settings).get_top_artists(limit or settings.stats.top_artists)
    print_rows(
        "Top Artists",
        ['artist', 'count', 'tracks', 'albums', 'last_play'],
        rows,
        "No scrobbles imported yet"
    )


@app.command(name="top-albums")
def top_albums(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of albums"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """List the most played albums."""
    settings = get_settings(config)
    rows = get_database(settings).get_top_albums(limit or settings.stats.top_albums)
    print_rows("Top Albums", ['album', 'artist', 'count'], rows, "No scrobbles imported yet")


@app.command(name="loved-albums")
def loved_albums(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of albums"),
    min_tracks: Optional[int] = typer.Option(
        None,
        "--min-tracks",
        min=1,
        help="Minimum distinct tracks played"
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """List albums with the most plays per track."""
    settings = get_settings(config)
    rows = get_database(settings).get_loved_albums(
        limit or settings.stats.loved_albums,
        min_unique_tracks=min_tracks or settings.stats.loved_min_tracks
    )
    print_rows(
        "Most Loved Albums",
        ['album', 'artist', 'unique_tracks_played', 'total_plays', 'avg_plays_per_track'],
        rows,
        "No album has enough distinct tracks played"
    )


@app.command(name="top-tracks")
def top_tracks(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of tracks"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """List the most played tracks."""
    settings = get_settings(config)
    rows = get_database(settings).get_top_tracks(limit or settings.stats.top_tracks)
    print_rows(
        "Top Tracks",
        ['track', 'artist', 'album', 'play_count', 'last_played'],
        rows,
        "No scrobbles imported yet"
    )


@app.command()
def tracks(
    search: str = typer.Option("", "--search", "-s", help="Filter by artist, track or album"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of plays"),
    all: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="List every played track by play count instead of recent plays"
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """List recent plays, or every track with --all."""
    settings = get_settings(config)
    db = get_database(settings)

    if all:
        result = db.get_all_tracks(limit or settings.stats.all_tracks, search=search)
        print_rows(
            "All Tracks",
            ['track', 'artist', 'album', 'play_count', 'last_played'],
            result['tracks'],
            "No matching tracks"
        )
        if result['has_more']:
            console.print(f"Showing {result['showing_count']} of {result['total_count']} tracks")
        return

    rows = db.get_recent_tracks(limit or settings.stats.recent_tracks, search=search)
    print_rows("Recent Tracks", ['track', 'artist', 'album', 'timestamp'], rows, "No matching plays")


@app.command()
def monthly(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Show scrobbles per month."""
    rows = get_database(get_settings(config)).get_monthly_stats()
    print_rows("Scrobbles per Month", ['month', 'count'], rows, "No scrobbles imported yet")


@app.command()
def hourly(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Show scrobbles per hour of day (UTC)."""
    rows = get_database(get_settings(config)).get_hourly_stats()
    peak = max(row['count'] for row in rows)

    table = Table(title="Scrobbles per Hour (UTC)")
    table.add_column("Hour")
    table.add_column("Count", justify="right")
    table.add_column("")

    for row in rows:
        bar = "#" * round(30 * row['count'] / peak) if peak else ""
        table.add_row(row['hour'], str(row['count']), f"[cyan]{bar}[/cyan]")

    console.print(table)


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Delete all imported scrobbles, tracks, albums and artists."""
    settings = get_settings(config)
    counts = get_database(settings).get_table_counts()

    console.print(f"Scrobbles: {counts['scrobbles']}")
    console.print(f"Artists: {counts['artists']}")

    if not yes and not typer.confirm("Delete all imported data?", default=False):
        console.print("[yellow]Cancelled[/yellow]")
        return

    ScrobbleStatsService(settings=settings).clear()
    console.print("[green]All data cleared[/green]")


@app.command()
def status(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Show configuration paths and row counts."""
    settings = get_settings(config)
    counts = get_database(settings).get_table_counts()

    console.print("[cyan]scrobble-stats Status[/cyan]\n")

    console.print(f"Config directory: {get_config_dir()}")
    console.print(f"Database: {settings.database.path}")
    console.print(f"Log file: {settings.logging.path}\n")

    console.print("[bold]Rows:[/bold]")
    for table, count in counts.items():
        console.print(f"  {table.title()}: {count}")


@app.command()
def init_config(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file"
    )
):
    """Initialize a configuration file with defaults."""
    if output is None:
        output = get_config_dir() / 'config.yaml'

    if output.exists():
        overwrite = typer.confirm(
            f"Config file already exists at {output}. Overwrite?",
            default=False
        )
        if not overwrite:
            console.print("[yellow]Cancelled[/yellow]")
            return

    settings = Settings()
    settings.save(output)

    console.print(f"[green]Configuration file created: {output}[/green]")
    console.print("\nEdit this file to customize your settings")


if __name__ == "__main__":
    app()

"""Command-line interface for clip-durations."""

import logging
from pathlib import Path

import click

from . import __version__
from .pipeline import CHANNEL_CAPACITY, MAX_CONCURRENCY, PipelineConfig, ReadPolicy, measure_directory
from .records import RECORD_STORES, TSV
from .scanner import AUDIO_EXTENSIONS, InvalidPathError

# Configure logging (stderr; stdout carries only the total)
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--ext", "-e", "extensions",
    multiple=True,
    default=["mp3"],
    show_default=True,
    help="Clip extension to measure (repeatable, case-insensitive)"
)
@click.option(
    "--any-audio",
    is_flag=True,
    help="Measure every known audio extension instead of --ext"
)
@click.option(
    "--format", "-f", "layout",
    type=click.Choice(sorted(RECORD_STORES)),
    default=TSV,
    show_default=True,
    help="Output layout: tsv (header + name/duration rows) or listing (`path` = ms)"
)
@click.option(
    "--output-name", "-o",
    help="Output file name, created next to DIRECTORY (default depends on --format)"
)
@click.option(
    "--channel-capacity",
    type=click.IntRange(min=1),
    default=CHANNEL_CAPACITY,
    show_default=True,
    help="Max results queued for the writer"
)
@click.option(
    "--max-concurrency", "-j",
    type=click.IntRange(min=0),
    default=MAX_CONCURRENCY,
    show_default=True,
    help="Max clips read at once (0 for no limit)"
)
@click.option(
    "--on-read-error",
    type=click.Choice([p.value for p in ReadPolicy]),
    default=ReadPolicy.ABORT.value,
    show_default=True,
    help="abort the run, or record 0 ms for a clip that cannot be read"
)
@click.option(
    "--progress/--no-progress",
    default=None,
    help="Show a progress counter on stderr (default: only on a terminal)"
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    envvar="CLIP_DURATIONS_LOG",
    default="WARNING",
    show_default=True,
    help="Diagnostic verbosity (env: CLIP_DURATIONS_LOG)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.version_option(version=__version__)
def cli(
    directory: Path,
    extensions: tuple[str, ...],
    any_audio: bool,
    layout: str,
    output_name: str,
    channel_capacity: int,
    max_concurrency: int,
    on_read_error: str,
    progress: bool,
    log_level: str,
    verbose: bool,
):
    """Measure every audio clip in DIRECTORY and print the total duration in ms.

    DIRECTORY: Folder whose clips (not subfolders) are measured

    One record per clip is written to a file next to DIRECTORY
    (clip_durations.tsv by default). Clips that cannot be decoded are
    recorded with a duration of 0.
    """
    logging.getLogger().setLevel(logging.DEBUG if verbose else log_level.upper())

    try:
        config = PipelineConfig(
            extensions=AUDIO_EXTENSIONS if any_audio else extensions,
            layout=layout,
            output_name=output_name,
            channel_capacity=channel_capacity,
            max_concurrency=max_concurrency,
            read_policy=ReadPolicy(on_read_error),
            progress=progress,
        )
    except ValueError as e:
        raise click.UsageError(str(e))

    try:
        report = measure_directory(directory, config)
    except (OSError, InvalidPathError) as e:
        logger.error(f"Aborting: {e}")
        raise click.ClickException(str(e))

    click.echo(report.total_ms)


if __name__ == "__main__":
    cli()

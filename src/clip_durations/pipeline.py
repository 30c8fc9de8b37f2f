"""
Measuring pipeline - fans out one worker per clip and fans results into one writer.

    dispatch ──┬─ measure_clip ─┐
               ├─ measure_clip ─┼─> channel (bounded queue) ──> write_results ──> store
               └─ measure_clip ─┘

The dispatcher launches every worker inside a task group and, once the whole
group has finished, closes the channel with END_OF_STREAM. The writer is the
only task touching the record store and the running total, so neither needs
a lock.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from tqdm import tqdm

from .decoder import DecodeError, decode_duration_ms
from .records import RECORD_STORES, TSV, RecordStore, open_record_store, output_path_for
from .scanner import DEFAULT_EXTENSIONS, check_directory, iter_clip_paths, normalize_extensions

logger = logging.getLogger(__name__)

# Max number of results that can be queued up for writing to the output file
CHANNEL_CAPACITY = 1_000_000

# Max number of clips being read and decoded at the same time
MAX_CONCURRENCY = 64

END_OF_STREAM = None


class ReadPolicy(str, enum.Enum):
    """What a worker does when it cannot read its clip."""
    ABORT = "abort"
    ZERO = "zero"


@dataclass(frozen=True)
class ClipResult:
    """One measured clip. Unmeasurable clips carry a duration of 0."""
    path: Path
    duration_ms: int
    measured: bool = True


@dataclass
class PipelineReport:
    """
    Outcome of a completed run.

    failed counts every clip recorded as 0 ms because it could not be
    decoded or, under ReadPolicy.ZERO, could not be read.
    """
    total_ms: int
    clip_count: int
    failed: int
    output_path: Path


@dataclass
class PipelineConfig:
    """
    Settings for one pipeline run.

    Attributes:
        extensions: Clip extensions to pick up (case-insensitive)
        layout: Output layout name ("tsv" or "listing")
        output_name: Output file name; defaults to the layout's own name
        channel_capacity: Bound of the result queue
        max_concurrency: Clips read/decoded at once; None or 0 for no limit
        read_policy: ABORT fails the run on an unreadable clip, ZERO records 0
        decoder: Callable(bytes, file name) -> milliseconds, raising DecodeError
        progress: Show a progress counter; None shows it only on a terminal
    """
    extensions: Iterable[str] = DEFAULT_EXTENSIONS
    layout: str = TSV
    output_name: str | None = None
    channel_capacity: int = CHANNEL_CAPACITY
    max_concurrency: int | None = MAX_CONCURRENCY
    read_policy: ReadPolicy = ReadPolicy.ABORT
    decoder: Callable[[bytes, str], int] = decode_duration_ms
    progress: bool | None = None

    def __post_init__(self):
        self.extensions = normalize_extensions(self.extensions)
        self.read_policy = ReadPolicy(self.read_policy)
        if self.layout not in RECORD_STORES:
            raise ValueError(f"Unknown output layout: {self.layout}")
        if self.channel_capacity < 1:
            raise ValueError("channel_capacity must be at least 1")
        if self.max_concurrency is not None and self.max_concurrency < 0:
            raise ValueError("max_concurrency cannot be negative")


def read_clip(path: Path) -> bytes:
    """Read a clip's full contents."""
    return path.read_bytes()


def _measure(path: Path, config: PipelineConfig) -> ClipResult:
    """Blocking part of a worker: read and decode one clip."""
    logger.debug(f"Reading {path}")
    try:
        data = read_clip(path)
    except OSError as e:
        if config.read_policy is ReadPolicy.ABORT:
            raise
        logger.error(f"Failed to read {path}: {e}")
        return ClipResult(path, 0, measured=False)

    try:
        duration_ms = config.decoder(data, path.name)
    except DecodeError as e:
        logger.error(f"Failed to decode {path}: {e}")
        return ClipResult(path, 0, measured=False)

    logger.debug(f"Duration of {path}: {duration_ms} ms")
    return ClipResult(path, duration_ms)


async def measure_clip(path: Path, channel: asyncio.Queue, config: PipelineConfig, gate) -> None:
    """Measure one clip and send exactly one result to the channel."""
    async with gate:
        result = await asyncio.to_thread(_measure, path, config)
    await channel.put(result)


def _admission_gate(max_concurrency: int | None):
    if not max_concurrency:
        return contextlib.nullcontext()
    return asyncio.Semaphore(max_concurrency)


async def dispatch(root: Path, channel: asyncio.Queue, config: PipelineConfig) -> int:
    """
    Launch one worker per clip in root, wait for all of them, then close the channel.

    Returns:
        Number of workers launched
    """
    gate = _admission_gate(config.max_concurrency)
    dispatched = 0
    # iterdir() and the per-entry stat block, so each step runs in a thread
    entries = iter_clip_paths(root, config.extensions)

    async with asyncio.TaskGroup() as workers:
        while True:
            path = await asyncio.to_thread(next, entries, None)
            if path is None:
                break
            workers.create_task(measure_clip(path, channel, config, gate))
            dispatched += 1
        logger.info(f"Dispatched {dispatched} clips, draining")

    await channel.put(END_OF_STREAM)
    return dispatched


def _progress_disabled(progress: bool | None) -> bool | None:
    # tqdm treats disable=None as "only when attached to a terminal"
    return None if progress is None else not progress


async def write_results(channel: asyncio.Queue, store: RecordStore, progress: bool | None = None) -> PipelineReport:
    """
    Drain the channel into the store until END_OF_STREAM, summing durations.

    Args:
        channel: Queue fed by the workers
        store: Open record store; left open for the caller to close
        progress: Progress counter setting (see PipelineConfig)

    Returns:
        PipelineReport with the running total
    """
    total = 0
    clip_count = 0
    failed = 0

    with tqdm(desc="Measuring", unit="clip", disable=_progress_disabled(progress)) as pbar:
        while True:
            result = await channel.get()
            if result is END_OF_STREAM:
                break

            store.append(result.path, result.duration_ms)
            total += result.duration_ms
            clip_count += 1
            if not result.measured:
                failed += 1
            pbar.update(1)

    return PipelineReport(
        total_ms=total,
        clip_count=clip_count,
        failed=failed,
        output_path=store.path,
    )


def _first_error(group: BaseExceptionGroup) -> BaseException:
    """Dig the first underlying error out of (possibly nested) task group failures."""
    error = group.exceptions[0]
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


async def run_pipeline(root: Path, config: PipelineConfig | None = None) -> PipelineReport:
    """
    Measure every clip directly inside root.

    The output file is only created once root is known to be a readable
    directory. Any fatal error (unreadable directory, bad path, failed write,
    or an unreadable clip under ReadPolicy.ABORT) cancels all outstanding work
    and is re-raised as-is.
    """
    config = config or PipelineConfig()
    root = Path(root)

    check_directory(root)
    out_path = output_path_for(root, config.layout, config.output_name)

    logger.info(f"Processing directory {root}")
    logger.info(f"Output to file {out_path}")

    channel = asyncio.Queue(maxsize=config.channel_capacity)
    store = open_record_store(out_path, config.layout)

    try:
        async with asyncio.TaskGroup() as tg:
            tg.create_task(dispatch(root, channel, config))
            writer = tg.create_task(write_results(channel, store, config.progress))
    except ExceptionGroup as group:
        raise _first_error(group) from None
    finally:
        store.close()

    report = writer.result()
    logger.info(f"Complete: {report.clip_count} clips ({report.failed} failed), total {report.total_ms} ms")
    return report


def measure_directory(root: Path, config: PipelineConfig | None = None) -> PipelineReport:
    """Synchronous entry point around run_pipeline."""
    return asyncio.run(run_pipeline(root, config))

"""Output record store - append-only files mapping clips to durations."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

TSV = "tsv"
LISTING = "listing"


class RecordStore:
    """
    Append-only text file holding one line per measured clip.

    The file is created (truncating any previous run) when the store is
    opened. Lines are written in the order they are appended; close() flushes
    and fsyncs so the file is complete once the total is reported.
    """

    layout = ""
    default_name = ""
    header: str | None = None

    def __init__(self, path: Path):
        self.path = path
        self.rows = 0
        self._file = open(path, "w", encoding="utf-8", newline="\n")
        if self.header is not None:
            self._file.write(self.header + "\n")

    def format_row(self, clip: Path, duration_ms: int) -> str:
        raise NotImplementedError

    def append(self, clip: Path, duration_ms: int):
        """Write one record line."""
        self._file.write(self.format_row(clip, duration_ms) + "\n")
        self.rows += 1

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self):
        """Flush buffered rows to disk and close the file."""
        if self._file.closed:
            return
        self._file.flush()
        os.fsync(self._file.fileno())
        self._file.close()
        logger.debug(f"Closed {self.path} ({self.rows} rows)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class TsvRecordStore(RecordStore):
    """Tab-separated table: header line, then `<file name>\\t<ms>` per clip."""

    layout = TSV
    default_name = "clip_durations.tsv"
    header = "clip\tduration[ms]"

    def format_row(self, clip: Path, duration_ms: int) -> str:
        return f"{clip.name}\t{duration_ms}"


class ListingRecordStore(RecordStore):
    """Free-form listing without header: `` `full/path` = <ms> `` per clip."""

    layout = LISTING
    default_name = "times.txt"

    def format_row(self, clip: Path, duration_ms: int) -> str:
        return f"`{clip}` = {duration_ms}"


RECORD_STORES = {
    TSV: TsvRecordStore,
    LISTING: ListingRecordStore,
}


def _store_class(layout: str) -> type[RecordStore]:
    try:
        return RECORD_STORES[layout]
    except KeyError:
        raise ValueError(f"Unknown output layout: {layout}") from None


def output_path_for(root: Path, layout: str = TSV, name: str | None = None) -> Path:
    """Output file location: a sibling of the scanned directory."""
    # abspath keeps a symlinked directory's own location and still gives "." a parent
    return Path(os.path.abspath(root)).parent / (name or _store_class(layout).default_name)


def open_record_store(path: Path, layout: str = TSV) -> RecordStore:
    """Create the output file and write its header (if the layout has one)."""
    store = _store_class(layout)(path)
    logger.info(f"Writing {layout} records to {path}")
    return store

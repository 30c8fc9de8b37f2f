"""Clip scanner - discovers audio clips in a single directory level."""

import logging
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {
    ".mp3", ".flac", ".m4a", ".aac", ".ogg", ".opus", ".wav", ".wma",
    ".alac", ".aiff", ".ape", ".mpc", ".wv", ".tta", ".dsf", ".dff"
}

DEFAULT_EXTENSIONS = frozenset({".mp3"})


class InvalidPathError(ValueError):
    """Raised for a path that cannot be rendered as text."""


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions and make sure each one starts with a dot."""
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        normalized.add(ext)

    if not normalized:
        raise ValueError("at least one clip extension is required")
    return frozenset(normalized)


def as_text(path: Path) -> str:
    """
    Render a path as text, rejecting names the filesystem handed back as raw bytes.

    Undecodable bytes surface in Python as lone surrogates, which cannot be
    encoded as UTF-8.
    """
    text = str(path)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidPathError(f"Path is not valid text: {text!r}") from None
    return text


def is_clip(path: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    """True if the path is a regular file with one of the given extensions."""
    return path.suffix.lower() in extensions and path.is_file()


def check_directory(root: Path) -> None:
    """Make sure the scan root is an existing, textual directory path."""
    as_text(root)

    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")

    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")


def iter_clip_paths(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> Iterator[Path]:
    """
    Scan the immediate children of a directory for clips.

    Subdirectories are not descended into.

    Args:
        root: Directory to scan
        extensions: Normalized extensions (see normalize_extensions)

    Yields:
        Path objects for each clip found
    """
    check_directory(root)

    logger.info(f"Scanning directory: {root}")

    for path in root.iterdir():
        as_text(path)
        if not is_clip(path, extensions):
            logger.debug(f"Skipping {path} (not a clip)")
            continue
        yield path

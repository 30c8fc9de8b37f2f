"""Tests for clip classification and directory enumeration."""

from pathlib import Path

import pytest

from clip_durations.scanner import (
    AUDIO_EXTENSIONS,
    InvalidPathError,
    as_text,
    check_directory,
    is_clip,
    iter_clip_paths,
    normalize_extensions,
)


def test_normalize_extensions():
    assert normalize_extensions(["MP3", ".Flac", " wav "]) == {".mp3", ".flac", ".wav"}


def test_normalize_extensions_requires_one():
    with pytest.raises(ValueError):
        normalize_extensions(["", "  "])


def test_is_clip_case_insensitive(clip_dir: Path):
    upper = clip_dir / "LOUD.MP3"
    upper.write_bytes(b"x")
    other = clip_dir / "notes.txt"
    other.write_bytes(b"x")

    assert is_clip(upper, {".mp3"})
    assert not is_clip(other, {".mp3"})
    assert not is_clip(clip_dir / "missing.mp3", {".mp3"})


def test_directory_named_like_clip_is_skipped(clip_dir: Path):
    (clip_dir / "album.mp3").mkdir()
    assert not is_clip(clip_dir / "album.mp3", {".mp3"})


def test_iter_clip_paths_is_not_recursive(clip_dir: Path):
    (clip_dir / "a.mp3").write_bytes(b"x")
    (clip_dir / "B.Mp3").write_bytes(b"x")
    (clip_dir / "cover.jpg").write_bytes(b"x")
    nested = clip_dir / "nested"
    nested.mkdir()
    (nested / "deep.mp3").write_bytes(b"x")

    found = sorted(p.name for p in iter_clip_paths(clip_dir, {".mp3"}))
    assert found == ["B.Mp3", "a.mp3"]


def test_iter_clip_paths_with_all_audio(clip_dir: Path):
    for name in ["a.mp3", "b.flac", "c.OGG", "d.txt"]:
        (clip_dir / name).write_bytes(b"x")

    found = sorted(p.name for p in iter_clip_paths(clip_dir, AUDIO_EXTENSIONS))
    assert found == ["a.mp3", "b.flac", "c.OGG"]


def test_check_directory_missing(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        check_directory(tmp_path / "nope")


def test_check_directory_not_a_directory(tmp_path: Path):
    path = tmp_path / "file.mp3"
    path.write_bytes(b"x")
    with pytest.raises(NotADirectoryError):
        check_directory(path)


def test_as_text_rejects_undecodable_names():
    # os.fsdecode maps undecodable bytes to lone surrogates
    with pytest.raises(InvalidPathError):
        as_text(Path("clips/bad\udcff.mp3"))
    assert as_text(Path("clips/ok.mp3")) == str(Path("clips/ok.mp3"))


def test_iter_clip_paths_rejects_undecodable_entry(clip_dir: Path, undecodable_entry):
    (clip_dir / "a.mp3").write_bytes(b"x")
    with pytest.raises(InvalidPathError):
        list(iter_clip_paths(clip_dir, {".mp3"}))

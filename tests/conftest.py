"""Shared fixtures: clip directories and a deterministic stand-in decoder."""

import io
import os
import wave
from pathlib import Path

import pytest

from clip_durations.decoder import DecodeError


def fake_decoder(data: bytes, hint: str = "") -> int:
    """Decode clips written by make_clip: b"ms:<n>" -> n."""
    text = data.decode("ascii", errors="replace")
    if not text.startswith("ms:"):
        raise DecodeError(f"not a test clip: {hint}")
    return int(text[3:])


def wav_bytes(frames: int, rate: int = 8000) -> bytes:
    """A silent mono 16-bit WAV lasting frames / rate seconds."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * frames)
    return buf.getvalue()


@pytest.fixture
def clip_dir(tmp_path: Path) -> Path:
    """Empty directory to scan; outputs land in its parent (tmp_path)."""
    path = tmp_path / "clips"
    path.mkdir()
    return path


@pytest.fixture
def make_clip(clip_dir: Path):
    """Write a clip that fake_decoder reads as duration_ms (None = undecodable)."""
    def _make(name: str, duration_ms=None) -> Path:
        path = clip_dir / name
        if duration_ms is None:
            path.write_bytes(b"\xff\xfbgarbage")
        else:
            path.write_bytes(f"ms:{duration_ms}".encode("ascii"))
        return path
    return _make


@pytest.fixture
def scenario_dir(clip_dir: Path, make_clip) -> Path:
    """a.mp3 (500), b.MP3 (1500), notes.txt, broken.mp3 (undecodable)."""
    make_clip("a.mp3", 500)
    make_clip("b.MP3", 1500)
    (clip_dir / "notes.txt").write_text("ms:9999")
    make_clip("broken.mp3")
    return clip_dir


def read_rows(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def undecodable_entry(clip_dir: Path) -> bytes:
    """A file in clip_dir whose name is not valid UTF-8."""
    name = os.fsencode(clip_dir) + b"/bad\xff.txt"
    try:
        with open(name, "wb") as f:
            f.write(b"x")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")
    return name

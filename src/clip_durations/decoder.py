"""Duration decoding - turns raw audio bytes into a playback length."""

import io
import logging

import mutagen

logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """Raised when audio bytes cannot be parsed into a duration."""


def decode_duration_ms(data: bytes, hint: str = "") -> int:
    """
    Compute the playback duration of an in-memory audio clip using mutagen.

    Args:
        data: Complete contents of the audio file
        hint: Original file name, used only by mutagen's format detection

    Returns:
        Duration in whole milliseconds (truncated)

    Raises:
        DecodeError: If the bytes are not a recognisable audio stream
    """
    if not data:
        raise DecodeError("empty file")

    fileobj = io.BytesIO(data)
    # mutagen scores candidate formats partly by file name
    fileobj.name = hint

    try:
        audio = mutagen.File(fileobj)
    except Exception as e:
        # Format parsers raise more than MutagenError on truncated or junk data
        raise DecodeError(f"{type(e).__name__}: {e}") from e

    if audio is None:
        raise DecodeError("unrecognised audio format")

    length = getattr(audio.info, "length", None) if audio.info else None
    if length is None or length < 0:
        raise DecodeError("stream has no duration")

    logger.debug(f"Decoded {hint or 'clip'} as {type(audio).__name__}, {length:.3f}s")
    return int(length * 1000)

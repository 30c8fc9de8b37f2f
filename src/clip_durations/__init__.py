"""Clip Durations - measure every audio clip in a directory and report the total."""

__version__ = "0.1.0"

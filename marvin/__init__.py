"""Marvin voice I/O helper - microphone capture to WAV and WAV playback."""

__version__ = "0.1.0"

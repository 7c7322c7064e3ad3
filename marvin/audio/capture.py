"""Microphone capture streamed into a WAV file."""

from __future__ import annotations

import enum
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path

import sounddevice as sd
import soundfile as sf
from rich.console import Console

from marvin.audio.format import AudioFormatSpec

console = Console()


class SessionState(enum.Enum):
    """Lifecycle of a capture session."""

    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"


@dataclass(eq=False)
class CaptureSession:
    """One open device-to-file recording.

    The session owns ``stream`` exclusively while it is open; only the
    controller's stop path closes it.
    """

    stream: sd.InputStream
    path: Path
    state: SessionState = SessionState.STARTING
    stop_event: threading.Event = field(default_factory=threading.Event)
    future: Future | None = None

    def close_device(self) -> None:
        """Stop and close the input stream, unblocking a pending read."""
        try:
            self.stream.stop()
        finally:
            self.stream.close()


def open_input_stream(spec: AudioFormatSpec, blocksize: int) -> sd.InputStream:
    """
    Open and start a blocking-read input stream in the capture format.

    Args:
        spec: Capture format.
        blocksize: Frames per device read.

    Returns:
        A started ``sounddevice.InputStream``.
    """
    stream = sd.InputStream(
        samplerate=spec.sample_rate,
        channels=spec.channels,
        dtype=spec.dtype,
        blocksize=blocksize,
    )
    try:
        stream.start()
    except Exception:
        stream.close()
        raise
    return stream


def drain_to_wav(
    stream: sd.InputStream,
    path: Path,
    spec: AudioFormatSpec,
    blocksize: int,
    stop_event: threading.Event,
) -> int:
    """
    Stream device audio into ``path`` until stopped or the device closes.

    The file is truncated on open. A read failure after ``stop_event`` is set
    is the expected outcome of the device being closed under us and ends the
    loop quietly; any other failure propagates.

    Args:
        stream: Started input stream.
        path: Destination WAV file.
        spec: Capture format.
        blocksize: Frames per device read.
        stop_event: Set by the controller to end the session.

    Returns:
        Number of frames written.
    """
    frames_written = 0
    with sf.SoundFile(
        str(path),
        mode="w",
        samplerate=spec.sample_rate,
        channels=spec.channels,
        subtype=spec.subtype,
        endian=spec.endian,
        format="WAV",
    ) as wav:
        while not stop_event.is_set():
            try:
                data, overflowed = stream.read(blocksize)
            except sd.PortAudioError:
                if stop_event.is_set():
                    break
                raise
            if overflowed:
                console.print("[yellow]Audio input overflow: frames were dropped[/yellow]")
            wav.write(data)
            frames_written += len(data)
    return frames_written

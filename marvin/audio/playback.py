"""WAV buffer playback on a privately owned output line."""

from __future__ import annotations

import io
import threading
from collections.abc import Callable

import numpy as np
import sounddevice as sd
import soundfile as sf

from marvin.core.exceptions import PlaybackFailed


class PlaybackTask:
    """Plays one WAV buffer to completion on its own output stream."""

    def __init__(self, wave_data: bytes, poll_interval: float = 0.1):
        """
        Initialize a playback task.

        Args:
            wave_data: Complete WAV container. Copied; the caller keeps ownership.
            poll_interval: Seconds between output stream state checks.
        """
        self.poll_interval = poll_interval
        self._wave_data: bytes | None = bytes(wave_data)
        self._audio: np.ndarray | None = None
        self._position = 0
        self._finished = threading.Event()
        self._interrupted = threading.Event()

    def cancel(self) -> None:
        """Interrupt the completion wait; the task then fails."""
        self._interrupted.set()

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()

    def _decode(self) -> tuple[np.ndarray, int]:
        """Decode the WAV buffer, releasing the raw bytes either way."""
        try:
            audio, sample_rate = sf.read(
                io.BytesIO(self._wave_data), dtype="float32", always_2d=True
            )
        except Exception as exc:
            raise PlaybackFailed(f"Audio playback failed: {exc}") from exc
        finally:
            self._wave_data = None
        return audio, sample_rate

    def _callback(
        self, outdata: np.ndarray, frames: int, _time_info: object, _status: sd.CallbackFlags,
    ) -> None:
        """Feed the next block of decoded audio to the output stream."""
        chunk = self._audio[self._position:self._position + frames]
        outdata[:len(chunk)] = chunk
        self._position += len(chunk)
        if len(chunk) < frames:
            outdata[len(chunk):] = 0
            raise sd.CallbackStop

    def _wait_until(self, condition: Callable[[], bool]) -> None:
        """Poll ``condition`` every ``poll_interval`` seconds."""
        while not condition():
            if self._interrupted.wait(self.poll_interval):
                raise PlaybackFailed("Playback interrupted")

    def run(self) -> None:
        """
        Decode, play and block until the output stream finishes.

        Raises:
            PlaybackFailed: On decode, device, permission or interruption failure.
        """
        self._audio, sample_rate = self._decode()

        try:
            stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=self._audio.shape[1],
                dtype="float32",
                callback=self._callback,
                finished_callback=self._finished.set,
            )
        except Exception as exc:
            self._audio = None
            raise PlaybackFailed(f"Audio playback failed: {exc}") from exc

        try:
            stream.start()
            # A short buffer can drain before the first poll
            self._wait_until(lambda: stream.active or self._finished.is_set())
            self._wait_until(lambda: not stream.active)
            stream.stop()
        except PlaybackFailed:
            stream.abort()
            raise
        except Exception as exc:
            raise PlaybackFailed(f"Audio playback failed: {exc}") from exc
        finally:
            stream.close()
            self._audio = None

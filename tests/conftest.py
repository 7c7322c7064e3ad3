"""Shared test fixtures for the Marvin test suite."""

import io
import threading
import time

import numpy as np
import pytest
import sounddevice as sd
import soundfile as sf


class FakeInputStream:
    """Blocking-read stand-in for sounddevice.InputStream."""

    def __init__(self, samplerate, channels, dtype, blocksize):
        self.samplerate = samplerate
        self.channels = channels
        self.dtype = dtype
        self.blocksize = blocksize
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        self.started = True

    def read(self, frames):
        if self.stopped or self.closed:
            raise sd.PortAudioError("Stream is stopped")
        time.sleep(0.002)
        return np.zeros((frames, self.channels), dtype=self.dtype), False

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True


class FakeOutputStream:
    """Callback-driven stand-in for sounddevice.OutputStream."""

    blocksize = 64

    def __init__(self, samplerate, channels, dtype, callback, finished_callback):
        self.samplerate = samplerate
        self.channels = channels
        self.dtype = dtype
        self.callback = callback
        self.finished_callback = finished_callback
        self.active = False
        self.closed = False
        self.aborted = False
        self.frames_played = 0
        self._thread = None

    def start(self):
        self.active = True
        self._thread = threading.Thread(target=self._pump, daemon=True)
        self._thread.start()

    def _pump(self):
        while self.active:
            outdata = np.empty((self.blocksize, self.channels), dtype=self.dtype)
            try:
                self.callback(outdata, self.blocksize, None, None)
            except sd.CallbackStop:
                break
            self.frames_played += self.blocksize
            time.sleep(0.001)
        self.active = False
        self.finished_callback()

    def stop(self):
        self.active = False

    def abort(self):
        self.aborted = True
        self.active = False

    def close(self):
        self.closed = True


class StuckOutputStream(FakeOutputStream):
    """Output stream that never drains on its own."""

    def start(self):
        self.active = True


@pytest.fixture
def fake_input(monkeypatch):
    """Patch the capture device; returns every stream opened."""
    streams = []

    class _Stream(FakeInputStream):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            streams.append(self)

    monkeypatch.setattr("marvin.audio.capture.sd.InputStream", _Stream)
    return streams


@pytest.fixture
def fake_output(monkeypatch):
    """Patch the playback line; returns every stream opened."""
    streams = []

    class _Stream(FakeOutputStream):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            streams.append(self)

    monkeypatch.setattr("marvin.audio.playback.sd.OutputStream", _Stream)
    return streams


@pytest.fixture
def stuck_output(monkeypatch):
    """Patch the playback line with streams that never finish."""
    streams = []

    class _Stream(StuckOutputStream):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            streams.append(self)

    monkeypatch.setattr("marvin.audio.playback.sd.OutputStream", _Stream)
    return streams


@pytest.fixture
def wav_bytes() -> bytes:
    """0.1-second 440Hz tone as a 16-bit mono WAV at 8kHz."""
    t = np.linspace(0, 0.1, 800, dtype=np.float32)
    tone = 0.5 * np.sin(2 * np.pi * 440 * t)
    buffer = io.BytesIO()
    sf.write(buffer, tone, 8000, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@pytest.fixture
def controller(tmp_path):
    """AudioController writing to a temporary file with fast timings."""
    from marvin.audio.controller import AudioController

    audio = AudioController(
        wav_path=tmp_path / "buffer.wav",
        poll_interval=0.01,
        shutdown_timeout=0.5,
        blocksize=256,
    )
    yield audio
    audio.close()


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Temporary directory for config files."""
    return tmp_path

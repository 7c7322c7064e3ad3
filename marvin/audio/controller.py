"""Audio capture/playback controller."""

from __future__ import annotations

import threading
from concurrent.futures import Future, wait
from pathlib import Path
from typing import Generic, TypeVar

from rich.console import Console
from rich.markup import escape

from marvin.audio.capture import (
    CaptureSession,
    SessionState,
    drain_to_wav,
    open_input_stream,
)
from marvin.audio.format import AudioFormatSpec
from marvin.audio.playback import PlaybackTask
from marvin.audio.workers import DaemonWorkerPool
from marvin.core.config import MarvinConfig
from marvin.core.exceptions import (
    Busy,
    ControllerClosed,
    ReadFailed,
    StartFailed,
)

console = Console()

T = TypeVar("T")

# Seconds granted to interrupted tasks to unwind after the shutdown timeout
_CANCEL_GRACE = 1.0


class ClaimSlot(Generic[T]):
    """Single-occupancy cell with an atomic compare-and-set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: T | None = None

    def get(self) -> T | None:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: T | None, new: T | None) -> bool:
        """Store ``new`` only if the slot still holds ``expected``."""
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True

    def clear(self) -> None:
        with self._lock:
            self._value = None


class AudioController:
    """Records the microphone to a WAV file and plays back WAV buffers.

    One instance owns the capture device slot and the worker pool for its
    lifetime and must be closed by its owner. Start and stop are serialized
    by a single guard: ``start_recording`` fails fast with :class:`Busy` when
    the guard is taken, while ``stop_recording`` and ``get_last_recording``
    wait for it. Playback runs independently of the guard.
    """

    def __init__(
        self,
        format_spec: AudioFormatSpec | None = None,
        wav_path: str | Path = "AudioRecordBuffer.wav",
        *,
        poll_interval: float = 0.1,
        shutdown_timeout: float = 5.0,
        max_workers: int = 2,
        blocksize: int = 1024,
    ):
        """
        Initialize the audio controller.

        Args:
            format_spec: Capture format. Defaults to 44.1kHz 16-bit mono.
            wav_path: File holding the most recent recording.
            poll_interval: Seconds between playback completion checks.
            shutdown_timeout: Seconds ``close`` waits for in-flight tasks.
            max_workers: Worker pool size shared by capture and playback.
            blocksize: Frames per capture read.
        """
        self.format_spec = format_spec or AudioFormatSpec()
        self.wav_path = Path(wav_path)
        self.poll_interval = poll_interval
        self.shutdown_timeout = shutdown_timeout
        self.blocksize = blocksize

        self._guard = threading.Lock()
        self._slot: ClaimSlot[CaptureSession] = ClaimSlot()
        self._recording = False
        self._closed = False

        self._pool = DaemonWorkerPool(max_workers, thread_name_prefix="marvin-audio")
        self._tasks_lock = threading.Lock()
        self._pending: set[Future] = set()
        self._playbacks: dict[Future, PlaybackTask] = {}

    @classmethod
    def from_config(cls, config: MarvinConfig) -> "AudioController":
        """Build a controller from loaded configuration."""
        controller = config.controller
        return cls(
            AudioFormatSpec.from_config(config.audio),
            controller.wav_path,
            poll_interval=controller.poll_interval,
            shutdown_timeout=controller.shutdown_timeout,
            max_workers=controller.max_workers,
            blocksize=controller.blocksize,
        )

    def __enter__(self) -> "AudioController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def session(self) -> CaptureSession | None:
        """The open capture session, if any."""
        return self._slot.get()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ControllerClosed("Audio controller has been shut down")

    def _track(self, future: Future) -> None:
        with self._tasks_lock:
            self._pending.add(future)
        future.add_done_callback(self._untrack)

    def _untrack(self, future: Future) -> None:
        with self._tasks_lock:
            self._pending.discard(future)
            self._playbacks.pop(future, None)

    # --- capture ---

    def start_recording(self) -> None:
        """
        Start capturing the microphone into the WAV file.

        No-op while already recording.

        Raises:
            Busy: Another start/stop call holds the guard.
            StartFailed: The capture device could not be opened.
            ControllerClosed: The controller has been shut down.
        """
        self._ensure_open()
        if not self._guard.acquire(blocking=False):
            raise Busy("Recording start/stop already in progress")

        try:
            if self._recording:
                return

            try:
                self._stop_locked()
                stream = open_input_stream(self.format_spec, self.blocksize)
            except Exception as exc:
                raise StartFailed(f"Failed to start recording: {exc}") from exc

            session = CaptureSession(stream=stream, path=self.wav_path)
            if not self._slot.compare_and_set(None, session):
                session.close_device()
                return

            session.state = SessionState.RECORDING
            self._recording = True
            try:
                session.future = self._pool.submit(self._capture, session)
            except RuntimeError as exc:
                self._stop_locked()
                raise StartFailed(f"Failed to start recording: {exc}") from exc

            self._track(session.future)
            session.future.add_done_callback(self._report_capture)
            console.print(f"[dim]Recording to {self.wav_path}[/dim]")
        finally:
            self._guard.release()

    def _capture(self, session: CaptureSession) -> int:
        """Worker body: drain the device into the file, then tear down."""
        try:
            return drain_to_wav(
                session.stream,
                session.path,
                self.format_spec,
                self.blocksize,
                session.stop_event,
            )
        finally:
            self._finish_capture(session)

    def _finish_capture(self, session: CaptureSession) -> None:
        """Stop recording if ``session`` is still the active one."""
        with self._guard:
            if self._slot.get() is session:
                self._stop_locked()

    def _report_capture(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            console.print(f"[red]Recording failed: {escape(str(exc))}[/red]")

    def stop_recording(self) -> None:
        """Stop the active recording and release the device. Safe when idle."""
        with self._guard:
            self._stop_locked()

    def _stop_locked(self) -> None:
        """Tear down the current session. Caller holds the guard."""
        self._recording = False
        session = self._slot.get()
        if session is None:
            return

        session.state = SessionState.STOPPING
        session.stop_event.set()
        if session.future is not None:
            session.future.cancel()
        try:
            session.close_device()
        finally:
            self._slot.clear()
            session.state = SessionState.IDLE

    def get_last_recording(self) -> bytes:
        """
        Read the current content of the WAV file.

        Returns:
            The file bytes, or ``b""`` if nothing has been recorded yet.

        Raises:
            ReadFailed: The file exists but could not be read.
            ControllerClosed: The controller has been shut down.
        """
        self._ensure_open()
        with self._guard:
            try:
                return self.wav_path.read_bytes()
            except FileNotFoundError:
                return b""
            except OSError as exc:
                raise ReadFailed(f"Failed to read recording: {exc}") from exc

    # --- playback ---

    def play(self, wave_data: bytes) -> Future:
        """
        Schedule playback of a WAV buffer.

        Failures never raise here; they are attached to the returned future
        as :class:`~marvin.core.exceptions.PlaybackFailed`.

        Args:
            wave_data: Complete WAV container.

        Returns:
            Future that completes when playback finishes.

        Raises:
            ControllerClosed: The controller has been shut down.
        """
        task = PlaybackTask(wave_data, poll_interval=self.poll_interval)
        # Registered under the tasks lock so close() either rejects or sees it
        with self._tasks_lock:
            self._ensure_open()
            try:
                future = self._pool.submit(task.run)
            except RuntimeError as exc:
                raise ControllerClosed("Audio controller has been shut down") from exc
            self._pending.add(future)
            self._playbacks[future] = task
        future.add_done_callback(self._untrack)
        future.add_done_callback(self._report_playback)
        return future

    def _report_playback(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            console.print(f"[red]{escape(str(exc))}[/red]")

    # --- lifecycle ---

    def close(self) -> None:
        """
        Stop recording and shut the worker pool down.

        Waits up to ``shutdown_timeout`` seconds for in-flight tasks, then
        cancels queued work and interrupts running playback. Idempotent.
        """
        with self._tasks_lock:
            if self._closed:
                return
            self._closed = True

        self.stop_recording()
        self._pool.shutdown()

        with self._tasks_lock:
            pending = set(self._pending)
        _, not_done = wait(pending, timeout=self.shutdown_timeout)
        if not not_done:
            return

        console.print(
            f"[yellow]{len(not_done)} audio task(s) still running after "
            f"{self.shutdown_timeout}s, cancelling[/yellow]"
        )
        self._pool.shutdown(cancel_futures=True)
        with self._tasks_lock:
            tasks = [self._playbacks[f] for f in not_done if f in self._playbacks]
        for task in tasks:
            task.cancel()
        wait(not_done, timeout=_CANCEL_GRACE)

    shutdown = close

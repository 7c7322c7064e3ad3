"""Error kinds raised by the audio controller."""


class AudioError(RuntimeError):
    """Base class for audio controller failures."""


class StartFailed(AudioError):
    """The capture device could not be opened (unavailable, format, permission)."""


class Busy(AudioError):
    """Another start/stop call holds the recording guard."""


class ReadFailed(AudioError):
    """The last recording could not be read from disk."""


class PlaybackFailed(AudioError):
    """A play request failed (decode, line, permission or interruption)."""


class ControllerClosed(AudioError):
    """The controller has been shut down and accepts no further work."""

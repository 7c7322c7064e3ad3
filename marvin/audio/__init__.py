"""Audio module - Capture and playback."""

# Lazy imports to avoid loading numpy/sounddevice on module load
# Use: from marvin.audio.controller import AudioController
# Use: from marvin.audio.format import AudioFormatSpec

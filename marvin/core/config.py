"""Configuration loading and dataclasses for the Marvin voice helper."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console

console = Console()


@dataclass
class AudioConfig:
    """Capture format: the PCM profile every recording is written in."""

    sample_rate: int = 44100
    bit_depth: int = 16
    channels: int = 1
    signed: bool = True
    byte_order: str = "little"  # "little" (RIFF) or "big" (RIFX)


@dataclass
class ControllerConfig:
    """Audio controller settings."""

    wav_path: str = "AudioRecordBuffer.wav"
    poll_interval: float = 0.1  # seconds between playback line state checks
    shutdown_timeout: float = 5.0  # seconds to wait for in-flight tasks on close
    max_workers: int = 2
    blocksize: int = 1024  # frames per capture read


@dataclass
class MarvinConfig:
    """Top-level configuration for the Marvin voice helper."""

    audio: AudioConfig = field(default_factory=AudioConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str = "config/default.yaml") -> MarvinConfig:
    """
    Load Marvin configuration from YAML file.

    Args:
        config_path: Path to the main configuration file.

    Returns:
        MarvinConfig with all settings loaded.
    """
    config_file = Path(config_path)

    if not config_file.exists():
        console.print(f"[yellow]Warning: Config file not found: {config_path}, using defaults")
        return MarvinConfig()

    data = _load_yaml(config_file)

    # Parse audio section
    audio_data = data.get("audio") or {}
    audio_config = AudioConfig(
        sample_rate=audio_data.get("sample_rate", 44100),
        bit_depth=audio_data.get("bit_depth", 16),
        channels=audio_data.get("channels", 1),
        signed=audio_data.get("signed", True),
        byte_order=audio_data.get("byte_order", "little"),
    )

    # Parse controller section
    controller_data = data.get("controller") or {}
    controller_config = ControllerConfig(
        wav_path=controller_data.get("wav_path", "AudioRecordBuffer.wav"),
        poll_interval=controller_data.get("poll_interval", 0.1),
        shutdown_timeout=controller_data.get("shutdown_timeout", 5.0),
        max_workers=controller_data.get("max_workers", 2),
        blocksize=controller_data.get("blocksize", 1024),
    )

    return MarvinConfig(audio=audio_config, controller=controller_config)

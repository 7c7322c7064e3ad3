#!/usr/bin/env python3
"""Marvin voice helper - record and play back from the terminal."""

import argparse
from pathlib import Path

from rich.console import Console

from marvin.audio.controller import AudioController
from marvin.core.config import load_config

console = Console()


def run_loop(audio: AudioController) -> None:
    """Record on Enter, stop on Enter, then play the take back."""
    while True:
        console.input("🎤 Press Enter to start recording, then press Enter again to stop.")
        audio.start_recording()
        input()  # Wait for user to press Enter again
        audio.stop_recording()

        recording = audio.get_last_recording()
        if not recording:
            console.print("[red]No audio recorded. Please ensure your microphone is working.")
            continue

        console.print(f"[dim]Playing back {len(recording)} bytes...[/dim]")
        audio.play(recording).exception()


def main():
    """Main entry point for the Marvin voice helper."""
    parser = argparse.ArgumentParser(description="Marvin voice helper")
    parser.add_argument(
        "--config",
        type=str,
        default="config/default.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--wav-path",
        type=str,
        help="Override the recording buffer file",
    )
    parser.add_argument(
        "--play-only",
        type=str,
        metavar="FILE",
        help="Play a WAV file and exit",
    )
    args = parser.parse_args()

    config = load_config(args.config)

    if args.wav_path:
        config.controller.wav_path = args.wav_path

    with AudioController.from_config(config) as audio:
        if args.play_only:
            error = audio.play(Path(args.play_only).read_bytes()).exception()
            if error is not None:
                raise SystemExit(1)
            return
        try:
            run_loop(audio)
        except KeyboardInterrupt:
            console.print("\n[red]Exiting...")


if __name__ == "__main__":
    main()

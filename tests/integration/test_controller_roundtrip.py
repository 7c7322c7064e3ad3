"""Integration tests: record to a real WAV file, read it back, play it."""

import io
import time
from concurrent.futures import wait

import soundfile as sf

from marvin.audio.controller import AudioController
from marvin.audio.format import AudioFormatSpec


def _record(audio: AudioController, seconds: float = 0.05) -> bytes:
    """Record briefly, wait for the capture task to finish, return the file."""
    audio.start_recording()
    future = audio.session.future
    time.sleep(seconds)
    audio.stop_recording()
    wait([future], timeout=2)
    return audio.get_last_recording()


class TestRecordRoundTrip:
    def test_header_matches_capture_format(self, tmp_path, fake_input):
        spec = AudioFormatSpec(sample_rate=16000, bit_depth=16, channels=2)
        with AudioController(spec, tmp_path / "buffer.wav", blocksize=160) as audio:
            data = _record(audio)

        info = sf.info(io.BytesIO(data))
        assert info.format == "WAV"
        assert info.samplerate == 16000
        assert info.channels == 2
        assert info.subtype == "PCM_16"

    def test_32_bit_capture(self, tmp_path, fake_input):
        spec = AudioFormatSpec(sample_rate=8000, bit_depth=32)
        with AudioController(spec, tmp_path / "buffer.wav", blocksize=80) as audio:
            data = _record(audio)

        info = sf.info(io.BytesIO(data))
        assert info.samplerate == 8000
        assert info.subtype == "PCM_32"

    def test_new_recording_replaces_previous(self, tmp_path, fake_input):
        with AudioController(wav_path=tmp_path / "buffer.wav", blocksize=64) as audio:
            _record(audio, seconds=0.3)
            first = sf.info(io.BytesIO(audio.get_last_recording())).frames
            second_data = _record(audio, seconds=0.02)

        assert len(list(tmp_path.iterdir())) == 1
        assert sf.info(io.BytesIO(second_data)).frames < first

    def test_recording_plays_back(self, tmp_path, fake_input, fake_output):
        with AudioController(
            AudioFormatSpec(sample_rate=8000),
            tmp_path / "buffer.wav",
            poll_interval=0.01,
            blocksize=64,
        ) as audio:
            data = _record(audio)
            before = audio.wav_path.read_bytes()

            assert audio.play(data).result(timeout=5) is None
            assert audio.wav_path.read_bytes() == before

        assert fake_output[0].samplerate == 8000
        assert fake_output[0].closed

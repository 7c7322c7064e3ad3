"""Fixed PCM/WAV profile used for every capture session."""

from dataclasses import dataclass

from marvin.core.config import AudioConfig

_DTYPES = {16: "int16", 32: "int32"}
_SUBTYPES = {16: "PCM_16", 32: "PCM_32"}
_ENDIANS = {"little": "LITTLE", "big": "BIG"}


@dataclass(frozen=True)
class AudioFormatSpec:
    """Sample rate, bit depth, channel count, signedness and byte order."""

    sample_rate: int = 44100
    bit_depth: int = 16
    channels: int = 1
    signed: bool = True
    byte_order: str = "little"

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.channels <= 0:
            raise ValueError(f"channels must be positive, got {self.channels}")
        if self.bit_depth not in _DTYPES:
            raise ValueError(
                f"Unsupported bit_depth {self.bit_depth}. Expected one of {sorted(_DTYPES)}."
            )
        # WAV stores PCM wider than 8 bits as signed integers
        if not self.signed:
            raise ValueError(f"{self.bit_depth}-bit WAV PCM must be signed")
        if self.byte_order not in _ENDIANS:
            raise ValueError(
                f"Unknown byte_order '{self.byte_order}'. Expected 'little' or 'big'."
            )

    @classmethod
    def from_config(cls, config: AudioConfig) -> "AudioFormatSpec":
        return cls(
            sample_rate=config.sample_rate,
            bit_depth=config.bit_depth,
            channels=config.channels,
            signed=config.signed,
            byte_order=config.byte_order,
        )

    @property
    def dtype(self) -> str:
        """Sample dtype shared by sounddevice and numpy."""
        return _DTYPES[self.bit_depth]

    @property
    def subtype(self) -> str:
        """soundfile subtype for the WAV payload."""
        return _SUBTYPES[self.bit_depth]

    @property
    def endian(self) -> str:
        """soundfile endianness; big-endian WAV is written as RIFX."""
        return _ENDIANS[self.byte_order]

    @property
    def frame_size(self) -> int:
        """Bytes per frame (all channels of one sample instant)."""
        return self.bit_depth // 8 * self.channels

"""Audio buffers and WAVE encoding."""

from __future__ import annotations

import io
import wave
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .exceptions import PlaybackError


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Mono float samples in ``[-1, 1]`` at a fixed sample rate."""

    samples: np.ndarray = field(repr=False)
    sample_rate: int

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate

    def to_pcm16(self) -> np.ndarray:
        clipped = np.clip(self.samples, -1.0, 1.0)
        return (clipped * 32767).astype(np.int16)

    def to_wav_bytes(self) -> bytes:
        """Encode as a 16-bit PCM mono WAVE file."""
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)  # 16-bit
            wf.setframerate(self.sample_rate)
            wf.writeframes(self.to_pcm16().tobytes())
        return buf.getvalue()

    @classmethod
    def from_wav_bytes(cls, data: bytes) -> AudioBuffer:
        """Decode a 16-bit PCM WAVE file.  Multi-channel input is downmixed."""
        with wave.open(io.BytesIO(data), "rb") as wf:
            if wf.getsampwidth() != 2:
                raise PlaybackError(f"Unsupported sample width: {wf.getsampwidth()} bytes")
            channels = wf.getnchannels()
            rate = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
        samples = np.frombuffer(raw, dtype=np.int16).astype(np.float64) / 32767.0
        if channels > 1:
            samples = samples.reshape(-1, channels).mean(axis=1)
        return cls(samples=samples, sample_rate=rate)

    def write(self, path: str | Path) -> Path:
        """Write the buffer to *path* as WAVE.

        Raises :class:`~emotive_tts.exceptions.PlaybackError` if the file
        cannot be written.
        """
        p = Path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(self.to_wav_bytes())
        except OSError as exc:
            raise PlaybackError(f"Cannot write audio to {p}: {exc}") from exc
        return p

"""Synthesis backends -- render a speech request to audio.

The coordinator talks to backends only through :class:`SynthesisBackend`.
:class:`BuiltinSynthesizer` is a waveform-based engine suitable for testing
and demonstration: it walks the markup tree and renders one tone burst per
word, applying the prosody controls the compiler emitted.

Rendering rules:
  1. Each word is a sine tone at the voice's base frequency
  2. ``rate`` scales word duration (``1.15`` = 15% faster)
  3. ``contour`` shifts pitch per word by interpolating the control
     points at the word's position within the prosody span
  4. ``volume`` scales amplitude (numeric 0-100, named levels or dB)
  5. ``<emphasis>`` raises pitch and amplitude
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .audio import AudioBuffer
from .exceptions import CompilationError, MarkupParseError, SynthesisError
from .models import (
    ChildNode,
    Emphasis,
    InputType,
    MarkupDialect,
    MarkupDocument,
    Prosody,
    SpeechRequest,
)
from .parser import MarkupParser
from .profiles import parse_contour


class SynthesisBackend(ABC):
    """Contract for engines that turn a :class:`SpeechRequest` into audio."""

    name: str = "abstract"

    @abstractmethod
    def synthesize(self, request: SpeechRequest) -> AudioBuffer:
        """Render *request*.

        Raises :class:`~emotive_tts.exceptions.SynthesisError` if the
        input is rejected or rendering fails.
        """

    @abstractmethod
    def voices(self) -> tuple[str, ...]:
        """Voice identifiers this backend accepts."""

    def supports_voice(self, voice: str) -> bool:
        return voice in self.voices()


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_AMPLITUDE = 0.5  # Relative amplitude [0.0, 1.0]
WORD_DURATION = 0.25  # Seconds per word at rate 1.0
INTER_WORD_GAP = 0.05  # 50 ms gap between words

# Voice id -> fundamental frequency (Hz).
VOICE_FREQUENCIES: dict[str, float] = {
    "cmu-slt-hsmm": 210.0,
    "cmu-rms-hsmm": 115.0,
    "cmu-bdl-hsmm": 125.0,
}

# Emphasis level -> (semitone shift, amplitude gain).
_EMPHASIS_GAIN: dict[str, tuple[float, float]] = {
    "strong": (2.5, 1.5),
    "moderate": (1.5, 1.3),
    "reduced": (0.5, 1.1),
}

_NAMED_RATES: dict[str, float] = {
    "x-slow": 0.5,
    "slow": 0.75,
    "medium": 1.0,
    "default": 1.0,
    "fast": 1.25,
    "x-fast": 1.5,
}

_NAMED_VOLUMES: dict[str, float] = {
    "silent": 0.0,
    "x-soft": 0.25,
    "soft": 0.5,
    "medium": 1.0,
    "default": 1.0,
    "loud": 1.5,
    "x-loud": 2.0,
}

_PERCENT_RE = re.compile(r"^([+\-]?\d+(?:\.\d+)?)%$")
_VOLUME_DB_RE = re.compile(r"^([+\-]\d+(?:\.\d+)?)dB$")


# ---------------------------------------------------------------------------
# Attribute parsing
# ---------------------------------------------------------------------------


def _parse_rate(rate: str | None) -> float:
    """Resolve a prosody rate to a speed multiplier."""
    if rate is None:
        return 1.0
    if rate in _NAMED_RATES:
        return _NAMED_RATES[rate]
    m = _PERCENT_RE.match(rate)
    try:
        value = 1.0 + float(m.group(1)) / 100.0 if m else float(rate)
    except ValueError:
        return 1.0
    return value if value > 0 else 1.0


def _parse_volume(volume: str | None, amplitude: float) -> float:
    """Resolve a prosody volume to an amplitude, capped at 1.0."""
    if volume is None:
        return amplitude
    if volume in _NAMED_VOLUMES:
        return min(1.0, amplitude * _NAMED_VOLUMES[volume])
    m = _VOLUME_DB_RE.match(volume)
    if m:
        return min(1.0, amplitude * (10.0 ** (float(m.group(1)) / 20.0)))
    try:
        level = float(volume)
    except ValueError:
        return amplitude
    # Numeric SSML volume: 0.0 (silent) .. 100.0 (loudest).
    return min(1.0, amplitude * max(0.0, level) / 100.0 * 2.0)


# ---------------------------------------------------------------------------
# Markup tree walker
# ---------------------------------------------------------------------------


@dataclass
class _Word:
    semitones: float
    amplitude: float
    duration: float


def _collect_words(
    children: tuple[ChildNode, ...], amplitude: float, rate: float
) -> list[_Word]:
    words: list[_Word] = []
    for child in children:
        if isinstance(child, str):
            words.extend(
                _Word(semitones=0.0, amplitude=amplitude, duration=WORD_DURATION / rate)
                for _ in child.split()
            )
        elif isinstance(child, Prosody):
            inner = _collect_words(
                child.children,
                _parse_volume(child.volume, amplitude),
                rate * _parse_rate(child.rate),
            )
            if child.contour and inner:
                _apply_contour(inner, child.contour)
            words.extend(inner)
        elif isinstance(child, Emphasis):
            shift, gain = _EMPHASIS_GAIN.get(child.level, _EMPHASIS_GAIN["moderate"])
            inner = _collect_words(child.children, min(1.0, amplitude * gain), rate)
            for word in inner:
                word.semitones += shift
            words.extend(inner)
    return words


def _apply_contour(words: list[_Word], contour: str) -> None:
    """Shift each word by the contour value at its position in the span."""
    try:
        points = parse_contour(contour)
    except CompilationError as exc:
        raise SynthesisError(str(exc)) from exc
    xs = [p.percent for p in points]
    ys = [p.semitones for p in points]
    n = len(words)
    for i, word in enumerate(words):
        position = 100.0 * (i + 0.5) / n
        word.semitones += float(np.interp(position, xs, ys))


# ---------------------------------------------------------------------------
# Waveform synthesis helpers
# ---------------------------------------------------------------------------


def _sine_wave(freq: float, duration_s: float, amplitude: float, sample_rate: int) -> np.ndarray:
    """Generate a sine-wave tone with smooth fade-in/fade-out."""
    n_samples = int(sample_rate * duration_s)
    if n_samples == 0:
        return np.array([], dtype=np.float64)

    t = np.arange(n_samples) / sample_rate
    wave_data = amplitude * np.sin(2 * np.pi * freq * t)

    # 5ms fades avoid clicks.
    fade_samples = min(int(sample_rate * 0.005), n_samples // 2)
    if fade_samples > 0:
        wave_data[:fade_samples] *= np.linspace(0, 1, fade_samples)
        wave_data[-fade_samples:] *= np.linspace(1, 0, fade_samples)

    return wave_data


def _silence(duration_s: float, sample_rate: int) -> np.ndarray:
    return np.zeros(int(sample_rate * duration_s), dtype=np.float64)


def render_document(doc: MarkupDocument, base_freq: float, sample_rate: int) -> np.ndarray:
    """Render a markup document to float samples."""
    words = _collect_words(doc.children, BASE_AMPLITUDE, 1.0)
    if not words:
        return _silence(0.1, sample_rate)

    segments: list[np.ndarray] = []
    for i, word in enumerate(words):
        freq = base_freq * (2.0 ** (word.semitones / 12.0))
        segments.append(_sine_wave(freq, word.duration, word.amplitude, sample_rate))
        if i < len(words) - 1:
            segments.append(_silence(INTER_WORD_GAP, sample_rate))
    return np.concatenate(segments)


# ---------------------------------------------------------------------------
# Builtin engine
# ---------------------------------------------------------------------------


class BuiltinSynthesizer(SynthesisBackend):
    """Waveform-based backend with no external engine.

    Parameters
    ----------
    voices:
        Optional override of the voice -> base frequency table.
    """

    name = "builtin"

    def __init__(self, voices: dict[str, float] | None = None) -> None:
        self._voices = dict(voices or VOICE_FREQUENCIES)
        self._parser = MarkupParser()

    def voices(self) -> tuple[str, ...]:
        return tuple(self._voices)

    def synthesize(self, request: SpeechRequest) -> AudioBuffer:
        base_freq = self._voices.get(request.voice)
        if base_freq is None:
            raise SynthesisError(f"Unknown voice: {request.voice!r}")
        if not request.locale.lower().startswith("en"):
            raise SynthesisError(f"Unsupported locale: {request.locale!r}")
        fmt = request.output_format
        if fmt.container != "WAVE" or fmt.channels != 1 or fmt.sample_width != 2:
            raise SynthesisError(f"Unsupported output format: {fmt}")

        doc = self._read_input(request)
        samples = render_document(doc, base_freq, fmt.sample_rate)
        return AudioBuffer(samples=samples, sample_rate=fmt.sample_rate)

    def _read_input(self, request: SpeechRequest) -> MarkupDocument:
        if request.input_type is InputType.TEXT:
            return MarkupDocument(dialect=MarkupDialect.SSML, children=(request.markup,))
        try:
            doc = self._parser.parse(request.markup)
        except MarkupParseError as exc:
            raise SynthesisError(f"Cannot parse markup for synthesis: {exc}") from exc
        expected = MarkupDialect.SSML if request.input_type is InputType.SSML else MarkupDialect.MARYXML
        if doc.dialect is not expected:
            raise SynthesisError(
                f"Input type {request.input_type.value} does not match "
                f"<{doc.dialect.value}> markup"
            )
        return doc


# ---------------------------------------------------------------------------
# Voice selection
# ---------------------------------------------------------------------------

VOICE_ALIASES: dict[str, str] = {
    "female": "cmu-slt-hsmm",
    "male": "cmu-rms-hsmm",
}


def resolve_voice(name: str) -> str:
    """Map ``"male"`` / ``"female"`` to a voice id; other names pass through."""
    return VOICE_ALIASES.get(name.strip().lower(), name.strip())

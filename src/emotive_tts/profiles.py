"""Prosody profiles -- fixed prosodic controls for each emotional style.

Each non-NONE :class:`~emotive_tts.models.EmotionalStyle` maps to one
immutable :class:`ProsodyProfile`.  Contours are sampled at 10% steps
across the utterance and written in the backend's contour syntax::

    (0%,+3st)(10%,+3st)...(100%,+11st)

The contour strings are consumed verbatim by the synthesis backend, so the
values below must not be reformatted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .exceptions import CompilationError
from .models import EmotionalStyle


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContourPoint:
    """A pitch target: semitone offset at a percentage through the utterance."""

    percent: float
    semitones: float

    def __str__(self) -> str:
        return f"({self.percent:g}%,{self.semitones:+g}st)"


@dataclass(frozen=True)
class ProsodyProfile:
    """Prosody controls applied to a whole utterance."""

    contour: tuple[ContourPoint, ...] = ()
    rate: str | None = None
    volume: str | None = None
    description: str | None = None

    @property
    def contour_string(self) -> str | None:
        if not self.contour:
            return None
        return format_contour(self.contour)

    def attributes(self) -> list[tuple[str, str]]:
        """Markup attributes for this profile, in emission order."""
        attrs: list[tuple[str, str]] = []
        contour = self.contour_string
        if contour is not None:
            attrs.append(("contour", contour))
        if self.rate is not None:
            attrs.append(("rate", self.rate))
        if self.volume is not None:
            attrs.append(("volume", self.volume))
        return attrs


# ---------------------------------------------------------------------------
# Contour syntax
# ---------------------------------------------------------------------------

_POINT_RE = re.compile(r"\(\s*(\d+(?:\.\d+)?)%\s*,\s*([+-]?\d+(?:\.\d+)?)st\s*\)")


def format_contour(points: tuple[ContourPoint, ...] | list[ContourPoint]) -> str:
    """Render contour points as ``(P%,+Sst)`` groups with no separators."""
    return "".join(str(p) for p in points)


def parse_contour(text: str) -> tuple[ContourPoint, ...]:
    """Parse a contour string back into points.

    Raises :class:`~emotive_tts.exceptions.CompilationError` if *text*
    contains anything other than well-formed ``(P%,Sst)`` groups.
    """
    stripped = text.strip()
    points: list[ContourPoint] = []
    pos = 0
    for m in _POINT_RE.finditer(stripped):
        if stripped[pos:m.start()].strip():
            raise CompilationError(f"Malformed contour near {stripped[pos:m.start()]!r}")
        points.append(ContourPoint(percent=float(m.group(1)), semitones=float(m.group(2))))
        pos = m.end()
    if stripped[pos:].strip() or not points:
        raise CompilationError(f"Malformed contour: {text!r}")
    return tuple(points)


def _contour(*semitones: int) -> tuple[ContourPoint, ...]:
    return tuple(ContourPoint(percent=i * 10, semitones=s) for i, s in enumerate(semitones))


# ---------------------------------------------------------------------------
# Profile table
# ---------------------------------------------------------------------------

PROFILES: Mapping[EmotionalStyle, ProsodyProfile] = MappingProxyType({
    EmotionalStyle.STRESS: ProsodyProfile(
        contour=_contour(3, 3, 3, 10, 4, 4, 4, 9, 7, 10, 11),
        rate="1.15",
        description="nervous, stressed, fearful",
    ),
    EmotionalStyle.ANGER: ProsodyProfile(
        contour=_contour(-2, -2, -2, -2, -2, -2, -3, -3, -3, -4, -4),
        rate="0.82",
        description="angry, frustrated",
    ),
    EmotionalStyle.CONFUSION: ProsodyProfile(
        contour=_contour(-1, -1, -1, -1, -1, -1, -2, 3, 3, 10, 6),
        rate="0.85",
        volume="0.0",
        description="confused, puzzled",
    ),
    EmotionalStyle.CUSTOM1: ProsodyProfile(description="identity"),
})


def resolve_profile(style: EmotionalStyle) -> ProsodyProfile | None:
    """Return the profile for *style*, or ``None`` for ``NONE``."""
    return PROFILES.get(style)

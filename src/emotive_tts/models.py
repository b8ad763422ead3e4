"""Data models for speech markup and synthesis requests.

Immutable dataclasses describing the markup tree handed to a synthesis
backend.  Content nodes use ``children`` tuples containing a mix of strings
(text spans) and other model objects, so text order is exactly the order
of the tuple.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeAlias, Union

from .exceptions import InvalidStyleName

# Mixed content: plain text strings interspersed with inline markup elements.
ChildNode: TypeAlias = Union[str, "Prosody", "Emphasis"]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class EmotionalStyle(enum.Enum):
    """Sentence-wide emotional colouring applied to an utterance."""

    STRESS = "stress"
    CONFUSION = "confusion"
    ANGER = "anger"
    CUSTOM1 = "custom1"
    NONE = "none"

    @classmethod
    def from_name(cls, name: str) -> EmotionalStyle | None:
        """Case-insensitive lookup.  Returns ``None`` for unknown names."""
        wanted = name.strip().upper()
        for style in cls:
            if style.name == wanted:
                return style
        return None

    @classmethod
    def parse(cls, name: str) -> EmotionalStyle:
        """Strict variant of :meth:`from_name`.

        Raises :class:`~emotive_tts.exceptions.InvalidStyleName` when
        *name* matches no style.
        """
        style = cls.from_name(name)
        if style is None:
            raise InvalidStyleName(name)
        return style


class MarkupDialect(enum.Enum):
    """Structured markup formats accepted by the synthesis backend."""

    SSML = "ssml"
    MARYXML = "maryxml"

    @classmethod
    def from_name(cls, name: str) -> MarkupDialect | None:
        wanted = name.strip().lower()
        for dialect in cls:
            if dialect.value == wanted:
                return dialect
        return None


class InputType(enum.Enum):
    """How the backend should interpret the data it receives."""

    TEXT = "TEXT"
    SSML = "SSML"
    RAWMARYXML = "RAWMARYXML"


class RequestState(enum.Enum):
    """Lifecycle of a single speech request."""

    IDLE = "idle"
    COMPILING = "compiling"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"
    WRITING = "writing"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Markup tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Emphasis:
    """An ``<emphasis>`` element -- a token marked for vocal stress."""

    level: str = "strong"
    children: tuple[ChildNode, ...] = ()


@dataclass(frozen=True)
class Prosody:
    """A ``<prosody>`` element carrying contour, rate and volume controls."""

    children: tuple[ChildNode, ...] = ()
    contour: str | None = None
    rate: str | None = None
    volume: str | None = None

    def attributes(self) -> list[tuple[str, str]]:
        """Return the set attributes in document order."""
        attrs: list[tuple[str, str]] = []
        if self.contour is not None:
            attrs.append(("contour", self.contour))
        if self.rate is not None:
            attrs.append(("rate", self.rate))
        if self.volume is not None:
            attrs.append(("volume", self.volume))
        return attrs


@dataclass(frozen=True)
class MarkupDocument:
    """A complete markup document: dialect root, one paragraph, content."""

    dialect: MarkupDialect
    children: tuple[ChildNode, ...] = ()
    language: str = "en-US"


@dataclass(frozen=True)
class TokenSpan:
    """A whitespace-delimited token located by ``[start, end)`` offsets."""

    start: int
    end: int
    emphasized: bool

    def text(self, source: str) -> str:
        return source[self.start:self.end]


@dataclass(frozen=True)
class CompiledMarkup:
    """Serialized compiler output plus the tag the backend needs to read it."""

    markup: str
    input_type: InputType
    document: MarkupDocument | None = None


# ---------------------------------------------------------------------------
# Synthesis request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OutputFormat:
    """Audio format requested from the backend (16-bit PCM WAVE)."""

    container: str = "WAVE"
    sample_rate: int = 16_000
    sample_width: int = 2
    channels: int = 1


@dataclass(frozen=True)
class SpeechRequest:
    """Everything a backend needs to render one utterance."""

    utterance: str
    markup: str
    input_type: InputType
    voice: str
    locale: str = "en-US"
    effects: str | None = None
    style: str | None = None
    output_format: OutputFormat = OutputFormat()

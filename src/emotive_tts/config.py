"""Speech service configuration: defaults, YAML files and environment.

Precedence, lowest to highest: dataclass defaults, YAML file, ``ETTS_*``
environment variables, explicit overrides (CLI flags).

Environment variables:
    ETTS_VOICE: Voice id or "male" / "female"
    ETTS_EMOTION: Initial emotional style (e.g. "anger")
    ETTS_DIALECT: "ssml" or "maryxml"
    ETTS_SAVE_TO_FILE: Write WAVE files instead of playing ("1" or "true")
    ETTS_WAV_PATH: Destination for saved audio
    ETTS_SYNTHESIS_TIMEOUT: Seconds allowed for one backend call
    ETTS_PLAYBACK_GRACE: Seconds added to the audio length when waiting on playback
    ETTS_PLAIN_TEXT_FOR_NEUTRAL: Send unmarked text for the NONE style ("1" or "true")
    ETTS_TRANSPORT: "sounddevice" or "silent"
    ETTS_LOG_LEVEL: Logging level name
"""

from __future__ import annotations

import dataclasses
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import EmotionalStyle, MarkupDialect

DEFAULT_WAV_PATH = str(Path(tempfile.gettempdir()) / "emotive_tts.wav")

TRANSPORTS = ("sounddevice", "silent")

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SpeechConfig:
    """Startup configuration consumed by the speech coordinator."""

    voice: str = "female"
    locale: str = "en-US"
    emotion: str = "NONE"
    dialect: str = "ssml"
    save_to_file: bool = False
    wav_path: str = DEFAULT_WAV_PATH
    sample_rate: int = 16_000
    synthesis_timeout: float = 30.0
    playback_grace: float = 5.0
    plain_text_for_neutral: bool = False
    transport: str = "sounddevice"
    device: str | None = None
    log_level: str = "INFO"

    @property
    def style(self) -> EmotionalStyle:
        return EmotionalStyle.parse(self.emotion)

    @property
    def markup_dialect(self) -> MarkupDialect:
        dialect = MarkupDialect.from_name(self.dialect)
        if dialect is None:
            raise ConfigError(f"Unknown markup dialect {self.dialect!r}")
        return dialect

    def validate(self) -> SpeechConfig:
        """Raise :class:`ConfigError` for out-of-range values, else return self."""
        if EmotionalStyle.from_name(self.emotion) is None:
            names = ", ".join(s.name.lower() for s in EmotionalStyle)
            raise ConfigError(f"Unknown emotion {self.emotion!r} (expected one of: {names})")
        if MarkupDialect.from_name(self.dialect) is None:
            raise ConfigError(f"Unknown markup dialect {self.dialect!r}")
        if self.transport not in TRANSPORTS:
            raise ConfigError(f"Unknown transport {self.transport!r} (expected one of: {TRANSPORTS})")
        if self.sample_rate <= 0:
            raise ConfigError("sample_rate must be positive")
        if self.synthesis_timeout <= 0 or self.playback_grace < 0:
            raise ConfigError("synthesis_timeout must be positive and playback_grace non-negative")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level {self.log_level!r}")
        return self

    def merge(self, overrides: Mapping[str, Any]) -> SpeechConfig:
        """Return a copy with non-``None`` *overrides* applied."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {unknown}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        try:
            return dataclasses.replace(self, **changes)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc


def load_config(path: str | Path) -> SpeechConfig:
    """Load a configuration from a YAML file.

    Raises
    ------
    ConfigError
        If the file is missing, is not a YAML mapping, or has unknown keys.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    return SpeechConfig().merge(raw).validate()


def _env_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


_ENV_KEYS: dict[str, tuple[str, Any]] = {
    "ETTS_VOICE": ("voice", str),
    "ETTS_LOCALE": ("locale", str),
    "ETTS_EMOTION": ("emotion", str),
    "ETTS_DIALECT": ("dialect", str),
    "ETTS_SAVE_TO_FILE": ("save_to_file", _env_bool),
    "ETTS_WAV_PATH": ("wav_path", str),
    "ETTS_SAMPLE_RATE": ("sample_rate", int),
    "ETTS_SYNTHESIS_TIMEOUT": ("synthesis_timeout", float),
    "ETTS_PLAYBACK_GRACE": ("playback_grace", float),
    "ETTS_PLAIN_TEXT_FOR_NEUTRAL": ("plain_text_for_neutral", _env_bool),
    "ETTS_TRANSPORT": ("transport", str),
    "ETTS_DEVICE": ("device", str),
    "ETTS_LOG_LEVEL": ("log_level", str),
}


def config_from_env(
    base: SpeechConfig | None = None, environ: Mapping[str, str] | None = None
) -> SpeechConfig:
    """Overlay ``ETTS_*`` environment variables on *base*."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for var, (key, convert) in _ENV_KEYS.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            overrides[key] = convert(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {var}: {raw!r}") from exc
    return (base or SpeechConfig()).merge(overrides).validate()

"""Emotive TTS -- emotional prosody for text-to-speech.

Public API re-exports for convenient access::

    from emotive_tts import MarkupCompiler, SpeechCoordinator, EmotionalStyle
"""

from ._version import __version__
from .audio import AudioBuffer
from .compiler import MarkupCompiler
from .config import SpeechConfig, config_from_env, load_config
from .coordinator import SpeechCoordinator
from .emphasis import detect_emphasis, is_emphasized
from .exceptions import (
    CompilationError,
    ConfigError,
    EmotiveTTSError,
    InvalidStyleName,
    MarkupParseError,
    PlaybackError,
    SynthesisError,
)
from .models import (
    CompiledMarkup,
    EmotionalStyle,
    Emphasis,
    InputType,
    MarkupDialect,
    MarkupDocument,
    OutputFormat,
    Prosody,
    RequestState,
    SpeechRequest,
    TokenSpan,
)
from .parser import MarkupParser
from .playback import PlaybackHandle, PlaybackTransport, SilentTransport, SoundDeviceTransport
from .profiles import PROFILES, ContourPoint, ProsodyProfile, resolve_profile
from .service import SpeechService
from .synthesis import BuiltinSynthesizer, SynthesisBackend

__all__ = [
    "__version__",
    # Core
    "MarkupCompiler",
    "MarkupParser",
    "SpeechCoordinator",
    "SpeechService",
    # Models
    "EmotionalStyle",
    "MarkupDialect",
    "InputType",
    "RequestState",
    "MarkupDocument",
    "Prosody",
    "Emphasis",
    "TokenSpan",
    "CompiledMarkup",
    "OutputFormat",
    "SpeechRequest",
    # Emphasis
    "detect_emphasis",
    "is_emphasized",
    # Profiles
    "PROFILES",
    "ContourPoint",
    "ProsodyProfile",
    "resolve_profile",
    # Audio
    "AudioBuffer",
    "SynthesisBackend",
    "BuiltinSynthesizer",
    "PlaybackHandle",
    "PlaybackTransport",
    "SoundDeviceTransport",
    "SilentTransport",
    # Configuration
    "SpeechConfig",
    "load_config",
    "config_from_env",
    # Exceptions
    "EmotiveTTSError",
    "CompilationError",
    "SynthesisError",
    "PlaybackError",
    "InvalidStyleName",
    "MarkupParseError",
    "ConfigError",
]

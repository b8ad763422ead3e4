"""Custom exception hierarchy for the emotive_tts package."""


class EmotiveTTSError(Exception):
    """Base exception for all emotive_tts errors."""


class CompilationError(EmotiveTTSError):
    """Raised when a markup document cannot be constructed or serialized."""


class SynthesisError(EmotiveTTSError):
    """Raised when the synthesis backend rejects a request or fails."""


class PlaybackError(EmotiveTTSError):
    """Raised when audio cannot be played or written to disk."""


class InvalidStyleName(EmotiveTTSError):
    """Raised by strict style lookups when a name matches no emotional style."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown emotional style: {name!r}")


class MarkupParseError(EmotiveTTSError):
    """Raised when speech markup cannot be parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f" (line {line}"
            if column is not None:
                location += f", column {column}"
            location += ")"
        super().__init__(f"{message}{location}")


class ConfigError(EmotiveTTSError):
    """Raised when configuration cannot be loaded or has invalid values."""

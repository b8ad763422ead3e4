"""SpeechService -- the component surface exposed to remote callers.

Thin facade over :class:`~emotive_tts.coordinator.SpeechCoordinator` with
the method names callers use (``say_text``, ``set_emotion`` ...) and a help
text listing them.
"""

from __future__ import annotations

from .coordinator import SpeechCoordinator
from .models import EmotionalStyle

_HELP_LINES = (
    ("say_text", "speak any string you want to say"),
    ("say_text (with boolean)", "speak a string, with blocking true/false"),
    ("is_speaking", "is the component currently speaking"),
    ("stop_utterance", "cancel the utterance being said"),
    (
        "set_emotion",
        "set one of "
        + ", ".join(f'"{s.name.lower()}"' for s in EmotionalStyle)
        + " (without quotes)",
    ),
    ("get_emotion", "get the currently set emotion"),
    ("set_voice", 'specify the voice by name, or by gender ("female" or "male")'),
    ("get_voice", "get the current voice being used"),
)


class SpeechService:
    """Speech production component."""

    def __init__(self, coordinator: SpeechCoordinator) -> None:
        self.coordinator = coordinator

    def say_text(self, text: str, blocking: bool = True) -> bool:
        return self.coordinator.speak(text, blocking=blocking)

    def is_speaking(self) -> bool:
        return self.coordinator.is_speaking()

    def stop_utterance(self) -> bool:
        return self.coordinator.stop_utterance()

    def set_emotion(self, name: str) -> None:
        self.coordinator.set_emotional_style(name)

    def get_emotion(self) -> str:
        return self.coordinator.get_emotional_style()

    def set_voice(self, name: str) -> None:
        self.coordinator.set_voice(name)

    def get_voice(self) -> str:
        return self.coordinator.get_voice()

    def get_gui_help(self) -> str:
        return "\n".join(f"{name}: {text}" for name, text in _HELP_LINES)

    def close(self) -> None:
        self.coordinator.close()

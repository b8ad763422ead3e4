"""Tests for emotive_tts.coordinator.

Covers:
- speak: success, failure, rejection of concurrent requests
- is_speaking is cleared on every exit path
- stop_utterance with and without active playback
- Blocking playback released by interrupt, bounded by timeouts
- Emotional style and voice selection
- Save-to-file routing
- Construction from SpeechConfig
"""

from __future__ import annotations

import threading
import wave
from pathlib import Path
from typing import Callable

import pytest

from emotive_tts.config import SpeechConfig
from emotive_tts.coordinator import SpeechCoordinator
from emotive_tts.exceptions import SynthesisError
from emotive_tts.models import EmotionalStyle, InputType, RequestState
from emotive_tts.playback import PlaybackTransport, SilentTransport
from emotive_tts.synthesis import BuiltinSynthesizer, SynthesisBackend


def _speak_in_thread(coordinator: SpeechCoordinator, text: str) -> tuple[threading.Thread, list[bool]]:
    results: list[bool] = []
    thread = threading.Thread(target=lambda: results.append(coordinator.speak(text, blocking=True)))
    thread.start()
    return thread, results


# ---------------------------------------------------------------------------
# speak
# ---------------------------------------------------------------------------


class TestSpeak:
    def test_success(
        self, coordinator: SpeechCoordinator, backend: SynthesisBackend, transport: PlaybackTransport
    ) -> None:
        assert coordinator.speak("hello", blocking=True) is True
        assert coordinator.is_speaking() is False
        assert coordinator.state is RequestState.COMPLETED
        assert len(transport.handles) == 1

        request = backend.requests[0]
        assert request.utterance == "hello"
        assert request.input_type is InputType.SSML
        assert request.voice == "cmu-slt-hsmm"
        assert request.markup.startswith("<?xml")

    def test_backend_failure(
        self, failing_backend: SynthesisBackend, transport: PlaybackTransport
    ) -> None:
        with SpeechCoordinator(failing_backend, transport) as coordinator:
            assert coordinator.speak("hello") is False
            assert coordinator.is_speaking() is False
            assert coordinator.state is RequestState.FAILED
        assert transport.handles == []

    def test_unexpected_backend_exception(
        self, make_backend: Callable[..., SynthesisBackend], transport: PlaybackTransport
    ) -> None:
        backend = make_backend(error=RuntimeError("boom"))
        with SpeechCoordinator(backend, transport) as coordinator:
            assert coordinator.speak("hello") is False
            assert coordinator.is_speaking() is False

    def test_empty_text_fails(
        self, coordinator: SpeechCoordinator, backend: SynthesisBackend
    ) -> None:
        assert coordinator.speak("   ") is False
        assert coordinator.is_speaking() is False
        assert coordinator.state is RequestState.FAILED
        assert backend.requests == []

    def test_synthesis_timeout(
        self, make_backend: Callable[..., SynthesisBackend], transport: PlaybackTransport
    ) -> None:
        backend = make_backend(delay=0.5)
        with SpeechCoordinator(backend, transport, synthesis_timeout=0.05) as coordinator:
            assert coordinator.speak("hello") is False
            assert coordinator.is_speaking() is False
        assert transport.handles == []

    def test_hung_backend_does_not_block_later_requests(
        self, make_backend: Callable[..., SynthesisBackend], transport: PlaybackTransport
    ) -> None:
        backend = make_backend(delay=1.0, delay_for="bad")
        with SpeechCoordinator(backend, transport, synthesis_timeout=0.2) as coordinator:
            assert coordinator.speak("bad one") is False
            assert coordinator.speak("bad two") is False
            assert coordinator.speak("good") is True
            assert coordinator.state is RequestState.COMPLETED
        assert len(transport.handles) == 1

    @pytest.mark.parametrize(
        "options", [{"sample_rate": 0}, {"sample_rate": -8000}, {"return_none": True}]
    )
    def test_invalid_audio_from_backend(
        self,
        make_backend: Callable[..., SynthesisBackend],
        transport: PlaybackTransport,
        options: dict,
    ) -> None:
        with SpeechCoordinator(make_backend(**options), transport) as coordinator:
            assert coordinator.speak("hello", blocking=True) is False
            assert coordinator.is_speaking() is False
            assert coordinator.state is RequestState.FAILED
        assert transport.handles == []

    def test_playback_timeout(
        self, backend: SynthesisBackend, manual_transport: PlaybackTransport
    ) -> None:
        with SpeechCoordinator(backend, manual_transport, playback_grace=0.05) as coordinator:
            assert coordinator.speak("hello", blocking=True) is False
            assert manual_transport.handles[0].interrupted
            assert coordinator.state is RequestState.FAILED

    def test_non_blocking_returns_while_playing(
        self, backend: SynthesisBackend, manual_transport: PlaybackTransport
    ) -> None:
        with SpeechCoordinator(backend, manual_transport) as coordinator:
            assert coordinator.speak("hello", blocking=False) is True
            assert coordinator.is_speaking() is False
            assert coordinator.state is RequestState.PLAYING
            manual_transport.handles[0].finish()
            assert coordinator.state is RequestState.COMPLETED

    def test_style_is_applied(self, coordinator: SpeechCoordinator, backend: SynthesisBackend) -> None:
        coordinator.set_emotional_style("anger")
        coordinator.speak("I am fine")
        assert 'rate="0.82"' in backend.requests[-1].markup


# ---------------------------------------------------------------------------
# Concurrency and interruption
# ---------------------------------------------------------------------------


class TestInterrupt:
    def test_stop_with_nothing_playing(self, coordinator: SpeechCoordinator) -> None:
        assert coordinator.stop_utterance() is False

    def test_stop_after_completion(self, coordinator: SpeechCoordinator) -> None:
        coordinator.speak("hello")
        assert coordinator.stop_utterance() is False
        assert coordinator.state is RequestState.COMPLETED

    def test_stop_releases_blocking_speak(
        self,
        backend: SynthesisBackend,
        manual_transport: PlaybackTransport,
        wait_until: Callable[..., bool],
    ) -> None:
        with SpeechCoordinator(backend, manual_transport, playback_grace=10) as coordinator:
            thread, results = _speak_in_thread(coordinator, "a long sentence")
            assert wait_until(lambda: coordinator.state is RequestState.PLAYING)
            assert coordinator.is_speaking() is True

            assert coordinator.stop_utterance() is True
            thread.join(timeout=2)
            assert not thread.is_alive()
            assert results == [True]
            assert coordinator.state is RequestState.INTERRUPTED
            assert coordinator.is_speaking() is False

    def test_concurrent_speak_rejected(
        self,
        backend: SynthesisBackend,
        manual_transport: PlaybackTransport,
        wait_until: Callable[..., bool],
    ) -> None:
        with SpeechCoordinator(backend, manual_transport, playback_grace=10) as coordinator:
            thread, results = _speak_in_thread(coordinator, "first")
            assert wait_until(lambda: coordinator.state is RequestState.PLAYING)

            assert coordinator.speak("second") is False
            assert [r.utterance for r in backend.requests] == ["first"]

            manual_transport.handles[0].finish()
            thread.join(timeout=2)
            assert results == [True]

    def test_speak_again_after_completion(self, coordinator: SpeechCoordinator) -> None:
        assert coordinator.speak("one") is True
        assert coordinator.speak("two") is True


# ---------------------------------------------------------------------------
# Style and voice
# ---------------------------------------------------------------------------


class TestStyleAndVoice:
    def test_default_style(self, coordinator: SpeechCoordinator) -> None:
        assert coordinator.get_emotional_style() == "NONE"

    @pytest.mark.parametrize("name", ["anger", "ANGER", "Anger"])
    def test_set_style_case_insensitive(self, coordinator: SpeechCoordinator, name: str) -> None:
        coordinator.set_emotional_style(name)
        assert coordinator.get_emotional_style() == "ANGER"
        assert coordinator.style is EmotionalStyle.ANGER

    def test_unknown_style_keeps_current(self, coordinator: SpeechCoordinator) -> None:
        coordinator.set_emotional_style("stress")
        coordinator.set_emotional_style("bogus")
        assert coordinator.get_emotional_style() == "STRESS"

    def test_set_voice_by_gender(self, coordinator: SpeechCoordinator) -> None:
        coordinator.set_voice("male")
        assert coordinator.get_voice() == "cmu-rms-hsmm"

    def test_unknown_voice_rejected(self, coordinator: SpeechCoordinator) -> None:
        with pytest.raises(SynthesisError):
            coordinator.set_voice("robot")
        assert coordinator.get_voice() == "cmu-slt-hsmm"


# ---------------------------------------------------------------------------
# Save to file
# ---------------------------------------------------------------------------


class TestSaveToFile:
    def test_writes_wave_instead_of_playing(self, tmp_path: Path, transport: PlaybackTransport) -> None:
        path = tmp_path / "utterance.wav"
        with SpeechCoordinator(
            BuiltinSynthesizer(), transport, save_to_file=True, wav_path=path
        ) as coordinator:
            assert coordinator.speak("hello THERE") is True
            assert coordinator.state is RequestState.COMPLETED
        assert transport.handles == []
        with wave.open(str(path), "rb") as wf:
            assert wf.getframerate() == 16_000
            assert wf.getnframes() > 0

    def test_unwritable_path_fails(
        self,
        tmp_path: Path,
        make_backend: Callable[..., SynthesisBackend],
        transport: PlaybackTransport,
    ) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with SpeechCoordinator(
            make_backend(), transport, save_to_file=True, wav_path=blocker / "out.wav"
        ) as coordinator:
            assert coordinator.speak("hello") is False
            assert coordinator.is_speaking() is False


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestFromConfig:
    def test_silent_transport(self) -> None:
        config = SpeechConfig(transport="silent", emotion="confusion", voice="male")
        with SpeechCoordinator.from_config(config) as coordinator:
            assert isinstance(coordinator.transport, SilentTransport)
            assert isinstance(coordinator.backend, BuiltinSynthesizer)
            assert coordinator.get_emotional_style() == "CONFUSION"
            assert coordinator.get_voice() == "cmu-rms-hsmm"

    def test_injected_parts(self, backend: SynthesisBackend, transport: PlaybackTransport) -> None:
        config = SpeechConfig(dialect="maryxml", sample_rate=8000)
        with SpeechCoordinator.from_config(config, backend, transport) as coordinator:
            coordinator.speak("hello")
        assert backend.requests[0].input_type is InputType.RAWMARYXML
        assert backend.requests[0].output_format.sample_rate == 8000

    def test_unknown_voice(self, backend: SynthesisBackend, transport: PlaybackTransport) -> None:
        with pytest.raises(SynthesisError):
            SpeechCoordinator.from_config(SpeechConfig(voice="robot"), backend, transport)

    def test_close_releases_transport(self, backend: SynthesisBackend, transport: PlaybackTransport) -> None:
        coordinator = SpeechCoordinator(backend, transport)
        coordinator.close()
        assert transport.closed

"""Shared test fixtures for the emotive_tts test suite."""

from __future__ import annotations

import threading
import time
from typing import Callable

import numpy as np
import pytest

from emotive_tts.audio import AudioBuffer
from emotive_tts.coordinator import SpeechCoordinator
from emotive_tts.exceptions import SynthesisError
from emotive_tts.models import SpeechRequest
from emotive_tts.playback import PlaybackHandle, PlaybackTransport
from emotive_tts.service import SpeechService
from emotive_tts.synthesis import SynthesisBackend

SAMPLE_RATE = 16_000


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeBackend(SynthesisBackend):
    """Records requests and returns a short buffer of silence.

    ``delay`` applies to every request, or only to utterances containing
    ``delay_for`` when that is set.
    """

    name = "fake"

    def __init__(
        self,
        duration: float = 0.1,
        delay: float = 0.0,
        error: Exception | None = None,
        delay_for: str | None = None,
        sample_rate: int = SAMPLE_RATE,
        return_none: bool = False,
    ) -> None:
        self.duration = duration
        self.delay = delay
        self.error = error
        self.delay_for = delay_for
        self.sample_rate = sample_rate
        self.return_none = return_none
        self.requests: list[SpeechRequest] = []

    def voices(self) -> tuple[str, ...]:
        return ("cmu-slt-hsmm", "cmu-rms-hsmm")

    def synthesize(self, request: SpeechRequest) -> AudioBuffer:
        self.requests.append(request)
        if self.delay and (self.delay_for is None or self.delay_for in request.utterance):
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.return_none:
            return None  # type: ignore[return-value]
        n = int(SAMPLE_RATE * self.duration)
        return AudioBuffer(samples=np.zeros(n), sample_rate=self.sample_rate)


class FakeTransport(PlaybackTransport):
    """Hands out handles the test finishes or interrupts by hand.

    With ``auto_finish`` every handle is already finished when returned.
    """

    def __init__(self, auto_finish: bool = True) -> None:
        self.auto_finish = auto_finish
        self.handles: list[PlaybackHandle] = []
        self.started = threading.Event()
        self.closed = False

    def play(self, audio: AudioBuffer) -> PlaybackHandle:
        handle = PlaybackHandle()
        if self.auto_finish:
            handle.finish()
        self.handles.append(handle)
        self.started.set()
        return handle

    def close(self) -> None:
        self.closed = True


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll *predicate* until it is true or *timeout* expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def failing_backend() -> FakeBackend:
    return FakeBackend(error=SynthesisError("engine unavailable"))


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def manual_transport() -> FakeTransport:
    return FakeTransport(auto_finish=False)


@pytest.fixture()
def coordinator(backend: FakeBackend, transport: FakeTransport):
    coord = SpeechCoordinator(backend, transport)
    yield coord
    coord.close()


@pytest.fixture()
def service(coordinator: SpeechCoordinator) -> SpeechService:
    return SpeechService(coordinator)


@pytest.fixture()
def make_backend() -> Callable[..., FakeBackend]:
    """Factory for backends with non-default behaviour."""
    return FakeBackend


@pytest.fixture()
def wait_until() -> Callable[..., bool]:
    return wait_for

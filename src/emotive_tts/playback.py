"""Playback transports -- start audio, interrupt it, wait for it to finish.

A transport returns a :class:`PlaybackHandle` from :meth:`play`.  Handles
are safe to share between threads: :meth:`PlaybackHandle.interrupt` may be
called from any thread and releases every :meth:`PlaybackHandle.join`
waiter immediately.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from .audio import AudioBuffer
from .exceptions import PlaybackError

logger = logging.getLogger(__name__)


class PlaybackHandle:
    """State of one playback: finished, interrupted, or still running."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._interrupted = False

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    def interrupt(self) -> bool:
        """Stop playback.  Returns ``True`` if the handle is now interrupted.

        Interrupting a playback that already finished naturally is a no-op
        and returns ``False``.
        """
        with self._lock:
            if not self._done.is_set():
                self._interrupted = True
                self._done.set()
        return self._interrupted

    def join(self, timeout: float | None = None) -> bool:
        """Block until playback ends.  Returns ``False`` on timeout."""
        return self._done.wait(timeout)

    def finish(self) -> None:
        """Mark natural completion.  Called by the transport."""
        with self._lock:
            self._done.set()


class PlaybackTransport(ABC):
    """Contract for audio output devices."""

    @abstractmethod
    def play(self, audio: AudioBuffer) -> PlaybackHandle:
        """Start playing *audio* and return immediately."""

    def close(self) -> None:
        """Release device resources."""


# ---------------------------------------------------------------------------
# sounddevice output
# ---------------------------------------------------------------------------


def _import_sounddevice() -> Any:
    try:
        import sounddevice
    except (ImportError, OSError) as exc:
        # OSError: the PortAudio shared library is missing.
        raise PlaybackError(
            "sounddevice is required for audio playback. "
            "Install it with: pip install sounddevice"
        ) from exc
    return sounddevice


class SoundDeviceTransport(PlaybackTransport):
    """Play audio on a local output device through ``sounddevice``.

    Parameters
    ----------
    device:
        Output device index or name substring.  ``None`` uses the system
        default.
    blocksize:
        Frames per callback.  Smaller blocks make interrupts take effect
        sooner.
    """

    def __init__(self, device: int | str | None = None, blocksize: int = 1024) -> None:
        self.device = device
        self.blocksize = blocksize
        self._stream: Any = None

    def play(self, audio: AudioBuffer) -> PlaybackHandle:
        sd = _import_sounddevice()
        self._release()

        handle = PlaybackHandle()
        pcm = audio.samples.astype(np.float32)
        position = 0

        def callback(outdata: np.ndarray, frames: int, time: Any, status: Any) -> None:
            nonlocal position
            if status:
                logger.debug("Output stream status: %s", status)
            if handle.interrupted:
                outdata.fill(0)
                raise sd.CallbackStop
            chunk = pcm[position:position + frames]
            outdata[:len(chunk), 0] = chunk
            position += len(chunk)
            if len(chunk) < frames:
                outdata[len(chunk):].fill(0)
                raise sd.CallbackStop

        try:
            stream = sd.OutputStream(
                samplerate=audio.sample_rate,
                channels=1,
                dtype="float32",
                device=self.device,
                blocksize=self.blocksize,
                callback=callback,
                finished_callback=handle.finish,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise PlaybackError(f"Cannot open output device: {exc}") from exc

        self._stream = stream
        logger.debug("Playing %.2fs of audio at %d Hz", audio.duration, audio.sample_rate)
        return handle

    def _release(self) -> None:
        if self._stream is not None:
            self._stream.close(ignore_errors=True)
            self._stream = None

    def close(self) -> None:
        self._release()


# ---------------------------------------------------------------------------
# Timed output (no device)
# ---------------------------------------------------------------------------


class SilentTransport(PlaybackTransport):
    """Pretend to play audio: the handle finishes after the audio's duration.

    Used on headless hosts and in tests.  ``speed`` divides the wait, so
    ``speed=10`` finishes ten times faster than real time.
    """

    def __init__(self, speed: float = 1.0) -> None:
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.speed = speed
        self.played: list[AudioBuffer] = []

    def play(self, audio: AudioBuffer) -> PlaybackHandle:
        handle = PlaybackHandle()
        self.played.append(audio)
        timer = threading.Timer(audio.duration / self.speed, handle.finish)
        timer.daemon = True
        timer.start()
        return handle

"""SpeechCoordinator -- lifecycle of a single utterance request.

States::

    IDLE -> COMPILING -> SYNTHESIZING -> PLAYING -> COMPLETED
                                      \\-> WRITING -> COMPLETED
    PLAYING -> INTERRUPTED
    COMPILING | SYNTHESIZING | PLAYING | WRITING -> FAILED

The coordinator owns the current emotional style and the playback state
(speaking flag plus current playback handle).  The flag and the handle are
only changed together under ``_state_lock``; ``_flight`` makes ``speak``
single-flight, so a second request arriving mid-utterance is rejected
rather than queued.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from pathlib import Path

from .audio import AudioBuffer
from .compiler import MarkupCompiler
from .config import DEFAULT_WAV_PATH, SpeechConfig
from .exceptions import CompilationError, PlaybackError, SynthesisError
from .models import EmotionalStyle, OutputFormat, RequestState, SpeechRequest
from .playback import PlaybackHandle, PlaybackTransport, SilentTransport, SoundDeviceTransport
from .synthesis import BuiltinSynthesizer, SynthesisBackend, resolve_voice

logger = logging.getLogger(__name__)


def _synthesis_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="synthesis")


class SpeechCoordinator:
    """Compile, synthesize and route one utterance at a time.

    Parameters
    ----------
    backend:
        Synthesis engine.
    transport:
        Audio output used when ``save_to_file`` is off.
    compiler:
        Markup compiler; its dialect decides the markup sent to *backend*.
    voice:
        Voice id or ``"male"`` / ``"female"``.
    style:
        Initial emotional style.
    save_to_file:
        Write each utterance to *wav_path* instead of playing it.
    synthesis_timeout:
        Seconds to wait for the backend before failing the request.
    playback_grace:
        Extra seconds, on top of the audio duration, a blocking ``speak``
        waits for playback to finish.
    """

    def __init__(
        self,
        backend: SynthesisBackend,
        transport: PlaybackTransport,
        compiler: MarkupCompiler | None = None,
        *,
        voice: str = "female",
        locale: str = "en-US",
        style: EmotionalStyle = EmotionalStyle.NONE,
        save_to_file: bool = False,
        wav_path: str | Path = DEFAULT_WAV_PATH,
        output_format: OutputFormat | None = None,
        synthesis_timeout: float = 30.0,
        playback_grace: float = 5.0,
    ) -> None:
        self.backend = backend
        self.transport = transport
        self.compiler = compiler or MarkupCompiler()
        self.locale = locale
        self.save_to_file = save_to_file
        self.wav_path = Path(wav_path)
        self.output_format = output_format or OutputFormat()
        self.synthesis_timeout = synthesis_timeout
        self.playback_grace = playback_grace

        self._voice = resolve_voice(voice)
        self._style = style
        self._flight = threading.Lock()
        self._state_lock = threading.Lock()
        self._speaking = False
        self._handle: PlaybackHandle | None = None
        self._state = RequestState.IDLE
        self._executor = _synthesis_executor()

    @classmethod
    def from_config(
        cls,
        config: SpeechConfig,
        backend: SynthesisBackend | None = None,
        transport: PlaybackTransport | None = None,
    ) -> SpeechCoordinator:
        """Build a coordinator from a validated :class:`SpeechConfig`."""
        if transport is None:
            if config.transport == "silent":
                transport = SilentTransport()
            else:
                transport = SoundDeviceTransport(device=config.device)
        compiler = MarkupCompiler(
            dialect=config.markup_dialect,
            plain_text_for_neutral=config.plain_text_for_neutral,
            language=config.locale,
        )
        coordinator = cls(
            backend or BuiltinSynthesizer(),
            transport,
            compiler,
            voice=config.voice,
            locale=config.locale,
            style=config.style,
            save_to_file=config.save_to_file,
            wav_path=config.wav_path,
            output_format=OutputFormat(sample_rate=config.sample_rate),
            synthesis_timeout=config.synthesis_timeout,
            playback_grace=config.playback_grace,
        )
        coordinator.set_voice(config.voice)
        return coordinator

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> RequestState:
        """State of the most recent request."""
        with self._state_lock:
            if self._state is RequestState.PLAYING and self._handle is not None and self._handle.finished:
                return RequestState.INTERRUPTED if self._handle.interrupted else RequestState.COMPLETED
            return self._state

    def _transition(self, state: RequestState) -> None:
        with self._state_lock:
            logger.debug("Request state %s -> %s", self._state.value, state.value)
            self._state = state

    def is_speaking(self) -> bool:
        """``True`` while a ``speak`` call is in progress.  Never blocks."""
        return self._speaking

    @property
    def style(self) -> EmotionalStyle:
        return self._style

    def set_emotional_style(self, name: str) -> None:
        """Select a style by name, case-insensitively.  Unknown names are ignored."""
        style = EmotionalStyle.from_name(name)
        if style is None:
            logger.debug("Ignoring unknown emotional style %r", name)
            return
        with self._state_lock:
            self._style = style
        logger.info("Applying %s", style.name)

    def get_emotional_style(self) -> str:
        return self._style.name

    def set_voice(self, name: str) -> None:
        """Select a voice by id, or by gender (``"male"`` / ``"female"``).

        Raises :class:`~emotive_tts.exceptions.SynthesisError` if the
        backend has no such voice; the current voice is kept.
        """
        voice = resolve_voice(name)
        if not self.backend.supports_voice(voice):
            raise SynthesisError(f"Backend {self.backend.name!r} has no voice {voice!r}")
        self._voice = voice
        logger.info("Using voice %s", voice)

    def get_voice(self) -> str:
        return self._voice

    # ------------------------------------------------------------------
    # Speaking
    # ------------------------------------------------------------------

    def speak(self, text: str, blocking: bool = True) -> bool:
        """Speak *text* with the current style.

        With *blocking* the call returns when playback ends (or is
        interrupted); otherwise it returns once playback has started.
        Returns ``False`` if the request was rejected or failed.
        """
        if not self._flight.acquire(blocking=False):
            logger.warning("Rejecting utterance: another request is in progress")
            return False
        try:
            with self._state_lock:
                self._speaking = True
            return self._run(text, blocking)
        finally:
            with self._state_lock:
                self._speaking = False
            self._flight.release()

    def _run(self, text: str, blocking: bool) -> bool:
        try:
            self._transition(RequestState.COMPILING)
            compiled = self.compiler.compile(text, self._style)
            request = SpeechRequest(
                utterance=text,
                markup=compiled.markup,
                input_type=compiled.input_type,
                voice=self._voice,
                locale=self.locale,
                output_format=self.output_format,
            )

            self._transition(RequestState.SYNTHESIZING)
            audio = self._synthesize(request)

            if self.save_to_file:
                self._transition(RequestState.WRITING)
                path = audio.write(self.wav_path)
                logger.info("Saved %.2fs utterance to %s", audio.duration, path)
                self._transition(RequestState.COMPLETED)
                return True

            self._play(audio, blocking)
            return True
        except (CompilationError, SynthesisError, PlaybackError) as exc:
            logger.warning("Utterance failed during %s: %s", self._state.value, exc)
            self._transition(RequestState.FAILED)
            return False

    def _synthesize(self, request: SpeechRequest) -> AudioBuffer:
        future = self._executor.submit(self.backend.synthesize, request)
        try:
            audio = future.result(timeout=self.synthesis_timeout)
        except FuturesTimeoutError as exc:
            # The hung call keeps its worker; later requests get a fresh one.
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = _synthesis_executor()
            raise SynthesisError(
                f"Backend {self.backend.name!r} timed out after {self.synthesis_timeout}s"
            ) from exc
        except SynthesisError:
            raise
        except Exception as exc:
            raise SynthesisError(f"Backend {self.backend.name!r} failed: {exc}") from exc

        if not isinstance(audio, AudioBuffer):
            raise SynthesisError(
                f"Backend {self.backend.name!r} returned {type(audio).__name__}, not AudioBuffer"
            )
        if audio.sample_rate <= 0:
            raise SynthesisError(
                f"Backend {self.backend.name!r} returned audio at {audio.sample_rate} Hz"
            )
        return audio

    def _play(self, audio: AudioBuffer, blocking: bool) -> None:
        try:
            handle = self.transport.play(audio)
        except PlaybackError:
            raise
        except Exception as exc:
            raise PlaybackError(f"Cannot start playback: {exc}") from exc

        with self._state_lock:
            self._handle = handle
            self._state = RequestState.PLAYING
        logger.info("Speaking %.2fs utterance (style=%s)", audio.duration, self._style.name)

        if not blocking:
            return
        if not handle.join(audio.duration + self.playback_grace):
            handle.interrupt()
            raise PlaybackError(
                f"Playback did not finish within {audio.duration + self.playback_grace:.1f}s"
            )
        self._transition(RequestState.INTERRUPTED if handle.interrupted else RequestState.COMPLETED)

    def stop_utterance(self) -> bool:
        """Interrupt the current playback.

        Returns ``True`` if playback is now interrupted, ``False`` when
        nothing is playing.
        """
        with self._state_lock:
            handle = self._handle
            if handle is None or handle.finished:
                return False
            interrupted = handle.interrupt()
        if interrupted:
            logger.info("Utterance interrupted")
        return interrupted

    def close(self) -> None:
        """Stop playback and release the executor and output device."""
        self.stop_utterance()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.transport.close()

    def __enter__(self) -> SpeechCoordinator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

"""Request dependencies shared by the route modules."""

from __future__ import annotations

import logging
import threading

from fastapi import Request

from emotive_tts import SpeechCoordinator, SpeechService
from emotive_tts.config import config_from_env, load_config

from .config import Settings

logger = logging.getLogger(__name__)

_service_lock = threading.Lock()


def build_service(settings: Settings) -> SpeechService:
    """Create the speech service from ``ETTS_CONFIG`` and ``ETTS_*`` variables."""
    base = load_config(settings.config_path) if settings.config_path else None
    config = config_from_env(base)
    logger.info("Starting speech service (voice=%s, emotion=%s)", config.voice, config.emotion)
    return SpeechService(SpeechCoordinator.from_config(config))


def get_service(request: Request) -> SpeechService:
    """Return the application's speech service, creating it on first use."""
    state = request.app.state
    with _service_lock:
        if state.service is None:
            state.service = build_service(state.settings)
        return state.service

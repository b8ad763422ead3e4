"""FastAPI application for the emotive speech service.

Endpoints:
  POST /v1/say
  GET  /v1/speaking
  POST /v1/stop
  GET  /v1/emotion, PUT /v1/emotion
  GET  /v1/voice, PUT /v1/voice
  GET  /v1/help
  POST /v1/compile
  GET  /v1/health
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from emotive_tts import SpeechService, __version__
from emotive_tts.exceptions import (
    CompilationError,
    ConfigError,
    EmotiveTTSError,
    InvalidStyleName,
    MarkupParseError,
    PlaybackError,
    SynthesisError,
)

from .config import Settings
from .routes import markup, speech

# Handlers are looked up along the exception MRO.
_ERROR_CODES: dict[type[EmotiveTTSError], str] = {
    MarkupParseError: "markup_parse_error",
    CompilationError: "compilation_error",
    SynthesisError: "synthesis_error",
    PlaybackError: "playback_error",
    InvalidStyleName: "invalid_style",
    ConfigError: "config_error",
    EmotiveTTSError: "emotive_tts_error",
}


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Simple in-memory rate limiter based on client IP."""

    def __init__(self, app: ASGIApp, requests_per_minute: int) -> None:
        super().__init__(app)
        self.rpm = requests_per_minute
        self._window: dict[str, list[float]] = {}

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if self.rpm <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        if not self._admit(client_ip, time.monotonic()):
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limited",
                    "detail": f"Rate limit exceeded ({self.rpm} requests/minute).",
                },
            )
        return await call_next(request)

    def _admit(self, client_ip: str, now: float) -> bool:
        # Drop entries older than 60 seconds, and clients with none left
        cutoff = now - 60
        for ip in [ip for ip, stamps in self._window.items() if not stamps or stamps[-1] <= cutoff]:
            del self._window[ip]

        window = self._window.setdefault(client_ip, [])
        window[:] = [t for t in window if t > cutoff]
        if len(window) >= self.rpm:
            return False
        window.append(now)
        return True


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


def _error_handler(code: str):
    async def handler(request: Request, exc: EmotiveTTSError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": code, "detail": str(exc)})

    return handler


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(service: SpeechService | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the application.

    When *service* is omitted it is created from the environment on the
    first request that needs it, and closed on shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if app.state.service is not None:
            app.state.service.close()

    app = FastAPI(
        title="Emotive TTS API",
        description="Speak text with emotional prosody.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service

    if settings.rate_limit_per_minute > 0:
        app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.rate_limit_per_minute)

    # CORS: only allow configured origins. Empty list means no cross-origin access.
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=["*"],
        )

    app.include_router(speech.router, prefix="/v1", tags=["speech"])
    app.include_router(markup.router, prefix="/v1", tags=["markup"])

    for exc_class, code in _ERROR_CODES.items():
        app.add_exception_handler(exc_class, _error_handler(code))

    @app.get("/v1/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()

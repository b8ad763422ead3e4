"""Command-line entry point.

Usage::

    emotive-tts --anger say "I told you TWICE"
    emotive-tts --wav --wav-path /tmp/out.wav say "Saved, not played"
    emotive-tts --dialect maryxml --confusion compile "where am I"
    emotive-tts --config speech.yaml serve --port 8000
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from .compiler import MarkupCompiler
from .config import SpeechConfig, config_from_env, load_config
from .coordinator import SpeechCoordinator
from .exceptions import EmotiveTTSError
from .service import SpeechService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="emotive-tts",
        description="Speak text with emotional prosody",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--wav", action="store_true", default=None, dest="save_to_file",
                        help="Save to a WAVE file instead of sending to audio out")
    parser.add_argument("--wav-path", help="Destination of saved audio")

    emotion = parser.add_mutually_exclusive_group()
    emotion.add_argument("--stress", action="store_const", const="stress", dest="emotion",
                         help="Apply stressed prosody to utterances")
    emotion.add_argument("--anger", action="store_const", const="anger", dest="emotion",
                         help="Apply angry, frustrated prosody to utterances")
    emotion.add_argument("--confusion", action="store_const", const="confusion", dest="emotion",
                         help="Apply confused, perplexed prosody to utterances")
    emotion.add_argument("--emotion", dest="emotion", help="Apply the named emotional style")

    voice = parser.add_mutually_exclusive_group()
    voice.add_argument("--male", action="store_const", const="male", dest="voice",
                       help="Use the male voice")
    voice.add_argument("--female", action="store_const", const="female", dest="voice",
                       help="Use the female voice")
    voice.add_argument("--voice", dest="voice", help="Use a voice by name")

    parser.add_argument("--dialect", choices=["ssml", "maryxml"], help="Markup dialect")
    parser.add_argument("--silent", action="store_const", const="silent", dest="transport",
                        help="Do not open an audio device; simulate playback")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING ...)")

    sub = parser.add_subparsers(dest="command", required=True)

    say = sub.add_parser("say", help="Speak text")
    say.add_argument("text", nargs="+", help="Text to speak")

    compile_ = sub.add_parser("compile", help="Print the markup for text")
    compile_.add_argument("text", nargs="+", help="Text to compile")

    serve = sub.add_parser("serve", help="Run the HTTP speech service")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    sub.add_parser("help", help="List the service operations")
    return parser


def build_config(args: argparse.Namespace) -> SpeechConfig:
    """Combine config file, environment and CLI flags."""
    base = load_config(args.config) if args.config else SpeechConfig()
    config = config_from_env(base)
    overrides: dict[str, Any] = {
        "save_to_file": args.save_to_file,
        "wav_path": args.wav_path,
        "emotion": args.emotion,
        "voice": args.voice,
        "dialect": args.dialect,
        "transport": args.transport,
        "log_level": args.log_level,
    }
    return config.merge(overrides).validate()


def _serve(service: SpeechService, host: str, port: int) -> None:
    import uvicorn

    from api.app import create_app

    logger.info("Serving speech service on %s:%d", host, port)
    uvicorn.run(create_app(service), host=host, port=port, workers=1)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except EmotiveTTSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "compile":
        compiler = MarkupCompiler(
            dialect=config.markup_dialect,
            plain_text_for_neutral=config.plain_text_for_neutral,
            language=config.locale,
        )
        try:
            compiled = compiler.compile(" ".join(args.text), config.style)
        except EmotiveTTSError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(compiled.markup)
        return 0

    try:
        service = SpeechService(SpeechCoordinator.from_config(config))
    except EmotiveTTSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "help":
            print(service.get_gui_help())
            return 0
        if args.command == "serve":
            _serve(service, args.host, args.port)
            return 0
        ok = service.say_text(" ".join(args.text), blocking=True)
        return 0 if ok else 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())

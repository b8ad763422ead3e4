"""Tests for emotive_tts.cli."""

from __future__ import annotations

import wave
from pathlib import Path

import pytest

from emotive_tts.cli import build_config, build_parser, main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("ETTS_VOICE", "ETTS_EMOTION", "ETTS_DIALECT", "ETTS_SAVE_TO_FILE", "ETTS_TRANSPORT"):
        monkeypatch.delenv(var, raising=False)


class TestParser:
    def test_emotion_flags(self) -> None:
        args = build_parser().parse_args(["--anger", "say", "hi"])
        assert args.emotion == "anger"
        assert args.text == ["hi"]

    def test_emotion_flags_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--anger", "--stress", "say", "hi"])

    def test_build_config_overrides(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(
            ["--male", "--wav", "--wav-path", str(tmp_path / "x.wav"), "--dialect", "maryxml", "say", "hi"]
        )
        config = build_config(args)
        assert config.voice == "male"
        assert config.save_to_file is True
        assert config.dialect == "maryxml"

    def test_build_config_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "speech.yaml"
        path.write_text("emotion: stress\nvoice: male\n")
        config = build_config(build_parser().parse_args(["--config", str(path), "--female", "help"]))
        assert config.emotion == "stress"
        assert config.voice == "female"


class TestMain:
    def test_compile(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--anger", "compile", "I", "am", "fine"]) == 0
        out = capsys.readouterr().out
        assert 'rate="0.82"' in out
        assert "<speak" in out

    def test_compile_empty_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["compile", " "]) == 1
        assert "Error" in capsys.readouterr().err

    def test_say_to_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.wav"
        assert main(["--silent", "--wav", "--wav-path", str(path), "say", "hello", "WORLD"]) == 0
        with wave.open(str(path), "rb") as wf:
            assert wf.getnframes() > 0

    def test_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--silent", "help"]) == 0
        assert "say_text:" in capsys.readouterr().out

    def test_bad_emotion(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--emotion", "glee", "say", "hi"]) == 2
        assert "glee" in capsys.readouterr().err

    def test_bad_voice(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--silent", "--voice", "robot", "say", "hi"]) == 2
        assert "robot" in capsys.readouterr().err

"""Tests for emotive_tts.models."""

from __future__ import annotations

import pytest

from emotive_tts.exceptions import InvalidStyleName
from emotive_tts.models import (
    EmotionalStyle,
    MarkupDialect,
    OutputFormat,
    Prosody,
    SpeechRequest,
    InputType,
    TokenSpan,
)


class TestEmotionalStyle:
    @pytest.mark.parametrize("name", ["stress", "STRESS", " Stress "])
    def test_from_name(self, name: str) -> None:
        assert EmotionalStyle.from_name(name) is EmotionalStyle.STRESS

    def test_from_name_unknown(self) -> None:
        assert EmotionalStyle.from_name("glee") is None

    def test_parse_unknown(self) -> None:
        with pytest.raises(InvalidStyleName) as exc_info:
            EmotionalStyle.parse("glee")
        assert exc_info.value.name == "glee"

    def test_five_styles(self) -> None:
        assert {s.name for s in EmotionalStyle} == {"STRESS", "CONFUSION", "ANGER", "CUSTOM1", "NONE"}


class TestMarkupDialect:
    def test_from_name(self) -> None:
        assert MarkupDialect.from_name("MaryXML") is MarkupDialect.MARYXML
        assert MarkupDialect.from_name("vxml") is None


class TestNodes:
    def test_prosody_attribute_order(self) -> None:
        node = Prosody(volume="0.0", rate="0.85", contour="(0%,+1st)")
        assert [name for name, _ in node.attributes()] == ["contour", "rate", "volume"]

    def test_prosody_without_attributes(self) -> None:
        assert Prosody().attributes() == []

    def test_token_span_text(self) -> None:
        assert TokenSpan(start=6, end=11, emphasized=False).text("hello world") == "world"


class TestSpeechRequest:
    def test_defaults(self) -> None:
        request = SpeechRequest(
            utterance="hi", markup="hi.", input_type=InputType.TEXT, voice="cmu-slt-hsmm"
        )
        assert request.locale == "en-US"
        assert request.output_format == OutputFormat()
        assert request.output_format.container == "WAVE"
        assert request.output_format.sample_width == 2

"""Compilation endpoint: text to speech markup, without synthesis."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from emotive_tts import EmotionalStyle, MarkupDialect, SpeechService

from ..dependencies import get_service

router = APIRouter()


class CompileRequest(BaseModel):
    text: str
    emotion: str | None = None
    dialect: Literal["ssml", "maryxml"] | None = None


class CompileResponse(BaseModel):
    markup: str
    input_type: str


@router.post("/compile", response_model=CompileResponse)
def compile_markup(
    request: CompileRequest, service: SpeechService = Depends(get_service)
) -> CompileResponse:
    coordinator = service.coordinator
    style = EmotionalStyle.parse(request.emotion) if request.emotion else coordinator.style
    dialect = MarkupDialect(request.dialect) if request.dialect else None
    compiled = coordinator.compiler.compile(request.text, style, dialect)
    return CompileResponse(markup=compiled.markup, input_type=compiled.input_type.value)

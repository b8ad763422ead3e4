"""Speech endpoints: say, stop, speaking, emotion, voice, help.

Routes are plain ``def`` so a blocking ``say`` runs in the threadpool and
``stop`` can be served while it waits.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from emotive_tts import SpeechService

from ..dependencies import get_service

router = APIRouter()


class SayRequest(BaseModel):
    text: str
    blocking: bool = True


class SayResponse(BaseModel):
    success: bool


class SpeakingResponse(BaseModel):
    speaking: bool


class StopResponse(BaseModel):
    interrupted: bool


class NameRequest(BaseModel):
    name: str


class EmotionResponse(BaseModel):
    emotion: str


class VoiceResponse(BaseModel):
    voice: str


class HelpResponse(BaseModel):
    help: str


@router.post("/say", response_model=SayResponse)
def say(request: SayRequest, service: SpeechService = Depends(get_service)) -> SayResponse:
    return SayResponse(success=service.say_text(request.text, blocking=request.blocking))


@router.get("/speaking", response_model=SpeakingResponse)
def speaking(service: SpeechService = Depends(get_service)) -> SpeakingResponse:
    return SpeakingResponse(speaking=service.is_speaking())


@router.post("/stop", response_model=StopResponse)
def stop(service: SpeechService = Depends(get_service)) -> StopResponse:
    return StopResponse(interrupted=service.stop_utterance())


@router.get("/emotion", response_model=EmotionResponse)
def get_emotion(service: SpeechService = Depends(get_service)) -> EmotionResponse:
    return EmotionResponse(emotion=service.get_emotion())


@router.put("/emotion", response_model=EmotionResponse)
def set_emotion(
    request: NameRequest, service: SpeechService = Depends(get_service)
) -> EmotionResponse:
    # Unknown names leave the current emotion in place.
    service.set_emotion(request.name)
    return EmotionResponse(emotion=service.get_emotion())


@router.get("/voice", response_model=VoiceResponse)
def get_voice(service: SpeechService = Depends(get_service)) -> VoiceResponse:
    return VoiceResponse(voice=service.get_voice())


@router.put("/voice", response_model=VoiceResponse)
def set_voice(request: NameRequest, service: SpeechService = Depends(get_service)) -> VoiceResponse:
    service.set_voice(request.name)
    return VoiceResponse(voice=service.get_voice())


@router.get("/help", response_model=HelpResponse)
def help_text(service: SpeechService = Depends(get_service)) -> HelpResponse:
    return HelpResponse(help=service.get_gui_help())

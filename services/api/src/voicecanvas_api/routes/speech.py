"""Speech synthesis endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from voicecanvas_shared.logging import get_logger

from ..dependencies.auth import get_identity
from ..dependencies.services import get_concurrency_gate, get_speech_service
from ..models.speech import SpeechRequest
from ..services.concurrency_gate import ConcurrencyGate
from ..services.speech_service import SpeechService

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Speech"])

AUDIO_CACHE_CONTROL = "public, max-age=86400"


@router.post(
    "/speech",
    summary="Synthesize speech",
    description="Synthesize MP3 audio with AWS Polly or Minimax",
    response_class=Response,
    responses={200: {"content": {"audio/mp3": {}}}},
)
async def synthesize_speech(
    body: SpeechRequest,
    identity: str = Depends(get_identity),
    gate: ConcurrencyGate = Depends(get_concurrency_gate),
    speech: SpeechService = Depends(get_speech_service),
) -> Response:
    synthesize = speech.synthesize_with_fallback if body.fallback else speech.synthesize
    async with gate.slot(identity):
        outcome = await synthesize(
            text=body.text,
            language=body.language,
            voice_id=body.voice_id,
            speed=body.speed,
            provider=body.provider,
            gender=body.gender,
        )

    audio = outcome.unwrap()
    return Response(
        content=audio,
        media_type="audio/mp3",
        headers={
            "Cache-Control": AUDIO_CACHE_CONTROL,
            "X-Speech-Provider": outcome.provider,
        },
    )

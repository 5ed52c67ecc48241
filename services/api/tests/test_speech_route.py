"""Tests for the speech synthesis endpoint."""

import pytest

from voicecanvas_api.errors import ProviderTimeout, UnsupportedLanguageForProvider, ValidationError
from voicecanvas_api.services.speech_service import OutcomeStatus, SynthesisOutcome

AUDIO = b"ID3-audio-bytes"


def ok(provider: str = "minimax") -> SynthesisOutcome:
    return SynthesisOutcome(status=OutcomeStatus.OK, provider=provider, audio=AUDIO)


@pytest.mark.unit
async def test_returns_cacheable_mp3(async_client, mock_speech_service):
    mock_speech_service.synthesize.return_value = ok()

    response = await async_client.post(
        "/api/speech",
        json={"text": "Hello there", "language": "en-US", "voiceId": "female-chengshu"},
    )

    assert response.status_code == 200
    assert response.content == AUDIO
    assert response.headers["content-type"] == "audio/mp3"
    assert response.headers["cache-control"] == "public, max-age=86400"
    assert response.headers["content-length"] == str(len(AUDIO))
    assert response.headers["x-speech-provider"] == "minimax"
    mock_speech_service.synthesize.assert_awaited_once_with(
        text="Hello there",
        language="en-US",
        voice_id="female-chengshu",
        speed=1.0,
        provider="minimax",
        gender="female",
    )


@pytest.mark.unit
async def test_fallback_flag_uses_fallback_path(async_client, mock_speech_service):
    mock_speech_service.synthesize_with_fallback.return_value = ok("awsPolly")

    response = await async_client.post(
        "/api/speech",
        json={"text": "Merhaba", "language": "tr-TR", "fallback": True},
    )

    assert response.status_code == 200
    assert response.headers["x-speech-provider"] == "awsPolly"
    mock_speech_service.synthesize.assert_not_called()


@pytest.mark.unit
async def test_signed_in_user_holds_own_slot(app, async_client, mock_speech_service, auth_headers):
    gate = app.state.concurrency_gate
    seen: dict[str, int] = {}

    async def synthesize(**kwargs):
        seen.update(gate.snapshot())
        return ok()

    mock_speech_service.synthesize.side_effect = synthesize

    response = await async_client.post(
        "/api/speech",
        json={"text": "Hi"},
        headers=auth_headers("speaker@example.com"),
    )

    assert response.status_code == 200
    assert seen == {"speaker@example.com": 1}
    assert gate.snapshot() == {}


@pytest.mark.unit
async def test_provider_timeout_returns_504_and_releases_slot(
    app, async_client, mock_speech_service
):
    mock_speech_service.synthesize.return_value = SynthesisOutcome(
        status=OutcomeStatus.FATAL,
        provider="minimax",
        error=ProviderTimeout("Minimax request timed out"),
    )

    response = await async_client.post("/api/speech", json={"text": "Hello"})

    assert response.status_code == 504
    error = response.json()["error"]
    assert error["type"] == "provider_timeout"
    assert error["message"] == "Minimax request timed out"
    assert app.state.concurrency_gate.snapshot() == {}


@pytest.mark.unit
async def test_unsupported_language_is_a_client_error(async_client, mock_speech_service):
    mock_speech_service.synthesize.return_value = SynthesisOutcome(
        status=OutcomeStatus.RECOVERABLE,
        provider="minimax",
        error=UnsupportedLanguageForProvider("minimax", "hi-IN"),
        fallback_provider="awsPolly",
    )

    response = await async_client.post("/api/speech", json={"text": "Namaste", "language": "hi-IN"})

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "unsupported_language"


@pytest.mark.unit
async def test_service_validation_error_releases_slot(app, async_client, mock_speech_service):
    mock_speech_service.synthesize.side_effect = ValidationError("Text exceeds 10000 characters")

    response = await async_client.post("/api/speech", json={"text": "x"})

    assert response.status_code == 400
    assert app.state.concurrency_gate.snapshot() == {}


@pytest.mark.unit
@pytest.mark.parametrize(
    "body",
    [
        {"text": ""},
        {"language": "en-US"},
        {"text": "Hello", "speed": 3.0},
        {"text": "Hello", "provider": "elevenlabs"},
    ],
)
async def test_invalid_body_is_rejected(async_client, mock_speech_service, body):
    response = await async_client.post("/api/speech", json=body)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "validation_error"
    assert error["details"]
    mock_speech_service.synthesize.assert_not_called()

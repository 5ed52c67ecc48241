"""Speech synthesis gateway for AWS Polly and Minimax.

Provider failures come back as ``SynthesisOutcome`` values instead of
propagating. An outcome is ``ok``, ``recoverable`` (another provider can serve
the request) or ``fatal`` (the caller may retry later).
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from voicecanvas_shared.config import SpeechSettings
from voicecanvas_shared.logging import get_logger

from ..errors import (
    ProviderNotConfigured,
    ProviderResponseInvalid,
    ProviderTimeout,
    UnsupportedLanguageForProvider,
    ValidationError,
    VoiceCanvasError,
)

logger = get_logger(__name__)

PROVIDER_AWS_POLLY = "awsPolly"
PROVIDER_MINIMAX = "minimax"
PROVIDERS = (PROVIDER_AWS_POLLY, PROVIDER_MINIMAX)

MAX_TEXT_LENGTH = {
    PROVIDER_AWS_POLLY: 100_000,
    PROVIDER_MINIMAX: 10_000,
}

MINIMAX_MODEL = "speech-01-turbo"
MINIMAX_LANGUAGES = {
    "zh-CN": "zh",
    "en-US": "en",
    "ja-JP": "ja",
    "ko-KR": "ko",
    "es-ES": "es",
    "fr-FR": "fr",
    "ru-RU": "ru",
    "it-IT": "it",
    "pt-PT": "pt",
    "de-DE": "de",
}
MINIMAX_FEMALE_VOICE = "female-chengshu"
MINIMAX_MALE_VOICE = "male-qn-qingse"

POLLY_VOICES = {
    "en-US": ("Salli", "Justin"),
    "en-GB": ("Emma", "Brian"),
    "en-AU": ("Nicole", "Russell"),
    "zh-CN": ("Zhiyu", "Zhiyu"),
    "fr-FR": ("Celine", "Mathieu"),
    "es-ES": ("Conchita", "Enrique"),
    "es-MX": ("Mia", "Andres"),
    "de-DE": ("Marlene", "Hans"),
    "it-IT": ("Carla", "Giorgio"),
    "ja-JP": ("Mizuki", "Takumi"),
    "ko-KR": ("Seoyeon", "Seoyeon"),
    "pt-BR": ("Vitoria", "Ricardo"),
    "pt-PT": ("Ines", "Cristiano"),
    "pl-PL": ("Ewa", "Jacek"),
    "ru-RU": ("Tatyana", "Maxim"),
    "tr-TR": ("Filiz", "Filiz"),
    "hi-IN": ("Aditi", "Aditi"),
}
# Polly names Mandarin differently from the rest of the app
POLLY_LANGUAGE_CODES = {"zh-CN": "cmn-CN"}
DEFAULT_POLLY_LANGUAGE = "en-US"


class OutcomeStatus(str, Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass(frozen=True)
class SynthesisOutcome:
    status: OutcomeStatus
    provider: str
    audio: bytes | None = None
    error: VoiceCanvasError | None = None
    fallback_provider: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    def unwrap(self) -> bytes:
        """Return the audio, or raise the error that prevented it."""
        if self.ok and self.audio is not None:
            return self.audio
        raise self.error or ProviderResponseInvalid()


def supports_language(provider: str, language: str) -> bool:
    if provider == PROVIDER_MINIMAX:
        return language in MINIMAX_LANGUAGES
    return True


def polly_voice(language: str, gender: str = "female") -> tuple[str, str]:
    """Voice ID and Polly language code for a language, defaulting to en-US."""
    if language not in POLLY_VOICES:
        language = DEFAULT_POLLY_LANGUAGE
    female, male = POLLY_VOICES[language]
    voice_id = male if gender == "male" else female
    return voice_id, POLLY_LANGUAGE_CODES.get(language, language)


def minimax_voice(language: str, gender: str = "female") -> str:
    """Default Minimax voice. Only Mandarin offers a male voice."""
    if language == "zh-CN" and gender == "male":
        return MINIMAX_MALE_VOICE
    return MINIMAX_FEMALE_VOICE


class SpeechService:
    """Synthesizes MP3 audio through the configured providers."""

    def __init__(
        self,
        settings: SpeechSettings,
        http_client: httpx.AsyncClient | None = None,
        polly_client: Any | None = None,
    ):
        """Initialize the speech service.

        Args:
            settings: Provider credentials and timeouts.
            http_client: Client for Minimax calls. A short-lived one is
                created per call when omitted.
            polly_client: boto3 Polly client. Created on first use when omitted.
        """
        self.settings = settings
        self._http_client = http_client
        self._polly_client = polly_client

    async def synthesize(
        self,
        text: str,
        language: str,
        voice_id: str | None = None,
        speed: float = 1.0,
        provider: str = PROVIDER_MINIMAX,
        gender: str = "female",
    ) -> SynthesisOutcome:
        """Synthesize ``text`` with one provider.

        Raises:
            ValidationError: Empty text, unknown provider or text too long.
        """
        self._validate(text, provider)

        if not supports_language(provider, language):
            logger.info(
                "Language not supported by provider",
                provider=provider,
                language=language,
            )
            return SynthesisOutcome(
                status=OutcomeStatus.RECOVERABLE,
                provider=provider,
                error=UnsupportedLanguageForProvider(provider, language),
                fallback_provider=PROVIDER_AWS_POLLY,
            )

        try:
            if provider == PROVIDER_MINIMAX:
                audio = await self._synthesize_minimax(text, language, voice_id, speed, gender)
            else:
                audio = await self._synthesize_polly(text, language, voice_id, gender)
        except (ProviderTimeout, ProviderResponseInvalid, ProviderNotConfigured) as e:
            logger.warning(
                "Speech synthesis failed",
                provider=provider,
                language=language,
                error=e.message,
            )
            return SynthesisOutcome(status=OutcomeStatus.FATAL, provider=provider, error=e)

        logger.info(
            "Speech synthesized",
            provider=provider,
            language=language,
            characters=len(text),
            audio_bytes=len(audio),
        )
        return SynthesisOutcome(status=OutcomeStatus.OK, provider=provider, audio=audio)

    async def synthesize_with_fallback(
        self,
        text: str,
        language: str,
        voice_id: str | None = None,
        speed: float = 1.0,
        provider: str = PROVIDER_MINIMAX,
        gender: str = "female",
    ) -> SynthesisOutcome:
        """Like ``synthesize``, retrying once on the fallback provider when recoverable."""
        outcome = await self.synthesize(text, language, voice_id, speed, provider, gender)
        if outcome.status is not OutcomeStatus.RECOVERABLE or not outcome.fallback_provider:
            return outcome

        logger.info(
            "Falling back to another provider",
            provider=provider,
            fallback_provider=outcome.fallback_provider,
            language=language,
        )
        # The requested voice belongs to the first provider
        return await self.synthesize(
            text, language, None, speed, outcome.fallback_provider, gender
        )

    def _validate(self, text: str, provider: str) -> None:
        if provider not in PROVIDERS:
            raise ValidationError(f"Unknown provider: {provider}")
        if not text or not text.strip():
            raise ValidationError("Text must not be empty")
        limit = MAX_TEXT_LENGTH[provider]
        if len(text) > limit:
            raise ValidationError(f"Text exceeds {limit} characters for {provider}")

    async def _synthesize_minimax(
        self,
        text: str,
        language: str,
        voice_id: str | None,
        speed: float,
        gender: str,
    ) -> bytes:
        if not self.settings.minimax_api_key or not self.settings.minimax_group_id:
            raise ProviderNotConfigured("Minimax is not configured")

        payload = {
            "model": MINIMAX_MODEL,
            "text": text,
            "timber_weights": [
                {"voice_id": voice_id or minimax_voice(language, gender), "weight": 100}
            ],
            "voice_setting": {
                "voice_id": "",
                "speed": speed,
                "pitch": 0,
                "vol": 1,
                "latex_read": False,
            },
            "audio_setting": {"sample_rate": 32000, "bitrate": 128000, "format": "mp3"},
            "language_boost": "auto",
        }
        headers = {"Authorization": f"Bearer {self.settings.minimax_api_key}"}
        params = {"GroupId": self.settings.minimax_group_id}
        timeout = self.settings.minimax_timeout_seconds

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.settings.minimax_base_url,
                    params=params,
                    json=payload,
                    headers=headers,
                    timeout=timeout,
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(
                        self.settings.minimax_base_url,
                        params=params,
                        json=payload,
                        headers=headers,
                    )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ProviderTimeout("Minimax request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderResponseInvalid(f"Minimax request failed: {e}") from e

        return parse_minimax_audio(response)

    async def _synthesize_polly(
        self,
        text: str,
        language: str,
        voice_id: str | None,
        gender: str,
    ) -> bytes:
        default_voice, language_code = polly_voice(language, gender)
        client = self._get_polly_client()

        def call() -> bytes:
            response = client.synthesize_speech(
                Engine="standard",
                LanguageCode=language_code,
                OutputFormat="mp3",
                SampleRate="24000",
                Text=text,
                TextType="text",
                VoiceId=voice_id or default_voice,
            )
            stream = response.get("AudioStream")
            if stream is None:
                raise ProviderResponseInvalid("No audio stream returned")
            with stream:
                return stream.read()

        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, call),
                timeout=self.settings.polly_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeout("Polly request timed out") from e
        except (BotoCoreError, ClientError) as e:
            raise ProviderResponseInvalid(f"Polly request failed: {e}") from e

    def _get_polly_client(self) -> Any:
        if self._polly_client is None:
            self._polly_client = boto3.client("polly", region_name=self.settings.aws_region)
        return self._polly_client


def parse_minimax_audio(response: httpx.Response) -> bytes:
    """Extract the hex-encoded MP3 from a Minimax response.

    Raises:
        ProviderResponseInvalid: The body is not a successful audio response.
    """
    try:
        body = response.json()
    except ValueError as e:
        raise ProviderResponseInvalid("Invalid audio data") from e

    if not isinstance(body, dict):
        raise ProviderResponseInvalid("Invalid audio data")
    base_resp = body.get("base_resp") or {}
    data = body.get("data") or {}
    audio_hex = data.get("audio") if isinstance(data, dict) else None
    if base_resp.get("status_code") != 0 or not audio_hex:
        message = base_resp.get("status_msg") or "Speech generation failed"
        raise ProviderResponseInvalid(f"Invalid audio data: {message}")

    try:
        return bytes.fromhex(audio_hex)
    except (TypeError, ValueError) as e:
        raise ProviderResponseInvalid("Invalid audio data") from e

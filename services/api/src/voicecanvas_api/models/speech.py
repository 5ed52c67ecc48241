"""Speech synthesis request model."""

from typing import Literal

from pydantic import Field

from .base import CamelModel


class SpeechRequest(CamelModel):
    text: str = Field(min_length=1, description="Text to synthesize")
    language: str = Field(default="en-US", description="BCP 47 language tag, e.g. 'de-DE'")
    voice_id: str | None = Field(default=None, description="Provider voice ID")
    provider: Literal["awsPolly", "minimax"] = "minimax"
    speed: float = Field(default=1.0, ge=0.5, le=2.0)
    gender: Literal["female", "male"] = "female"
    fallback: bool = Field(
        default=False,
        description="Retry on AWS Polly when the chosen provider cannot serve the language",
    )

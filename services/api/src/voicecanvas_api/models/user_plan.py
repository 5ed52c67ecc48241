"""User plan response models."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class SubscriptionResponse(CamelModel):
    id: UUID = Field(validation_alias="subscription_id")
    plan_type: str
    start_date: datetime
    end_date: datetime
    status: str


class CharacterQuotaResponse(CamelModel):
    id: UUID = Field(validation_alias="quota_id")
    permanent_quota: int
    temporary_quota: int
    used_characters: int
    quota_expiry: datetime | None
    last_updated: datetime
    remaining_characters: int


class UserPlanResponse(CamelModel):
    subscription: SubscriptionResponse
    character_quota: CharacterQuotaResponse

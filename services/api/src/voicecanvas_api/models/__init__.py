"""Pydantic models for API requests and responses."""

from .auth import ForgotPasswordRequest, ResendVerificationRequest, ResetPasswordRequest
from .base import BaseResponse, CamelModel, ErrorDetail, ErrorResponse, MessageResponse
from .billing import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PlanFeatureResponse,
    PlanListResponse,
    PlanResponse,
    WebhookReceived,
)
from .speech import SpeechRequest
from .user_plan import CharacterQuotaResponse, SubscriptionResponse, UserPlanResponse

__all__ = [
    "BaseResponse",
    "CamelModel",
    "CharacterQuotaResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "MessageResponse",
    "PlanFeatureResponse",
    "PlanListResponse",
    "PlanResponse",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "SpeechRequest",
    "SubscriptionResponse",
    "UserPlanResponse",
    "WebhookReceived",
]

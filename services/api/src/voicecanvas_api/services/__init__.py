"""Business logic services for the API."""

from .billing_events import BillingEvent, BillingEventKind, StripeEventResolver
from .concurrency_gate import ConcurrencyGate, SubscriptionLimitResolver
from .plan_catalog import PlanCatalog, PlanDescriptor, PlanFeature
from .reconciliation_service import ReconcileResult, ReconciliationService
from .speech_service import OutcomeStatus, SpeechService, SynthesisOutcome
from .stripe_gateway import StripeGateway
from .token_service import EmailVerificationService, PasswordResetService
from .user_plan_service import UserPlan, UserPlanService

__all__ = [
    "BillingEvent",
    "BillingEventKind",
    "ConcurrencyGate",
    "EmailVerificationService",
    "OutcomeStatus",
    "PasswordResetService",
    "PlanCatalog",
    "PlanDescriptor",
    "PlanFeature",
    "ReconcileResult",
    "ReconciliationService",
    "SpeechService",
    "StripeEventResolver",
    "StripeGateway",
    "SubscriptionLimitResolver",
    "SynthesisOutcome",
    "UserPlan",
    "UserPlanService",
]

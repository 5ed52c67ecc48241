"""Dependencies resolving the long-lived service objects held in app state."""

from fastapi import Request

from voicecanvas_shared.email import Mailer

from ..services.concurrency_gate import ConcurrencyGate
from ..services.plan_catalog import PlanCatalog
from ..services.speech_service import SpeechService
from ..services.stripe_gateway import StripeGateway


def get_concurrency_gate(request: Request) -> ConcurrencyGate:
    return request.app.state.concurrency_gate


def get_speech_service(request: Request) -> SpeechService:
    return request.app.state.speech_service


def get_plan_catalog(request: Request) -> PlanCatalog:
    return request.app.state.plan_catalog


def get_stripe_gateway(request: Request) -> StripeGateway:
    return request.app.state.stripe_gateway


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer

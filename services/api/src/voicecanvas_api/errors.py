"""Error taxonomy shared by services and routes.

Every error carries the HTTP status it maps to and a message that is safe to
show to callers. The exception handlers in ``main`` render them uniformly.
"""

from fastapi import status


class VoiceCanvasError(Exception):
    """Base class for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(VoiceCanvasError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Invalid input data"


class UserNotFound(VoiceCanvasError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "user_not_found"
    default_message = "User does not exist"


class TokenNotFound(VoiceCanvasError):
    """Token is unknown or was already used. The two cases are not distinguished."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "token_not_found"
    default_message = "Invalid token"


class TokenExpired(VoiceCanvasError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "token_expired"
    default_message = "Token has expired"


class UnsupportedLanguageForProvider(VoiceCanvasError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "unsupported_language"
    default_message = "Language is not supported by this provider"

    def __init__(self, provider: str, language: str):
        self.provider = provider
        self.language = language
        super().__init__(f"{provider} does not support language {language}")


class ProviderTimeout(VoiceCanvasError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "provider_timeout"
    default_message = "Speech provider timed out"


class ProviderResponseInvalid(VoiceCanvasError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "provider_response_invalid"
    default_message = "Invalid audio data"


class ProviderNotConfigured(VoiceCanvasError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "provider_not_configured"
    default_message = "Speech provider is not configured"


class InvalidPriceIdentifier(VoiceCanvasError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_price"
    default_message = "Invalid price ID"


class SignatureVerificationFailed(VoiceCanvasError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "signature_verification_failed"
    default_message = "Webhook signature verification failed"


class BillingProviderError(VoiceCanvasError):
    """Stripe could not be reached or rejected a request."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "billing_provider_error"
    default_message = "Error communicating with the billing provider"

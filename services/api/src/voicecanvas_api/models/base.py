"""Base Pydantic request and response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseResponse(BaseModel):
    """Base response model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class CamelModel(BaseResponse):
    """Model serialized with camelCase field names, as the web client expects."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
        alias_generator=to_camel,
    )


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(
        default=None, description="Field that caused the error (for validation errors)"
    )
    message: str = Field(description="Error message")
    type: str | None = Field(default=None, description="Error type code")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: dict[str, Any] = Field(description="Error details")

    @classmethod
    def create(
        cls,
        code: int,
        message: str,
        correlation_id: str | None = None,
        details: list[ErrorDetail] | None = None,
        error_type: str | None = None,
    ) -> "ErrorResponse":
        """Create a standardized error response.

        Args:
            code: HTTP status code.
            message: Error message.
            correlation_id: Request correlation ID.
            details: Additional error details.
            error_type: Machine-readable error type.

        Returns:
            ErrorResponse instance.
        """
        error: dict[str, Any] = {
            "code": code,
            "message": message,
        }
        if error_type:
            error["type"] = error_type
        if correlation_id:
            error["correlation_id"] = correlation_id
        if details:
            error["details"] = [d.model_dump() for d in details]

        return cls(error=error)


class MessageResponse(BaseModel):
    """Simple success response."""

    success: bool = Field(default=True, description="Operation was successful")
    message: str | None = Field(default=None, description="Optional success message")

"""Pydantic schemas for contact submissions and relay responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ContactSubmission(BaseModel):
    """Contact-form payload accepted on every configured route.

    Exists only for the duration of one request. Unknown fields are ignored.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    name: str = Field(..., min_length=1, description="Submitter's name.")
    email: str = Field(..., min_length=1, description="Submitter's email address.")
    message: str = Field(..., min_length=1, description="Free-text message.")
    source: str | None = Field(
        default=None,
        description="Optional origin of the submission (e.g., site or form name).",
    )


class ContactAccepted(BaseModel):
    """Response returned once the message has been delivered."""

    status: str = Field(
        "Message sent successfully.",
        description="Human-readable delivery confirmation.",
    )


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str = Field("ok", description="Always 'ok' while the process serves traffic.")
    routes: int = Field(..., description="Number of configured contact routes.")

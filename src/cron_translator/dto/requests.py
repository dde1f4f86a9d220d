"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class TranslateRequest(BaseModel):
    """Request DTO for translating a phrase.

    Length and emptiness are checked after normalization by the handler,
    so the raw field is deliberately unconstrained here.
    """

    input: str = Field("", description="Free-text scheduling phrase, e.g. 'every day at 3 PM'")

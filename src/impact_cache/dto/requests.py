"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field, field_validator


class AnalyzeRequest(BaseModel):
    """Request DTO for analyzing a product.

    The handler will convert this to internal calls to the service layer.
    """

    description: str = Field(
        ...,
        description="Free-text product description",
        min_length=1,
    )

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be blank")
        return value

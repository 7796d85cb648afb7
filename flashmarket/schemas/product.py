# flashmarket/schemas/product.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload a seller sends to publish a product.

    - category falls back to "others" when omitted.
    - stock is optional: without it the configured default stock is used.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    price: float = Field(gt=0)
    category: str = Field(default="others", max_length=50)
    image: str | None = None
    description: str | None = None
    stock: int | None = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        v = (v or "").strip()
        return v or "others"


class AvailabilityUpdate(SQLModel):
    """Payload for turning a product's sale flag on or off."""

    available: bool

"""Delivery DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DeliveryDTO(BaseModel):
    """Immutable shipping destination supplied at checkout start."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    address: str = Field(min_length=1, max_length=255)
    country: str = Field(default="CO", min_length=2, max_length=2)
    city: str = Field(min_length=1, max_length=120)
    region: str = Field(min_length=1, max_length=120)
    postal_code: str = Field(min_length=1, max_length=20)
    recipient_name: str = Field(min_length=1, max_length=255)

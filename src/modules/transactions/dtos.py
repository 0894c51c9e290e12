"""Order transaction DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``StartTransactionDTO``: product, quantity, customer and delivery data.
- ``CardDTO``: card data for the finish step.  ``number`` and ``cvc`` are
  ``SecretStr``: masked in ``repr``, ``str`` and JSON dumps.
"""

from __future__ import annotations

import re
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from modules.customers.dtos import CreateCustomerDTO
from modules.deliveries.dtos import DeliveryDTO

CARD_NUMBER_PATTERN = re.compile(r"^\d{13,19}$")
CVC_PATTERN = re.compile(r"^\d{3,4}$")


class StartTransactionDTO(BaseModel):
    """Immutable DTO for checkout start requests."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(ge=1)
    customer: CreateCustomerDTO
    delivery: DeliveryDTO


class CardDTO(BaseModel):
    """Immutable card data, handed opaquely to the payment gateway."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    number: SecretStr
    cvc: SecretStr
    exp_month: str
    exp_year: str
    card_holder: str = Field(min_length=1, max_length=255)

    @field_validator("number")
    @classmethod
    def number_must_be_digits(cls, v: SecretStr) -> SecretStr:
        digits = v.get_secret_value().replace(" ", "")
        if not CARD_NUMBER_PATTERN.match(digits):
            raise ValueError("Card number must have 13 to 19 digits.")
        return SecretStr(digits)

    @field_validator("cvc")
    @classmethod
    def cvc_must_be_digits(cls, v: SecretStr) -> SecretStr:
        if not CVC_PATTERN.match(v.get_secret_value()):
            raise ValueError("CVC must have 3 or 4 digits.")
        return v

    @field_validator("exp_month")
    @classmethod
    def month_must_be_valid(cls, v: str) -> str:
        if not v.isdigit() or not 1 <= int(v) <= 12:
            raise ValueError("Expiration month must be between 01 and 12.")
        return v.zfill(2)

    @field_validator("exp_year")
    @classmethod
    def year_must_be_two_digits(cls, v: str) -> str:
        if not re.fullmatch(r"\d{2}", v):
            raise ValueError("Expiration year must have two digits.")
        return v

    @property
    def last_four(self) -> str:
        return self.number.get_secret_value()[-4:]

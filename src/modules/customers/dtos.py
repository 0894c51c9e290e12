"""Customer DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
``CreateCustomerDTO`` is also embedded in the checkout start request.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


class CreateCustomerDTO(BaseModel):
    """Immutable DTO for customer data.

    Validates:
    - every text field is non-blank (surrounding whitespace stripped).
    - ``email`` is a well-formed address, normalised to lowercase.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    last_name: str
    dni: str
    phone: str
    email: EmailStr

    @field_validator("name", "last_name", "dni", "phone")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()

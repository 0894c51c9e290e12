"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements, so the
checkout service can run against Wompi in production and against the
in-memory fake in tests and local development.

Adapters raise ``modules.transactions.exceptions.GatewayError`` for any
transport failure, rejected request or malformed response.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List
from uuid import UUID

from django.conf import settings

if TYPE_CHECKING:
    from modules.transactions.dtos import CardDTO
    from modules.transactions.models import OrderTransaction


class AcceptanceType:
    END_USER_POLICY = "END_USER_POLICY"
    PERSONAL_DATA_AUTH = "PERSONAL_DATA_AUTH"


@dataclass(frozen=True)
class Acceptance:
    """A presigned acceptance contract the buyer must agree to."""

    acceptance_token: str
    permalink: str
    type: str


@dataclass(frozen=True)
class TokenizedCard:
    """Opaque card token issued by the gateway."""

    token: str
    brand: str = ""
    last_four: str = ""


@dataclass(frozen=True)
class ChargeResult:
    """Terminal outcome of a charge as reported by the gateway."""

    gateway_transaction_id: str
    gateway_status: str


def payment_reference(transaction_id: UUID | str) -> str:
    """Merchant reference sent to the gateway for an order transaction."""
    return f"{settings.CHECKOUT_REFERENCE_PREFIX}{transaction_id}"


class IPaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def get_acceptance_terms(self) -> List[Acceptance]:
        """Return the acceptance contracts the charge must reference."""

    @abstractmethod
    def tokenize_card(self, card: CardDTO) -> TokenizedCard:
        """Exchange raw card data for a single-use token."""

    @abstractmethod
    def charge(
        self, transaction: OrderTransaction, tokenized_card: TokenizedCard
    ) -> ChargeResult:
        """Charge ``transaction.total`` and wait for a terminal status."""

    def close(self) -> None:
        """Release connections held by the gateway. Safe to call twice."""

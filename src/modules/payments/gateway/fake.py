"""Configurable fake payment gateway for development and testing.

Simulates the gateway without any external calls.  The outcome of the
next charges can be changed at runtime, and every call is recorded in
``calls`` (card numbers never are; only the last four digits).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional
from uuid import uuid4

from modules.payments.gateway.port import (
    Acceptance,
    AcceptanceType,
    ChargeResult,
    IPaymentGateway,
    TokenizedCard,
    payment_reference,
)
from modules.transactions.exceptions import GatewayError

if TYPE_CHECKING:
    from modules.transactions.dtos import CardDTO
    from modules.transactions.models import OrderTransaction


class FakePaymentGateway(IPaymentGateway):
    """In-memory ``IPaymentGateway``.

    ``on_charge`` is invoked with the transaction right before the charge
    result is returned; tests use it to interleave a competing finish.
    """

    def __init__(
        self,
        outcome: str = "APPROVED",
        on_charge: Optional[Callable[[OrderTransaction], None]] = None,
    ) -> None:
        self.outcome = outcome
        self.on_charge = on_charge
        self.tokenize_error: Optional[str] = None
        self.charge_error: Optional[str] = None
        self.calls: List[dict] = []
        self.closed = False

    def configure(
        self,
        outcome: str = "APPROVED",
        tokenize_error: Optional[str] = None,
        charge_error: Optional[str] = None,
    ) -> None:
        self.outcome = outcome
        self.tokenize_error = tokenize_error
        self.charge_error = charge_error

    @property
    def charge_calls(self) -> List[dict]:
        return [call for call in self.calls if call["method"] == "charge"]

    def get_acceptance_terms(self) -> List[Acceptance]:
        return [
            Acceptance(
                acceptance_token="fake_acceptance_end_user",
                permalink="https://example.com/terms.pdf",
                type=AcceptanceType.END_USER_POLICY,
            ),
            Acceptance(
                acceptance_token="fake_acceptance_personal_data",
                permalink="https://example.com/personal-data.pdf",
                type=AcceptanceType.PERSONAL_DATA_AUTH,
            ),
        ]

    def tokenize_card(self, card: CardDTO) -> TokenizedCard:
        self.calls.append({"method": "tokenize_card", "last_four": card.last_four})
        if self.tokenize_error:
            raise GatewayError(self.tokenize_error)
        return TokenizedCard(
            token=f"tok_fake_{uuid4().hex[:12]}",
            brand="VISA",
            last_four=card.last_four,
        )

    def charge(
        self, transaction: OrderTransaction, tokenized_card: TokenizedCard
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "charge",
                "reference": payment_reference(transaction.id),
                "amount_in_cents": transaction.total,
                "token": tokenized_card.token,
            }
        )
        if self.charge_error:
            raise GatewayError(self.charge_error)
        if self.on_charge is not None:
            self.on_charge(transaction)
        return ChargeResult(
            gateway_transaction_id=f"fake_txn_{uuid4().hex[:12]}",
            gateway_status=self.outcome,
        )

    def close(self) -> None:
        self.closed = True

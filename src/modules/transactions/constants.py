"""Order transaction constants.

Defines the status names and the valid transitions of the order
transaction state machine.  ``PENDING`` is the only non-terminal state.
"""

from typing import Optional

from django.db import models


class TransactionStatusName(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    DECLINED = "DECLINED", "Declined"
    VOIDED = "VOIDED", "Voided"
    ERROR = "ERROR", "Error"


VALID_TRANSITIONS: dict[str, set[str]] = {
    TransactionStatusName.PENDING: {
        TransactionStatusName.APPROVED,
        TransactionStatusName.DECLINED,
        TransactionStatusName.VOIDED,
        TransactionStatusName.ERROR,
    },
    TransactionStatusName.APPROVED: set(),
    TransactionStatusName.DECLINED: set(),
    TransactionStatusName.VOIDED: set(),
    TransactionStatusName.ERROR: set(),
}

TERMINAL_STATES: set[str] = {
    TransactionStatusName.APPROVED,
    TransactionStatusName.DECLINED,
    TransactionStatusName.VOIDED,
    TransactionStatusName.ERROR,
}

GATEWAY_STATUS_MAP: dict[str, str] = {
    "APPROVED": TransactionStatusName.APPROVED,
    "DECLINED": TransactionStatusName.DECLINED,
    "VOIDED": TransactionStatusName.VOIDED,
    "ERROR": TransactionStatusName.ERROR,
}

OUTBOX_TOPIC = "order_transactions"


def map_gateway_status(gateway_status: str) -> Optional[str]:
    """Translate a gateway status into a local status name.

    Returns ``None`` while the gateway still reports ``PENDING``; any other
    unknown value is treated as ``ERROR``.
    """
    normalised = (gateway_status or "").upper()
    if normalised == TransactionStatusName.PENDING:
        return None
    return GATEWAY_STATUS_MAP.get(normalised, TransactionStatusName.ERROR)

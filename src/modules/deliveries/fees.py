"""Delivery fee policies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from django.conf import settings

if TYPE_CHECKING:
    from modules.deliveries.models import Delivery


class FlatDeliveryFee:
    """Charge the same fee for every destination.

    Reads ``CHECKOUT_DELIVERY_FEE`` from settings unless an explicit amount
    is given.
    """

    def __init__(self, amount: Optional[int] = None) -> None:
        self._amount = amount

    @property
    def amount(self) -> int:
        if self._amount is not None:
            return self._amount
        return int(settings.CHECKOUT_DELIVERY_FEE)

    def quote(self, delivery: Delivery) -> int:
        return self.amount

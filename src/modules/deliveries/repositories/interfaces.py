"""Delivery repository interface (delivery port)."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.deliveries.models import Delivery


class IDeliveryRepository(IRepository["Delivery"]):
    """Repository contract for deliveries.

    ``save`` is responsible for assigning the delivery fee on first
    persist; callers read ``delivery.fee`` from the returned instance.
    """

    @abstractmethod
    def save(self, entity: Delivery) -> Delivery:
        """Persist a delivery, assigning its id and fee."""

"""Django ORM implementation of the Delivery repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError

from modules.deliveries.exceptions import InvalidDeliveryFee
from modules.deliveries.fees import FlatDeliveryFee
from modules.deliveries.models import Delivery
from modules.deliveries.repositories.interfaces import IDeliveryRepository

logger = structlog.get_logger(__name__)


class DeliveryDjangoRepository(IDeliveryRepository):
    """Concrete Delivery repository backed by Django ORM.

    The fee policy is injected so tests and future per-region pricing
    can swap it without touching the checkout service.
    """

    def __init__(self, fee_policy: Optional[FlatDeliveryFee] = None) -> None:
        self._fee_policy = fee_policy or FlatDeliveryFee()

    def get_by_id(self, id: str) -> Optional[Delivery]:
        try:
            return Delivery.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Delivery) -> Delivery:
        if entity._state.adding:
            fee = self._fee_policy.quote(entity)
            if fee < 0:
                raise InvalidDeliveryFee(f"Delivery fee cannot be negative: {fee}")
            entity.fee = fee
        entity.save()
        logger.info(
            "delivery.saved",
            delivery_id=str(entity.id),
            fee=entity.fee,
        )
        return entity

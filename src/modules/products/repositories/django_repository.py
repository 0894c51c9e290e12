"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
(or ``False``) instead of raising HTTP-level exceptions; the Service
Layer decides how to translate a missing entity into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"stock_quantity__gt": 0}
            {"name__icontains": "board"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def decrement_stock_if_available(self, id: str, quantity: int) -> bool:
        """Run ``UPDATE ... SET stock = stock - q WHERE stock >= q``.

        The database evaluates the guard and the subtraction in one
        statement, so no row lock or surrounding transaction is needed.
        """
        try:
            updated = Product.objects.filter(
                id=id, stock_quantity__gte=quantity
            ).update(
                stock_quantity=F("stock_quantity") - quantity,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return False

        log = logger.bind(product_id=str(id), quantity=quantity)
        if updated:
            log.info("product.stock_decremented")
            return True
        log.warning("product.stock_decrement_rejected")
        return False

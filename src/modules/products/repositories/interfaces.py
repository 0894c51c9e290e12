"""Product repository interface (catalog port).

Extends ``IRepository[Product]`` with the look-ups the checkout flow
needs: stock verification and the atomic stock decrement.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products with optional filters."""

    @abstractmethod
    def decrement_stock_if_available(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` from stock.

        Must be a single conditional write (never read-then-write) so that
        concurrent finishes on the same product cannot oversell.  Returns
        ``False`` and changes nothing when the stock is insufficient or
        the product does not exist.
        """

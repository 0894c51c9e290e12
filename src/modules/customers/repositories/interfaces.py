"""Customer repository interface (customer port).

Extends ``IRepository[Customer]`` with the e-mail look-ups the checkout
uses to keep customer creation idempotent.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a customer already uses ``email``."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[Customer]:
        """Retrieve a customer by email address."""

    @abstractmethod
    def get_by_dni(self, dni: str) -> Optional[Customer]:
        """Retrieve a customer by national identification number."""

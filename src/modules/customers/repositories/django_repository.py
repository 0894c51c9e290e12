"""Django ORM implementation of the Customer repository.

Satisfies ``ICustomerRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions; the Service Layer decides
how to translate a missing entity into an API response.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Retrieve a customer by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return Customer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        """Persist (create or update) a customer.

        Runs in its own savepoint so a unique-email collision can be
        recovered from by the caller without poisoning an outer transaction.
        """
        is_new = entity._state.adding
        entity.save()
        logger.info(
            "customer.saved",
            customer_id=str(entity.id),
            is_new=is_new,
        )
        return entity

    def exists_by_email(self, email: str) -> bool:
        return Customer.objects.filter(email=email.strip().lower()).exists()

    def get_by_email(self, email: str) -> Optional[Customer]:
        """Retrieve a customer by email address (case-insensitive)."""
        return Customer.objects.filter(email=email.strip().lower()).first()

    def get_by_dni(self, dni: str) -> Optional[Customer]:
        return Customer.objects.filter(dni=dni.strip()).first()

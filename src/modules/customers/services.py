"""Customer service layer (Use Cases).

Registers storefront customers ahead of checkout, delegating
persistence to the injected ``ICustomerRepository``.

Business rules enforced here:
- Email must be unique.
- A national id (dni) may only be registered once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.customers.exceptions import CustomerAlreadyExists
from modules.customers.models import Customer

if TYPE_CHECKING:
    from modules.customers.dtos import CreateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    """Application service for Customer use-cases.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_customer(self, dto: CreateCustomerDTO) -> Customer:
        """Create a new customer after enforcing uniqueness rules.

        Raises:
            CustomerAlreadyExists: if the email or dni is already taken.
        """
        log = logger.bind(dni=Customer.mask_dni(dto.dni))

        if self._repo.exists_by_email(dto.email):
            log.warning("customer.duplicate_email")
            raise CustomerAlreadyExists("Email already registered.")

        if self._repo.get_by_dni(dto.dni):
            log.warning("customer.duplicate_dni")
            raise CustomerAlreadyExists("Identification number already registered.")

        customer = Customer(
            name=dto.name,
            last_name=dto.last_name,
            dni=dto.dni,
            phone=dto.phone,
            email=dto.email,
        )
        customer = self._repo.save(customer)
        log.info("customer.created", customer_id=str(customer.id))
        return customer

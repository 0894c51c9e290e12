"""Unit tests for CustomerService.

Covers:
- create_customer: happy path, duplicate email, duplicate dni.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from modules.customers.dtos import CreateCustomerDTO
from modules.customers.exceptions import CustomerAlreadyExists
from modules.customers.models import Customer
from modules.customers.services import CustomerService

pytestmark = pytest.mark.unit


@pytest.fixture()
def mock_repo():
    repo = MagicMock()
    repo.exists_by_email.return_value = False
    repo.get_by_dni.return_value = None
    repo.save.side_effect = lambda customer: customer
    return repo


@pytest.fixture()
def service(mock_repo):
    return CustomerService(repository=mock_repo)


@pytest.fixture()
def dto(customer_payload):
    return CreateCustomerDTO(**customer_payload)


class TestCreateCustomer:
    def test_success(self, service, mock_repo, dto):
        customer = service.create_customer(dto)

        assert isinstance(customer, Customer)
        assert customer.full_name == "Laura Gomez"
        assert customer.email == "laura@example.com"
        mock_repo.save.assert_called_once()

    def test_duplicate_email_raises(self, service, mock_repo, dto):
        mock_repo.exists_by_email.return_value = True

        with pytest.raises(CustomerAlreadyExists, match="Email"):
            service.create_customer(dto)
        mock_repo.save.assert_not_called()

    def test_duplicate_dni_raises(self, service, mock_repo, dto):
        mock_repo.get_by_dni.return_value = Customer(dni=dto.dni)

        with pytest.raises(CustomerAlreadyExists, match="Identification"):
            service.create_customer(dto)
        mock_repo.save.assert_not_called()

import pytest

from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.payments.gateway.fake import FakePaymentGateway
from modules.products.models import Product
from modules.transactions.constants import TransactionStatusName
from modules.transactions.models import TransactionStatus


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _reset_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def transaction_statuses(_use_db):
    """Seed the status registry the way ``seed_data`` does."""
    return {
        name: TransactionStatus.objects.get_or_create(name=name)[0]
        for name in TransactionStatusName.values
    }


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def fake_gateway(monkeypatch):
    """A FakePaymentGateway wired into the order transaction views."""
    gateway = FakePaymentGateway()
    monkeypatch.setattr(
        "modules.transactions.views.get_payment_gateway", lambda: gateway
    )
    return gateway


@pytest.fixture()
def product():
    return Product.objects.create(
        name="Street Deck 8.0",
        description="Maple deck with medium concave.",
        price=299999,
        stock_quantity=10,
        image="https://picsum.photos/seed/deck/200/200",
    )


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Laura",
        last_name="Gomez",
        dni="1020304050",
        phone="3001234567",
        email="laura@example.com",
    )


@pytest.fixture()
def customer_payload():
    return {
        "name": "Laura",
        "last_name": "Gomez",
        "dni": "1020304050",
        "phone": "3001234567",
        "email": "laura@example.com",
    }


@pytest.fixture()
def delivery_payload():
    return {
        "address": "Calle 10 # 43-12",
        "country": "CO",
        "city": "Medellin",
        "region": "Antioquia",
        "postal_code": "050021",
        "recipient_name": "Laura Gomez",
    }


@pytest.fixture()
def card_payload():
    return {
        "number": "4242424242424242",
        "cvc": "123",
        "exp_month": "08",
        "exp_year": "28",
        "card_holder": "Laura Gomez",
    }


@pytest.fixture()
def pending_transaction(product, customer, delivery_payload, transaction_statuses):
    """A persisted PENDING transaction for 2 units of ``product``."""
    from modules.deliveries.models import Delivery
    from modules.transactions.models import OrderTransaction

    delivery = Delivery.objects.create(fee=15000, **delivery_payload)
    return OrderTransaction.objects.create(
        product=product,
        customer=customer,
        delivery=delivery,
        quantity=2,
        total=614998,
        status=transaction_statuses[TransactionStatusName.PENDING],
    )

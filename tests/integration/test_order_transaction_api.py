"""Integration tests for the order transaction API.

Covers:
- POST /api/v1/order-transactions/ (start): 201, 400, 404, 409, 503.
- GET /api/v1/order-transactions/{id}/: 200, 404.
- POST /api/v1/order-transactions/{id}/finish/: each outcome and error mapping.
- GET /api/v1/order-transactions/acceptance-terms/.
- The payment gateway is closed once each request is done.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.products.models import Product
from modules.transactions.models import OrderTransaction

pytestmark = pytest.mark.integration

BASE_URL = "/api/v1/order-transactions/"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def start_payload(product, customer_payload, delivery_payload):
    return {
        "product_id": str(product.id),
        "quantity": 2,
        "customer": customer_payload,
        "delivery": delivery_payload,
    }


@pytest.fixture()
def started(api_client, fake_gateway, start_payload):
    response = api_client.post(BASE_URL, start_payload, format="json")
    assert response.status_code == 201
    return response.data


def _finish_url(transaction_id) -> str:
    return f"{BASE_URL}{transaction_id}/finish/"


# ===========================================================================
# START
# ===========================================================================


class TestStartTransaction:
    def test_created_pending(self, started, product):
        assert started["status"] == "PENDING"
        assert started["total"] == 614998
        assert started["quantity"] == 2
        assert started["payment_gateway_transaction_id"] is None
        assert started["product"]["id"] == str(product.id)
        assert started["delivery"]["fee"] == 15000
        assert started["customer"]["email"] == "laura@example.com"

    def test_stock_untouched(self, started, product):
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_insufficient_stock_returns_409(self, api_client, fake_gateway, start_payload):
        start_payload["quantity"] = 11

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 409
        assert OrderTransaction.objects.count() == 0
        assert Customer.objects.count() == 0

    def test_unknown_product_returns_404(self, api_client, fake_gateway, start_payload):
        start_payload["product_id"] = str(uuid4())

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 404

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("quantity", 0),
            ("product_id", "not-a-uuid"),
            ("customer", {"name": "Laura"}),
        ],
    )
    def test_invalid_payload_returns_400(
        self, api_client, fake_gateway, start_payload, field, value
    ):
        start_payload[field] = value

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 400

    def test_invalid_email_returns_400(self, api_client, fake_gateway, start_payload):
        start_payload["customer"]["email"] = "not-an-email"

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 400

    def test_blank_delivery_field_returns_400(
        self, api_client, fake_gateway, start_payload
    ):
        start_payload["delivery"]["city"] = ""

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 400

    def test_missing_status_registry_returns_503(
        self, api_client, fake_gateway, start_payload, transaction_statuses
    ):
        transaction_statuses["PENDING"].delete()

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 503

    def test_negative_delivery_fee_returns_503(
        self, api_client, fake_gateway, start_payload, settings
    ):
        settings.CHECKOUT_DELIVERY_FEE = -1

        response = api_client.post(BASE_URL, start_payload, format="json")

        assert response.status_code == 503
        assert Customer.objects.count() == 0
        assert OrderTransaction.objects.count() == 0


# ===========================================================================
# RETRIEVE
# ===========================================================================


class TestRetrieveTransaction:
    def test_found(self, api_client, started):
        response = api_client.get(f"{BASE_URL}{started['id']}/")

        assert response.status_code == 200
        assert response.data["id"] == started["id"]

    def test_not_found(self, api_client, fake_gateway):
        response = api_client.get(f"{BASE_URL}{uuid4()}/")
        assert response.status_code == 404


# ===========================================================================
# FINISH
# ===========================================================================


class TestFinishTransaction:
    def test_approved(self, api_client, fake_gateway, started, card_payload, product):
        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 200
        assert response.data["status"] == "APPROVED"
        assert response.data["payment_gateway_transaction_id"].startswith("fake_txn_")
        product.refresh_from_db()
        assert product.stock_quantity == 8

    def test_declined_is_still_200(
        self, api_client, fake_gateway, started, card_payload, product
    ):
        fake_gateway.configure(outcome="DECLINED")

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 200
        assert response.data["status"] == "DECLINED"
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_card_data_never_echoed(self, api_client, fake_gateway, started, card_payload):
        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        body = response.content.decode()
        assert "4242424242424242" not in body
        assert '"cvc"' not in body

    def test_second_finish_returns_409(
        self, api_client, fake_gateway, started, card_payload
    ):
        api_client.post(_finish_url(started["id"]), card_payload, format="json")

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 409
        assert len(fake_gateway.charge_calls) == 1

    def test_concurrent_finish_loser_gets_409(
        self, api_client, fake_gateway, started, card_payload, product
    ):
        competing_client = APIClient()
        competing = {}

        def _finish_concurrently(order_transaction):
            fake_gateway.on_charge = None
            competing["response"] = competing_client.post(
                _finish_url(order_transaction.id), card_payload, format="json"
            )

        fake_gateway.on_charge = _finish_concurrently

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert competing["response"].status_code == 200
        assert response.status_code == 409
        product.refresh_from_db()
        assert product.stock_quantity == 8

    def test_unknown_transaction_returns_404(self, api_client, fake_gateway, card_payload):
        response = api_client.post(_finish_url(uuid4()), card_payload, format="json")

        assert response.status_code == 404
        assert fake_gateway.calls == []

    def test_stock_gone_returns_409_and_marks_error(
        self, api_client, fake_gateway, started, card_payload, product
    ):
        Product.objects.filter(id=product.id).update(stock_quantity=1)

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 409
        assert OrderTransaction.objects.get(id=started["id"]).status_name == "ERROR"
        assert fake_gateway.calls == []

    def test_gateway_failure_returns_502(
        self, api_client, fake_gateway, started, card_payload
    ):
        fake_gateway.configure(charge_error="upstream timeout")

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 502
        assert OrderTransaction.objects.get(id=started["id"]).status_name == "PENDING"

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("number", "4242"),
            ("number", "4242abcd42424242"),
            ("cvc", "1"),
            ("cvc", "12a"),
            ("exp_month", "13"),
            ("exp_year", "2028"),
        ],
    )
    def test_invalid_card_returns_400(
        self, api_client, fake_gateway, started, card_payload, field, value
    ):
        card_payload[field] = value

        response = api_client.post(_finish_url(started["id"]), card_payload, format="json")

        assert response.status_code == 400
        assert fake_gateway.calls == []
        assert card_payload["number"] not in response.content.decode()


# ===========================================================================
# ACCEPTANCE TERMS
# ===========================================================================


class TestAcceptanceTerms:
    def test_lists_contracts(self, api_client, fake_gateway):
        response = api_client.get(f"{BASE_URL}acceptance-terms/")

        assert response.status_code == 200
        assert {term["type"] for term in response.data} == {
            "END_USER_POLICY",
            "PERSONAL_DATA_AUTH",
        }

    def test_gateway_failure_returns_502(self, api_client, fake_gateway, monkeypatch):
        from modules.transactions.exceptions import GatewayError

        def _fail():
            raise GatewayError("merchant lookup failed")

        monkeypatch.setattr(fake_gateway, "get_acceptance_terms", _fail)

        response = api_client.get(f"{BASE_URL}acceptance-terms/")

        assert response.status_code == 502


# ===========================================================================
# GATEWAY LIFECYCLE
# ===========================================================================


class TestGatewayLifecycle:
    def test_gateway_closed_after_request(self, api_client, fake_gateway):
        response = api_client.get(f"{BASE_URL}acceptance-terms/")

        assert response.status_code == 200
        assert fake_gateway.closed

    def test_gateway_closed_after_failed_request(
        self, api_client, fake_gateway, card_payload
    ):
        response = api_client.post(_finish_url(uuid4()), card_payload, format="json")

        assert response.status_code == 404
        assert fake_gateway.closed

"""Unit tests for OrderTransactionService with mocked ports.

Complements ``test_services.py``: here every port is a ``MagicMock`` so
the tests pin down which collaborators are (not) called on each path.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.customers.models import Customer
from modules.deliveries.models import Delivery
from modules.payments.gateway.port import ChargeResult, TokenizedCard
from modules.products.models import Product
from modules.transactions import models
from modules.transactions.constants import TransactionStatusName
from modules.transactions.dtos import CardDTO, StartTransactionDTO
from modules.transactions.exceptions import (
    GatewayError,
    InsufficientStock,
    ProductNotFound,
    TransactionAlreadyFinished,
    TransactionNotFound,
)
from modules.transactions.models import OrderTransaction, TransactionStatus
from modules.transactions.services import OrderTransactionService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ports():
    product = Product(name="Street Deck 8.0", price=299999, stock_quantity=10)

    product_repo = MagicMock()
    product_repo.get_by_id.return_value = product
    product_repo.decrement_stock_if_available.return_value = True

    customer_repo = MagicMock()
    customer_repo.get_by_email.return_value = None
    customer_repo.save.side_effect = lambda customer: customer

    delivery_repo = MagicMock()

    def _save_delivery(delivery):
        delivery.fee = 15000
        return delivery

    delivery_repo.save.side_effect = _save_delivery

    status_repo = MagicMock()
    status_repo.get_by_name.side_effect = lambda name: TransactionStatus(name=name)

    transaction_repo = MagicMock()
    transaction_repo.save.side_effect = lambda tx: tx
    transaction_repo.compare_and_set_status.return_value = True

    gateway = MagicMock()
    gateway.tokenize_card.return_value = TokenizedCard(token="tok_1", last_four="4242")
    gateway.charge.return_value = ChargeResult(
        gateway_transaction_id="gw-1", gateway_status="APPROVED"
    )

    return {
        "transaction_repository": transaction_repo,
        "status_repository": status_repo,
        "product_repository": product_repo,
        "customer_repository": customer_repo,
        "delivery_repository": delivery_repo,
        "payment_gateway": gateway,
    }


@pytest.fixture()
def service(ports):
    return OrderTransactionService(**ports, iva_rate=Decimal("0"))


@pytest.fixture()
def start_dto(customer_payload, delivery_payload):
    return StartTransactionDTO(
        product_id=uuid4(),
        quantity=2,
        customer=customer_payload,
        delivery=delivery_payload,
    )


@pytest.fixture()
def card(card_payload):
    return CardDTO(**card_payload)


def _pending_transaction(ports, status_name=TransactionStatusName.PENDING):
    product = ports["product_repository"].get_by_id.return_value
    tx = OrderTransaction(
        product=product,
        customer=Customer(email="laura@example.com"),
        delivery=Delivery(fee=15000),
        quantity=2,
        total=614998,
        status=TransactionStatus(name=status_name),
    )
    ports["transaction_repository"].get_by_id.return_value = tx
    return tx


# ---------------------------------------------------------------------------
# start_transaction
# ---------------------------------------------------------------------------


class TestStart:
    def test_builds_pending_transaction(self, service, ports, start_dto):
        tx = service.start_transaction(start_dto)

        assert tx.status_name == TransactionStatusName.PENDING
        assert tx.total == 614998
        ports["status_repository"].get_by_name.assert_called_once_with(
            TransactionStatusName.PENDING
        )
        saved = ports["transaction_repository"].save.call_args.args[0]
        assert saved is tx

    def test_insufficient_stock_touches_no_write_port(self, service, ports, start_dto):
        ports["product_repository"].get_by_id.return_value.stock_quantity = 1

        with pytest.raises(InsufficientStock):
            service.start_transaction(start_dto)

        ports["customer_repository"].save.assert_not_called()
        ports["delivery_repository"].save.assert_not_called()
        ports["transaction_repository"].save.assert_not_called()

    def test_unknown_product(self, service, ports, start_dto):
        ports["product_repository"].get_by_id.return_value = None

        with pytest.raises(ProductNotFound):
            service.start_transaction(start_dto)
        ports["customer_repository"].get_by_email.assert_not_called()

    def test_existing_customer_is_not_saved_again(self, service, ports, start_dto):
        existing = Customer(email="laura@example.com")
        ports["customer_repository"].get_by_email.return_value = existing

        tx = service.start_transaction(start_dto)

        assert tx.customer is existing
        ports["customer_repository"].save.assert_not_called()


# ---------------------------------------------------------------------------
# finish_transaction_with_card
# ---------------------------------------------------------------------------


class TestFinish:
    def test_approved_calls_ports_in_order(self, service, ports, card):
        tx = _pending_transaction(ports)

        service.finish_transaction_with_card(tx.id, card)

        gateway = ports["payment_gateway"]
        gateway.tokenize_card.assert_called_once_with(card)
        gateway.charge.assert_called_once_with(tx, gateway.tokenize_card.return_value)
        cas = ports["transaction_repository"].compare_and_set_status
        assert cas.call_args.kwargs["gateway_transaction_id"] == "gw-1"
        assert cas.call_args.kwargs["new"].name == TransactionStatusName.APPROVED
        ports["product_repository"].decrement_stock_if_available.assert_called_once_with(
            str(tx.product_id), 2
        )

    def test_declined_does_not_decrement(self, service, ports, card):
        tx = _pending_transaction(ports)
        ports["payment_gateway"].charge.return_value = ChargeResult("gw-2", "DECLINED")

        service.finish_transaction_with_card(tx.id, card)

        ports["product_repository"].decrement_stock_if_available.assert_not_called()

    def test_not_found_skips_gateway(self, service, ports, card):
        ports["transaction_repository"].get_by_id.return_value = None

        with pytest.raises(TransactionNotFound):
            service.finish_transaction_with_card(uuid4(), card)
        ports["payment_gateway"].tokenize_card.assert_not_called()

    @pytest.mark.parametrize(
        "status_name",
        [
            TransactionStatusName.APPROVED,
            TransactionStatusName.DECLINED,
            TransactionStatusName.VOIDED,
            TransactionStatusName.ERROR,
        ],
    )
    def test_terminal_transaction_skips_gateway(self, service, ports, card, status_name):
        tx = _pending_transaction(ports, status_name=status_name)

        with pytest.raises(TransactionAlreadyFinished):
            service.finish_transaction_with_card(tx.id, card)
        ports["payment_gateway"].tokenize_card.assert_not_called()
        ports["transaction_repository"].compare_and_set_status.assert_not_called()

    def test_lost_compare_and_set_does_not_decrement(self, service, ports, card):
        tx = _pending_transaction(ports)
        ports["transaction_repository"].compare_and_set_status.return_value = False

        with pytest.raises(TransactionAlreadyFinished):
            service.finish_transaction_with_card(tx.id, card)
        ports["product_repository"].decrement_stock_if_available.assert_not_called()

    def test_gateway_error_leaves_status_alone(self, service, ports, card):
        tx = _pending_transaction(ports)
        ports["payment_gateway"].charge.side_effect = GatewayError("timeout")

        with pytest.raises(GatewayError):
            service.finish_transaction_with_card(tx.id, card)
        ports["transaction_repository"].compare_and_set_status.assert_not_called()

    def test_transition_outside_state_machine_is_not_written(
        self, service, ports, card, monkeypatch
    ):
        tx = _pending_transaction(ports)
        monkeypatch.setitem(
            models.VALID_TRANSITIONS,
            TransactionStatusName.PENDING,
            {TransactionStatusName.DECLINED},
        )

        with pytest.raises(TransactionAlreadyFinished):
            service.finish_transaction_with_card(tx.id, card)
        ports["transaction_repository"].compare_and_set_status.assert_not_called()
        ports["product_repository"].decrement_stock_if_available.assert_not_called()

    def test_error_transition_checked_before_stock_failure_write(
        self, service, ports, card, monkeypatch
    ):
        tx = _pending_transaction(ports)
        ports["product_repository"].get_by_id.return_value.stock_quantity = 0
        monkeypatch.setitem(
            models.VALID_TRANSITIONS,
            TransactionStatusName.PENDING,
            {TransactionStatusName.APPROVED},
        )

        with pytest.raises(TransactionAlreadyFinished):
            service.finish_transaction_with_card(tx.id, card)
        ports["transaction_repository"].compare_and_set_status.assert_not_called()
        ports["payment_gateway"].tokenize_card.assert_not_called()

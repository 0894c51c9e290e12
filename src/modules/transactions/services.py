"""Order transaction service layer (Use Cases).

Orchestrates the two-phase checkout:

- ``start_transaction``: validate stock, get-or-create the customer,
  persist the delivery and a PENDING transaction.  Stock is not touched.
- ``finish_transaction_with_card``: tokenize and charge the card, then
  move the transaction out of PENDING with a compare-and-set and, when
  approved, decrement stock exactly once.

The gateway call happens outside any database transaction.  Writes that
follow a charge are wrapped so a local failure surfaces as
``PersistenceError`` carrying the gateway transaction id for manual
reconciliation; no automatic refund is attempted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from modules.customers.models import Customer
from modules.deliveries.exceptions import InvalidDeliveryFee
from modules.deliveries.models import Delivery
from modules.transactions.constants import TransactionStatusName, map_gateway_status
from modules.transactions.events import (
    OrderTransactionFinished,
    OrderTransactionStarted,
    StockReconciliationRequired,
)
from modules.transactions.exceptions import (
    GatewayError,
    InsufficientStock,
    PersistenceError,
    ProductNotFound,
    TransactionAlreadyFinished,
    TransactionNotFound,
    TransactionStatusNotFound,
)
from modules.transactions.models import OrderTransaction, TransactionStatus

if TYPE_CHECKING:
    from modules.customers.dtos import CreateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.deliveries.repositories.interfaces import IDeliveryRepository
    from modules.payments.gateway.port import (
        Acceptance,
        ChargeResult,
        IPaymentGateway,
    )
    from modules.products.repositories.interfaces import IProductRepository
    from modules.transactions.dtos import CardDTO, StartTransactionDTO
    from modules.transactions.repositories.interfaces import (
        IOrderTransactionRepository,
        ITransactionStatusRepository,
    )

logger = structlog.get_logger(__name__)


class OrderTransactionService:
    """Application service for the checkout use-cases.

    Receives every port via constructor injection (DIP).  ``iva_rate``
    defaults to the ``CHECKOUT_IVA_RATE`` setting.
    """

    def __init__(
        self,
        transaction_repository: IOrderTransactionRepository,
        status_repository: ITransactionStatusRepository,
        product_repository: IProductRepository,
        customer_repository: ICustomerRepository,
        delivery_repository: IDeliveryRepository,
        payment_gateway: IPaymentGateway,
        iva_rate: Optional[Decimal] = None,
    ) -> None:
        self._transaction_repo = transaction_repository
        self._status_repo = status_repository
        self._product_repo = product_repository
        self._customer_repo = customer_repository
        self._delivery_repo = delivery_repository
        self._gateway = payment_gateway
        self._iva_rate = (
            iva_rate
            if iva_rate is not None
            else Decimal(str(settings.CHECKOUT_IVA_RATE))
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_transaction(self, dto: StartTransactionDTO) -> OrderTransaction:
        """Create a PENDING order transaction.

        Steps:
        1. Load the product and check stock (no writes on failure).
        2. Get-or-create the customer by email.
        3. Persist the delivery (fee assigned by the delivery repository).
        4. Compute the total.
        5. Resolve the PENDING status.
        6. Persist the transaction with an ``OrderTransactionStarted`` event.

        Steps 2-6 share one database transaction.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientStock: stock is below the requested quantity.
            TransactionStatusNotFound: the status registry is not seeded.
            PersistenceError: the database failed while writing, or the
                delivery fee policy returned an invalid fee.
        """
        log = logger.bind(product_id=str(dto.product_id), quantity=dto.quantity)

        product = self._product_repo.get_by_id(str(dto.product_id))
        if product is None:
            log.warning("order_transaction.product_not_found")
            raise ProductNotFound(f"Product {dto.product_id} not found.")
        if not product.has_stock_for(dto.quantity):
            log.warning(
                "order_transaction.insufficient_stock",
                available=product.stock_quantity,
            )
            raise InsufficientStock(
                f"Product {product.id}: requested {dto.quantity}, "
                f"available {product.stock_quantity}."
            )

        try:
            with transaction.atomic():
                customer = self._get_or_create_customer(dto.customer)
                delivery = self._delivery_repo.save(
                    Delivery(**dto.delivery.model_dump())
                )
                total = OrderTransaction.compute_total(
                    quantity=dto.quantity,
                    unit_price=product.price,
                    fee=delivery.fee,
                    iva=self._iva_rate,
                )
                pending = self._status_repo.get_by_name(TransactionStatusName.PENDING)

                order_transaction = OrderTransaction(
                    product=product,
                    customer=customer,
                    delivery=delivery,
                    quantity=dto.quantity,
                    iva=self._iva_rate,
                    total=total,
                    status=pending,
                )
                order_transaction.add_domain_event(
                    OrderTransactionStarted(
                        aggregate_id=order_transaction.id,
                        product_id=str(product.id),
                        quantity=dto.quantity,
                        total=total,
                    )
                )
                order_transaction = self._transaction_repo.save(order_transaction)
        except InvalidDeliveryFee as exc:
            log.error("order_transaction.invalid_delivery_fee", error=str(exc))
            raise PersistenceError(f"Could not quote the delivery: {exc}") from exc
        except DatabaseError as exc:
            log.error("order_transaction.start_persistence_failed", exc_info=True)
            raise PersistenceError("Could not persist the order transaction.") from exc

        log.info(
            "order_transaction.started",
            transaction_id=str(order_transaction.id),
            customer_id=str(customer.id),
            total=total,
        )
        return order_transaction

    def finish_transaction_with_card(
        self, transaction_id: UUID | str, card: CardDTO
    ) -> OrderTransaction:
        """Charge the card and move the transaction to a terminal status.

        Raises:
            TransactionNotFound: unknown id (the gateway is not called).
            TransactionAlreadyFinished: not PENDING, or a concurrent finish
                won the compare-and-set.
            InsufficientStock: stock ran out since start; status set to ERROR
                and the gateway is not called.
            GatewayError: tokenization or charge failed; status untouched.
            PersistenceError: the database failed while recording the outcome.
        """
        log = logger.bind(transaction_id=str(transaction_id))

        order_transaction = self._transaction_repo.get_by_id(str(transaction_id))
        if order_transaction is None:
            log.warning("order_transaction.not_found")
            raise TransactionNotFound(f"Order transaction {transaction_id} not found.")

        pending = order_transaction.status
        if order_transaction.is_terminal:
            log.warning("order_transaction.already_finished", status=pending.name)
            raise TransactionAlreadyFinished(
                f"Order transaction {transaction_id} is already {pending.name}."
            )

        product = self._product_repo.get_by_id(str(order_transaction.product_id))
        if product is None or not product.has_stock_for(order_transaction.quantity):
            self._fail_for_missing_stock(order_transaction, pending)

        try:
            tokenized_card = self._gateway.tokenize_card(card)
            result = self._gateway.charge(order_transaction, tokenized_card)
        except GatewayError as exc:
            log.warning(
                "order_transaction.gateway_failed",
                error=str(exc),
                gateway_transaction_id=exc.gateway_transaction_id,
            )
            raise

        log = log.bind(gateway_transaction_id=result.gateway_transaction_id)
        new_status_name = map_gateway_status(result.gateway_status)
        if new_status_name is None:
            log.warning("order_transaction.gateway_still_pending")
            raise GatewayError(
                f"Gateway transaction {result.gateway_transaction_id} is still PENDING.",
                gateway_transaction_id=result.gateway_transaction_id,
            )

        self._ensure_transition(order_transaction, new_status_name)

        try:
            with transaction.atomic():
                new_status = self._status_repo.get_by_name(new_status_name)
                order_transaction.add_domain_event(
                    OrderTransactionFinished(
                        aggregate_id=order_transaction.id,
                        status=new_status_name,
                        payment_gateway_transaction_id=result.gateway_transaction_id,
                    )
                )
                won = self._transaction_repo.compare_and_set_status(
                    order_transaction,
                    expected=pending,
                    new=new_status,
                    gateway_transaction_id=result.gateway_transaction_id,
                )
                if won and new_status_name == TransactionStatusName.APPROVED:
                    self._decrement_stock(order_transaction, result)
        except (DatabaseError, TransactionStatusNotFound) as exc:
            log.error(
                "order_transaction.reconciliation_required",
                gateway_status=result.gateway_status,
                exc_info=True,
            )
            raise PersistenceError(
                f"Charge {result.gateway_transaction_id} succeeded at the gateway "
                f"but could not be recorded locally.",
                gateway_transaction_id=result.gateway_transaction_id,
            ) from exc

        if not won:
            # This caller was charged too; the winner owns the transaction.
            log.error(
                "order_transaction.reconciliation_required",
                reason="finish_conflict",
                gateway_status=result.gateway_status,
            )
            raise TransactionAlreadyFinished(
                f"Order transaction {transaction_id} was finished concurrently."
            )

        log.info("order_transaction.finished", status=new_status_name)
        return order_transaction

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: UUID | str) -> OrderTransaction:
        """Retrieve a transaction by ID.

        Raises:
            TransactionNotFound: if no transaction matches.
        """
        order_transaction = self._transaction_repo.get_by_id(str(transaction_id))
        if order_transaction is None:
            raise TransactionNotFound(f"Order transaction {transaction_id} not found.")
        return order_transaction

    def get_acceptance_terms(self) -> List[Acceptance]:
        return self._gateway.get_acceptance_terms()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_or_create_customer(self, dto: CreateCustomerDTO) -> Customer:
        existing = self._customer_repo.get_by_email(dto.email)
        if existing is not None:
            return existing

        customer = Customer(
            name=dto.name,
            last_name=dto.last_name,
            dni=dto.dni,
            phone=dto.phone,
            email=dto.email,
        )
        try:
            return self._customer_repo.save(customer)
        except IntegrityError:
            # Lost the insert race on the unique email.
            winner = self._customer_repo.get_by_email(dto.email)
            if winner is None:
                raise
            logger.info("order_transaction.customer_insert_race", customer_id=str(winner.id))
            return winner

    def _ensure_transition(
        self, order_transaction: OrderTransaction, new_status_name: str
    ) -> None:
        if not order_transaction.can_transition_to(new_status_name):
            logger.warning(
                "order_transaction.invalid_transition",
                transaction_id=str(order_transaction.id),
                status=order_transaction.status_name,
                new_status=new_status_name,
            )
            raise TransactionAlreadyFinished(
                f"Cannot transition from {order_transaction.status_name} "
                f"to {new_status_name}."
            )

    def _fail_for_missing_stock(
        self, order_transaction: OrderTransaction, pending: TransactionStatus
    ) -> None:
        log = logger.bind(transaction_id=str(order_transaction.id))
        self._ensure_transition(order_transaction, TransactionStatusName.ERROR)
        try:
            with transaction.atomic():
                error_status = self._status_repo.get_by_name(TransactionStatusName.ERROR)
                order_transaction.add_domain_event(
                    OrderTransactionFinished(
                        aggregate_id=order_transaction.id,
                        status=TransactionStatusName.ERROR,
                    )
                )
                won = self._transaction_repo.compare_and_set_status(
                    order_transaction, expected=pending, new=error_status
                )
        except (DatabaseError, TransactionStatusNotFound) as exc:
            log.error("order_transaction.error_status_persistence_failed", exc_info=True)
            raise PersistenceError(
                f"Could not record order transaction {order_transaction.id} as ERROR."
            ) from exc
        if not won:
            raise TransactionAlreadyFinished(
                f"Order transaction {order_transaction.id} was finished concurrently."
            )
        log.warning("order_transaction.stock_exhausted_before_charge")
        raise InsufficientStock(
            f"Product {order_transaction.product_id} no longer has "
            f"{order_transaction.quantity} units in stock."
        )

    def _decrement_stock(
        self, order_transaction: OrderTransaction, result: ChargeResult
    ) -> None:
        """Decrement stock inside a savepoint; never undoes the approval."""
        log = logger.bind(
            transaction_id=str(order_transaction.id),
            product_id=str(order_transaction.product_id),
            gateway_transaction_id=result.gateway_transaction_id,
        )
        reason = ""
        try:
            with transaction.atomic():
                decremented = self._product_repo.decrement_stock_if_available(
                    str(order_transaction.product_id), order_transaction.quantity
                )
            if not decremented:
                reason = "insufficient_stock"
        except DatabaseError as exc:
            reason = f"database_error: {exc}"

        if not reason:
            return

        log.error("order_transaction.stock_reconciliation_required", reason=reason)
        order_transaction.add_domain_event(
            StockReconciliationRequired(
                aggregate_id=order_transaction.id,
                product_id=str(order_transaction.product_id),
                quantity=order_transaction.quantity,
                payment_gateway_transaction_id=result.gateway_transaction_id,
                reason=reason,
            )
        )
        self._transaction_repo.save(order_transaction)

"""Order transaction API views.

Exposes the ``OrderTransactionService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; anything unexpected is logged once and re-raised.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.deliveries.repositories.django_repository import DeliveryDjangoRepository
from modules.payments.gateway import get_payment_gateway
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.transactions.dtos import CardDTO, StartTransactionDTO
from modules.transactions.exceptions import (
    GatewayError,
    InsufficientStock,
    PersistenceError,
    ProductNotFound,
    TransactionAlreadyFinished,
    TransactionNotFound,
    TransactionStatusNotFound,
)
from modules.transactions.repositories.django_repository import (
    OrderTransactionDjangoRepository,
    TransactionStatusDjangoRepository,
)
from modules.transactions.serializers import (
    AcceptanceSerializer,
    CardSerializer,
    OrderTransactionSerializer,
    StartTransactionSerializer,
)
from modules.transactions.services import OrderTransactionService

logger = structlog.get_logger(__name__)


def _detail(message: str, code: int) -> Response:
    return Response({"detail": message}, status=code)


class OrderTransactionViewSet(GenericViewSet):
    """Checkout endpoints: start, finish with card, retrieve.

    Uses ``OrderTransactionService`` with injected repositories and the
    gateway configured by ``PAYMENT_GATEWAY_BACKEND`` (DIP).
    """

    permission_classes = [AllowAny]
    serializer_class = OrderTransactionSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._gateway = get_payment_gateway()
        self._service = OrderTransactionService(
            transaction_repository=OrderTransactionDjangoRepository(),
            status_repository=TransactionStatusDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            delivery_repository=DeliveryDjangoRepository(),
            payment_gateway=self._gateway,
        )

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        finally:
            self._gateway.close()

    def get_throttles(self) -> list[BaseThrottle]:
        """Scope throttling per checkout step."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "transaction_start"
        elif self.action == "finish":
            throttle_scope = "transaction_finish"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/order-transactions/"""
        serializer = StartTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = StartTransactionDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return _detail(str(exc), status.HTTP_400_BAD_REQUEST)

        try:
            order_transaction = self._service.start_transaction(dto)
        except ProductNotFound as exc:
            return _detail(str(exc), status.HTTP_404_NOT_FOUND)
        except InsufficientStock as exc:
            return _detail(str(exc), status.HTTP_409_CONFLICT)
        except (PersistenceError, TransactionStatusNotFound) as exc:
            return _detail(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)
        except Exception:
            logger.exception("order_transaction.start_unexpected_error")
            raise

        out = OrderTransactionSerializer(order_transaction)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order-transactions/{pk}/"""
        try:
            order_transaction = self._service.get_transaction(pk)
        except TransactionNotFound:
            return _detail("Order transaction not found.", status.HTTP_404_NOT_FOUND)
        return Response(OrderTransactionSerializer(order_transaction).data)

    # ------------------------------------------------------------------
    # Finish (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], serializer_class=CardSerializer)
    def finish(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/order-transactions/{pk}/finish/

        Charges the card and returns the transaction in its final status.
        A DECLINED or ERROR outcome is still a 200: the checkout finished.
        """
        serializer = CardSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            card = CardDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            # Card values must not be echoed back.
            errors = exc.errors(
                include_url=False, include_context=False, include_input=False
            )
            return Response({"detail": errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            order_transaction = self._service.finish_transaction_with_card(pk, card)
        except TransactionNotFound:
            return _detail("Order transaction not found.", status.HTTP_404_NOT_FOUND)
        except (TransactionAlreadyFinished, InsufficientStock) as exc:
            return _detail(str(exc), status.HTTP_409_CONFLICT)
        except GatewayError as exc:
            return _detail(str(exc), status.HTTP_502_BAD_GATEWAY)
        except (PersistenceError, TransactionStatusNotFound) as exc:
            return _detail(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)
        except Exception:
            logger.exception("order_transaction.finish_unexpected_error", transaction_id=pk)
            raise

        return Response(OrderTransactionSerializer(order_transaction).data)

    # ------------------------------------------------------------------
    # Acceptance terms
    # ------------------------------------------------------------------

    @action(
        detail=False,
        methods=["get"],
        url_path="acceptance-terms",
        serializer_class=AcceptanceSerializer,
    )
    def acceptance_terms(self, request: Request) -> Response:
        """GET /api/v1/order-transactions/acceptance-terms/"""
        try:
            terms = self._service.get_acceptance_terms()
        except GatewayError as exc:
            return _detail(str(exc), status.HTTP_502_BAD_GATEWAY)
        return Response(AcceptanceSerializer(terms, many=True).data)

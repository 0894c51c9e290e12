"""Wompi payment gateway adapter (httpx).

Flow for a charge:

1. ``GET /merchants/{public_key}`` to fetch the presigned acceptance
   contracts (end-user policy and personal-data authorisation).
2. ``POST /transactions`` with the private key, the integrity signature
   ``sha256(reference + amount_in_cents + currency + integrity_key)`` and
   the customer / shipping data.
3. ``GET /transactions/{id}`` while the gateway still reports ``PENDING``,
   bounded by ``WOMPI_POLL_ATTEMPTS``.

Card tokenisation (``POST /tokens/cards``) is authorised with the public
key.  Raw card data is only ever placed in that request body.
"""

from __future__ import annotations

import hashlib
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import httpx
import structlog
from django.conf import settings

from modules.payments.gateway.port import (
    Acceptance,
    AcceptanceType,
    ChargeResult,
    IPaymentGateway,
    TokenizedCard,
    payment_reference,
)
from modules.transactions.exceptions import GatewayError

if TYPE_CHECKING:
    from modules.transactions.dtos import CardDTO
    from modules.transactions.models import OrderTransaction

logger = structlog.get_logger(__name__)

PENDING = "PENDING"


def integrity_signature(
    reference: str, amount_in_cents: int, currency: str, integrity_key: str
) -> str:
    raw = f"{reference}{amount_in_cents}{currency}{integrity_key}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class WompiGateway(IPaymentGateway):
    """``IPaymentGateway`` backed by the Wompi REST API.

    Every argument defaults to the matching ``WOMPI_*`` setting.  ``client``
    lets callers supply a preconfigured ``httpx.Client`` (tests pass one
    built on ``httpx.MockTransport``) and stays responsible for closing it.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        integrity_key: Optional[str] = None,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        poll_attempts: Optional[int] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_url = (api_url or settings.WOMPI_API_URL).rstrip("/")
        self._public_key = public_key if public_key is not None else settings.WOMPI_PUBLIC_KEY
        self._private_key = (
            private_key if private_key is not None else settings.WOMPI_PRIVATE_KEY
        )
        self._integrity_key = (
            integrity_key if integrity_key is not None else settings.WOMPI_INTEGRITY_KEY
        )
        self._poll_interval = (
            poll_interval if poll_interval is not None else settings.WOMPI_POLL_INTERVAL
        )
        self._poll_attempts = (
            poll_attempts if poll_attempts is not None else settings.WOMPI_POLL_ATTEMPTS
        )
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=self._api_url,
            timeout=timeout if timeout is not None else settings.WOMPI_TIMEOUT,
        )
        self._sleep = sleep

    def close(self) -> None:
        """Close the HTTP client unless the caller supplied it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> WompiGateway:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # IPaymentGateway
    # ------------------------------------------------------------------

    def get_acceptance_terms(self) -> List[Acceptance]:
        body = self._request("GET", f"/merchants/{self._public_key}")
        data = body.get("data", body)
        if not isinstance(data, dict):
            raise GatewayError("Malformed merchant response from Wompi.")

        terms = []
        for key, value in data.items():
            if not key.startswith("presigned_") or not isinstance(value, dict):
                continue
            try:
                terms.append(
                    Acceptance(
                        acceptance_token=value["acceptance_token"],
                        permalink=value.get("permalink", ""),
                        type=value["type"],
                    )
                )
            except KeyError as exc:
                raise GatewayError(f"Malformed acceptance contract: {key}") from exc
        return terms

    def tokenize_card(self, card: CardDTO) -> TokenizedCard:
        body = self._request(
            "POST",
            "/tokens/cards",
            key=self._public_key,
            json={
                "number": card.number.get_secret_value(),
                "cvc": card.cvc.get_secret_value(),
                "exp_month": card.exp_month,
                "exp_year": card.exp_year,
                "card_holder": card.card_holder,
            },
        )
        data = self._data(body)
        token = data.get("id")
        if not token:
            raise GatewayError("Wompi did not return a card token.")

        tokenized = TokenizedCard(
            token=token,
            brand=data.get("brand", ""),
            last_four=data.get("last_four", ""),
        )
        logger.info(
            "payment_gateway.card_tokenized",
            brand=tokenized.brand,
            last_four=tokenized.last_four,
        )
        return tokenized

    def charge(
        self, transaction: OrderTransaction, tokenized_card: TokenizedCard
    ) -> ChargeResult:
        acceptances = {term.type: term for term in self.get_acceptance_terms()}
        try:
            end_user_policy = acceptances[AcceptanceType.END_USER_POLICY]
            personal_data = acceptances[AcceptanceType.PERSONAL_DATA_AUTH]
        except KeyError as exc:
            raise GatewayError(f"Missing acceptance contract {exc.args[0]}.") from exc

        reference = payment_reference(transaction.id)
        currency = settings.CHECKOUT_CURRENCY
        amount_in_cents = int(transaction.total)
        customer = transaction.customer
        delivery = transaction.delivery

        payload: Dict[str, Any] = {
            "acceptance_token": end_user_policy.acceptance_token,
            "acceptance_personal_auth": personal_data.acceptance_token,
            "amount_in_cents": amount_in_cents,
            "currency": currency,
            "signature": integrity_signature(
                reference, amount_in_cents, currency, self._integrity_key
            ),
            "customer_email": customer.email,
            "reference": reference,
            "payment_method": {
                "type": "CARD",
                "token": tokenized_card.token,
                "installments": 1,
            },
            "customer_data": {
                "phone_number": customer.phone,
                "full_name": customer.full_name,
                "legal_id": customer.dni,
                "legal_id_type": "CC",
            },
            "shipping_address": {
                "address_line_1": delivery.address,
                "country": delivery.country,
                "region": delivery.region,
                "city": delivery.city,
                "name": delivery.recipient_name,
                "phone_number": customer.phone,
                "postal_code": delivery.postal_code,
            },
        }

        log = logger.bind(reference=reference, amount_in_cents=amount_in_cents)
        data = self._data(
            self._request("POST", "/transactions", key=self._private_key, json=payload)
        )
        gateway_id, gateway_status = self._parse_transaction(data)
        log = log.bind(gateway_transaction_id=gateway_id)
        log.info("payment_gateway.charge_sent", gateway_status=gateway_status)

        attempts = 0
        while gateway_status == PENDING:
            if attempts >= self._poll_attempts:
                log.warning("payment_gateway.poll_exhausted", attempts=attempts)
                raise GatewayError(
                    f"Wompi transaction {gateway_id} still PENDING after "
                    f"{attempts} polls.",
                    gateway_transaction_id=gateway_id,
                )
            self._sleep(self._poll_interval)
            attempts += 1
            data = self._data(self._request("GET", f"/transactions/{gateway_id}"))
            _, gateway_status = self._parse_transaction(data)

        log.info("payment_gateway.charge_completed", gateway_status=gateway_status)
        return ChargeResult(
            gateway_transaction_id=gateway_id, gateway_status=gateway_status
        )

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        key: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {key}"} if key else {}
        try:
            response = self._client.request(method, path, json=json, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "payment_gateway.http_error",
                path=path,
                status_code=exc.response.status_code,
            )
            raise GatewayError(
                f"Wompi rejected {method} {path}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("payment_gateway.transport_error", path=path, error=str(exc))
            raise GatewayError(f"Wompi request {method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError(f"Wompi returned invalid JSON for {path}.") from exc

        if not isinstance(body, dict):
            raise GatewayError(f"Unexpected Wompi payload for {path}.")
        return body

    @staticmethod
    def _data(body: Dict[str, Any]) -> Dict[str, Any]:
        data = body.get("data")
        if not isinstance(data, dict):
            raise GatewayError("Wompi response has no data object.")
        return data

    @staticmethod
    def _parse_transaction(data: Dict[str, Any]) -> tuple[str, str]:
        gateway_id = data.get("id")
        gateway_status = data.get("status")
        if not gateway_id or not gateway_status:
            raise GatewayError("Wompi transaction payload is missing id or status.")
        return str(gateway_id), str(gateway_status).upper()

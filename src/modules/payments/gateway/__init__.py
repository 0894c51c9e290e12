"""Payment gateway adapters and the factory that picks one from settings."""

from __future__ import annotations

from django.conf import settings
from django.utils.module_loading import import_string

from modules.payments.gateway.port import IPaymentGateway


def get_payment_gateway() -> IPaymentGateway:
    """Instantiate the adapter named by ``PAYMENT_GATEWAY_BACKEND``."""
    gateway_class = import_string(settings.PAYMENT_GATEWAY_BACKEND)
    return gateway_class()

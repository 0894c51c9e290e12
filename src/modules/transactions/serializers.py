"""Order transaction DRF serializers for API input/output.

Input serializers validate the HTTP payload; the view then builds the
Pydantic DTOs from ``dtos.py`` that the Service Layer consumes.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.serializers import CustomerInputSerializer, CustomerSerializer
from modules.deliveries.serializers import DeliveryInputSerializer, DeliverySerializer
from modules.transactions.models import OrderTransaction

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class StartTransactionSerializer(serializers.Serializer):
    """Validates the checkout start payload."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    customer = CustomerInputSerializer()
    delivery = DeliveryInputSerializer()


class CardSerializer(serializers.Serializer):
    """Validates the card payload of the finish step.

    Values are handed straight to ``CardDTO``; they are never echoed back.
    """

    number = serializers.CharField(min_length=13, max_length=23, write_only=True)
    cvc = serializers.CharField(min_length=3, max_length=4, write_only=True)
    exp_month = serializers.CharField(max_length=2)
    exp_year = serializers.CharField(min_length=2, max_length=2)
    card_holder = serializers.CharField(max_length=255)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class TransactionProductSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    price = serializers.IntegerField(read_only=True)
    image = serializers.CharField(read_only=True)


class OrderTransactionSerializer(serializers.ModelSerializer):
    """Read serializer for an order transaction with its relations."""

    status = serializers.CharField(source="status.name", read_only=True)
    product = TransactionProductSerializer(read_only=True)
    customer = CustomerSerializer(read_only=True)
    delivery = DeliverySerializer(read_only=True)

    class Meta:
        model = OrderTransaction
        fields = [
            "id",
            "status",
            "payment_gateway_transaction_id",
            "quantity",
            "iva",
            "total",
            "product",
            "customer",
            "delivery",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AcceptanceSerializer(serializers.Serializer):
    acceptance_token = serializers.CharField(read_only=True)
    permalink = serializers.CharField(read_only=True)
    type = serializers.CharField(read_only=True)

"""Customer DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
It handles HTTP-level concerns: request parsing and response rendering.
Business logic lives in the Service Layer, which receives Pydantic DTOs
from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import Customer


class CustomerInputSerializer(serializers.Serializer):
    """Validates customer payloads (standalone or nested in a checkout)."""

    name = serializers.CharField(max_length=255)
    last_name = serializers.CharField(max_length=255)
    dni = serializers.CharField(max_length=20)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField(max_length=254)


class CustomerSerializer(serializers.ModelSerializer):
    """Read serializer for the Customer resource."""

    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "last_name",
            "dni",
            "phone",
            "email",
            "created_at",
        ]
        read_only_fields = fields

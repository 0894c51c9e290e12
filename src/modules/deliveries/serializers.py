"""Delivery DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.deliveries.models import Delivery


class DeliveryInputSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=255)
    country = serializers.CharField(max_length=2, default="CO")
    city = serializers.CharField(max_length=120)
    region = serializers.CharField(max_length=120)
    postal_code = serializers.CharField(max_length=20)
    recipient_name = serializers.CharField(max_length=255)


class DeliverySerializer(serializers.ModelSerializer):
    class Meta:
        model = Delivery
        fields = [
            "id",
            "address",
            "country",
            "city",
            "region",
            "postal_code",
            "recipient_name",
            "fee",
        ]
        read_only_fields = fields

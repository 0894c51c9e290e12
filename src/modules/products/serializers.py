"""Product DRF serializers for API output.

The catalog is read-only over HTTP; products are loaded with the
``seed_data`` management command or the Django admin.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "stock_quantity",
            "image",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

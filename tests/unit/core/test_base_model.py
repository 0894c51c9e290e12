"""Unit tests for BaseModel, exercised through the Product model.

Covers:
- UUIDv7 primary key.
- created_at written once; updated_at refreshed on every save,
  including saves with ``update_fields``.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.products.models import Product

pytestmark = pytest.mark.unit


def _make_product(**overrides) -> Product:
    defaults = {"name": "Grip Tape Sheet", "price": 39900, "stock_quantity": 5}
    defaults.update(overrides)
    return Product.objects.create(**defaults)


class TestBaseModel:
    def test_id_is_uuid_version_7(self):
        product = _make_product()
        assert isinstance(product.id, uuid.UUID)
        assert product.id.version == 7

    def test_ids_are_unique(self):
        a = _make_product(name="a")
        b = _make_product(name="b")
        assert a.id != b.id

    def test_id_is_not_editable(self):
        assert Product._meta.get_field("id").editable is False

    def test_created_at_does_not_change_on_save(self):
        start = timezone.now()
        with freeze_time(start) as frozen:
            product = _make_product()
            frozen.tick(timedelta(minutes=5))
            product.name = "Renamed"
            product.save()

        product.refresh_from_db()
        assert product.created_at == start
        assert product.updated_at == start + timedelta(minutes=5)

    def test_save_with_update_fields_includes_updated_at(self):
        start = timezone.now()
        with freeze_time(start) as frozen:
            product = _make_product()
            frozen.tick(timedelta(seconds=30))
            product.stock_quantity = 4
            product.save(update_fields=["stock_quantity"])

        product.refresh_from_db()
        assert product.stock_quantity == 4
        assert product.updated_at == start + timedelta(seconds=30)

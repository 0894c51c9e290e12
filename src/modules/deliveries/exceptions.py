"""Delivery domain exceptions."""

from __future__ import annotations


class InvalidDeliveryFee(Exception):
    """The fee policy produced a negative amount."""

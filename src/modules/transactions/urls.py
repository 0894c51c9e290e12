"""Order transaction URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.transactions.views import OrderTransactionViewSet

router = DefaultRouter(trailing_slash=True)
router.register(
    "order-transactions", OrderTransactionViewSet, basename="order-transaction"
)

urlpatterns = router.urls

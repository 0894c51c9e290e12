"""Admin registrations used by operators for manual reconciliation."""

from django.contrib import admin

from modules.transactions.models import OrderTransaction, TransactionStatus


@admin.register(TransactionStatus)
class TransactionStatusAdmin(admin.ModelAdmin):
    list_display = ["name", "id"]


@admin.register(OrderTransaction)
class OrderTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "status",
        "payment_gateway_transaction_id",
        "product",
        "quantity",
        "total",
        "created_at",
    ]
    list_filter = ["status__name"]
    search_fields = ["id", "payment_gateway_transaction_id", "customer__email"]
    list_select_related = ["status", "product"]
    readonly_fields = [
        "product",
        "customer",
        "delivery",
        "quantity",
        "iva",
        "total",
        "created_at",
        "updated_at",
    ]

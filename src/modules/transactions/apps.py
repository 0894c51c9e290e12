from django.apps import AppConfig


class TransactionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.transactions"
    label = "transactions"

    def ready(self) -> None:
        from modules.transactions.events import (
            OrderTransactionFinished,
            OrderTransactionStarted,
            StockReconciliationRequired,
        )
        from modules.transactions.handlers import (
            order_transaction_finished_handler,
            order_transaction_started_handler,
            stock_reconciliation_required_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderTransactionStarted, order_transaction_started_handler)
        event_bus.subscribe(OrderTransactionFinished, order_transaction_finished_handler)
        event_bus.subscribe(
            StockReconciliationRequired, stock_reconciliation_required_handler
        )

"""Admin registration for the transactional outbox."""

from django.contrib import admin

from modules.core.models import OutboxEvent


@admin.register(OutboxEvent)
class OutboxEventAdmin(admin.ModelAdmin):
    list_display = ["event_type", "aggregate_id", "status", "retry_count", "created_at"]
    list_filter = ["status", "event_type"]
    search_fields = ["aggregate_id", "event_type"]
    readonly_fields = ["event_type", "aggregate_id", "topic", "payload", "created_at"]

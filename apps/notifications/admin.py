from django.contrib import admin

from .models import DeliveryAttempt, MessageTemplate, Notification


class DeliveryAttemptInline(admin.TabularInline):
    model = DeliveryAttempt
    extra = 0
    fields = ("started_at", "finished_at", "ok", "error")
    readonly_fields = fields
    can_delete = False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("template", "channel", "recipient", "order", "event", "status", "provider", "tries", "created_at")
    list_filter = ("channel", "status", "provider", "template")
    search_fields = ("recipient", "order__order_number", "dedupe_key")
    raw_id_fields = ("order",)
    readonly_fields = ("status", "provider", "provider_message_id", "error", "tries", "sent_at")
    inlines = [DeliveryAttemptInline]


@admin.register(MessageTemplate)
class MessageTemplateAdmin(admin.ModelAdmin):
    list_display = ("code", "channel", "subject", "updated_at")
    list_filter = ("channel",)
    search_fields = ("code", "subject", "body_text")

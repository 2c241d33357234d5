"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Business management
- Conversation management with recent messages inline
- Message moderation
"""

from django.contrib import admin

from chat.models import Business, Conversation, Message


class MessageInline(admin.TabularInline):
    """Inline display of messages in conversation admin."""

    model = Message
    extra = 0
    fields = ["sender_type", "sender_name", "message_type", "content", "status", "timestamp"]
    readonly_fields = ["timestamp"]
    ordering = ["-timestamp"]


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """Admin interface for Business model."""

    list_display = ["id", "name", "status", "created_at", "updated_at"]
    list_filter = ["status"]
    search_fields = ["id", "name"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["name"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "business",
        "customer_name",
        "customer_phone",
        "status",
        "created_at",
        "updated_at",
    ]
    list_filter = ["status", "business", "created_at"]
    search_fields = ["customer_name", "customer_phone", "id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["business"]
    inlines = [MessageInline]
    ordering = ["-updated_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender_type",
        "sender_name",
        "message_type",
        "content_preview",
        "status",
        "timestamp",
    ]
    list_filter = ["sender_type", "message_type", "status", "timestamp"]
    search_fields = ["content", "sender_name", "file_name"]
    readonly_fields = ["timestamp"]
    raw_id_fields = ["conversation"]
    ordering = ["-timestamp"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content (or the attachment name) for list display."""
        text = obj.content or obj.file_name or ""
        max_length = 50
        if len(text) > max_length:
            return text[:max_length] + "..."
        return text

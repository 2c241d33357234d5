"""
Create the businesses, conversations and messages tables.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Business",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.CharField(
                        help_text="Externally chosen slug identifying the business",
                        max_length=100,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name shown to customers",
                        max_length=100,
                    ),
                ),
                (
                    "logo_url",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Path or URL of the business logo",
                        max_length=500,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("online", "Online"),
                            ("offline", "Offline"),
                            ("busy", "Busy"),
                            ("away", "Away"),
                        ],
                        default="online",
                        help_text="Availability shown to customers",
                        max_length=10,
                    ),
                ),
            ],
            options={
                "db_table": "businesses",
                "ordering": ["name"],
                "verbose_name_plural": "businesses",
            },
        ),
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "customer_name",
                    models.CharField(
                        help_text="Customer display name",
                        max_length=100,
                    ),
                ),
                (
                    "customer_phone",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Customer contact number",
                        max_length=30,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("resolved", "Resolved"),
                            ("closed", "Closed"),
                            ("archived", "Archived"),
                        ],
                        db_index=True,
                        default="active",
                        help_text="Lifecycle state of the conversation",
                        max_length=10,
                    ),
                ),
                (
                    "business",
                    models.ForeignKey(
                        help_text="Business this conversation belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="conversations",
                        to="chat.business",
                    ),
                ),
            ],
            options={
                "db_table": "conversations",
                "ordering": ["-updated_at"],
                "indexes": [
                    models.Index(
                        fields=["business", "status"],
                        name="conv_business_status_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "sender_type",
                    models.CharField(
                        choices=[("customer", "Customer"), ("business", "Business")],
                        help_text="Whether the customer or the business sent this message",
                        max_length=10,
                    ),
                ),
                (
                    "sender_name",
                    models.CharField(
                        help_text="Sender display name",
                        max_length=100,
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        blank=True,
                        help_text="Text content (null for attachment messages)",
                        null=True,
                    ),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[("text", "Text"), ("image", "Image"), ("file", "File")],
                        default="text",
                        help_text="Kind of message content",
                        max_length=10,
                    ),
                ),
                (
                    "file_url",
                    models.CharField(
                        blank=True,
                        help_text="URL of the attachment, if any",
                        max_length=500,
                        null=True,
                    ),
                ),
                (
                    "file_name",
                    models.CharField(
                        blank=True,
                        help_text="Original filename of the attachment",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("sent", "Sent"),
                            ("delivered", "Delivered"),
                            ("read", "Read"),
                            ("failed", "Failed"),
                        ],
                        default="sent",
                        help_text="Delivery status (only moves forward)",
                        max_length=10,
                    ),
                ),
                (
                    "timestamp",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="When the message was sent",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
            ],
            options={
                "db_table": "messages",
                "ordering": ["timestamp", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "timestamp"],
                        name="msg_conversation_time_idx",
                    ),
                    models.Index(
                        fields=["conversation", "sender_type", "status"],
                        name="msg_unread_lookup_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(content__isnull=False, file_url__isnull=True)
                            | models.Q(content__isnull=True, file_url__isnull=False)
                        ),
                        name="msg_content_xor_attachment",
                    )
                ],
            },
        ),
    ]

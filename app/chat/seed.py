"""
Demo data for a fresh database.

Creates the "tech-store" business with five customer conversations, each
opened by one customer message. The sentinel business doubles as the guard:
if it exists, nothing is written, so running migrate repeatedly seeds once.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from chat.constants import SEED_CONFIG
from chat.models import (
    Business,
    BusinessStatus,
    Conversation,
    Message,
    MessageType,
    SenderType,
)

logger = logging.getLogger(__name__)


def seed_demo_data(using: str = "default") -> bool:
    """
    Seed the demo business if the sentinel is absent.

    Returns:
        True if data was written, False if the sentinel already existed.
    """
    if Business.objects.using(using).filter(pk=SEED_CONFIG.SENTINEL_BUSINESS_ID).exists():
        logger.debug("Demo data already present, skipping seed")
        return False

    now = timezone.now()
    with transaction.atomic(using=using):
        business = Business.objects.using(using).create(
            id=SEED_CONFIG.SENTINEL_BUSINESS_ID,
            name=SEED_CONFIG.BUSINESS_NAME,
            logo_url=SEED_CONFIG.BUSINESS_LOGO_URL,
            status=BusinessStatus.ONLINE,
        )
        for name, phone, status, opening, minutes_ago, message_status in SEED_CONFIG.CONVERSATIONS:
            conversation = Conversation.objects.using(using).create(
                business=business,
                customer_name=name,
                customer_phone=phone,
                status=status,
            )
            Message.objects.using(using).create(
                conversation=conversation,
                sender_type=SenderType.CUSTOMER,
                sender_name=name,
                content=opening,
                message_type=MessageType.TEXT,
                status=message_status,
                timestamp=now - timedelta(minutes=minutes_ago),
            )

    logger.info(
        f"Seeded demo business {business.id} with "
        f"{len(SEED_CONFIG.CONVERSATIONS)} conversations"
    )
    return True

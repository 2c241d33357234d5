"""
Django signals for the chat app.

Provides handlers for:
- Seeding the demo business after migrate
"""

from __future__ import annotations

import logging

from django.db.models.signals import post_migrate

logger = logging.getLogger(__name__)


def connect_signals(app_config):
    """
    Connect all signal handlers.

    Called from ChatConfig.ready() so the handler is bound to this app's
    post_migrate only.
    """
    post_migrate.connect(
        seed_after_migrate,
        sender=app_config,
        dispatch_uid="chat_seed_demo_data",
    )
    logger.debug("Chat signals connected")


def seed_after_migrate(sender, using="default", **kwargs) -> None:
    from chat.constants import seed_demo_data_enabled
    from chat.seed import seed_demo_data

    if not seed_demo_data_enabled():
        return
    seed_demo_data(using=using)

"""
Base service layer patterns for business logic encapsulation.

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.
Failures are raised as ``core.exceptions`` errors and rendered into
envelopes at the API boundary.

Usage:
    from core.services import BaseService

    class ConversationService(BaseService):
        @classmethod
        async def resolve(cls, conversation_id: int) -> bool:
            changed = await ChatStore.update_conversation_status(
                conversation_id, "resolved"
            )
            cls.get_logger().info(f"Resolved conversation {conversation_id}")
            return changed
"""

from __future__ import annotations

import logging


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Raise core.exceptions errors for failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

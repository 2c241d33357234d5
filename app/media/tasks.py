"""
Celery tasks for attachment housekeeping.

Usage:
    from media.tasks import cleanup_old_uploads

    cleanup_old_uploads.delay()

Scheduled daily through CELERY_BEAT_SCHEDULE in config.settings.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from media.constants import upload_retention_days
from media.storage import UploadStorage

logger = logging.getLogger(__name__)


@shared_task
def cleanup_old_uploads(max_age_days: int | None = None) -> dict:
    """
    Remove uploads older than the retention window.

    Files are judged by modification time. Failures on individual files are
    collected and reported; the sweep continues past them.

    Args:
        max_age_days: Override for UPLOAD_RETENTION_DAYS.

    Returns:
        Dict with the number of files removed and any errors.
    """
    days = max_age_days if max_age_days is not None else upload_retention_days()
    threshold = timezone.now() - timedelta(days=days)
    storage = UploadStorage()

    removed_count = 0
    errors = []

    for path in storage.expired(threshold):
        try:
            path.unlink()
            removed_count += 1
            logger.info(
                "Removed expired upload",
                extra={
                    "event_type": "upload_cleanup",
                    "upload_name": path.name,
                },
            )
        except OSError as e:
            errors.append(f"Failed to remove {path.name}: {e}")

    logger.info(
        "Upload cleanup complete",
        extra={
            "event_type": "upload_cleanup_complete",
            "removed_count": removed_count,
            "error_count": len(errors),
            "max_age_days": days,
        },
    )

    return {
        "removed_count": removed_count,
        "errors": errors,
    }

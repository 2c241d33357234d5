"""
Shared fixtures for every app's tests.

Provides:
- api_client: DRF test client
- Isolation for uploads (MEDIA_ROOT under tmp_path), the cache used by
  throttling, and the in-memory channel layer
"""

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture
def api_client() -> APIClient:
    """Return an API client (the API has no authentication)."""
    return APIClient()


@pytest.fixture(autouse=True)
def upload_dir(settings, tmp_path):
    """Store uploads in a per-test directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    settings.MEDIA_ROOT = root
    return root


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Clear the cache and drop channel-layer groups between tests."""
    cache.clear()
    yield
    layer = get_channel_layer()
    if hasattr(layer, "flush"):
        async_to_sync(layer.flush)()

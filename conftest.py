"""
Root pytest configuration for the Django project.

This module configures pytest-django and assigns test categories.
Shared fixtures live in app/conftest.py; app-specific fixtures are defined in
each app's tests/conftest.py.
"""

import os

import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Adjust settings for the test run."""
    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {"anon": None}

    # Tests build their own data; the demo seed runs only where a test asks
    settings.CHAT_SEED_DEMO_DATA = False


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_consumers.py, test_services.py, test_tasks.py → integration
    - test_models.py, test_serializers.py, test_validators.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_consumers.py",
        "test_services.py",
        "test_tasks.py",
        "test_store.py",
        "test_seed.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_validators.py",
        "test_exceptions.py",
        "test_helpers.py",
        "test_realtime.py",
        "test_api.py",
        "test_socket_service.py",
        "test_hooks.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)

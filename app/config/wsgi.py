"""
WSGI config for the chat backend.

The project is served over ASGI (config.asgi) because the WebSocket layer
needs it. This WSGI callable serves the REST API alone, for tooling and
traditional deployments; sockets are unavailable through it.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()

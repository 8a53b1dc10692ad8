"""
ASGI config for derivdesk project.

The API views are async, so the project is served through ASGI
(e.g. ``uvicorn derivdesk.asgi:application``).
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "derivdesk.settings.development")

application = get_asgi_application()

# reservation_api/asgi.py

import os

from django.core.asgi import get_asgi_application

# -----------------------------------------------------------------------------
# Environment setup
# -----------------------------------------------------------------------------
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reservation_api.settings')

# -----------------------------------------------------------------------------
# ASGI application configuration
# -----------------------------------------------------------------------------
application = get_asgi_application()

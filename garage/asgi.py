"""
ASGI config for the garage project.

HTTP goes to Django; websockets carry the live job board (workshop.routing).
"""

import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'garage.settings')

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter

django_asgi_app = get_asgi_application()

from workshop.routing import websocket_urlpatterns

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': URLRouter(websocket_urlpatterns),
})

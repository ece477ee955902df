"""WebSocket URL routing for the live job board."""
from django.urls import re_path

from .consumers import JobBoardConsumer

websocket_urlpatterns = [
    re_path(r'^ws/job-orders/$', JobBoardConsumer.as_asgi()),
    re_path(r'^ws/job-orders/(?P<job_order_id>\d+)/$', JobBoardConsumer.as_asgi()),
]

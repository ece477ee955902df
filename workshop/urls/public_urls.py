"""Public API URL configuration (no token)."""
from django.urls import path
from workshop.views.public_views import (
    public_create_inquiry,
    public_order_lookup,
    public_parts,
    public_place_order,
    public_request_booking,
    public_track,
    shop_config,
)

urlpatterns = [
    path('config/', shop_config),
    path('parts/', public_parts),
    path('orders/', public_place_order),
    path('orders/lookup/', public_order_lookup),
    path('bookings/', public_request_booking),
    path('track/', public_track),
    path('inquiries/', public_create_inquiry),
]

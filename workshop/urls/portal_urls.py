"""Customer portal URL configuration (Bearer token, CUSTOMER role)."""
from django.urls import path
from workshop.views.portal_views import (
    portal_invoice_detail,
    portal_invoices,
    portal_job_order_detail,
    portal_job_orders,
    portal_profile,
    portal_vehicle_create,
    portal_vehicle_update,
    portal_vehicles,
)

urlpatterns = [
    path('profile/', portal_profile),
    path('vehicles/', portal_vehicles),
    path('vehicles/create/', portal_vehicle_create),
    path('vehicles/<int:pk>/update/', portal_vehicle_update),
    path('job-orders/', portal_job_orders),
    path('job-orders/<int:pk>/', portal_job_order_detail),
    path('invoices/', portal_invoices),
    path('invoices/<int:pk>/', portal_invoice_detail),
]

"""Staff API URL configuration (Bearer token required)."""
from django.urls import path
from workshop.views.booking_views import (
    booking_delete,
    booking_list,
    booking_purge,
    booking_start_job,
    booking_status,
)
from workshop.views.customer_views import (
    customer_create,
    customer_detail,
    customer_list,
    customer_update,
    vehicle_create,
    vehicle_detail,
    vehicle_list,
    vehicle_update,
)
from workshop.views.inquiry_views import inquiry_list, inquiry_status
from workshop.views.invoice_views import (
    invoice_add_payment,
    invoice_create,
    invoice_detail,
    invoice_list,
    invoice_pdf,
)
from workshop.views.job_order_views import (
    job_order_add_part,
    job_order_archive,
    job_order_assign,
    job_order_bill,
    job_order_create,
    job_order_detail,
    job_order_list,
    job_order_remove_part,
    job_order_restore,
    job_order_status,
    job_order_update,
)
from workshop.views.online_order_views import (
    online_order_archive,
    online_order_cancel,
    online_order_complete,
    online_order_confirm_payment,
    online_order_detail,
    online_order_list,
    online_order_pending_payments,
    online_order_restore,
    online_order_ship,
    online_order_tracking,
)
from workshop.views.part_views import (
    part_adjust_stock,
    part_create,
    part_delete,
    part_detail,
    part_list,
    part_stock_logs,
    part_update,
)
from workshop.views.report_views import activity_feed, dashboard, revenue, stock_alerts
from workshop.views.wallet_views import (
    wallet_detail,
    wallet_payout,
    wallet_preflight,
    wallet_verify_pin,
    wallet_verify_second_factor,
)

urlpatterns = [
    path('customers/', customer_list),
    path('customers/create/', customer_create),
    path('customers/<int:pk>/', customer_detail),
    path('customers/<int:pk>/update/', customer_update),
    path('vehicles/', vehicle_list),
    path('vehicles/create/', vehicle_create),
    path('vehicles/<int:pk>/', vehicle_detail),
    path('vehicles/<int:pk>/update/', vehicle_update),
    path('parts/', part_list),
    path('parts/create/', part_create),
    path('parts/<int:pk>/', part_detail),
    path('parts/<int:pk>/update/', part_update),
    path('parts/<int:pk>/delete/', part_delete),
    path('parts/<int:pk>/adjust-stock/', part_adjust_stock),
    path('parts/<int:pk>/stock-logs/', part_stock_logs),
    path('job-orders/', job_order_list),
    path('job-orders/create/', job_order_create),
    path('job-orders/<int:pk>/', job_order_detail),
    path('job-orders/<int:pk>/update/', job_order_update),
    path('job-orders/<int:pk>/status/', job_order_status),
    path('job-orders/<int:pk>/assign/', job_order_assign),
    path('job-orders/<int:pk>/archive/', job_order_archive),
    path('job-orders/<int:pk>/restore/', job_order_restore),
    path('job-orders/<int:pk>/parts/', job_order_add_part),
    path('job-orders/<int:pk>/parts/<int:line_id>/', job_order_remove_part),
    path('job-orders/<int:pk>/bill/', job_order_bill),
    path('invoices/', invoice_list),
    path('invoices/create/', invoice_create),
    path('invoices/<int:pk>/', invoice_detail),
    path('invoices/<int:pk>/payments/', invoice_add_payment),
    path('invoices/<int:pk>/pdf/', invoice_pdf),
    path('online-orders/', online_order_list),
    path('online-orders/pending-payments/', online_order_pending_payments),
    path('online-orders/<int:pk>/', online_order_detail),
    path('online-orders/<int:pk>/confirm-payment/', online_order_confirm_payment),
    path('online-orders/<int:pk>/tracking/', online_order_tracking),
    path('online-orders/<int:pk>/ship/', online_order_ship),
    path('online-orders/<int:pk>/complete/', online_order_complete),
    path('online-orders/<int:pk>/cancel/', online_order_cancel),
    path('online-orders/<int:pk>/archive/', online_order_archive),
    path('online-orders/<int:pk>/restore/', online_order_restore),
    path('wallet/', wallet_detail),
    path('wallet/preflight/', wallet_preflight),
    path('wallet/verify-pin/', wallet_verify_pin),
    path('wallet/verify-2fa/', wallet_verify_second_factor),
    path('wallet/payout/', wallet_payout),
    path('bookings/', booking_list),
    path('bookings/purge/', booking_purge),
    path('bookings/<int:pk>/status/', booking_status),
    path('bookings/<int:pk>/start-job/', booking_start_job),
    path('bookings/<int:pk>/delete/', booking_delete),
    path('inquiries/', inquiry_list),
    path('inquiries/<int:pk>/status/', inquiry_status),
    path('reports/dashboard/', dashboard),
    path('reports/revenue/', revenue),
    path('reports/stock-alerts/', stock_alerts),
    path('reports/activity/', activity_feed),
]

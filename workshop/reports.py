"""Dashboard aggregates: revenue by month, job counts, stock alerts, activity feed."""
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from .models import (
    ActivityLog,
    Appointment,
    BookingStatus,
    Invoice,
    InvoiceStatus,
    JobOrder,
    JobOrderStatus,
    OnlineOrder,
    OnlineOrderStatus,
    Payment,
    Role,
    User,
)
from .services import low_stock_parts

FINISHED_STATUSES = [JobOrderStatus.COMPLETED, JobOrderStatus.RELEASED]
OPEN_STATUSES = [s for s in JobOrderStatus.values if s not in FINISHED_STATUSES]


def _month_start(months_back):
    today = timezone.localdate()
    year, month = today.year, today.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    return today.replace(year=year, month=month, day=1)


def revenue_by_month(months=6):
    """
    Revenue per calendar month for the last `months` months, oldest first.
    Combines invoice payments with online orders whose payment was confirmed.
    """
    start = _month_start(months - 1)
    buckets = {}
    cursor = start
    for _ in range(months):
        buckets[cursor.strftime('%Y-%m')] = {'payments': Decimal('0.00'), 'online': Decimal('0.00')}
        cursor = (cursor + timedelta(days=32)).replace(day=1)

    payment_rows = (
        Payment.objects.filter(created_at__date__gte=start)
        .annotate(month=TruncMonth('created_at'))
        .values('month')
        .annotate(total=Sum('amount'))
    )
    for row in payment_rows:
        key = row['month'].strftime('%Y-%m')
        if key in buckets:
            buckets[key]['payments'] += row['total'] or 0

    online_rows = (
        OnlineOrder.objects.filter(payment_confirmed_at__date__gte=start)
        .exclude(status=OnlineOrderStatus.CANCELLED)
        .annotate(month=TruncMonth('payment_confirmed_at'))
        .values('month')
        .annotate(total=Sum('total_amount'))
    )
    for row in online_rows:
        key = row['month'].strftime('%Y-%m')
        if key in buckets:
            buckets[key]['online'] += row['total'] or 0

    return [
        {
            'month': key,
            'payments': str(vals['payments']),
            'online': str(vals['online']),
            'total': str(vals['payments'] + vals['online']),
        }
        for key, vals in buckets.items()
    ]


def dashboard_summary():
    active = JobOrder.objects.filter(is_archived=False)
    status_counts = {s: 0 for s in JobOrderStatus.values}
    for row in active.values('status').annotate(n=Count('id')):
        status_counts[row['status']] = row['n']

    mechanics = (
        User.objects.filter(role=Role.MECHANIC, is_active=True)
        .annotate(
            completed=Count(
                'assigned_job_orders',
                filter=Q(assigned_job_orders__status__in=FINISHED_STATUSES),
            ),
            active_jobs=Count(
                'assigned_job_orders',
                filter=Q(assigned_job_orders__is_archived=False, assigned_job_orders__status__in=OPEN_STATUSES),
            ),
        )
        .order_by('-completed', 'name')
    )

    outstanding = Invoice.objects.exclude(status=InvoiceStatus.PAID).aggregate(
        total=Sum('total_amount'), paid=Sum('amount_paid')
    )
    outstanding_balance = (outstanding['total'] or Decimal('0')) - (outstanding['paid'] or Decimal('0'))

    return {
        'job_status_counts': status_counts,
        'urgent_jobs': active.filter(priority='URGENT').exclude(status=JobOrderStatus.RELEASED).count(),
        'mechanics': [
            {'id': m.id, 'name': str(m), 'completed': m.completed, 'active': m.active_jobs}
            for m in mechanics
        ],
        'unpaid_invoices': Invoice.objects.exclude(status=InvoiceStatus.PAID).count(),
        'outstanding_balance': str(outstanding_balance),
        'online_orders': OnlineOrder.objects.count(),
        'pending_online_orders': OnlineOrder.objects.filter(status=OnlineOrderStatus.PENDING).count(),
        'pending_bookings': Appointment.objects.filter(status=BookingStatus.PENDING).count(),
        'low_stock_count': low_stock_parts().count(),
        'revenue_by_month': revenue_by_month(),
    }


def recent_activity(limit=20):
    return ActivityLog.objects.select_related('user')[:limit]

"""
Role-based access for staff endpoints.
ADMIN: everything, including wallet payouts and booking purge.
ADVISOR: customers, vehicles, job orders, bookings, online orders.
MECHANIC: job board and status updates.
ACCOUNTANT: invoices, payments, wallet view, reports.
CUSTOMER: self-registered; only the portal endpoints for their own records.
Superusers pass every check.
"""
from functools import wraps

from django.http import JsonResponse

from .models import Role

FRONT_DESK = (Role.ADMIN, Role.ADVISOR)
BILLING = (Role.ADMIN, Role.ADVISOR, Role.ACCOUNTANT)
FINANCE = (Role.ADMIN, Role.ACCOUNTANT)
SHOP_FLOOR = (Role.ADMIN, Role.ADVISOR, Role.MECHANIC)
ALL_STAFF = (Role.ADMIN, Role.ADVISOR, Role.MECHANIC, Role.ACCOUNTANT)
CUSTOMERS = (Role.CUSTOMER,)


def has_role(user, *roles):
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    if getattr(user, 'is_superuser', False):
        return True
    return getattr(user, 'role', None) in roles


def roles_required(*roles):
    """Decorator factory: after auth_required, return 403 unless request.user has one of roles."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapped(request, *args, **kwargs):
            if not has_role(request.user, *roles):
                return JsonResponse(
                    {'detail': f'{" or ".join(r.title() for r in roles)} access required'},
                    status=403,
                )
            return view_func(request, *args, **kwargs)
        return wrapped
    return decorator


admin_required = roles_required(Role.ADMIN)

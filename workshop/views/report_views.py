"""Reports: dashboard, revenue by month, stock alerts, activity feed."""
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from workshop import reports, services
from workshop.payloads import activity_to_dict, part_to_dict
from workshop.permissions import ALL_STAFF, FINANCE, roles_required
from workshop.models import Role
from workshop.utils import auth_required


@auth_required
@roles_required(Role.ADMIN, Role.ADVISOR, Role.ACCOUNTANT)
@require_http_methods(['GET'])
def dashboard(request):
    return JsonResponse(reports.dashboard_summary())


@auth_required
@roles_required(*FINANCE)
@require_http_methods(['GET'])
def revenue(request):
    try:
        months = max(1, min(int(request.GET.get('months', 6)), 24))
    except ValueError:
        months = 6
    return JsonResponse({'results': reports.revenue_by_month(months)})


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
def stock_alerts(request):
    return JsonResponse({'results': [part_to_dict(p) for p in services.low_stock_parts()]})


@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['GET'])
def activity_feed(request):
    try:
        limit = max(1, min(int(request.GET.get('limit', 20)), 200))
    except ValueError:
        limit = 20
    return JsonResponse({'results': [activity_to_dict(a) for a in reports.recent_activity(limit)]})

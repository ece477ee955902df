"""
Job order list, create, detail, update, status, mechanic assignment, archive,
part lines and draft bill. Function-based.
Every mutating endpoint answers with the stored job order so clients can reconcile
optimistic updates.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import Customer, JobOrder, Part, Role, User, Vehicle
from workshop.payloads import job_order_part_to_dict, job_order_to_dict
from workshop.permissions import ALL_STAFF, BILLING, FRONT_DESK, SHOP_FLOOR, has_role, roles_required
from workshop.utils import (
    auth_required,
    get_or_not_found,
    handles_workshop_errors,
    parse_json_body,
    query_bool,
)


def _job_order_qs():
    return JobOrder.objects.select_related('customer', 'vehicle', 'mechanic', 'invoice')


def _fresh(job):
    return _job_order_qs().get(pk=job.pk)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def job_order_list(request):
    """Filters: status, mechanic_id, priority, customer_id, archived (default false)."""
    qs = _job_order_qs()
    archived = query_bool(request, 'archived')
    qs = qs.filter(is_archived=bool(archived))
    status = request.GET.get('status')
    if status:
        qs = qs.filter(status=status.upper())
    priority = request.GET.get('priority')
    if priority:
        qs = qs.filter(priority=priority.upper())
    customer_id = request.GET.get('customer_id')
    if customer_id:
        qs = qs.filter(customer_id=services.to_positive_int(customer_id, 'customer_id'))
    mechanic_id = request.GET.get('mechanic_id')
    if request.user.role == Role.MECHANIC and not request.user.is_superuser:
        mechanic_id = request.user.pk
    if mechanic_id:
        qs = qs.filter(mechanic_id=services.to_positive_int(mechanic_id, 'mechanic_id'))
    return JsonResponse({'results': [job_order_to_dict(j) for j in qs]})


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def job_order_create(request):
    body = parse_json_body(request)
    customer = get_or_not_found(Customer.objects.all(), body.get('customer_id'), 'Customer')
    vehicle = get_or_not_found(Vehicle.objects.all(), body.get('vehicle_id'), 'Vehicle')
    mechanic = None
    if body.get('mechanic_id'):
        mechanic = get_or_not_found(User.objects.all(), body['mechanic_id'], 'Mechanic')
    job = services.create_job_order(
        customer,
        vehicle,
        body.get('complaint'),
        estimated_cost=body.get('estimated_cost') or 0,
        estimated_time=body.get('estimated_time') or '',
        priority=body.get('priority') or 'NORMAL',
        notes=body.get('notes') or '',
        mechanic=mechanic,
        actor=request.user,
    )
    return JsonResponse(job_order_to_dict(_fresh(job), include_parts=True), status=201)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def job_order_detail(request, pk):
    job = get_or_not_found(_job_order_qs(), pk, 'Job order')
    return JsonResponse(job_order_to_dict(job, include_parts=True))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PUT', 'PATCH'])
@handles_workshop_errors
def job_order_update(request, pk):
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    body = parse_json_body(request)
    job = services.update_job_order(job, body, actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job), include_parts=True))


@csrf_exempt
@auth_required
@roles_required(*SHOP_FLOOR)
@require_http_methods(['PATCH', 'POST'])
@handles_workshop_errors
def job_order_status(request, pk):
    """PATCH { "status" }. Mechanics may only move jobs assigned to them."""
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    if not has_role(request.user, Role.ADMIN, Role.ADVISOR) and job.mechanic_id != request.user.pk:
        return JsonResponse({'detail': 'Job order is assigned to another mechanic'}, status=403)
    body = parse_json_body(request)
    job = services.transition_job_order(job, body.get('status'), actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job), include_parts=True))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PATCH', 'POST'])
@handles_workshop_errors
def job_order_assign(request, pk):
    """PATCH { "mechanic_id" } (null to unassign)."""
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    body = parse_json_body(request)
    mechanic = None
    if body.get('mechanic_id'):
        mechanic = get_or_not_found(User.objects.all(), body['mechanic_id'], 'Mechanic')
    job = services.assign_mechanic(job, mechanic, actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job), include_parts=True))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def job_order_archive(request, pk):
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    job = services.set_job_order_archived(job, True, actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job)))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def job_order_restore(request, pk):
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    job = services.set_job_order_archived(job, False, actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job)))


@csrf_exempt
@auth_required
@roles_required(*SHOP_FLOOR)
@require_http_methods(['POST'])
@handles_workshop_errors
def job_order_add_part(request, pk):
    """POST { "part_id", "quantity" }: deducts stock and attaches the part line."""
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    body = parse_json_body(request)
    part = get_or_not_found(Part.objects.all(), body.get('part_id'), 'Part')
    line = services.add_part(job, part, body.get('quantity'), actor=request.user)
    return JsonResponse({
        'line': job_order_part_to_dict(line),
        'job_order': job_order_to_dict(_fresh(job), include_parts=True),
    }, status=201)


@csrf_exempt
@auth_required
@roles_required(*SHOP_FLOOR)
@require_http_methods(['DELETE'])
@handles_workshop_errors
def job_order_remove_part(request, pk, line_id):
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    services.remove_part(job, line_id, actor=request.user)
    return JsonResponse(job_order_to_dict(_fresh(job), include_parts=True))


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
@handles_workshop_errors
def job_order_bill(request, pk):
    """Draft bill before invoicing: labor + part lines and the derived subtotal."""
    job = get_or_not_found(JobOrder.objects.all(), pk, 'Job order')
    bill = services.draft_bill(job)
    return JsonResponse({
        'job_order_id': bill['job_order_id'],
        'labor_cost': str(bill['labor_cost']),
        'parts_total': str(bill['parts_total']),
        'sub_total': str(bill['sub_total']),
        'lines': [job_order_part_to_dict(line) for line in bill['lines']],
        'invoice_id': job.invoice_id,
    })

"""Parts inventory: list, create, update, delete, stock adjustments and stock log. Function-based."""
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import Part, Role
from workshop.payloads import part_to_dict, stock_log_to_dict
from workshop.permissions import ALL_STAFF, FRONT_DESK, roles_required
from workshop.utils import (
    auth_required,
    get_or_not_found,
    handles_workshop_errors,
    parse_json_body,
    query_bool,
)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
def part_list(request):
    qs = Part.objects.all()
    search = (request.GET.get('search') or '').strip()
    if search:
        qs = qs.filter(
            Q(name__icontains=search) | Q(part_number__icontains=search) | Q(supplier__icontains=search)
        )
    results = [part_to_dict(p) for p in qs]
    low_count = sum(1 for r in results if r['low_stock'])
    if query_bool(request, 'low_stock'):
        results = [r for r in results if r['low_stock']]
    stats = {'total': Part.objects.count(), 'low_stock': low_count}
    return JsonResponse({'stats': stats, 'results': results})


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def part_create(request):
    body = parse_json_body(request)
    part = services.create_part(body, actor=request.user)
    return JsonResponse(part_to_dict(part), status=201)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def part_detail(request, pk):
    part = get_or_not_found(Part.objects.all(), pk, 'Part')
    return JsonResponse(part_to_dict(part))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PUT', 'PATCH'])
@handles_workshop_errors
def part_update(request, pk):
    part = get_or_not_found(Part.objects.all(), pk, 'Part')
    body = parse_json_body(request)
    part = services.update_part(part, body, actor=request.user)
    return JsonResponse(part_to_dict(part))


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['DELETE'])
@handles_workshop_errors
def part_delete(request, pk):
    part = get_or_not_found(Part.objects.all(), pk, 'Part')
    services.delete_part(part, actor=request.user)
    return HttpResponse(status=204)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def part_adjust_stock(request, pk):
    """POST { "action": "ADD"|"DEDUCT", "quantity", "note" }."""
    part = get_or_not_found(Part.objects.all(), pk, 'Part')
    body = parse_json_body(request)
    log = services.adjust_stock(
        part, body.get('action'), body.get('quantity'), note=body.get('note') or '', actor=request.user
    )
    return JsonResponse({'part': part_to_dict(part), 'log': stock_log_to_dict(log)})


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def part_stock_logs(request, pk):
    part = get_or_not_found(Part.objects.all(), pk, 'Part')
    return JsonResponse({'results': [stock_log_to_dict(log) for log in part.stock_logs.all()[:200]]})

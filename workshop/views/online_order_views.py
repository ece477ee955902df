"""
Staff side of the online parts shop: list, pending payments, detail,
payment confirmation, tracking, ship, complete, cancel and archive. Function-based.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import OnlineOrder, OnlineOrderStatus
from workshop.payloads import online_order_to_dict
from workshop.permissions import BILLING, FRONT_DESK, roles_required
from workshop.utils import (
    auth_required,
    get_or_not_found,
    handles_workshop_errors,
    parse_json_body,
    query_bool,
)


def _order_qs():
    return OnlineOrder.objects.prefetch_related('items')


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
def online_order_list(request):
    """Filters: status, delivery_method, archived (default false)."""
    qs = _order_qs().filter(is_archived=bool(query_bool(request, 'archived')))
    status = request.GET.get('status')
    if status:
        qs = qs.filter(status=status.upper())
    delivery_method = request.GET.get('delivery_method')
    if delivery_method:
        qs = qs.filter(delivery_method=delivery_method.upper())
    results = [online_order_to_dict(o) for o in qs]
    stats = {s: 0 for s in OnlineOrderStatus.values}
    for r in results:
        stats[r['status']] += 1
    return JsonResponse({'stats': stats, 'results': results})


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
def online_order_pending_payments(request):
    qs = _order_qs().filter(status=OnlineOrderStatus.PENDING, is_archived=False)
    return JsonResponse({'results': [online_order_to_dict(o) for o in qs]})


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
@handles_workshop_errors
def online_order_detail(request, pk):
    order = get_or_not_found(_order_qs(), pk, 'Order')
    return JsonResponse(online_order_to_dict(order))


def _respond(order):
    return JsonResponse(online_order_to_dict(_order_qs().get(pk=order.pk)))


@csrf_exempt
@auth_required
@roles_required(*BILLING)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_confirm_payment(request, pk):
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    return _respond(services.confirm_payment(order, actor=request.user))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PATCH', 'POST'])
@handles_workshop_errors
def online_order_tracking(request, pk):
    """PATCH { "tracking_number", "courier_name" }. Status stays PROCESSING."""
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    body = parse_json_body(request)
    order = services.update_tracking(
        order, body.get('tracking_number'), body.get('courier_name'), actor=request.user
    )
    return _respond(order)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_ship(request, pk):
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    return _respond(services.mark_shipped(order, actor=request.user))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_complete(request, pk):
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    return _respond(services.mark_completed(order, actor=request.user))


@csrf_exempt
@auth_required
@roles_required(*BILLING)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_cancel(request, pk):
    """POST { "reason", "refund_reference" }. Paid orders need the refund reference."""
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    body = parse_json_body(request)
    order = services.cancel_online_order(
        order,
        reason=body.get('reason') or '',
        refund_reference=body.get('refund_reference') or '',
        actor=request.user,
    )
    return _respond(order)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_archive(request, pk):
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    return _respond(services.set_online_order_archived(order, True, actor=request.user))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def online_order_restore(request, pk):
    order = get_or_not_found(OnlineOrder.objects.all(), pk, 'Order')
    return _respond(services.set_online_order_archived(order, False, actor=request.user))

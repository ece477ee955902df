"""
Customer portal for self-registered accounts: profile, own vehicles, repair
history and invoices. Every query is scoped to the caller's Customer record.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import JobOrder
from workshop.payloads import (
    customer_to_dict,
    invoice_to_dict,
    job_order_to_dict,
    user_to_dict,
    vehicle_to_dict,
)
from workshop.permissions import CUSTOMERS, roles_required
from workshop.utils import auth_required, get_or_not_found, handles_workshop_errors, parse_json_body


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
def portal_profile(request):
    customer = services.customer_for_user(request.user)
    return JsonResponse({'user': user_to_dict(request.user), 'customer': customer_to_dict(customer)})


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
def portal_vehicles(request):
    customer = services.customer_for_user(request.user)
    return JsonResponse({'results': [vehicle_to_dict(v) for v in customer.vehicles.select_related('customer')]})


@csrf_exempt
@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['POST'])
@handles_workshop_errors
def portal_vehicle_create(request):
    customer = services.customer_for_user(request.user)
    body = parse_json_body(request)
    vehicle = services.create_vehicle(customer, body, actor=request.user)
    return JsonResponse(vehicle_to_dict(vehicle), status=201)


@csrf_exempt
@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['PUT', 'PATCH'])
@handles_workshop_errors
def portal_vehicle_update(request, pk):
    customer = services.customer_for_user(request.user)
    body = parse_json_body(request)
    vehicle = services.update_own_vehicle(customer, pk, body, actor=request.user)
    return JsonResponse(vehicle_to_dict(vehicle))


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
def portal_job_orders(request):
    """Repair history, newest first, archived jobs included."""
    customer = services.customer_for_user(request.user)
    qs = JobOrder.objects.filter(customer=customer).select_related('customer', 'vehicle', 'mechanic', 'invoice')
    return JsonResponse({'results': [job_order_to_dict(j) for j in qs]})


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
@handles_workshop_errors
def portal_job_order_detail(request, pk):
    customer = services.customer_for_user(request.user)
    qs = JobOrder.objects.filter(customer=customer).select_related('customer', 'vehicle', 'mechanic', 'invoice')
    job = get_or_not_found(qs, pk, 'Job order')
    return JsonResponse(job_order_to_dict(job, include_parts=True))


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
def portal_invoices(request):
    customer = services.customer_for_user(request.user)
    return JsonResponse({'results': [invoice_to_dict(i) for i in customer.invoices.all()]})


@auth_required
@roles_required(*CUSTOMERS)
@require_http_methods(['GET'])
@handles_workshop_errors
def portal_invoice_detail(request, pk):
    customer = services.customer_for_user(request.user)
    invoice = get_or_not_found(customer.invoices.all(), pk, 'Invoice')
    return JsonResponse(invoice_to_dict(invoice, detail=True))

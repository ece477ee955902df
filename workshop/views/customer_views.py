"""Customer and vehicle registry: list, create, detail, update. Function-based."""
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import Customer, Vehicle
from workshop.payloads import customer_to_dict, invoice_to_dict, job_order_to_dict, vehicle_to_dict
from workshop.permissions import ALL_STAFF, FRONT_DESK, roles_required
from workshop.utils import auth_required, get_or_not_found, handles_workshop_errors, parse_json_body


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
def customer_list(request):
    qs = Customer.objects.all()
    search = (request.GET.get('search') or '').strip()
    if search:
        qs = qs.filter(
            Q(name__icontains=search) | Q(phone__icontains=search) | Q(email__icontains=search)
            | Q(vehicles__plate_number__icontains=search)
        ).distinct()
    return JsonResponse({'results': [customer_to_dict(c) for c in qs]})


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def customer_create(request):
    body = parse_json_body(request)
    customer = services.create_customer(body, actor=request.user)
    return JsonResponse(customer_to_dict(customer), status=201)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def customer_detail(request, pk):
    """Customer with vehicles, job history and invoices."""
    customer = get_or_not_found(Customer.objects.all(), pk, 'Customer')
    d = customer_to_dict(customer)
    d['vehicles'] = [vehicle_to_dict(v) for v in customer.vehicles.select_related('customer')]
    d['job_orders'] = [
        job_order_to_dict(j)
        for j in customer.job_orders.select_related('customer', 'vehicle', 'mechanic', 'invoice')
    ]
    d['invoices'] = [invoice_to_dict(i) for i in customer.invoices.all()]
    return JsonResponse(d)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PUT', 'PATCH'])
@handles_workshop_errors
def customer_update(request, pk):
    customer = get_or_not_found(Customer.objects.all(), pk, 'Customer')
    body = parse_json_body(request)
    customer = services.update_customer(customer, body, actor=request.user)
    return JsonResponse(customer_to_dict(customer))


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def vehicle_list(request):
    qs = Vehicle.objects.select_related('customer')
    customer_id = request.GET.get('customer_id')
    if customer_id:
        qs = qs.filter(customer_id=services.to_positive_int(customer_id, 'customer_id'))
    search = (request.GET.get('search') or '').strip()
    if search:
        qs = qs.filter(Q(plate_number__icontains=search) | Q(vin__icontains=search))
    return JsonResponse({'results': [vehicle_to_dict(v) for v in qs]})


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def vehicle_create(request):
    body = parse_json_body(request)
    customer = get_or_not_found(Customer.objects.all(), body.get('customer_id'), 'Customer')
    vehicle = services.create_vehicle(customer, body, actor=request.user)
    return JsonResponse(vehicle_to_dict(vehicle), status=201)


@auth_required
@roles_required(*ALL_STAFF)
@require_http_methods(['GET'])
@handles_workshop_errors
def vehicle_detail(request, pk):
    vehicle = get_or_not_found(Vehicle.objects.select_related('customer'), pk, 'Vehicle')
    d = vehicle_to_dict(vehicle)
    d['job_orders'] = [
        job_order_to_dict(j)
        for j in vehicle.job_orders.select_related('customer', 'vehicle', 'mechanic', 'invoice')
    ]
    return JsonResponse(d)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PUT', 'PATCH'])
@handles_workshop_errors
def vehicle_update(request, pk):
    vehicle = get_or_not_found(Vehicle.objects.select_related('customer'), pk, 'Vehicle')
    body = parse_json_body(request)
    vehicle = services.update_vehicle(vehicle, body, actor=request.user)
    return JsonResponse(vehicle_to_dict(vehicle))

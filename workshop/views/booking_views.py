"""Staff booking list, status changes, job order hand-off, delete and purge. Function-based."""
from django.http import HttpResponse, JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.exceptions import ValidationError
from workshop.models import Appointment, Customer, Role, User, Vehicle
from workshop.payloads import booking_to_dict, job_order_to_dict
from workshop.permissions import FRONT_DESK, roles_required
from workshop.utils import auth_required, get_or_not_found, handles_workshop_errors, parse_json_body


@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['GET'])
@handles_workshop_errors
def booking_list(request):
    qs = Appointment.objects.all()
    status = request.GET.get('status')
    if status:
        qs = qs.filter(status=status.upper())
    date = request.GET.get('date')
    if date:
        try:
            day = parse_date(date)
        except ValueError:
            day = None
        if day is None:
            raise ValidationError('date must be YYYY-MM-DD')
        qs = qs.filter(date__date=day)
    return JsonResponse({'results': [booking_to_dict(b) for b in qs]})


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PATCH', 'POST'])
@handles_workshop_errors
def booking_status(request, pk):
    """PATCH { "status": "CONFIRMED"|"CANCELLED"|"COMPLETED" }."""
    booking = get_or_not_found(Appointment.objects.all(), pk, 'Booking')
    body = parse_json_body(request)
    booking = services.set_booking_status(booking, body.get('status'), actor=request.user)
    return JsonResponse(booking_to_dict(booking))


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['POST'])
@handles_workshop_errors
def booking_start_job(request, pk):
    """POST { "customer_id", "vehicle_id", "estimated_cost", "mechanic_id" } for a confirmed booking."""
    booking = get_or_not_found(Appointment.objects.all(), pk, 'Booking')
    body = parse_json_body(request)
    customer = get_or_not_found(Customer.objects.all(), body.get('customer_id'), 'Customer')
    vehicle = get_or_not_found(Vehicle.objects.all(), body.get('vehicle_id'), 'Vehicle')
    mechanic = None
    if body.get('mechanic_id'):
        mechanic = get_or_not_found(User.objects.all(), body['mechanic_id'], 'Mechanic')
    booking, job = services.start_job_from_booking(
        booking, customer, vehicle,
        actor=request.user,
        estimated_cost=body.get('estimated_cost') or 0,
        mechanic=mechanic,
    )
    return JsonResponse({'booking': booking_to_dict(booking), 'job_order': job_order_to_dict(job)}, status=201)


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['DELETE'])
@handles_workshop_errors
def booking_delete(request, pk):
    booking = get_or_not_found(Appointment.objects.all(), pk, 'Booking')
    services.delete_booking(booking, actor=request.user)
    return HttpResponse(status=204)


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['DELETE', 'POST'])
@handles_workshop_errors
def booking_purge(request):
    """Body { "confirm": true }. Removes every CANCELLED and COMPLETED booking."""
    body = parse_json_body(request)
    count = services.purge_bookings(confirm=body.get('confirm'), actor=request.user)
    return JsonResponse({'deleted': count})

"""
Public (no auth) endpoints: parts catalogue, checkout, order lookup, booking
requests, job/booking tracking and inquiries.
"""
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import DeliveryMethod, OnlinePaymentMethod
from workshop.payloads import booking_to_dict, inquiry_to_dict, online_order_to_dict, part_to_dict
from workshop.utils import handles_workshop_errors, parse_json_body

COURIERS = ['LBC Express', 'J&T Express', 'Ninja Van', 'Grab Express', 'Lalamove']


@require_http_methods(['GET'])
def shop_config(request):
    return JsonResponse({
        'shop_name': settings.SHOP_NAME,
        'currency': settings.CURRENCY_SYMBOL,
        'shipping_flat_rate': str(settings.SHIPPING_FLAT_RATE),
        'free_shipping_threshold': str(settings.SHIPPING_FREE_THRESHOLD),
        'payment_methods': list(OnlinePaymentMethod.values),
        'delivery_methods': list(DeliveryMethod.values),
        'couriers': COURIERS,
    })


@require_http_methods(['GET'])
def public_parts(request):
    qs = services.public_parts()
    search = (request.GET.get('search') or '').strip()
    if search:
        qs = qs.filter(name__icontains=search)
    return JsonResponse({'results': [part_to_dict(p, public=True) for p in qs]})


@csrf_exempt
@require_http_methods(['POST'])
@handles_workshop_errors
def public_place_order(request):
    body = parse_json_body(request)
    order = services.place_order(body)
    return JsonResponse(online_order_to_dict(order), status=201)


@require_http_methods(['GET'])
@handles_workshop_errors
def public_order_lookup(request):
    """GET ?order_number=&email="""
    order = services.lookup_online_order(request.GET.get('order_number'), request.GET.get('email'))
    return JsonResponse(online_order_to_dict(order))


@csrf_exempt
@require_http_methods(['POST'])
@handles_workshop_errors
def public_request_booking(request):
    body = parse_json_body(request)
    booking = services.request_booking(body)
    return JsonResponse(booking_to_dict(booking), status=201)


@require_http_methods(['GET'])
@handles_workshop_errors
def public_track(request):
    """GET ?reference=JO-...&contact=<plate>, or reference=APT-...&contact=<phone|email>."""
    result = services.track_reference(request.GET.get('reference'), request.GET.get('contact'))
    return JsonResponse(result)


@csrf_exempt
@require_http_methods(['POST'])
@handles_workshop_errors
def public_create_inquiry(request):
    """POST { "customer_name", "email", "message", "phone"?, "part_id"? }."""
    body = parse_json_body(request)
    inquiry = services.create_inquiry(body)
    return JsonResponse(
        {'message': 'Inquiry received. We will contact you soon!', 'inquiry': inquiry_to_dict(inquiry)},
        status=201,
    )

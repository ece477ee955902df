"""Storefront inquiries for the front desk: list (NEW first) and status updates."""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.models import Inquiry, InquiryStatus
from workshop.payloads import inquiry_to_dict
from workshop.permissions import FRONT_DESK, roles_required
from workshop.utils import auth_required, get_or_not_found, handles_workshop_errors, parse_json_body


@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['GET'])
@handles_workshop_errors
def inquiry_list(request):
    qs = services.inquiries_new_first()
    status = request.GET.get('status')
    if status:
        qs = qs.filter(status=status.upper())
    results = [inquiry_to_dict(q) for q in qs]
    return JsonResponse({
        'new': sum(1 for r in results if r['status'] == InquiryStatus.NEW),
        'results': results,
    })


@csrf_exempt
@auth_required
@roles_required(*FRONT_DESK)
@require_http_methods(['PATCH', 'POST'])
@handles_workshop_errors
def inquiry_status(request, pk):
    """PATCH { "status": "READ"|"RESPONDED"|"NEW" }."""
    inquiry = get_or_not_found(Inquiry.objects.select_related('part'), pk, 'Inquiry')
    body = parse_json_body(request)
    inquiry = services.set_inquiry_status(inquiry, body.get('status'), actor=request.user)
    return JsonResponse(inquiry_to_dict(inquiry))

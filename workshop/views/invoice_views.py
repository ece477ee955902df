"""Invoice list, create, detail, payments and PDF. Function-based."""
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import services
from workshop.invoice_pdf import invoice_pdf_bytes
from workshop.models import Invoice, JobOrder
from workshop.payloads import invoice_to_dict, payment_to_dict
from workshop.permissions import BILLING, roles_required
from workshop.utils import auth_required, get_or_not_found, handles_workshop_errors, parse_json_body


def _invoice_qs():
    return Invoice.objects.prefetch_related('lines', 'payments')


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
def invoice_list(request):
    qs = Invoice.objects.all()
    status = request.GET.get('status')
    if status:
        qs = qs.filter(status=status.upper())
    search = (request.GET.get('search') or '').strip()
    if search:
        qs = qs.filter(
            Q(invoice_number__icontains=search) | Q(customer_name__icontains=search)
            | Q(plate_number__icontains=search) | Q(job_number__icontains=search)
        )
    results = [invoice_to_dict(i) for i in qs]
    stats = {
        'total': len(results),
        'unpaid': sum(1 for r in results if r['status'] == 'UNPAID'),
        'partially_paid': sum(1 for r in results if r['status'] == 'PARTIALLY_PAID'),
        'paid': sum(1 for r in results if r['status'] == 'PAID'),
    }
    return JsonResponse({'stats': stats, 'results': results})


@csrf_exempt
@auth_required
@roles_required(*BILLING)
@require_http_methods(['POST'])
@handles_workshop_errors
def invoice_create(request):
    """POST { "job_order_id", "discount", "tax" }."""
    body = parse_json_body(request)
    job = get_or_not_found(JobOrder.objects.all(), body.get('job_order_id'), 'Job order')
    invoice = services.create_invoice(
        job, discount=body.get('discount') or 0, tax=body.get('tax') or 0, actor=request.user
    )
    invoice = _invoice_qs().get(pk=invoice.pk)
    return JsonResponse(invoice_to_dict(invoice, detail=True), status=201)


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
@handles_workshop_errors
def invoice_detail(request, pk):
    invoice = get_or_not_found(_invoice_qs(), pk, 'Invoice')
    return JsonResponse(invoice_to_dict(invoice, detail=True))


@csrf_exempt
@auth_required
@roles_required(*BILLING)
@require_http_methods(['POST'])
@handles_workshop_errors
def invoice_add_payment(request, pk):
    """POST { "amount", "method", "reference_number" }."""
    invoice = get_or_not_found(Invoice.objects.all(), pk, 'Invoice')
    body = parse_json_body(request)
    payment, invoice = services.record_payment(
        invoice,
        body.get('amount'),
        body.get('method'),
        reference_number=body.get('reference_number') or '',
        actor=request.user,
    )
    invoice = _invoice_qs().get(pk=invoice.pk)
    return JsonResponse({
        'payment': payment_to_dict(payment),
        'invoice': invoice_to_dict(invoice, detail=True),
    }, status=201)


@auth_required
@roles_required(*BILLING)
@require_http_methods(['GET'])
@handles_workshop_errors
def invoice_pdf(request, pk):
    invoice = get_or_not_found(_invoice_qs(), pk, 'Invoice')
    pdf = invoice_pdf_bytes(invoice)
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'inline; filename="{invoice.invoice_number}.pdf"'
    return response

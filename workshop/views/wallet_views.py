"""
Wallet balance and the payout flow: preflight, PIN check, second factor, execute.
Function-based; payouts are admin only.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from workshop import two_factor, wallet
from workshop.models import Role
from workshop.payloads import payout_to_dict, wallet_to_dict
from workshop.permissions import FINANCE, roles_required
from workshop.utils import auth_required, handles_workshop_errors, parse_json_body


@auth_required
@roles_required(*FINANCE)
@require_http_methods(['GET'])
def wallet_detail(request):
    return JsonResponse(wallet_to_dict(wallet.wallet_summary()))


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['POST'])
@handles_workshop_errors
def wallet_preflight(request):
    """Fails with NoFundsAvailable before the client ever asks for a PIN."""
    info = wallet.payout_preflight(request.user)
    info['available_balance'] = str(info['available_balance'])
    return JsonResponse(info)


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['POST'])
@handles_workshop_errors
def wallet_verify_pin(request):
    body = parse_json_body(request)
    wallet.verify_pin(request.user, body.get('pin'))
    return JsonResponse({'verified': True, 'requires_two_factor': request.user.two_factor_enabled})


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['POST'])
@handles_workshop_errors
def wallet_verify_second_factor(request):
    body = parse_json_body(request)
    two_factor.verify_second_factor(request.user, body.get('token') or body.get('code'))
    return JsonResponse({'verified': True})


@csrf_exempt
@auth_required
@roles_required(Role.ADMIN)
@require_http_methods(['POST'])
@handles_workshop_errors
def wallet_payout(request):
    """
    POST { "pin", "otp", "method", "account_name", "account_number", "confirm": true,
    "expected_amount" }. Withdraws the entire available balance.
    """
    body = parse_json_body(request)
    payout = wallet.execute_payout(
        request.user,
        body.get('pin'),
        body.get('method'),
        body.get('account_number'),
        account_name=body.get('account_name') or '',
        otp=body.get('otp') or body.get('token'),
        confirm=body.get('confirm'),
        expected_amount=body.get('expected_amount'),
    )
    return JsonResponse({
        'payout': payout_to_dict(payout),
        'wallet': wallet_to_dict(wallet.wallet_summary()),
    }, status=201)

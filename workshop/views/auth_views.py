"""
Function-based auth views: login, customer self-registration, logout, current
user, change password, security PIN and TOTP two-factor enrollment.
"""
from django.contrib.auth import authenticate
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from rest_framework.authtoken.models import Token

from workshop import services, two_factor, wallet
from workshop.payloads import customer_to_dict, user_to_dict
from workshop.utils import auth_required, handles_workshop_errors, parse_json_body

LOGIN_ERROR_MSG = 'Invalid username or password.'


@csrf_exempt
@require_http_methods(['POST'])
@handles_workshop_errors
def login(request):
    """POST { "username", "password" } -> { "token", "user" } or 401."""
    body = parse_json_body(request)
    username = (body.get('username') or '').strip()
    password = body.get('password') or ''
    if not username or not password:
        return JsonResponse({'error': 'username and password required'}, status=400)
    user = authenticate(request, username=username, password=password)
    if user is None:
        return JsonResponse({'error': LOGIN_ERROR_MSG}, status=401)
    token, _ = Token.objects.get_or_create(user=user)
    services.log_activity(user, 'LOGIN', 'User', user.pk, 'Signed in')
    return JsonResponse({'token': token.key, 'user': user_to_dict(user)})


@csrf_exempt
@require_http_methods(['POST'])
@handles_workshop_errors
def register(request):
    """POST { "username", "password", "name", "phone"?, "email"? } -> 201 { "token", "user", "customer" }."""
    body = parse_json_body(request)
    user, customer = services.register_customer(body)
    token, _ = Token.objects.get_or_create(user=user)
    return JsonResponse(
        {'token': token.key, 'user': user_to_dict(user), 'customer': customer_to_dict(customer)},
        status=201,
    )


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
def logout(request):
    """Delete the caller's token."""
    Token.objects.filter(user=request.user).delete()
    return JsonResponse({'success': True})


@auth_required
@require_http_methods(['GET'])
def me(request):
    return JsonResponse(user_to_dict(request.user))


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
@handles_workshop_errors
def change_password(request):
    """POST current_password, new_password."""
    body = parse_json_body(request)
    current_password = body.get('current_password', '')
    new_password = body.get('new_password', '')
    if not current_password or not new_password:
        return JsonResponse({'error': 'current_password and new_password required'}, status=400)
    if len(new_password) < 8:
        return JsonResponse({'error': 'new_password must be at least 8 characters'}, status=400)
    user = request.user
    if not user.check_password(current_password):
        return JsonResponse({'error': 'Current password is incorrect'}, status=400)
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    return JsonResponse({'success': True})


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
@handles_workshop_errors
def set_security_pin(request):
    """POST { "password", "pin" }: set or replace the payout PIN."""
    body = parse_json_body(request)
    user = wallet.set_security_pin(request.user, body.get('password'), body.get('pin'))
    return JsonResponse(user_to_dict(user))


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
@handles_workshop_errors
def two_factor_setup(request):
    """Returns { secret, otpauth_url, qr_code } for an authenticator app."""
    return JsonResponse(two_factor.setup_two_factor(request.user))


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
@handles_workshop_errors
def two_factor_enable(request):
    body = parse_json_body(request)
    user = two_factor.enable_two_factor(request.user, body.get('token') or body.get('code'))
    services.log_activity(user, 'ENABLE_2FA', 'User', user.pk, 'Two-factor enabled')
    return JsonResponse(user_to_dict(user))


@csrf_exempt
@auth_required
@require_http_methods(['POST'])
@handles_workshop_errors
def two_factor_disable(request):
    body = parse_json_body(request)
    user = two_factor.disable_two_factor(request.user, body.get('token') or body.get('code'))
    services.log_activity(user, 'DISABLE_2FA', 'User', user.pk, 'Two-factor disabled')
    return JsonResponse(user_to_dict(user))

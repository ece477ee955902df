"""
Shared helpers for API views: value serialization, token auth, JSON bodies and
translation of domain errors into JSON responses.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from functools import wraps

from django.http import JsonResponse
from rest_framework.authtoken.models import Token

from .exceptions import NotFound, ValidationError, WorkshopError

logger = logging.getLogger(__name__)


def serialize_value(v):
    if v is None:
        return None
    if isinstance(v, Decimal):
        return str(v)
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    if hasattr(v, 'pk'):
        return v.pk
    return v


def iso(dt):
    return dt.isoformat() if dt else None


def auth_required(view_func):
    """Decorator: set request.user from Authorization Bearer token (DRF Token only). Return 401 if invalid."""
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        auth_header = request.META.get('HTTP_AUTHORIZATION')
        if not auth_header or not auth_header.startswith('Bearer '):
            return JsonResponse({'error': 'Authentication required'}, status=401)
        key = auth_header[7:].strip()
        token = Token.objects.select_related('user').filter(key=key).first()
        if token is None:
            return JsonResponse({'error': 'Invalid token'}, status=401)
        if not token.user.is_active:
            return JsonResponse({'error': 'Account disabled'}, status=403)
        request.user = token.user
        return view_func(request, *args, **kwargs)
    return wrapped


def handles_workshop_errors(view_func):
    """Decorator: turn WorkshopError into {"error": kind, "detail": message} with its status."""
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except WorkshopError as exc:
            logger.debug('%s on %s: %s', exc.kind, request.path, exc.message)
            return JsonResponse(exc.as_dict(), status=exc.status)
    return wrapped


def parse_json_body(request):
    """Return the request body as a dict; empty body gives {}."""
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Invalid JSON')
    if not isinstance(body, dict):
        raise ValidationError('JSON body must be an object')
    return body


def get_or_not_found(queryset, pk, label):
    """Like get_object_or_404, but raises the domain NotFound so the JSON error shape is kept."""
    try:
        obj = queryset.filter(pk=pk).first()
    except (TypeError, ValueError):
        obj = None
    if obj is None:
        raise NotFound(f'{label} not found')
    return obj


def query_bool(request, name):
    """Read ?name=true|1|yes as a bool; missing gives None."""
    raw = request.GET.get(name)
    if raw is None or raw == '':
        return None
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')

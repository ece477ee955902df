"""
TOTP second factor for payouts: enrollment QR, enable/disable, code checks.
"""
import base64
import io

import pyotp
import qrcode
from django.conf import settings

from .exceptions import InvalidCredential, ValidationError


def provisioning_uri(user, secret):
    label = user.email or user.username
    return pyotp.TOTP(secret).provisioning_uri(name=label, issuer_name=settings.TOTP_ISSUER)


def qr_png_data_uri(payload):
    """Render payload as a PNG QR code and return it as a data: URI."""
    qr = qrcode.QRCode(version=1, box_size=8, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white')
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f'data:image/png;base64,{encoded}'


def verify_code(secret, code):
    code = str(code or '').strip().replace(' ', '')
    if not secret or not code.isdigit():
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=1)


def setup_two_factor(user):
    """Generate a pending secret. It becomes active only after enable_two_factor."""
    secret = pyotp.random_base32()
    user.two_factor_pending_secret = secret
    user.save(update_fields=['two_factor_pending_secret', 'updated_at'])
    uri = provisioning_uri(user, secret)
    return {'secret': secret, 'otpauth_url': uri, 'qr_code': qr_png_data_uri(uri)}


def enable_two_factor(user, code):
    if not user.two_factor_pending_secret:
        raise ValidationError('Start two-factor setup first')
    if not verify_code(user.two_factor_pending_secret, code):
        raise InvalidCredential('Invalid authentication code')
    user.two_factor_secret = user.two_factor_pending_secret
    user.two_factor_pending_secret = ''
    user.two_factor_enabled = True
    user.save(update_fields=[
        'two_factor_secret', 'two_factor_pending_secret', 'two_factor_enabled', 'updated_at',
    ])
    return user


def disable_two_factor(user, code):
    if not user.two_factor_enabled:
        raise ValidationError('Two-factor authentication is not enabled')
    if not verify_code(user.two_factor_secret, code):
        raise InvalidCredential('Invalid authentication code')
    user.two_factor_enabled = False
    user.two_factor_secret = ''
    user.save(update_fields=['two_factor_enabled', 'two_factor_secret', 'updated_at'])
    return user


def verify_second_factor(user, code):
    """Raise InvalidCredential unless 2FA is off or the code matches."""
    if not user.two_factor_enabled:
        return True
    if not verify_code(user.two_factor_secret, code):
        raise InvalidCredential('Invalid authentication code')
    return True

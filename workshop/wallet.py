"""
Merchant wallet: balance derived from the payment, online order, refund and payout
ledgers, plus the PIN/2FA gated payout flow.

Payouts lock the WalletState row so two concurrent withdrawals cannot both
see the same balance.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum

from . import services, two_factor
from .exceptions import InvalidCredential, NoFundsAvailable, ValidationError
from .models import OnlineOrder, OnlineOrderRefund, Payment, Payout, PayoutMethod, WalletState

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def get_wallet_state(lock=False):
    """Return the WalletState singleton, creating it on first use."""
    state, _ = WalletState.objects.get_or_create(pk=1)
    if lock:
        state = WalletState.objects.select_for_update().get(pk=1)
    return state


def _sum(qs, field):
    return qs.aggregate(total=Sum(field))['total'] or ZERO


def compute_balance():
    """
    total_earnings = invoice payments + online orders with confirmed payment.
    available = earnings - refunds - payouts.
    """
    payments = _sum(Payment.objects.all(), 'amount')
    online = _sum(OnlineOrder.objects.filter(payment_confirmed_at__isnull=False), 'total_amount')
    refunded = _sum(OnlineOrderRefund.objects.all(), 'amount')
    withdrawn = _sum(Payout.objects.all(), 'amount')
    earnings = payments + online
    return {
        'total_earnings': earnings,
        'invoice_earnings': payments,
        'online_earnings': online,
        'total_refunded': refunded,
        'total_withdrawn': withdrawn,
        'available_balance': earnings - refunded - withdrawn,
    }


def wallet_summary(recent=5):
    summary = compute_balance()
    summary['version'] = get_wallet_state().version
    summary['recent_payouts'] = list(Payout.objects.select_related('processed_by')[:recent])
    return summary


def payout_preflight(user):
    """Step 0: refuse before any PIN prompt when there is nothing to withdraw."""
    balance = compute_balance()['available_balance']
    if balance <= 0:
        raise NoFundsAvailable('No funds available for payout')
    return {
        'available_balance': balance,
        'version': get_wallet_state().version,
        'requires_two_factor': user.two_factor_enabled,
        'has_security_pin': user.has_security_pin,
    }


def verify_pin(user, pin):
    """Step 1. Wrong and unset PINs fail the same way."""
    if not user.check_security_pin(str(pin or '')):
        services.log_activity(user, 'PIN_FAILED', 'Wallet', None, 'Invalid security PIN attempt')
        logger.warning('Invalid security PIN for user %s', user.pk)
        raise InvalidCredential('Invalid PIN')
    services.log_activity(user, 'PIN_VERIFIED', 'Wallet', None, 'Security PIN verified')
    return True


def set_security_pin(user, password, pin):
    if not user.check_password(password or ''):
        raise InvalidCredential('Invalid password')
    pin = str(pin or '').strip()
    low, high = settings.SECURITY_PIN_MIN_LENGTH, settings.SECURITY_PIN_MAX_LENGTH
    if not pin.isdigit() or not low <= len(pin) <= high:
        raise ValidationError(f'PIN must be {low} to {high} digits')
    user.set_security_pin(pin)
    user.save(update_fields=['security_pin', 'updated_at'])
    services.log_activity(user, 'SET_PIN', 'User', user.pk, 'Security PIN updated')
    return user


def execute_payout(user, pin, method, account_number, account_name='', otp=None,
                   confirm=False, expected_amount=None):
    """
    Withdraw the entire available balance.
    Order of checks: balance > 0, PIN, second factor, then the request details.
    """
    method = str(method or '').strip().upper()
    account_number = str(account_number or '').strip()

    try:
        with transaction.atomic():
            state = get_wallet_state(lock=True)
            balance = compute_balance()['available_balance']
            if balance <= 0:
                raise NoFundsAvailable('No funds available for payout')
            if not user.check_security_pin(str(pin or '')):
                logger.warning('Payout refused: invalid security PIN for user %s', user.pk)
                raise InvalidCredential('Invalid PIN')
            two_factor.verify_second_factor(user, otp)
            if confirm is not True:
                raise ValidationError('Payout must be explicitly confirmed')
            if method not in PayoutMethod.values:
                raise ValidationError(f'Invalid payout method: {method or "(blank)"}')
            if not account_number:
                raise ValidationError('account_number required')
            expected = None
            if expected_amount not in (None, ''):
                expected = services.to_decimal(expected_amount, 'expected_amount')
            if expected is not None and expected != balance:
                raise ValidationError(f'Balance changed to {balance}; review and confirm again')
            WalletState.objects.filter(pk=state.pk).update(version=F('version') + 1)
            state.refresh_from_db()
            payout = Payout.objects.create(
                amount=balance,
                method=method,
                account_name=str(account_name or '').strip(),
                account_number=account_number,
                processed_by=user,
                balance_version=state.version,
            )
    except InvalidCredential as exc:
        services.log_activity(user, 'PAYOUT_FAIL', 'Wallet', None, str(exc))
        raise
    services.log_activity(user, 'PAYOUT', 'Wallet', payout.pk, f'{balance} via {method}')
    logger.info('Payout %s of %s by user %s', payout.pk, balance, user.pk)
    return payout

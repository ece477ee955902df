from decimal import Decimal

import pyotp
from django.test import TestCase

from workshop import services, two_factor, wallet
from workshop.exceptions import InvalidCredential, NoFundsAvailable, ValidationError
from workshop.models import ActivityLog, Payout, Role

from .base import WorkshopFixtures


class WalletBalanceTests(WorkshopFixtures, TestCase):
    def test_empty_wallet(self):
        balance = wallet.compute_balance()
        self.assertEqual(balance['available_balance'], Decimal('0.00'))

    def test_balance_from_payments_orders_refunds_and_payouts(self):
        invoice = self.make_invoice(total_labor='1000.00')
        services.record_payment(invoice, '600.00', 'CASH')
        part = self.make_part(quantity=10, selling_price='250.00')
        paid = services.place_order({
            'customer_name': 'Ana', 'email': 'ana@example.com',
            'items': [{'part_id': part.pk, 'qty': 2}],
        })
        services.confirm_payment(paid)
        unpaid = services.place_order({
            'customer_name': 'Ben', 'email': 'ben@example.com',
            'items': [{'part_id': part.pk, 'qty': 1}],
        })
        refunded = services.confirm_payment(services.place_order({
            'customer_name': 'Cara', 'email': 'cara@example.com',
            'items': [{'part_id': part.pk, 'qty': 1}],
        }))
        services.cancel_online_order(refunded, refund_reference='RF-1')

        balance = wallet.compute_balance()
        self.assertEqual(balance['invoice_earnings'], Decimal('600.00'))
        self.assertEqual(balance['online_earnings'], Decimal('750.00'))
        self.assertEqual(balance['total_refunded'], Decimal('250.00'))
        self.assertEqual(balance['available_balance'], Decimal('1100.00'))
        self.assertEqual(unpaid.payment_confirmed_at, None)


class PayoutTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.admin = self.make_user('owner', role=Role.ADMIN)
        wallet.set_security_pin(self.admin, 'pass12345', '1234')
        invoice = self.make_invoice(total_labor='1500.00')
        services.record_payment(invoice, '1500.00', 'CASH')

    def payout(self, **overrides):
        kwargs = {
            'pin': '1234',
            'method': 'GCASH',
            'account_number': '09171234567',
            'account_name': 'Shop Owner',
            'confirm': True,
        }
        kwargs.update(overrides)
        return wallet.execute_payout(self.admin, **kwargs)

    def test_payout_withdraws_full_balance(self):
        payout = self.payout(expected_amount='1500.00')
        self.assertEqual(payout.amount, Decimal('1500.00'))
        self.assertEqual(payout.balance_version, 1)
        self.assertEqual(wallet.compute_balance()['available_balance'], Decimal('0.00'))
        with self.assertRaises(NoFundsAvailable):
            self.payout()

    def test_no_funds_checked_before_pin(self):
        self.payout()
        with self.assertRaises(NoFundsAvailable):
            wallet.payout_preflight(self.admin)
        with self.assertRaises(NoFundsAvailable):
            self.payout(pin='0000')

    def test_wrong_pin_rejected(self):
        with self.assertRaisesMessage(InvalidCredential, 'Invalid PIN'):
            self.payout(pin='9999')
        self.assertFalse(Payout.objects.exists())

    def test_unset_pin_rejected(self):
        other = self.make_user('manager', role=Role.ADMIN)
        with self.assertRaises(InvalidCredential):
            wallet.execute_payout(other, '', 'GCASH', '09171234567', confirm=True)

    def test_verify_pin_logs_failures(self):
        with self.assertRaises(InvalidCredential):
            wallet.verify_pin(self.admin, '1111')
        self.assertTrue(ActivityLog.objects.filter(action='PIN_FAILED', user=self.admin).exists())
        self.assertTrue(wallet.verify_pin(self.admin, '1234'))

    def test_requires_explicit_confirmation(self):
        with self.assertRaises(ValidationError):
            self.payout(confirm=False)
        with self.assertRaises(ValidationError):
            self.payout(confirm='true')

    def test_stale_expected_amount_rejected(self):
        with self.assertRaises(ValidationError):
            self.payout(expected_amount='1000.00')
        self.assertFalse(Payout.objects.exists())

    def test_method_and_account_required(self):
        with self.assertRaises(ValidationError):
            self.payout(method='PAYPAL')
        with self.assertRaises(ValidationError):
            self.payout(account_number='')

    def test_two_factor_required_once_enabled(self):
        setup = two_factor.setup_two_factor(self.admin)
        self.assertTrue(setup['qr_code'].startswith('data:image/png;base64,'))
        totp = pyotp.TOTP(setup['secret'])
        two_factor.enable_two_factor(self.admin, totp.now())
        self.assertTrue(self.admin.two_factor_enabled)

        with self.assertRaises(InvalidCredential):
            self.payout()
        with self.assertRaises(InvalidCredential):
            self.payout(otp='000000' if totp.now() != '000000' else '111111')
        payout = self.payout(otp=totp.now())
        self.assertEqual(payout.amount, Decimal('1500.00'))

    def test_enable_two_factor_needs_valid_code(self):
        with self.assertRaises(ValidationError):
            two_factor.enable_two_factor(self.admin, '123456')
        two_factor.setup_two_factor(self.admin)
        with self.assertRaises(InvalidCredential):
            two_factor.enable_two_factor(self.admin, 'abcdef')
        self.assertFalse(self.admin.two_factor_enabled)

    def test_set_pin_validates_password_and_format(self):
        with self.assertRaises(InvalidCredential):
            wallet.set_security_pin(self.admin, 'wrong', '5678')
        with self.assertRaises(ValidationError):
            wallet.set_security_pin(self.admin, 'pass12345', '12')
        with self.assertRaises(ValidationError):
            wallet.set_security_pin(self.admin, 'pass12345', '12ab')
        wallet.set_security_pin(self.admin, 'pass12345', '567890')
        self.assertTrue(self.admin.check_security_pin('567890'))
        self.assertNotEqual(self.admin.security_pin, '567890')

    def test_wrong_pin_on_payout_is_audited(self):
        with self.assertRaises(InvalidCredential):
            self.payout(pin='9999')
        log = ActivityLog.objects.get(action='PAYOUT_FAIL')
        self.assertEqual(log.user, self.admin)
        self.assertEqual(log.details, 'Invalid PIN')
        self.assertFalse(ActivityLog.objects.filter(action='PAYOUT').exists())


class WithdrawalTotalsTests(WorkshopFixtures, TestCase):
    def test_payout_moves_whole_balance_to_withdrawn(self):
        admin = self.make_user('owner', role=Role.ADMIN)
        wallet.set_security_pin(admin, 'pass12345', '1234')
        invoice = self.make_invoice(total_labor='1200.00')
        services.record_payment(invoice, '1200.00', 'CASH')

        before = wallet.compute_balance()
        self.assertEqual(before['available_balance'], Decimal('1200.00'))
        self.assertEqual(before['total_withdrawn'], Decimal('0.00'))

        payout = wallet.execute_payout(admin, '1234', 'BANK_TRANSFER', '001234567890', confirm=True)
        self.assertEqual(payout.amount, Decimal('1200.00'))
        after = wallet.compute_balance()
        self.assertEqual(after['total_withdrawn'] - before['total_withdrawn'], Decimal('1200.00'))
        self.assertEqual(after['available_balance'], Decimal('0.00'))
        self.assertEqual(after['total_earnings'], before['total_earnings'])

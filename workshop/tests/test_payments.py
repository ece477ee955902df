from decimal import Decimal

from django.test import TestCase

from workshop import services
from workshop.exceptions import OverPayment, ValidationError
from workshop.models import InvoiceStatus, Payment

from .base import WorkshopFixtures


class PaymentTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.invoice = self.make_invoice(total_labor='1000.00')

    def test_partial_then_full_payment(self):
        _, invoice = services.record_payment(self.invoice, '400.00', 'CASH')
        self.assertEqual(invoice.status, InvoiceStatus.PARTIALLY_PAID)
        self.assertEqual(invoice.balance, Decimal('600.00'))
        payment, invoice = services.record_payment(self.invoice, '600.00', 'gcash', reference_number='GC-1')
        self.assertEqual(invoice.status, InvoiceStatus.PAID)
        self.assertEqual(invoice.amount_paid, Decimal('1000.00'))
        self.assertEqual(payment.method, 'GCASH')

    def test_overpayment_rejected_with_remaining_balance(self):
        services.record_payment(self.invoice, '700.00', 'CASH')
        with self.assertRaisesMessage(OverPayment, 'Remaining balance is 300.00'):
            services.record_payment(self.invoice, '300.01', 'CASH')
        self.assertEqual(Payment.objects.count(), 1)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal('700.00'))

    def test_paid_invoice_accepts_nothing_more(self):
        services.record_payment(self.invoice, '1000.00', 'BANK')
        with self.assertRaises(OverPayment):
            services.record_payment(self.invoice, '0.01', 'CASH')

    def test_amount_must_be_positive(self):
        for amount in ('0', '-10', '', None):
            with self.assertRaises(ValidationError):
                services.record_payment(self.invoice, amount, 'CASH')

    def test_more_than_two_decimals_rejected(self):
        with self.assertRaises(ValidationError):
            services.record_payment(self.invoice, '10.001', 'CASH')

    def test_unknown_method_rejected(self):
        with self.assertRaises(ValidationError):
            services.record_payment(self.invoice, '10.00', 'BITCOIN')

    def test_payments_are_append_only(self):
        payment, _ = services.record_payment(self.invoice, '10.00', 'CASH')
        payment.amount = Decimal('5.00')
        with self.assertRaises(ValidationError):
            payment.save()
        with self.assertRaises(ValidationError):
            payment.delete()

    def test_paid_sum_never_exceeds_total(self):
        for amount in ('250.00', '250.00', '250.00', '250.00'):
            services.record_payment(self.invoice, amount, 'CASH')
        with self.assertRaises(OverPayment):
            services.record_payment(self.invoice, '1.00', 'CASH')
        total = sum(p.amount for p in Payment.objects.filter(invoice=self.invoice))
        self.assertEqual(total, Decimal('1000.00'))


class MoneyInputTests(WorkshopFixtures, TestCase):
    """Amounts that cannot fit a 12-digit money column are rejected up front."""

    def setUp(self):
        self.customer = self.make_customer()
        self.vehicle = self.make_vehicle(self.customer)

    def test_to_decimal_bounds(self):
        self.assertEqual(services.to_decimal('9999999999.99', 'amount'), Decimal('9999999999.99'))
        for value in ('1e30', '10000000000', '-10000000000', '123456789012345.00', 'NaN', 'Infinity'):
            with self.assertRaises(ValidationError):
                services.to_decimal(value, 'amount')

    def test_payment_amount(self):
        job = services.create_job_order(self.customer, self.vehicle, 'Noise', estimated_cost='1000.00')
        invoice = services.create_invoice(job)
        with self.assertRaises(ValidationError):
            services.record_payment(invoice, '1e30', 'CASH')
        self.assertFalse(Payment.objects.exists())

    def test_job_order_labor_cost(self):
        for cost in ('1e30', '123456789012345.00'):
            with self.assertRaises(ValidationError):
                services.create_job_order(self.customer, self.vehicle, 'Noise', estimated_cost=cost)
        job = services.create_job_order(self.customer, self.vehicle, 'Noise', estimated_cost='500.00')
        with self.assertRaises(ValidationError):
            services.update_job_order(job, {'estimated_cost': '1e30'})
        job.refresh_from_db()
        self.assertEqual(job.estimated_cost, Decimal('500.00'))

    def test_part_prices(self):
        with self.assertRaises(ValidationError):
            self.make_part(part_number='BIG-1', selling_price='1e30')
        part = self.make_part(part_number='BIG-2')
        with self.assertRaises(ValidationError):
            services.update_part(part, {'buying_price': '99999999999'})
        with self.assertRaises(ValidationError):
            services.update_part(part, {'selling_price': '1e30'})

    def test_invoice_discount_and_tax(self):
        job = services.create_job_order(self.customer, self.vehicle, 'Noise', estimated_cost='1000.00')
        with self.assertRaises(ValidationError):
            services.create_invoice(job, discount='1e30')
        with self.assertRaises(ValidationError):
            services.create_invoice(job, tax='1e30')
        self.assertEqual(services.create_invoice(job).total_amount, Decimal('1000.00'))

    def test_invoice_total_must_fit(self):
        job = services.create_job_order(self.customer, self.vehicle, 'Noise', estimated_cost='9999999999.00')
        with self.assertRaises(ValidationError):
            services.create_invoice(job, tax='5.00')


class BillToPaidTests(WorkshopFixtures, TestCase):
    def test_labor_parts_discount_tax_then_full_payment(self):
        job = self.make_job_order(estimated_cost='500.00')
        part = self.make_part(quantity=10, selling_price='100.00')
        services.add_part(job, part, 3)
        invoice = services.create_invoice(job, discount='50.00', tax='30.00')
        self.assertEqual(invoice.sub_total, Decimal('800.00'))
        self.assertEqual(invoice.total_amount, Decimal('780.00'))
        self.assertEqual(invoice.status, InvoiceStatus.UNPAID)
        _, invoice = services.record_payment(invoice, '780.00', 'CASH')
        self.assertEqual(invoice.status, InvoiceStatus.PAID)
        self.assertEqual(invoice.balance, Decimal('0.00'))

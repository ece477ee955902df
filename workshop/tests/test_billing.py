from decimal import Decimal
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase, override_settings

from workshop import services
from workshop.exceptions import AlreadyInvoiced, InsufficientStock, NotFound, ValidationError
from workshop.models import Invoice, InvoiceStatus, JobOrderPart, StockLog, StockReason

from .base import WorkshopFixtures


class PartLineTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.job = self.make_job_order(estimated_cost='1000.00')
        self.part = self.make_part(quantity=10, selling_price='500.00')

    def test_add_part_deducts_stock_and_snapshots_price(self):
        line = services.add_part(self.job, self.part, 2)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 8)
        self.assertEqual(line.unit_price, Decimal('500.00'))
        log = StockLog.objects.filter(part=self.part, reason=StockReason.JOB_ORDER).get()
        self.assertEqual(log.delta, -2)
        self.assertEqual(log.job_order, self.job)

        services.update_part(self.part, {'selling_price': '650.00'})
        line.refresh_from_db()
        self.assertEqual(line.unit_price, Decimal('500.00'))

    def test_add_part_insufficient_stock_leaves_no_line(self):
        with self.assertRaises(InsufficientStock):
            services.add_part(self.job, self.part, 11)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 10)
        self.assertFalse(JobOrderPart.objects.exists())

    def test_remove_part_returns_stock(self):
        line = services.add_part(self.job, self.part, 3)
        services.remove_part(self.job, line.pk)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 10)
        self.assertFalse(JobOrderPart.objects.exists())
        self.assertTrue(StockLog.objects.filter(reason=StockReason.JOB_ORDER_RETURN, delta=3).exists())

    def test_remove_unknown_line(self):
        with self.assertRaises(NotFound):
            services.remove_part(self.job, 999)

    def test_part_lines_locked_after_invoice(self):
        line = services.add_part(self.job, self.part, 1)
        services.create_invoice(self.job)
        with self.assertRaises(AlreadyInvoiced):
            services.add_part(self.job, self.part, 1)
        with self.assertRaises(AlreadyInvoiced):
            services.remove_part(self.job, line.pk)


class InvoiceTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.job = self.make_job_order(estimated_cost='1000.00')
        self.part = self.make_part(quantity=10, selling_price='500.00')
        services.add_part(self.job, self.part, 2)

    def test_subtotal_is_labor_plus_parts(self):
        self.assertEqual(services.compute_subtotal(self.job), Decimal('2000.00'))
        bill = services.draft_bill(self.job)
        self.assertEqual(bill['parts_total'], Decimal('1000.00'))
        self.assertEqual(bill['sub_total'], Decimal('2000.00'))

    def test_invoice_total_formula(self):
        invoice = services.create_invoice(self.job, discount='200.00', tax='100.00')
        self.assertEqual(invoice.sub_total, Decimal('2000.00'))
        self.assertEqual(invoice.total_amount, Decimal('1900.00'))
        self.assertEqual(invoice.status, InvoiceStatus.UNPAID)
        self.assertEqual(invoice.lines.count(), 1)
        line = invoice.lines.get()
        self.assertEqual(line.line_total, Decimal('1000.00'))
        self.assertEqual(invoice.plate_number, self.job.vehicle.plate_number)

    def test_one_invoice_per_job_order(self):
        services.create_invoice(self.job)
        with self.assertRaises(AlreadyInvoiced):
            services.create_invoice(self.job)
        self.assertEqual(Invoice.objects.filter(job_order=self.job).count(), 1)

    def test_negative_total_rejected_by_default(self):
        with self.assertRaises(ValidationError):
            services.create_invoice(self.job, discount='2500.00')
        self.assertFalse(Invoice.objects.exists())

    @override_settings(INVOICE_NEGATIVE_TOTAL_POLICY='clamp')
    def test_negative_total_clamped_when_configured(self):
        invoice = services.create_invoice(self.job, discount='2500.00')
        self.assertEqual(invoice.total_amount, Decimal('0.00'))
        self.assertEqual(invoice.status, InvoiceStatus.PAID)

    def test_negative_discount_rejected(self):
        with self.assertRaises(ValidationError):
            services.create_invoice(self.job, discount='-5')

    def test_issued_invoice_is_frozen(self):
        invoice = services.create_invoice(self.job)
        invoice.total_amount = Decimal('1.00')
        with self.assertRaises(ValidationError):
            invoice.save()
        with self.assertRaises(ValidationError):
            invoice.save(update_fields=['total_amount'])

    def test_invoice_unaffected_by_later_price_change(self):
        invoice = services.create_invoice(self.job)
        services.update_part(self.part, {'selling_price': '999.00'})
        invoice.refresh_from_db()
        self.assertEqual(invoice.total_amount, Decimal('2000.00'))
        self.assertEqual(invoice.lines.get().unit_price, Decimal('500.00'))

    def test_unrelated_integrity_error_propagates(self):
        first = services.create_invoice(self.job)
        other = self.make_job_order(customer=self.job.customer, vehicle=self.job.vehicle)
        with mock.patch('workshop.services._unique_number', return_value=first.invoice_number):
            with self.assertRaises(IntegrityError):
                services.create_invoice(other)
        self.assertFalse(Invoice.objects.filter(job_order=other).exists())

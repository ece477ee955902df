from django.test import TestCase

from workshop import services
from workshop.exceptions import InsufficientStock, PartInUse, ValidationError
from workshop.models import Part, StockLog, StockReason

from .base import WorkshopFixtures


class StockLedgerTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.part = self.make_part(quantity=10)

    def test_create_part_writes_initial_log(self):
        log = StockLog.objects.get(part=self.part)
        self.assertEqual(log.reason, StockReason.INITIAL)
        self.assertEqual(log.delta, 10)
        self.assertEqual(log.quantity_after, 10)

    def test_duplicate_part_number_rejected(self):
        with self.assertRaisesMessage(ValidationError, 'Part Number already exists'):
            self.make_part(part_number='brk-001')

    def test_manual_add_and_deduct(self):
        services.adjust_stock(self.part, 'ADD', 5, note='Delivery')
        log = services.adjust_stock(self.part, 'DEDUCT', 3)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 12)
        self.assertEqual(log.reason, StockReason.MANUAL_DEDUCT)
        self.assertEqual(log.delta, -3)
        self.assertEqual(log.quantity_after, 12)

    def test_deduct_below_zero_rejected_and_state_unchanged(self):
        with self.assertRaises(InsufficientStock):
            services.adjust_stock(self.part, 'DEDUCT', 11)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 10)
        self.assertEqual(StockLog.objects.filter(part=self.part).count(), 1)

    def test_deduct_exact_quantity_reaches_zero(self):
        services.adjust_stock(self.part, 'DEDUCT', 10)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 0)

    def test_invalid_action_and_quantity(self):
        with self.assertRaises(ValidationError):
            services.adjust_stock(self.part, 'SET', 3)
        with self.assertRaises(ValidationError):
            services.adjust_stock(self.part, 'ADD', 0)
        with self.assertRaises(ValidationError):
            services.adjust_stock(self.part, 'ADD', 'lots')

    def test_quantity_equals_sum_of_log_deltas(self):
        services.adjust_stock(self.part, 'ADD', 7)
        services.adjust_stock(self.part, 'DEDUCT', 4)
        job = self.make_job_order()
        services.add_part(job, self.part, 2)
        self.part.refresh_from_db()
        total = sum(StockLog.objects.filter(part=self.part).values_list('delta', flat=True))
        self.assertEqual(self.part.quantity, total)
        self.assertEqual(self.part.quantity, 11)

    def test_update_part_rejects_quantity(self):
        with self.assertRaises(ValidationError):
            services.update_part(self.part, {'quantity': 99})

    def test_update_part_prices_and_threshold(self):
        services.update_part(self.part, {'selling_price': '650.50', 'min_threshold': 2})
        self.part.refresh_from_db()
        self.assertEqual(str(self.part.selling_price), '650.50')
        self.assertEqual(self.part.min_threshold, 2)

    def test_price_with_three_decimals_rejected(self):
        with self.assertRaises(ValidationError):
            services.update_part(self.part, {'selling_price': '10.005'})

    def test_low_stock_parts(self):
        low = self.make_part(part_number='OIL-001', quantity=3)
        self.assertEqual(list(services.low_stock_parts()), [low])

    def test_delete_part_in_use(self):
        job = self.make_job_order()
        services.add_part(job, self.part, 1)
        with self.assertRaises(PartInUse):
            services.delete_part(self.part)
        self.assertTrue(Part.objects.filter(pk=self.part.pk).exists())

    def test_delete_unused_part(self):
        spare = self.make_part(part_number='FLT-002', quantity=0)
        services.delete_part(spare)
        self.assertFalse(Part.objects.filter(pk=spare.pk).exists())

    def test_public_parts_hide_out_of_stock_and_private(self):
        self.make_part(part_number='EMPTY-1', quantity=0)
        self.make_part(part_number='HIDDEN-1', quantity=4, is_public=False)
        self.assertEqual(list(services.public_parts()), [self.part])

    def test_attach_until_stock_runs_out(self):
        part = self.make_part(part_number='FLT-005', quantity=5)
        job = self.make_job_order()
        services.add_part(job, part, 3)
        part.refresh_from_db()
        self.assertEqual(part.quantity, 2)
        with self.assertRaises(InsufficientStock):
            services.add_part(job, part, 3)
        part.refresh_from_db()
        self.assertEqual(part.quantity, 2)
        self.assertEqual(job.parts.count(), 1)

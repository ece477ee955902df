from decimal import Decimal

from django.test import TestCase

from workshop import services
from workshop.exceptions import InsufficientStock, InvalidTransition, NotFound, ValidationError
from workshop.models import OnlineOrder, OnlineOrderRefund, OnlineOrderStatus, StockLog, StockReason
from workshop.validators import is_valid_card_number, is_valid_gcash_number, mask_number

from .base import WorkshopFixtures


class PlaceOrderTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.part = self.make_part(quantity=5, selling_price='1200.00')

    def order_data(self, **extra):
        data = {
            'customer_name': 'Ana Santos',
            'email': 'ana@example.com',
            'payment_method': 'CASH',
            'items': [{'part_id': self.part.pk, 'qty': 2}],
        }
        data.update(extra)
        return data

    def test_pickup_order_has_no_shipping(self):
        order = services.place_order(self.order_data())
        self.assertEqual(order.status, OnlineOrderStatus.PENDING)
        self.assertEqual(order.items_total, Decimal('2400.00'))
        self.assertEqual(order.shipping_fee, Decimal('0.00'))
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 3)
        self.assertEqual(StockLog.objects.filter(reason=StockReason.ONLINE_ORDER).count(), 1)

    def test_delivery_flat_rate_below_threshold(self):
        order = services.place_order(self.order_data(
            delivery_method='DELIVERY', shipping_address='12 Rizal St', shipping_city='Makati',
        ))
        self.assertEqual(order.shipping_fee, Decimal('150.00'))
        self.assertEqual(order.total_amount, Decimal('2550.00'))

    def test_delivery_free_at_threshold(self):
        data = self.order_data(delivery_method='DELIVERY', shipping_address='12 Rizal St')
        data['items'] = [{'part_id': self.part.pk, 'qty': 5}]
        order = services.place_order(data)
        self.assertEqual(order.items_total, Decimal('6000.00'))
        self.assertEqual(order.shipping_fee, Decimal('0.00'))

    def test_delivery_needs_address(self):
        with self.assertRaises(ValidationError):
            services.place_order(self.order_data(delivery_method='DELIVERY'))

    def test_out_of_stock_rolls_back_whole_order(self):
        other = self.make_part(part_number='OIL-9', quantity=1)
        data = self.order_data(items=[
            {'part_id': self.part.pk, 'qty': 2},
            {'part_id': other.pk, 'qty': 2},
        ])
        with self.assertRaises(InsufficientStock):
            services.place_order(data)
        self.assertFalse(OnlineOrder.objects.exists())
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 5)

    def test_private_part_not_orderable(self):
        hidden = self.make_part(part_number='SHOP-ONLY', quantity=3, is_public=False)
        with self.assertRaises(NotFound):
            services.place_order(self.order_data(items=[{'part_id': hidden.pk, 'qty': 1}]))

    def test_card_number_masked(self):
        order = services.place_order(self.order_data(payment_method='CARD', card_number='4111 1111 1111 1111'))
        self.assertEqual(order.payment_reference, '************1111')

    def test_invalid_card_and_gcash_rejected(self):
        with self.assertRaises(ValidationError):
            services.place_order(self.order_data(payment_method='CARD', card_number='4111111111111112'))
        with self.assertRaises(ValidationError):
            services.place_order(self.order_data(payment_method='GCASH', gcash_number='0812345678'))

    def test_lookup_requires_matching_email(self):
        order = services.place_order(self.order_data())
        self.assertEqual(services.lookup_online_order(order.order_number, 'ANA@example.com'), order)
        with self.assertRaises(NotFound):
            services.lookup_online_order(order.order_number, 'someone@example.com')


class OrderFulfilmentTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.part = self.make_part(quantity=5, selling_price='1000.00')

    def place(self, delivery_method='PICKUP'):
        return services.place_order({
            'customer_name': 'Ana Santos',
            'email': 'ana@example.com',
            'delivery_method': delivery_method,
            'shipping_address': '12 Rizal St',
            'items': [{'part_id': self.part.pk, 'qty': 2}],
        })

    def test_pickup_flow(self):
        order = services.confirm_payment(self.place())
        self.assertEqual(order.status, OnlineOrderStatus.PROCESSING)
        self.assertIsNotNone(order.payment_confirmed_at)
        with self.assertRaises(InvalidTransition):
            services.mark_shipped(order)
        order = services.mark_completed(order)
        self.assertEqual(order.status, OnlineOrderStatus.COMPLETED)

    def test_delivery_flow_requires_tracking_before_ship(self):
        order = services.confirm_payment(self.place('DELIVERY'))
        with self.assertRaises(InvalidTransition):
            services.mark_shipped(order)
        with self.assertRaises(ValidationError):
            services.update_tracking(order, 'LBC123', '')
        order = services.update_tracking(order, 'LBC123', 'LBC Express')
        self.assertEqual(order.status, OnlineOrderStatus.PROCESSING)
        order = services.mark_shipped(order)
        self.assertEqual(order.status, OnlineOrderStatus.SHIPPED)

    def test_confirm_twice_rejected(self):
        order = services.confirm_payment(self.place())
        with self.assertRaises(InvalidTransition):
            services.confirm_payment(order)

    def test_cancel_pending_restocks(self):
        order = services.cancel_online_order(self.place(), reason='Changed mind')
        self.assertEqual(order.status, OnlineOrderStatus.CANCELLED)
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 5)
        self.assertFalse(OnlineOrderRefund.objects.exists())

    def test_cancel_paid_order_needs_refund_reference(self):
        order = services.confirm_payment(self.place())
        with self.assertRaises(ValidationError):
            services.cancel_online_order(order)
        order = services.cancel_online_order(order, reason='Defective', refund_reference='RF-001')
        refund = OnlineOrderRefund.objects.get(order=order)
        self.assertEqual(refund.amount, Decimal('2000.00'))
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 5)

    def test_completed_order_cannot_be_cancelled(self):
        order = services.mark_completed(services.confirm_payment(self.place()))
        with self.assertRaises(InvalidTransition):
            services.cancel_online_order(order, refund_reference='RF-9')


    def test_tracking_needs_number_and_processing_delivery_order(self):
        services.adjust_stock(self.part, 'ADD', 5)
        order = services.confirm_payment(self.place('DELIVERY'))
        for blank in ('', '   ', None):
            with self.assertRaises(ValidationError):
                services.update_tracking(order, blank, 'LBC Express')
        order.refresh_from_db()
        self.assertEqual(order.tracking_number, '')

        pending = self.place('DELIVERY')
        with self.assertRaises(InvalidTransition):
            services.update_tracking(pending, 'LBC123', 'LBC Express')
        pickup = services.confirm_payment(self.place('PICKUP'))
        with self.assertRaises(InvalidTransition):
            services.update_tracking(pickup, 'LBC123', 'LBC Express')
        pending.refresh_from_db()
        self.assertEqual(pending.status, OnlineOrderStatus.PENDING)


class PaymentDetailValidatorTests(TestCase):
    def test_card_numbers(self):
        self.assertTrue(is_valid_card_number('4111-1111-1111-1111'))
        self.assertFalse(is_valid_card_number('4111'))
        self.assertFalse(is_valid_card_number('abcd1111abcd1111'))

    def test_gcash_numbers(self):
        self.assertTrue(is_valid_gcash_number('09171234567'))
        self.assertTrue(is_valid_gcash_number('+639171234567'))
        self.assertTrue(is_valid_gcash_number('9171234567'))
        self.assertFalse(is_valid_gcash_number('0917123456'))

    def test_mask(self):
        self.assertEqual(mask_number('09171234567'), '*******4567')
        self.assertEqual(mask_number('123'), '123')
        self.assertEqual(mask_number(None), '')

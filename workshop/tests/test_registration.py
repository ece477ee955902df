from django.test import TestCase

from workshop import services
from workshop.exceptions import NotFound, ValidationError
from workshop.models import Customer, Role, User

from .base import WorkshopFixtures


class RegisterCustomerTests(WorkshopFixtures, TestCase):
    def register(self, **extra):
        data = {'username': 'maria', 'password': 'secret-123', 'name': 'Maria Clara', 'phone': '09175550000'}
        data.update(extra)
        return services.register_customer(data)

    def test_creates_customer_login_and_profile(self):
        user, customer = self.register()
        self.assertEqual(user.role, Role.CUSTOMER)
        self.assertTrue(user.check_password('secret-123'))
        self.assertEqual(customer.user, user)
        self.assertEqual(customer.name, 'Maria Clara')
        self.assertEqual(customer.phone, '09175550000')

    def test_email_username_fills_customer_email(self):
        _, customer = self.register(username='maria@example.com')
        self.assertEqual(customer.email, 'maria@example.com')

    def test_duplicate_username_rejected_without_partial_rows(self):
        self.register()
        with self.assertRaisesMessage(ValidationError, 'Username already exists'):
            self.register(username='MARIA', name='Other')
        self.assertEqual(User.objects.count(), 1)
        self.assertEqual(Customer.objects.count(), 1)

    def test_required_fields_and_password_length(self):
        with self.assertRaises(ValidationError):
            self.register(name='')
        with self.assertRaises(ValidationError):
            self.register(password='short')
        self.assertFalse(User.objects.exists())

    def test_missing_profile_is_created_on_first_use(self):
        user = self.make_user('legacy', role=Role.CUSTOMER, name='Old Account')
        customer = services.customer_for_user(user)
        self.assertEqual(customer.name, 'Old Account')
        self.assertEqual(services.customer_for_user(user), customer)

    def test_customer_cannot_transfer_or_touch_other_vehicles(self):
        user, mine = self.register()
        vehicle = self.make_vehicle(mine)
        other = self.make_vehicle(self.make_customer(), plate_number='XYZ9876')
        vehicle = services.update_own_vehicle(mine, vehicle.pk, {'color': 'Red', 'customer_id': other.customer_id})
        self.assertEqual(vehicle.color, 'Red')
        self.assertEqual(vehicle.customer, mine)
        with self.assertRaises(NotFound):
            services.update_own_vehicle(mine, other.pk, {'color': 'Blue'})

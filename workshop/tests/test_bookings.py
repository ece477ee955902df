from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from workshop import services
from workshop.exceptions import InvalidTransition, NotFound, ValidationError
from workshop.models import Appointment, BookingStatus, JobOrderStatus

from .base import WorkshopFixtures


def future_day(days=3):
    return (timezone.localdate() + timedelta(days=days)).isoformat()


class BookingTests(WorkshopFixtures, TestCase):
    def request(self, **extra):
        data = {
            'customer_name': 'Pedro Reyes',
            'phone': '09181234567',
            'email': 'pedro@example.com',
            'date': future_day(),
            'service_type': 'Oil Change',
        }
        data.update(extra)
        return services.request_booking(data)

    def test_request_creates_pending_booking(self):
        booking = self.request()
        self.assertEqual(booking.status, BookingStatus.PENDING)
        self.assertTrue(booking.booking_ref.startswith('APT-'))

    def test_today_is_allowed_but_past_is_not(self):
        self.request(date=timezone.localdate().isoformat())
        with self.assertRaises(ValidationError):
            self.request(date=future_day(-1))
        with self.assertRaises(ValidationError):
            self.request(date='not-a-date')

    def test_home_service_address_goes_into_notes(self):
        booking = self.request(service_type='Home Service', address='5 Mabini St', notes='Gate code 12')
        self.assertEqual(booking.notes, '[Home Service Address: 5 Mabini St] Gate code 12')

    def test_allowed_transitions(self):
        booking = services.set_booking_status(self.request(), 'CONFIRMED')
        self.assertEqual(booking.status, BookingStatus.CONFIRMED)
        with self.assertRaises(InvalidTransition):
            services.set_booking_status(booking, 'CANCELLED')
        booking = services.set_booking_status(booking, 'COMPLETED')
        with self.assertRaises(InvalidTransition):
            services.set_booking_status(booking, 'PENDING')

    def test_pending_cannot_complete_directly(self):
        with self.assertRaises(InvalidTransition):
            services.set_booking_status(self.request(), 'COMPLETED')

    def test_start_job_from_confirmed_booking(self):
        customer = self.make_customer()
        vehicle = self.make_vehicle(customer)
        booking = self.request(notes='Every 5000 km')
        with self.assertRaises(InvalidTransition):
            services.start_job_from_booking(booking, customer, vehicle)
        services.set_booking_status(booking, 'CONFIRMED')
        booking, job = services.start_job_from_booking(booking, customer, vehicle, estimated_cost='800.00')
        self.assertEqual(booking.status, BookingStatus.COMPLETED)
        self.assertEqual(booking.job_order, job)
        self.assertEqual(job.status, JobOrderStatus.RECEIVED)
        self.assertEqual(job.complaint, 'Oil Change: Every 5000 km')

    def test_delete_only_terminal(self):
        booking = self.request()
        with self.assertRaises(InvalidTransition):
            services.delete_booking(booking)
        booking = services.set_booking_status(booking, 'CANCELLED')
        services.delete_booking(booking)
        self.assertFalse(Appointment.objects.exists())

    def test_purge_requires_confirmation_and_keeps_active(self):
        keep = self.request()
        cancelled = services.set_booking_status(self.request(), 'CANCELLED')
        with self.assertRaises(ValidationError):
            services.purge_bookings()
        with self.assertRaises(ValidationError):
            services.purge_bookings(confirm='yes')
        self.assertEqual(services.purge_bookings(confirm=True), 1)
        self.assertTrue(Appointment.objects.filter(pk=keep.pk).exists())
        self.assertFalse(Appointment.objects.filter(pk=cancelled.pk).exists())

    def test_purge_removes_cancelled_and_completed_only(self):
        pending = self.request()
        confirmed = services.set_booking_status(self.request(), 'CONFIRMED')
        cancelled = services.set_booking_status(self.request(), 'CANCELLED')
        completed = services.set_booking_status(
            services.set_booking_status(self.request(), 'CONFIRMED'), 'COMPLETED'
        )
        self.assertEqual(services.purge_bookings(confirm=True), 2)
        remaining = set(Appointment.objects.values_list('pk', flat=True))
        self.assertEqual(remaining, {pending.pk, confirmed.pk})
        self.assertNotIn(cancelled.pk, remaining)
        self.assertNotIn(completed.pk, remaining)

    def test_purge_command(self):
        services.set_booking_status(self.request(), 'CANCELLED')
        out = StringIO()
        call_command('purge_bookings', '--dry-run', stdout=out)
        self.assertIn('would delete 1', out.getvalue())
        self.assertEqual(Appointment.objects.count(), 1)
        with self.assertRaises(CommandError):
            call_command('purge_bookings', stdout=out)
        call_command('purge_bookings', '--yes', stdout=out)
        self.assertFalse(Appointment.objects.exists())


class TrackingTests(WorkshopFixtures, TestCase):
    def test_track_job_order_by_plate(self):
        job = self.make_job_order()
        result = services.track_reference(job.job_number.lower(), 'abc1234')
        self.assertEqual(result['type'], 'job_order')
        self.assertEqual(result['status'], 'RECEIVED')
        self.assertIsNone(result['invoice_status'])
        with self.assertRaises(NotFound):
            services.track_reference(job.job_number, 'XYZ999')

    def test_track_booking_by_phone_or_email(self):
        booking = services.request_booking({
            'customer_name': 'Pedro', 'phone': '09181234567', 'email': 'pedro@example.com',
            'date': future_day(), 'service_type': 'Tune Up',
        })
        self.assertEqual(services.track_reference(booking.booking_ref, '09181234567')['status'], 'PENDING')
        self.assertEqual(services.track_reference(booking.booking_ref, 'PEDRO@example.com')['type'], 'booking')
        with self.assertRaises(NotFound):
            services.track_reference(booking.booking_ref, '0000')

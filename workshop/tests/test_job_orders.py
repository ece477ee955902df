from unittest import mock

from django.test import TestCase

from workshop import services
from workshop.exceptions import AlreadyInvoiced, InvalidTransition, ValidationError
from workshop.models import ActivityLog, JobOrderStatus, Role

from .base import WorkshopFixtures


class JobOrderLifecycleTests(WorkshopFixtures, TestCase):
    def setUp(self):
        self.advisor = self.make_user()
        self.job = self.make_job_order(actor=self.advisor)

    def test_new_job_order_starts_received(self):
        self.assertEqual(self.job.status, JobOrderStatus.RECEIVED)
        self.assertTrue(self.job.job_number.startswith('JO-'))
        self.assertEqual(self.job.created_by, self.advisor)

    def test_vehicle_must_belong_to_customer(self):
        other = self.make_customer(name='Maria')
        with self.assertRaises(ValidationError):
            services.create_job_order(other, self.job.vehicle, 'Noise')

    def test_any_status_reachable_before_release(self):
        for status in ('COMPLETED', 'DIAGNOSING', 'WAITING_FOR_PARTS', 'IN_PROGRESS'):
            job = services.transition_job_order(self.job, status, actor=self.advisor)
            self.assertEqual(job.status, status)

    def test_released_is_closed(self):
        services.transition_job_order(self.job, 'RELEASED')
        with self.assertRaises(InvalidTransition):
            services.transition_job_order(self.job, 'IN_PROGRESS')

    def test_same_status_is_noop(self):
        before = ActivityLog.objects.filter(action='UPDATE_STATUS').count()
        services.transition_job_order(self.job, 'RECEIVED')
        self.assertEqual(ActivityLog.objects.filter(action='UPDATE_STATUS').count(), before)

    def test_unknown_status_rejected(self):
        with self.assertRaises(ValidationError):
            services.transition_job_order(self.job, 'LOST')

    def test_archived_job_cannot_move(self):
        services.set_job_order_archived(self.job, True)
        with self.assertRaises(InvalidTransition):
            services.transition_job_order(self.job, 'COMPLETED')
        job = services.set_job_order_archived(self.job, False)
        self.assertFalse(job.is_archived)

    def test_assign_requires_mechanic_role(self):
        mechanic = self.make_user('mech', role=Role.MECHANIC)
        job = services.assign_mechanic(self.job, mechanic)
        self.assertEqual(job.mechanic, mechanic)
        with self.assertRaises(ValidationError):
            services.assign_mechanic(self.job, self.advisor)

    def test_labor_cost_frozen_after_invoice(self):
        services.update_job_order(self.job, {'estimated_cost': '1500.00'})
        services.create_invoice(self.job)
        with self.assertRaises(AlreadyInvoiced):
            services.update_job_order(self.job, {'estimated_cost': '2000.00'})
        job = services.update_job_order(self.job, {'notes': 'Customer waiting'})
        self.assertEqual(job.notes, 'Customer waiting')

    def test_status_change_broadcasts_after_commit(self):
        with mock.patch('workshop.signals.broadcast_job_order') as broadcast:
            with self.captureOnCommitCallbacks(execute=True):
                services.transition_job_order(self.job, 'IN_PROGRESS')
        broadcast.assert_called_once()
        self.assertEqual(broadcast.call_args[0][0].status, 'IN_PROGRESS')

    def test_notes_edit_does_not_broadcast(self):
        with mock.patch('workshop.signals.broadcast_job_order') as broadcast:
            with self.captureOnCommitCallbacks(execute=True):
                services.update_job_order(self.job, {'notes': 'Call first'})
        broadcast.assert_not_called()

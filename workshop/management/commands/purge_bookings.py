"""
Management command: delete bookings in a terminal status (CANCELLED, COMPLETED).
PENDING and CONFIRMED bookings are never touched. Requires --yes unless --dry-run.
"""
from django.core.management.base import BaseCommand, CommandError

from workshop import services
from workshop.models import Appointment


class Command(BaseCommand):
    help = 'Delete all CANCELLED and COMPLETED bookings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only print what would be deleted',
        )
        parser.add_argument(
            '--yes',
            action='store_true',
            help='Confirm the purge',
        )

    def handle(self, *args, **options):
        qs = Appointment.objects.filter(status__in=services.BOOKING_TERMINAL)
        count = qs.count()
        if count == 0:
            self.stdout.write(self.style.SUCCESS('No bookings to purge.'))
            return
        if options['dry_run']:
            for b in qs:
                self.stdout.write(f'Would delete: {b.booking_ref} {b.customer_name} status={b.status}')
            self.stdout.write(self.style.WARNING(f'Dry run: would delete {count} booking(s).'))
            return
        if not options['yes']:
            raise CommandError('Refusing to purge without --yes')
        deleted = services.purge_bookings(confirm=True)
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} booking(s).'))

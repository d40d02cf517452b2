from django.core.management.base import BaseCommand
from django.utils import timezone

from reservations import services
from reservations.exceptions import AdmissionError
from reservations.models import Reservation


class Command(BaseCommand):
    help = 'Mark confirmed reservations dated before today as completed'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true',
                            help='List what would be completed without changing anything')

    def handle(self, *args, **options):
        today = timezone.localdate()
        due = Reservation.objects.filter(status=Reservation.Status.CONFIRMED, date__lt=today)

        if options['dry_run']:
            for reservation in due:
                self.stdout.write(f"Would complete: {reservation}")
            self.stdout.write(self.style.SUCCESS(f'{due.count()} reservation(s) due'))
            return

        completed = 0
        for reservation in due:
            try:
                services.complete_reservation(reservation)
            except AdmissionError as exc:
                # Changed by someone else since the query ran.
                self.stderr.write(f"Skipped reservation {reservation.pk}: {exc.message}")
                continue
            completed += 1

        self.stdout.write(self.style.SUCCESS(f'Completed {completed} reservation(s)'))

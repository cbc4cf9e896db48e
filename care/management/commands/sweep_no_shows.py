from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from care.services.lifecycle import LifecycleEngine


class Command(BaseCommand):
    help = "Mark confirmed appointments as not_appeared once their slot plus the grace period has passed."

    def add_arguments(self, parser):
        parser.add_argument(
            '--grace-minutes', type=int, default=None,
            help=f"Minutes after the slot start before a no-show is recorded (default {settings.NO_SHOW_GRACE_MINUTES}).",
        )
        parser.add_argument(
            '--now', default=None,
            help="ISO datetime to evaluate against instead of the current time.",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        if options['now']:
            now = parse_datetime(options['now'])
            if now is None:
                raise CommandError(f"Invalid --now value: {options['now']}")
            if timezone.is_naive(now):
                now = timezone.make_aware(now)
        grace = options['grace_minutes']
        if grace is not None and grace < 0:
            raise CommandError('--grace-minutes must not be negative')

        results = LifecycleEngine.default().sweep_no_shows(now=now, grace_minutes=grace)
        warnings = [w for r in results for w in r.warnings]
        for w in warnings:
            self.stderr.write(self.style.WARNING(w))
        self.stdout.write(self.style.SUCCESS(
            f"Marked {len(results)} appointment(s) as not_appeared at {now.isoformat()}"
        ))

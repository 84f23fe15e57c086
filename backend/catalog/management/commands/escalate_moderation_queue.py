"""
Management command: escalate_moderation_queue
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Promotes open, unassigned ``low``/``normal`` moderation queue items
older than a cutoff to ``high`` priority.

The command is **idempotent**: items already escalated no longer match,
so it is safe to schedule (cron, Kubernetes CronJob) as often as needed.

Usage::

    python manage.py escalate_moderation_queue
    python manage.py escalate_moderation_queue --older-than-hours 6
"""

from django.core.management.base import BaseCommand, CommandError

from catalog.services import ModerationQueueService


class Command(BaseCommand):
    help = "Escalate stale, unassigned moderation queue items to high priority."

    def add_arguments(self, parser):
        parser.add_argument(
            "--older-than-hours",
            type=float,
            default=None,
            help="Age cutoff in hours (defaults to MODERATION_ESCALATION_AGE_HOURS).",
        )

    def handle(self, *args, **options):
        hours = options["older_than_hours"]
        if hours is not None and hours < 0:
            raise CommandError("--older-than-hours must be non-negative.")

        count = ModerationQueueService.escalate_stale(older_than_hours=hours)
        self.stdout.write(self.style.SUCCESS(f"Escalated {count} queue item(s)."))

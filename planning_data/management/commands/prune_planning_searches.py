from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from planning_data.cache import SearchResultStore
from planning_data.exceptions import CacheUnavailable


class Command(BaseCommand):
    help = (
        "Deletes old planning search records. The newest record for each filter "
        "is always kept so the next search still has something to compare with."
    )

    def add_arguments(self, parser):
        parser.add_argument("--keep", type=int, help="Keep this many records per filter.")
        parser.add_argument("--older-than-days", type=int, help="Delete records older than this.")

    def handle(self, *args, **options):
        keep = options["keep"]
        days = options["older_than_days"]

        if keep is None and days is None:
            raise CommandError("Pass --keep and/or --older-than-days; nothing is deleted by default.")
        if keep is not None and keep < 1:
            raise CommandError("--keep must be at least 1.")
        if days is not None and days < 0:
            raise CommandError("--older-than-days can't be negative.")

        older_than = timezone.now() - timedelta(days=days) if days is not None else None

        try:
            deleted = SearchResultStore().prune(keep_latest=keep, older_than=older_than)
        except CacheUnavailable as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} search record(s)."))

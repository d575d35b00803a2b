from django.core.management.base import BaseCommand
from django.utils import timezone

from planning_data.delta import compute_delta
from planning_data.exceptions import PlanningDataError
from planning_data.models import PlanningWatch
from planning_data.registry import PlanningEntity
from planning_data.services import get_search_service


class Command(BaseCommand):
    help = "Re-runs active planning watches and posts newly seen applications to their webhooks."

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-first-run",
            action="store_true",
            help="Don't call the webhook for a watch that has never been checked; just store the baseline.",
        )

    def handle(self, *args, **options):
        skip_first_run = options["skip_first_run"]
        service = get_search_service()

        qs = PlanningWatch.objects.filter(active=True).order_by("created_at")
        self.stdout.write(f"Checking {qs.count()} active watch(es)...")

        failures = 0
        for watch in qs:
            self.stdout.write(f"\nWatch #{watch.id}: {watch.filter_type}={watch.filter_value}")

            # 1) Search through the shared snapshot log (no webhook there)
            try:
                result = service.search(watch.filter_type, watch.filter_value, watch.limit)
            except PlanningDataError as exc:
                failures += 1
                self.stderr.write(self.style.ERROR(f"Watch #{watch.id} failed: {exc}"))
                continue

            # 2) New relative to what this watch last saw, not the shared baseline
            first_run = watch.last_checked_at is None
            seen_before = [PlanningEntity(id=i) for i in watch.last_seen_ids or []]
            new_entities = compute_delta(seen_before, result.entities)

            watch.last_seen_ids = [e.id for e in result.entities]
            watch.last_checked_at = timezone.now()
            watch.last_new_count = len(new_entities)
            watch.save(update_fields=["last_seen_ids", "last_checked_at", "last_new_count"])

            if first_run and skip_first_run:
                self.stdout.write("First run: stored baseline (webhook not called).")
                continue

            if not new_entities:
                self.stdout.write("No new applications found.")
                continue

            if watch.webhook_url:
                service.notify(watch.webhook_url, result.filter_key, new_entities, result.timestamp)

            self.stdout.write(
                f"{len(new_entities)} new application(s) out of {result.total_results}."
            )

        if failures:
            self.stdout.write(self.style.WARNING(f"\nDone with {failures} failed watch(es)."))
        else:
            self.stdout.write(self.style.SUCCESS("\nDone."))

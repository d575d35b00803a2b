import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from planning_data.exceptions import InvalidFilter, RegistryUnavailable
from planning_data.registry import FILTER_TYPES
from planning_data.services import get_search_service


class Command(BaseCommand):
    help = "Searches the planning registry once and reports which applications are new for that filter."

    def add_arguments(self, parser):
        parser.add_argument("filter_type", choices=FILTER_TYPES)
        parser.add_argument("filter_value")
        parser.add_argument(
            "--limit",
            type=int,
            default=settings.PLANNING_DATA.get("DEFAULT_LIMIT", 10),
        )
        parser.add_argument("--webhook-url", default=None, help="POST new applications to this URL.")
        parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")

    def handle(self, *args, **options):
        try:
            result = get_search_service().search(
                options["filter_type"],
                options["filter_value"],
                options["limit"],
                webhook_url=options["webhook_url"],
            )
        except (InvalidFilter, RegistryUnavailable) as exc:
            raise CommandError(str(exc)) from exc

        if options["json"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2))
            return

        for warning in result.warnings:
            self.stdout.write(self.style.WARNING(warning))

        cached = " (cached)" if result.cached else ""
        self.stdout.write(
            f"{result.total_results} result(s) for {result.filter_key}{cached}, "
            f"{len(result.new_entities)} new."
        )
        for entity in result.new_entities:
            self.stdout.write(f"- {entity.name}")
            if entity.site_address:
                self.stdout.write(f"  {entity.site_address}")
            if entity.url:
                self.stdout.write(f"  {entity.url}")

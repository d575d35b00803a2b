import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from planning_data.models import PlanningWatch, SearchRecord
from planning_data.services import PlanningSearchService

from .helpers import FakeRegistry, entities, registry_down


class ViewTestCase(TestCase):
    def patch_service(self, *responses):
        self.registry = FakeRegistry(*responses)
        self.notifier = mock.Mock(return_value=True)
        service = PlanningSearchService(self.registry, notifier=self.notifier)
        patcher = mock.patch("planning_data.views.get_search_service", return_value=service)
        patcher.start()
        self.addCleanup(patcher.stop)
        return service


class PlanningSearchPageTests(ViewTestCase):
    def test_get_renders_form(self):
        response = self.client.get(reverse("planning_search"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Search planning applications")
        self.assertIsNone(response.context["result"])

    def test_post_shows_results_and_new_flags(self):
        self.patch_service(entities("A", "C"))
        SearchRecord.objects.create(filter_key="sw1a1aa", filter_type="postcode", results=[{"id": "A"}])

        response = self.client.post(
            reverse("planning_search"),
            {"filter_type": "postcode", "filter_value": "SW1A 1AA", "limit": 10},
        )

        self.assertEqual(response.status_code, 200)
        result = response.context["result"]
        self.assertEqual(result.total_results, 2)
        self.assertEqual(response.context["new_ids"], {"C"})
        self.assertContains(response, "Application C")
        self.assertContains(response, "1 new since the last search")

    def test_registry_failure_shows_error(self):
        self.patch_service(registry_down())

        with self.assertLogs("planning_data.views", level="ERROR"):
            response = self.client.post(
                reverse("planning_search"),
                {"filter_type": "postcode", "filter_value": "e16an", "limit": 10},
            )

        self.assertContains(response, "error contacting the planning registry")
        self.assertFalse(SearchRecord.objects.exists())

    def test_recent_searches_failure_does_not_break_page(self):
        self.patch_service(entities("A"))

        with mock.patch(
            "planning_data.views.SearchResultStore.latest_per_key", side_effect=DatabaseError("locked")
        ), self.assertLogs("planning_data.views", level="ERROR"):
            response = self.client.post(
                reverse("planning_search"),
                {"filter_type": "postcode", "filter_value": "e16an", "limit": 10},
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["recent_searches"], [])
        self.assertEqual(response.context["result"].total_results, 1)

    def test_invalid_form_does_not_search(self):
        self.patch_service(entities("A"))

        response = self.client.post(
            reverse("planning_search"),
            {"filter_type": "postcode", "filter_value": "e16an", "limit": 5000},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context["form"].errors)
        self.assertEqual(self.registry.calls, [])


class PlanningSearchApiTests(ViewTestCase):
    def setUp(self):
        self.url = reverse("planning_search_api")

    def post_json(self, body):
        return self.client.post(self.url, data=json.dumps(body), content_type="application/json")

    def test_success(self):
        self.patch_service(entities("X", "Y"))

        response = self.post_json({"filterType": "postcode", "filterValue": "E1 6AN", "limit": 10})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["filterKey"], "e16an")
        self.assertEqual(data["totalResults"], 2)
        self.assertEqual([e["id"] for e in data["newEntities"]], ["X", "Y"])

    def test_webhook_url_passed_through(self):
        self.patch_service(entities("X"))

        self.post_json(
            {"filterType": "postcode", "filterValue": "e16an", "webhookUrl": "https://hooks.example.org/1"}
        )

        self.assertEqual(self.notifier.call_args[0][0], "https://hooks.example.org/1")

    def test_missing_parameters(self):
        response = self.post_json({"filterType": "postcode"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_invalid_filter(self):
        self.patch_service()
        response = self.post_json({"filterType": "street", "filterValue": "high st"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Invalid filter type", response.json()["error"])

    def test_bad_json(self):
        response = self.client.post(self.url, data="{nope", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_registry_unavailable(self):
        self.patch_service(registry_down())

        with self.assertLogs("planning_data.views", level="ERROR"):
            response = self.post_json({"filterType": "postcode", "filterValue": "e16an"})

        self.assertEqual(response.status_code, 502)
        self.assertFalse(response.json()["success"])

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


class WatchViewTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user("builder", password="pw")

    def test_watch_list_requires_login(self):
        response = self.client.get(reverse("watch_list"))
        self.assertEqual(response.status_code, 302)

    def test_create_and_list_watch(self):
        self.client.force_login(self.user)

        response = self.client.post(
            reverse("create_watch"),
            {
                "filter_type": "postcode",
                "filter_value": "W5 5AA",
                "limit": 50,
                "webhook_url": "https://hooks.example.org/w",
            },
        )

        self.assertRedirects(response, reverse("watch_thanks"))
        watch = PlanningWatch.objects.get()
        self.assertEqual(watch.filter_value, "W5 5AA")
        self.assertTrue(watch.active)

        listing = self.client.get(reverse("watch_list"))
        self.assertContains(listing, "W5 5AA")

from django.db import models
from django.utils import timezone
from django.utils.functional import cached_property

from .registry import FILTER_TYPE_LABELS, PlanningEntity

FILTER_TYPE_CHOICES = list(FILTER_TYPE_LABELS.items())


class SearchRecord(models.Model):
    filter_key = models.CharField(max_length=255, db_index=True)   # normalised filter value
    filter_type = models.CharField(max_length=50, blank=True)

    results = models.JSONField(default=list, blank=True)           # full snapshot, upstream order

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["filter_key", "-created_at"], name="planning_search_key_latest"),
        ]

    def __str__(self):
        return f"{self.filter_key} @ {self.created_at:%Y-%m-%d %H:%M} ({len(self.results)} results)"

    @cached_property
    def entities(self):
        return [PlanningEntity.from_dict(row) for row in self.results]


class PlanningWatch(models.Model):
    filter_type = models.CharField(max_length=50, choices=FILTER_TYPE_CHOICES, default="postcode")
    filter_value = models.CharField(max_length=255)                # address, postcode, authority...
    limit = models.PositiveIntegerField(default=100)
    webhook_url = models.URLField(blank=True)
    active = models.BooleanField(default=True)

    last_seen_ids = models.JSONField(default=list, blank=True)   # this watch's own baseline
    last_checked_at = models.DateTimeField(null=True, blank=True)
    last_new_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        target = self.webhook_url or "no webhook"
        return f"{self.filter_value} ({self.filter_type}) → {target}"

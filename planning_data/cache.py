import logging

from django.db import DatabaseError
from django.db.models import OuterRef, Subquery
from django.utils import timezone

from .exceptions import CacheUnavailable
from .models import SearchRecord

logger = logging.getLogger(__name__)


class SearchResultStore:
    """
    Append-only log of search snapshots, one partition per filter key.
    Older records are kept for audit; only the latest one is read back.
    """

    def get(self, filter_key):
        """Latest record for the key, its entities already decoded."""
        try:
            record = (
                SearchRecord.objects.filter(filter_key=filter_key)
                .order_by("-created_at", "-id")
                .first()
            )
        except DatabaseError as e:
            raise CacheUnavailable(f"Could not read search history for {filter_key!r}: {e}") from e

        if record is not None:
            try:
                record.entities
            except (TypeError, ValueError, AttributeError) as e:
                raise CacheUnavailable(f"Stored results for {filter_key!r} could not be decoded: {e}") from e
        return record

    def put(self, filter_key, results, filter_type="", created_at=None):
        rows = [r.to_dict() if hasattr(r, "to_dict") else r for r in results]
        try:
            record = SearchRecord.objects.create(
                filter_key=filter_key,
                filter_type=filter_type,
                results=rows,
                created_at=created_at or timezone.now(),
            )
        except DatabaseError as e:
            raise CacheUnavailable(f"Could not store search results for {filter_key!r}: {e}") from e

        logger.debug("Stored %d results for %s (record %s)", len(rows), filter_key, record.pk)
        return record

    def prune(self, keep_latest=None, older_than=None):
        """
        Delete old records. The latest record per key always survives so the
        next search still has a baseline. Returns the number of rows deleted.
        """
        if keep_latest is None and older_than is None:
            raise ValueError("prune() needs keep_latest and/or older_than")

        doomed = set()

        try:
            keys = SearchRecord.objects.order_by("filter_key").values_list("filter_key", flat=True).distinct()
            for key in keys:
                ids = list(
                    SearchRecord.objects.filter(filter_key=key)
                    .order_by("-created_at", "-id")
                    .values_list("id", flat=True)
                )
                if keep_latest is not None:
                    doomed.update(ids[max(keep_latest, 1):])
                if older_than is not None:
                    doomed.update(
                        SearchRecord.objects.filter(filter_key=key, created_at__lt=older_than)
                        .exclude(id__in=ids[:1])
                        .values_list("id", flat=True)
                    )

            deleted, _ = SearchRecord.objects.filter(id__in=doomed).delete()
        except DatabaseError as e:
            raise CacheUnavailable(f"Could not prune search history: {e}") from e

        logger.info("Pruned %d search record(s)", deleted)
        return deleted

    def latest_per_key(self):
        """Most recent record for every filter key, newest first."""
        newest = (
            SearchRecord.objects.filter(filter_key=OuterRef("filter_key"))
            .order_by("-created_at", "-id")
            .values("id")[:1]
        )
        return SearchRecord.objects.filter(id=Subquery(newest)).order_by("-created_at", "-id")

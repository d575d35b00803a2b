import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from django.conf import settings
from django.utils import timezone

from .cache import SearchResultStore
from .delta import compute_delta
from .exceptions import CacheUnavailable
from .notifications import send_new_entities_webhook
from .registry import PlanningEntity, PlanningRegistryClient

logger = logging.getLogger(__name__)


@dataclass
class DeltaResult:
    filter_key: str
    filter_type: str
    total_results: int
    new_entities: List[PlanningEntity]
    cached: bool
    timestamp: datetime
    entities: List[PlanningEntity] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def new_ids(self):
        return {e.id for e in self.new_entities}

    def to_dict(self):
        return {
            "filterKey": self.filter_key,
            "filterType": self.filter_type,
            "totalResults": self.total_results,
            "newEntities": [e.to_dict() for e in self.new_entities],
            "cached": self.cached,
            "timestamp": self.timestamp.isoformat(),
            "entities": [e.to_dict() for e in self.entities],
            "warnings": list(self.warnings),
        }


class PlanningSearchService:
    """
    Fetch -> compare with the last snapshot -> store the new snapshot -> notify.
    Each call runs the steps in order; only the webhook step may fail quietly.
    """

    def __init__(
        self,
        registry: PlanningRegistryClient,
        store: Optional[SearchResultStore] = None,
        notifier=send_new_entities_webhook,
        max_age: Optional[timedelta] = None,
        webhook_timeout: float = 10,
        clock=timezone.now,
    ):
        self.registry = registry
        self.store = store or SearchResultStore()
        self.notifier = notifier
        self.max_age = max_age
        self.webhook_timeout = webhook_timeout
        self.clock = clock

    def search(self, filter_type, filter_value, limit, webhook_url=None) -> DeltaResult:
        filter_key = self.registry.validate(filter_type, filter_value, limit)

        previous = self._previous_record(filter_key)

        if previous is not None and self._is_fresh(previous):
            logger.info("Serving %s from cached search record %s", filter_key, previous.pk)
            entities = previous.entities
            return DeltaResult(
                filter_key=filter_key,
                filter_type=filter_type,
                total_results=len(entities),
                new_entities=[],
                cached=True,
                timestamp=previous.created_at,
                entities=entities,
            )

        # RegistryUnavailable propagates: nothing is stored for a failed fetch
        current = self.registry.search(filter_type, filter_key, limit)

        baseline = previous.entities if previous is not None else []
        new_entities = compute_delta(baseline, current)
        now = self.clock()

        result = DeltaResult(
            filter_key=filter_key,
            filter_type=filter_type,
            total_results=len(current),
            new_entities=new_entities,
            cached=False,
            timestamp=now,
            entities=current,
        )

        try:
            self.store.put(filter_key, current, filter_type=filter_type, created_at=now)
        except CacheUnavailable as exc:
            logger.warning("Search results for %s were not stored: %s", filter_key, exc)
            result.warnings.append("Search history could not be saved; the next search may repeat these results.")

        if webhook_url and new_entities:
            self._notify(webhook_url, result)

        logger.info(
            "Search %s=%s: %d results, %d new",
            filter_type,
            filter_key,
            result.total_results,
            len(new_entities),
        )
        return result

    def _previous_record(self, filter_key):
        try:
            return self.store.get(filter_key)
        except CacheUnavailable as exc:
            logger.warning("Search history unavailable for %s, treating as first search: %s", filter_key, exc)
            return None

    def _is_fresh(self, record):
        if not self.max_age:
            return False
        return self.clock() - record.created_at < self.max_age

    def _notify(self, webhook_url, result):
        self.notify(webhook_url, result.filter_key, result.new_entities, result.timestamp)

    def notify(self, webhook_url, filter_key, new_entities, timestamp):
        """
        Post new entities to a webhook. Runs inline, after the snapshot is
        stored, so a slow hook holds the caller for at most webhook_timeout.
        No Celery or thread: errors are logged and never raised.
        """
        try:
            self.notifier(
                webhook_url,
                filter_key,
                new_entities,
                timestamp.isoformat(),
                timeout=self.webhook_timeout,
            )
        except Exception as exc:
            logger.exception("Error dispatching planning webhook for %s: %r", filter_key, exc)


def get_search_service(**kwargs):
    conf = settings.PLANNING_DATA
    max_age = conf.get("CACHE_MAX_AGE") or 0
    kwargs.setdefault("registry", PlanningRegistryClient.from_settings())
    kwargs.setdefault("max_age", timedelta(seconds=max_age) if max_age else None)
    kwargs.setdefault("webhook_timeout", conf.get("WEBHOOK_TIMEOUT", 10))
    return PlanningSearchService(**kwargs)

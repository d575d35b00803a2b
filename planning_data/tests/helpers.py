from planning_data.exceptions import RegistryUnavailable
from planning_data.registry import PlanningEntity, validate_filter


def entity(entity_id, **kwargs):
    kwargs.setdefault("name", f"Application {entity_id}")
    return PlanningEntity(id=entity_id, **kwargs)


def entities(*ids):
    return [entity(i) for i in ids]


class FakeRegistry:
    """Stands in for PlanningRegistryClient; hands out queued responses."""

    def __init__(self, *responses, max_limit=1000):
        self.responses = list(responses)
        self.max_limit = max_limit
        self.calls = []

    def validate(self, filter_type, filter_value, limit):
        return validate_filter(filter_type, filter_value, limit, max_limit=self.max_limit)

    def search(self, filter_type, filter_value, limit):
        self.calls.append((filter_type, filter_value, limit))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return list(response)


def registry_down():
    return RegistryUnavailable("Planning registry request failed: connection refused")

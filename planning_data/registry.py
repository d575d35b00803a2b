import logging
import re
from dataclasses import asdict, dataclass, field, fields
from typing import Optional

import requests
from django.conf import settings

from .exceptions import InvalidFilter, RegistryUnavailable

logger = logging.getLogger(__name__)

PLANNING_API_BASE = "https://www.planning.data.gov.uk"
DEFAULT_USER_AGENT = "Construyo-LeadGen/1.0"
DEFAULT_MAX_LIMIT = 1000

FILTER_TYPES = ("postcode", "local-authority", "organisation", "entity")

FILTER_TYPE_LABELS = {
    "postcode": "Postcode",
    "local-authority": "Local authority",
    "organisation": "Organisation",
    "entity": "Entity reference",
}

# upstream payloads have been seen with the list under any of these keys
RESULT_LIST_KEYS = ("entities", "results", "applications", "data")


def _first(row: dict, *keys, default=""):
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return default


@dataclass
class Applicant:
    name: str = ""
    email: str = ""
    telephone: str = ""
    address: str = ""


@dataclass
class PlanningEntity:
    id: str
    name: str = ""
    site_address: str = ""
    postcode: str = ""
    local_authority: str = ""
    description: str = ""
    url: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    geometry: str = ""
    applicant: Optional[Applicant] = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, row: dict, base_url: str = PLANNING_API_BASE):
        """
        Map one upstream row onto a PlanningEntity.
        Returns None for rows that carry no identity field.
        """
        entity_id = str(_first(row, "entity", "id", "application_reference"))
        if not entity_id:
            return None

        applicant = None
        applicant_fields = {
            "name": _first(row, "applicant_name", "applicant-name"),
            "email": _first(row, "applicant_email", "applicant-email"),
            "telephone": _first(row, "applicant_phone", "applicant-telephone"),
            "address": _first(row, "applicant_address", "applicant-address"),
        }
        if any(applicant_fields.values()):
            applicant = Applicant(**applicant_fields)

        return cls(
            id=entity_id,
            name=_first(row, "name", "organisation", "development_type", "proposal", default="Unknown"),
            site_address=_first(row, "site-address", "site_address", "address", "development_address"),
            postcode=_first(row, "postcode"),
            local_authority=_first(row, "local-authority", "local_authority", "authority"),
            description=_first(row, "description", "proposal_details", "decision_summary"),
            url=_first(row, "application_url", "url", "link", default=f"{base_url}/entity/{entity_id}"),
            start_date=_first(row, "start-date", "start_date", "validation_date"),
            end_date=_first(row, "end-date", "end_date", "decision_date", default=None),
            geometry=_first(row, "geometry", "coordinates"),
            applicant=applicant,
            raw=row,
        )

    @classmethod
    def from_dict(cls, data: dict):
        """
        Rebuild an entity from a stored row. Keys this version doesn't know
        about are dropped; a row without an id raises ValueError.
        """
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in data.items() if k in known}
        if data.get("id") in (None, ""):
            raise ValueError(f"Stored planning entity has no id: {sorted(data)}")

        applicant = data.pop("applicant", None)
        if applicant:
            applicant_keys = {f.name for f in fields(Applicant)}
            data["applicant"] = Applicant(**{k: v for k, v in applicant.items() if k in applicant_keys})
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


def normalise_filter_value(filter_type: str, value: str) -> str:
    """
    Trimmed, lowercased filter value used both upstream and as the cache key.
    Postcodes also lose their inner spaces, so "E1 6AN" and "e16an" share history.
    """
    value = str(value if value is not None else "").strip().lower()
    if filter_type == "postcode":
        value = re.sub(r"\s+", "", value)
    return value


def validate_filter(filter_type, filter_value, limit, max_limit=DEFAULT_MAX_LIMIT):
    """Return the normalised filter value or raise InvalidFilter."""
    if filter_type not in FILTER_TYPES:
        raise InvalidFilter(
            f"Invalid filter type {filter_type!r}. Must be one of: {', '.join(FILTER_TYPES)}"
        )

    normalised = normalise_filter_value(filter_type, filter_value)
    if not normalised:
        raise InvalidFilter("Please enter a filter value.")

    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidFilter(f"Limit must be a whole number, got {limit!r}.")
    if limit < 1 or limit > max_limit:
        raise InvalidFilter(f"Limit must be between 1 and {max_limit}.")

    return normalised


class PlanningRegistryClient:
    """
    Thin client for the planning applications registry.
    One GET per search, no retries: failures go straight back to the caller.
    """

    def __init__(
        self,
        base_url: str = PLANNING_API_BASE,
        api_key: Optional[str] = None,
        timeout: float = 10,
        max_limit: int = DEFAULT_MAX_LIMIT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_limit = max_limit
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": user_agent,
            }
        )

    @classmethod
    def from_settings(cls, session=None):
        conf = settings.PLANNING_DATA
        return cls(
            base_url=conf.get("API_BASE", PLANNING_API_BASE),
            api_key=conf.get("API_KEY") or None,
            timeout=conf.get("TIMEOUT", 10),
            max_limit=conf.get("MAX_LIMIT", DEFAULT_MAX_LIMIT),
            user_agent=conf.get("USER_AGENT", DEFAULT_USER_AGENT),
            session=session,
        )

    def validate(self, filter_type, filter_value, limit):
        return validate_filter(filter_type, filter_value, limit, max_limit=self.max_limit)

    def search(self, filter_type: str, filter_value: str, limit: int):
        value = self.validate(filter_type, filter_value, limit)

        params = {filter_type: value, "limit": limit}
        if self.api_key:
            params["api_key"] = self.api_key

        url = f"{self.base_url}/entity.json"
        logger.info("Registry search %s=%s (limit %s)", filter_type, value, limit)

        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryUnavailable(f"Planning registry request failed: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise RegistryUnavailable(
                f"Planning registry returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise RegistryUnavailable(f"Planning registry returned invalid JSON: {e}") from e

        rows = self._extract_rows(data)

        entities = []
        for row in rows[:limit]:
            if not isinstance(row, dict):
                continue
            entity = PlanningEntity.from_api(row, base_url=self.base_url)
            if entity is not None:
                entities.append(entity)

        logger.info("Registry returned %d entities for %s=%s", len(entities), filter_type, value)
        return entities

    @staticmethod
    def _extract_rows(data):
        if isinstance(data, list):
            return data

        if isinstance(data, dict):
            for key in RESULT_LIST_KEYS:
                if isinstance(data.get(key), list):
                    return data[key]
            logger.warning("Unexpected registry response format: %s", sorted(data.keys()))
        else:
            logger.warning("Unexpected registry response type: %s", type(data).__name__)

        return []

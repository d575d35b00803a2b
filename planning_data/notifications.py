import json
import logging

import requests
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)


def send_new_entities_webhook(url, filter_key, new_entities, timestamp, timeout=10):
    """
    POST newly seen planning applications to a caller-supplied webhook.
    Fire-and-forget: no retry, no signature. Returns True on a 2xx response.
    """
    payload = {
        "filterKey": filter_key,
        "newEntities": [e.to_dict() if hasattr(e, "to_dict") else e for e in new_entities],
        "timestamp": timestamp,
    }

    try:
        resp = requests.post(
            url,
            data=json.dumps(payload, cls=DjangoJSONEncoder),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        # Don't fail the search if the webhook is down, just log it
        logger.exception("Error sending planning webhook to %s: %r", url, exc)
        return False

    if not resp.ok:
        logger.warning("Planning webhook %s returned HTTP %s", url, resp.status_code)
        return False

    logger.info("Sent %d new entities for %s to webhook", len(payload["newEntities"]), filter_key)
    return True

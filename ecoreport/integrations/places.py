from __future__ import annotations

import logging

import httpx

from ecoreport.core.errors import ExternalServiceFailure
from ecoreport.core.settings import settings

logger = logging.getLogger(__name__)

AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"


async def autocomplete(query: str, client: httpx.AsyncClient | None = None) -> list[str]:
    """Formatted address suggestions; empty when maps is not configured."""
    query = (query or "").strip()
    if not query or not settings.GOOGLE_MAPS_API_KEY:
        return []

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
    try:
        resp = await client.get(AUTOCOMPLETE_URL, params={"input": query, "key": settings.GOOGLE_MAPS_API_KEY})
    except httpx.HTTPError as e:
        logger.error("places unreachable: %s", e)
        raise ExternalServiceFailure("places_unreachable")
    finally:
        if owns_client:
            await client.aclose()

    if resp.status_code != 200:
        raise ExternalServiceFailure("places_error")
    data = resp.json()
    if data.get("status") not in ("OK", "ZERO_RESULTS"):
        logger.error("places status %s: %s", data.get("status"), data.get("error_message"))
        raise ExternalServiceFailure("places_error")
    return [p["description"] for p in data.get("predictions", []) if p.get("description")]

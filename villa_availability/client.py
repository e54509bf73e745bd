import logging
from typing import Any, Dict, List, Optional

import cloudscraper
import requests

from villa_availability import config
from villa_availability.models import PropertyId
from villa_availability.occupancy import Occupancy, occupancy_from_property

logger = logging.getLogger(__name__)


def build_url(path: str) -> str:
    """Joins an API path onto the configured backend base URL."""
    url = f"{config.API_BASE_URL}/{path.lstrip('/')}"
    logger.debug(f"Built URL: {url}")
    return url


def _unwrap(payload: Any, url: str) -> Optional[Any]:
    """Returns the `data` member of a {"success": ..., "data": ...} envelope."""
    if not isinstance(payload, dict) or not payload.get("success"):
        logger.warning(f"Unsuccessful response from {url}")
        logger.debug(f"Response data: {payload}")
        return None
    return payload.get("data")


def request_json(method: str, path: str, **kwargs) -> Optional[Any]:
    """Calls the property backend and returns the unwrapped data, or None on any failure."""
    url = build_url(path)
    logger.info(f"{method.upper()} {url}")

    try:
        session = cloudscraper.create_scraper()
        response = session.request(method, url, headers=config.COMMON_HEADERS, timeout=config.REQUEST_TIMEOUT, **kwargs)
        logger.debug(f"Response status: {response.status_code}")
        response.raise_for_status()
        return _unwrap(response.json(), url)
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Error calling {url}: {e}")
        return None


def fetch_property(property_id: PropertyId) -> Optional[Dict]:
    return request_json("get", f"/properties/{property_id}")


def fetch_occupancy(property_id: PropertyId) -> Optional[Occupancy]:
    """Loads a property's blocked dates and bookings and merges them."""
    data = fetch_property(property_id)
    if data is None:
        return None
    return occupancy_from_property(data)


def calculate_price(property_id: PropertyId, check_in: str, check_out: str) -> Optional[Dict]:
    return request_json(
        "post", f"/properties/{property_id}/calculate-price", json={"checkIn": check_in, "checkOut": check_out}
    )


def find_available_slots(property_id: PropertyId, params: Dict[str, Any]) -> Optional[Dict]:
    return request_json("post", f"/properties/{property_id}/find-available-slots", json=params)


def check_period_availability(property_id: PropertyId, params: Dict[str, Any]) -> Optional[Dict]:
    return request_json("post", f"/properties/{property_id}/check-period", json=params)


def find_alternative_properties(property_id: PropertyId, params: Dict[str, Any]) -> Optional[List[Dict]]:
    """Sibling properties suggested by the backend for the same stay."""
    data = request_json("post", f"/properties/{property_id}/find-alternative-properties", json=params)
    if data is None:
        return None
    if isinstance(data, dict):
        return data.get("properties") or []
    return data

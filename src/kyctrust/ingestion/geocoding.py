"""
Reverse geocoding client (Nominatim / OpenStreetMap).

Turns a captured GPS fix into a human-readable label shown next to the fix. The label is a
display annotation only; it never feeds the trust decision, so every failure falls back to the
raw "lat, lng" string instead of raising.

Nominatim's usage policy requires a descriptive User-Agent and modest request rates.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from kyctrust.config.settings import Settings
from kyctrust.core.http import get_json
from kyctrust.domain.models import Coordinate

logger = logging.getLogger(__name__)


def format_nominatim_address(payload: dict[str, Any]) -> str | None:
    """Build "house, road, suburb, city, state, postcode" from a Nominatim response."""
    address = payload.get("address")
    if isinstance(address, dict):
        parts = [
            address.get("house_number"),
            address.get("road"),
            address.get("suburb") or address.get("neighbourhood"),
            address.get("city") or address.get("town") or address.get("village"),
            address.get("state"),
            address.get("postcode"),
        ]
        label = ", ".join(str(p) for p in parts if p)
        if label:
            return label
    display_name = payload.get("display_name")
    return str(display_name) if display_name else None


class ReverseGeocoder:
    """Best-effort coordinate -> address label."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def describe(self, coordinate: Coordinate) -> str:
        cfg = self._settings.geocoding
        if not cfg.enabled:
            return coordinate.as_display()

        params = {
            "format": "json",
            "lat": coordinate.lat,
            "lon": coordinate.lng,
            "zoom": cfg.zoom,
            "addressdetails": 1,
        }
        try:
            payload = await get_json(
                cfg.base_url,
                params=params,
                headers={"User-Agent": cfg.user_agent},
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Reverse geocoding failed for %s: %s", coordinate.as_display(), e)
            return coordinate.as_display()

        label = format_nominatim_address(payload) if isinstance(payload, dict) else None
        return label or coordinate.as_display()

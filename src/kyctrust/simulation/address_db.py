"""
Address database simulator.

A real deployment would call an address-validation service here. The simulation accepts any
address with all of its components and "geocodes" it to a point near the captured GPS fix
(or to a fixed default when no fix is available).
"""

from __future__ import annotations

import asyncio
import logging

from kyctrust.config.settings import Settings
from kyctrust.core.geo import offset_point
from kyctrust.core.noise import NoiseSource
from kyctrust.domain.models import AddressInput, AddressValidation, Coordinate

logger = logging.getLogger(__name__)


def has_all_components(address: AddressInput | str, *, min_free_text_parts: int = 3) -> bool:
    """Structured addresses need all four fields; free text needs enough comma-separated parts."""
    if isinstance(address, AddressInput):
        return all(
            part.strip() for part in (address.street, address.city, address.state, address.zip_code)
        )
    return len(address.split(",")) >= min_free_text_parts


async def validate_address(
    address: AddressInput | str,
    gps_fix: Coordinate | None,
    *,
    settings: Settings,
    noise: NoiseSource,
) -> AddressValidation:
    cfg = settings.simulation.address_db
    await asyncio.sleep(settings.simulation.latency.address_db_seconds)

    if not has_all_components(address, min_free_text_parts=cfg.min_free_text_parts):
        logger.info("Address rejected by database: missing components")
        return AddressValidation(valid=False, coordinate=None)

    if gps_fix is None:
        default = cfg.default_coordinate
        return AddressValidation(valid=True, coordinate=Coordinate(lat=default.lat, lng=default.lng))

    return AddressValidation(
        valid=True,
        coordinate=offset_point(gps_fix, noise.jitter(cfg.jitter_deg), noise.jitter(cfg.jitter_deg)),
    )

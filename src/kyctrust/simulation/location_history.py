"""
Location-history simulator.

Stands in for a "Google Timeline"-style export: one sample per calendar day for the last N days,
biased toward the claimed home coordinate.

Daily policy (all probabilities are settings knobs):
- at home if a "night" draw succeeds, otherwise with a weekend/weekday probability,
- at home -> home coordinate plus small jitter, activity Home/Sleeping,
- away -> a random activity at a random bearing and distance from home.

The output is sorted newest first, which is the order the analyzer and the UI expect.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from kyctrust.config.settings import Settings
from kyctrust.core.geo import destination_point, offset_point
from kyctrust.core.noise import NoiseSource
from kyctrust.core.time import now_in, start_of_day
from kyctrust.domain.models import (
    AWAY_ACTIVITIES,
    HOME_ACTIVITIES,
    Coordinate,
    LocationHistoryEntry,
)

logger = logging.getLogger(__name__)

_DAY = timedelta(days=1)


def _is_home_day(day: datetime, *, settings: Settings, noise: NoiseSource) -> bool:
    cfg = settings.simulation.location_history
    if noise.chance(cfg.night_home_probability):
        return True
    is_weekend = day.weekday() >= 5
    probability = cfg.weekend_home_probability if is_weekend else cfg.weekday_home_probability
    return noise.chance(probability)


def _home_entry(
    timestamp: datetime, home: Coordinate, street: str, city: str, *, settings: Settings, noise: NoiseSource
) -> LocationHistoryEntry:
    cfg = settings.simulation.location_history
    coordinate = offset_point(home, noise.jitter(cfg.home_jitter_deg), noise.jitter(cfg.home_jitter_deg))
    return LocationHistoryEntry(
        timestamp=timestamp,
        coordinate=coordinate,
        address=f"{noise.randint(1, cfg.max_house_number)} {street}, {city}",
        activity=noise.choice(HOME_ACTIVITIES),
    )


def _away_entry(
    timestamp: datetime, home: Coordinate, city: str, *, settings: Settings, noise: NoiseSource
) -> LocationHistoryEntry:
    cfg = settings.simulation.location_history
    activity = noise.choice(AWAY_ACTIVITIES)
    distance = noise.uniform(cfg.away_min_km, cfg.away_max_km)
    bearing = noise.uniform(0.0, 360.0)
    return LocationHistoryEntry(
        timestamp=timestamp,
        coordinate=destination_point(home, bearing, distance),
        address=f"{noise.randint(1, cfg.max_house_number)} {noise.choice(cfg.street_names)}, {city}",
        activity=activity,
    )


def generate_location_history(
    home: Coordinate,
    street: str,
    city: str,
    *,
    settings: Settings,
    noise: NoiseSource,
    now: datetime | None = None,
) -> list[LocationHistoryEntry]:
    """Generate one synthetic sample per day for the last `days` days, newest first."""
    cfg = settings.simulation.location_history
    today = start_of_day(now or now_in(settings.app.timezone))

    entries: list[LocationHistoryEntry] = []
    for offset in range(cfg.days):
        day_start = today - offset * _DAY
        timestamp = day_start + timedelta(seconds=noise.uniform(0.0, _DAY.total_seconds()))
        if _is_home_day(day_start, settings=settings, noise=noise):
            entries.append(_home_entry(timestamp, home, street, city, settings=settings, noise=noise))
        else:
            entries.append(_away_entry(timestamp, home, city, settings=settings, noise=noise))

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    logger.debug("Generated %d location-history samples around %s", len(entries), home.as_display())
    return entries

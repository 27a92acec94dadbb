"""
Location-history consistency analysis.

Turns a trace of location samples into a 0..100 consistency score plus flagged patterns.

Score composition:
1) Home-frequency component: how often the trace sits within `home_radius_km` of home.
2) Recency component: the same ratio over the most recent samples.
3) Pattern penalties: too many distinct places, or physically impossible hops between samples.

The final score is clamped to [score_floor, score_ceiling]. With the default floor of 70 the
score alone can never fail the `consistent_min_score` check, so in practice consistency is
decided by the number of suspicious patterns. This leniency is kept on purpose until the
policy is revisited.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from kyctrust.config.settings import Settings
from kyctrust.core.geo import distance_km
from kyctrust.domain.models import Coordinate, LocationHistoryAnalysis, LocationHistoryEntry

logger = logging.getLogger(__name__)

EXCESSIVE_DIVERSITY = "Excessive location diversity"
IMPOSSIBLE_TRAVEL = "Impossible travel speed detected"


def _at_home(entry: LocationHistoryEntry, home: Coordinate, radius_km: float) -> bool:
    return distance_km(entry.coordinate, home) < radius_km


def _home_frequency_points(home_frequency: float, *, settings: Settings) -> float:
    tiers = settings.analysis.home_frequency
    if home_frequency > tiers.high_threshold:
        return tiers.high_points
    if home_frequency > tiers.mid_threshold:
        return tiers.mid_points
    return max(tiers.floor_points, home_frequency * tiers.multiplier)


def _recency_points(history: Sequence[LocationHistoryEntry], home: Coordinate, *, settings: Settings) -> float:
    cfg = settings.analysis.recency
    recent = history[: cfg.window]
    if not recent:
        return cfg.floor_points
    at_home = sum(1 for e in recent if _at_home(e, home, settings.analysis.home_radius_km))
    return max(cfg.floor_points, at_home / len(recent) * cfg.max_points)


def _distinct_locations(history: Sequence[LocationHistoryEntry], precision: int) -> int:
    return len({(round(e.coordinate.lat, precision), round(e.coordinate.lng, precision)) for e in history})


def _impossible_travel_count(history: Sequence[LocationHistoryEntry], *, settings: Settings) -> int:
    """Count adjacent (newest-first) pairs implying an impossible hop."""
    cfg = settings.analysis
    count = 0
    for newer, older in zip(history, history[1:]):
        elapsed = (newer.timestamp - older.timestamp).total_seconds()
        hop = distance_km(older.coordinate, newer.coordinate)
        if hop > cfg.impossible_travel_km and elapsed < cfg.impossible_travel_seconds:
            count += 1
    return count


def score_location_history(
    history: Sequence[LocationHistoryEntry], home: Coordinate, *, settings: Settings
) -> LocationHistoryAnalysis:
    """Synchronous scoring core of `analyze_location_history`."""
    cfg = settings.analysis
    ordered = sorted(history, key=lambda e: e.timestamp, reverse=True)
    total = len(ordered)

    home_entries = [e for e in ordered if _at_home(e, home, cfg.home_radius_km)]
    home_frequency = 100.0 * len(home_entries) / total if total else 0.0

    score = _home_frequency_points(home_frequency, settings=settings)
    score += _recency_points(ordered, home, settings=settings)

    patterns: list[str] = []
    if _distinct_locations(ordered, cfg.coordinate_precision) > total * cfg.diversity_ratio:
        patterns.append(EXCESSIVE_DIVERSITY)
        score -= cfg.diversity_penalty

    for _ in range(_impossible_travel_count(ordered, settings=settings)):
        patterns.append(IMPOSSIBLE_TRAVEL)
        score -= cfg.impossible_travel_penalty

    score = max(cfg.score_floor, min(cfg.score_ceiling, score))
    is_consistent = score > cfg.consistent_min_score and len(patterns) <= cfg.max_suspicious_patterns

    return LocationHistoryAnalysis(
        total_entries=total,
        home_frequency=home_frequency,
        consistency_score=score,
        recent_activity=ordered[: cfg.recent_activity_limit],
        suspicious_patterns=patterns,
        is_consistent=is_consistent,
    )


async def analyze_location_history(
    history: Sequence[LocationHistoryEntry],
    home_address: str,
    home: Coordinate,
    *,
    settings: Settings,
) -> LocationHistoryAnalysis:
    """Analyze a trace for consistency with the claimed home (simulated service latency)."""
    await asyncio.sleep(settings.simulation.latency.history_analysis_seconds)
    analysis = score_location_history(history, home, settings=settings)
    logger.info(
        "Location history for '%s': score=%.1f home=%.1f%% patterns=%s consistent=%s",
        home_address,
        analysis.consistency_score,
        analysis.home_frequency,
        analysis.suspicious_patterns,
        analysis.is_consistent,
    )
    return analysis

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import build_settings
from kyctrust.analysis.location_history import (
    EXCESSIVE_DIVERSITY,
    IMPOSSIBLE_TRAVEL,
    analyze_location_history,
    score_location_history,
)
from kyctrust.core.geo import destination_point
from kyctrust.core.noise import NoiseSource
from kyctrust.domain.models import Activity, Coordinate, LocationHistoryEntry
from kyctrust.simulation.location_history import generate_location_history

HOME = Coordinate(lat=6.4, lng=3.4)
LONDON = Coordinate(lat=51.5072, lng=-0.1276)
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _entry(coordinate, hours_ago, activity=Activity.HOME):
    return LocationHistoryEntry(
        timestamp=T0 - timedelta(hours=hours_ago),
        coordinate=coordinate,
        address="17 Toyin Street, Abeokuta",
        activity=activity,
    )


def test_all_home_trace_is_consistent(settings):
    history = [_entry(HOME, 24 * i) for i in range(30)]
    analysis = score_location_history(history, HOME, settings=settings)

    assert analysis.total_entries == 30
    assert analysis.home_frequency == 100
    assert analysis.consistency_score == 70
    assert analysis.suspicious_patterns == []
    assert analysis.is_consistent
    assert len(analysis.recent_activity) == 10
    assert analysis.recent_activity[0].timestamp == T0


def test_scattered_trace_is_flagged_but_floored(settings):
    history = [
        _entry(destination_point(HOME, 12 * i, 2 + i * 0.5), 24 * i, Activity.WORK)
        for i in range(30)
    ]
    analysis = score_location_history(history, HOME, settings=settings)

    assert analysis.home_frequency == 0
    assert analysis.suspicious_patterns == [EXCESSIVE_DIVERSITY]
    # Raw score is 25 + 20 - 5 = 40; the floor lifts it back to 70.
    assert analysis.consistency_score == 70
    assert analysis.is_consistent


def test_impossible_travel_is_flagged_per_pair(settings):
    history = [_entry(HOME, 0), _entry(LONDON, 0.5), _entry(HOME, 1.0)] + [
        _entry(HOME, 24 * i) for i in range(1, 28)
    ]
    analysis = score_location_history(history, HOME, settings=settings)

    assert analysis.suspicious_patterns.count(IMPOSSIBLE_TRAVEL) == 2
    assert EXCESSIVE_DIVERSITY not in analysis.suspicious_patterns
    assert analysis.consistency_score >= 70
    assert not analysis.is_consistent


def test_slow_long_trip_is_not_impossible(settings):
    history = [_entry(HOME, 0), _entry(LONDON, 10)]
    analysis = score_location_history(history, HOME, settings=settings)
    assert IMPOSSIBLE_TRAVEL not in analysis.suspicious_patterns


def test_unordered_input_is_analyzed_newest_first(settings):
    history = [_entry(HOME, 24 * i) for i in range(12)]
    analysis = score_location_history(list(reversed(history)), HOME, settings=settings)
    assert [e.timestamp for e in analysis.recent_activity] == [e.timestamp for e in history[:10]]


def test_empty_history_does_not_divide_by_zero(settings):
    analysis = score_location_history([], HOME, settings=settings)
    assert analysis.total_entries == 0
    assert analysis.home_frequency == 0
    assert analysis.consistency_score == 70
    assert analysis.recent_activity == []


def test_floor_can_be_lowered_by_configuration():
    strict = build_settings({"analysis": {"score_floor": 0}})
    history = [
        _entry(destination_point(HOME, 12 * i, 2 + i * 0.5), 24 * i, Activity.GYM)
        for i in range(30)
    ]
    analysis = score_location_history(history, HOME, settings=strict)
    assert analysis.consistency_score == pytest.approx(40)
    assert not analysis.is_consistent


@pytest.mark.parametrize("seed", range(30))
def test_generated_traces_stay_in_range(settings, seed):
    history = generate_location_history(HOME, "Toyin Street", "Abeokuta", settings=settings, noise=NoiseSource(seed))
    analysis = asyncio.run(analyze_location_history(history, "17 Toyin Street", HOME, settings=settings))

    assert 70 <= analysis.consistency_score <= 100
    assert 0 <= analysis.home_frequency <= 100
    assert analysis.total_entries == 30
    assert analysis.is_consistent == (
        analysis.consistency_score > 50 and len(analysis.suspicious_patterns) <= 1
    )

from __future__ import annotations

from typing import Any

import pytest

from kyctrust.config.overrides import _deep_merge
from kyctrust.config.settings import Settings, get_settings

ZERO_LATENCY = {"exif_seconds": 0, "address_db_seconds": 0, "history_analysis_seconds": 0}


def build_settings(overrides: dict[str, Any] | None = None) -> Settings:
    """Default settings with zero simulated latency, plus arbitrary test-only overrides."""
    base = _deep_merge(get_settings().model_dump(mode="python"), {"simulation": {"latency": ZERO_LATENCY}})
    return Settings.model_validate(_deep_merge(base, overrides or {}))


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def exact_settings() -> Settings:
    """No jitter on the EXIF and address-database simulators."""
    return build_settings(
        {"simulation": {"exif": {"jitter_deg": 0}, "address_db": {"jitter_deg": 0}}}
    )

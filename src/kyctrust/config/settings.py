# src/kyctrust/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/kyctrust/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `KYCTRUST_SEED`, `KYCTRUST_DECISION_PROFILE`)
- an external YAML file via `KYCTRUST_CONFIG_PATH`

Design rule:
- Thresholds, probabilities and point values live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from kyctrust.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `kyctrust.config`."""
    text = resources.files("kyctrust.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


DecisionProfileName = Literal["full", "basic"]


class AppSettings(BaseModel):
    name: str = "KYC Trust"
    timezone: str = "UTC"
    http_timeout_seconds: float = 10
    log_level: str = "INFO"
    max_sessions: int = Field(1000, ge=1)


class LatencySettings(BaseModel):
    """Simulated IO latency per suspending call (seconds)."""

    exif_seconds: float = Field(1.0, ge=0)
    address_db_seconds: float = Field(1.5, ge=0)
    history_analysis_seconds: float = Field(2.0, ge=0)


class LocationHistorySimSettings(BaseModel):
    days: int = Field(30, ge=1)
    night_home_probability: float = Field(0.4, ge=0, le=1)
    weekend_home_probability: float = Field(0.8, ge=0, le=1)
    weekday_home_probability: float = Field(0.5, ge=0, le=1)
    home_jitter_deg: float = Field(0.0005, ge=0)
    away_min_km: float = Field(0.5, ge=0)
    away_max_km: float = Field(20.0, ge=0)
    max_house_number: int = Field(999, ge=1)
    street_names: list[str] = Field(
        default_factory=lambda: ["Main St", "Oak Ave", "Park Rd", "First St"]
    )


class ExifSimSettings(BaseModel):
    jitter_deg: float = Field(0.0005, ge=0)


class DefaultCoordinate(BaseModel):
    lat: float = Field(40.7128, ge=-90, le=90)
    lng: float = Field(-74.006, ge=-180, le=180)


class AddressDbSimSettings(BaseModel):
    jitter_deg: float = Field(0.001, ge=0)
    min_free_text_parts: int = Field(3, ge=1)
    default_coordinate: DefaultCoordinate = Field(default_factory=DefaultCoordinate)


class SimulationSettings(BaseModel):
    seed: int | None = None
    latency: LatencySettings = Field(default_factory=LatencySettings)
    location_history: LocationHistorySimSettings = Field(default_factory=LocationHistorySimSettings)
    exif: ExifSimSettings = Field(default_factory=ExifSimSettings)
    address_db: AddressDbSimSettings = Field(default_factory=AddressDbSimSettings)


class HomeFrequencyTiers(BaseModel):
    high_threshold: float = 30
    high_points: float = 40
    mid_threshold: float = 15
    mid_points: float = 35
    floor_points: float = 25
    multiplier: float = 0.8


class RecencySettings(BaseModel):
    window: int = Field(7, ge=1)
    max_points: float = 30
    floor_points: float = 20


class AnalysisSettings(BaseModel):
    home_radius_km: float = Field(0.1, gt=0)
    recent_activity_limit: int = Field(10, ge=0)
    home_frequency: HomeFrequencyTiers = Field(default_factory=HomeFrequencyTiers)
    recency: RecencySettings = Field(default_factory=RecencySettings)
    diversity_ratio: float = Field(0.9, ge=0)
    diversity_penalty: float = 5
    coordinate_precision: int = Field(3, ge=0)
    impossible_travel_km: float = 2000
    impossible_travel_seconds: float = 3600
    impossible_travel_penalty: float = 10
    score_floor: float = Field(70, ge=0, le=100)
    score_ceiling: float = Field(100, ge=0, le=100)
    consistent_min_score: float = 50
    max_suspicious_patterns: int = Field(1, ge=0)


class LevelPoints(BaseModel):
    high: int = Field(..., ge=0)
    medium: int = Field(..., ge=0)
    low: int = Field(..., ge=0)


class DecisionSettings(BaseModel):
    profile: DecisionProfileName = "full"
    match_radius_km: float = Field(0.5, gt=0)
    points: dict[DecisionProfileName, LevelPoints] = Field(
        default_factory=lambda: {
            "full": LevelPoints(high=25, medium=15, low=10),
            "basic": LevelPoints(high=15, medium=10, low=5),
        }
    )


class GeolocationSettings(BaseModel):
    timeout_seconds: float = Field(10, gt=0)


class PhotoSettings(BaseModel):
    max_bytes: int = Field(10 * 1024 * 1024, ge=1)
    content_type_prefix: str = "image/"


class GeocodingSettings(BaseModel):
    enabled: bool = False
    base_url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "KYC-Verification-App"
    zoom: int = 18


class TrustTierThresholds(BaseModel):
    trusted: int = 80
    medium: int = 50


class TrustScoreSettings(BaseModel):
    email_points: int = 10
    phone_points_mature_sim: int = 15
    phone_points_new_sim: int = 10
    phone_mature_sim_months: int = 6
    social_points: dict[Literal["google", "linkedin", "twitter"], int] = Field(
        default_factory=lambda: {"google": 10, "linkedin": 20, "twitter": 10}
    )
    referee_points: int = 20
    max_referees: int = 2
    tiers: TrustTierThresholds = Field(default_factory=TrustTierThresholds)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    decision: DecisionSettings = Field(default_factory=DecisionSettings)
    geolocation: GeolocationSettings = Field(default_factory=GeolocationSettings)
    photo: PhotoSettings = Field(default_factory=PhotoSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    trust_score: TrustScoreSettings = Field(default_factory=TrustScoreSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("KYCTRUST_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    seed = os.getenv("KYCTRUST_SEED")
    if seed and seed.strip():
        data.setdefault("simulation", {})["seed"] = int(seed)

    profile = os.getenv("KYCTRUST_DECISION_PROFILE")
    if profile:
        data.setdefault("decision", {})["profile"] = profile.strip().lower()

    geocoding = os.getenv("KYCTRUST_GEOCODING_ENABLED")
    if geocoding:
        enabled = geocoding.strip().lower() in {"1", "true", "yes", "y"}
        data.setdefault("geocoding", {})["enabled"] = enabled

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("KYCTRUST_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")

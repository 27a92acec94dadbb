"""
Domain models (Pydantic).

These types are the stable "contract" between layers:
- session inputs (`AddressInput`, `Coordinate`, `PhotoUpload`)
- simulator outputs (`LocationHistoryEntry`, `PhotoEXIF`, `AddressValidation`)
- the terminal verdict (`ValidationResult`) and what is handed to the caller (`AddressAward`)

Keeping them in one place gives us input validation at the edges and consistent JSON output
across the CLI and the API.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class Coordinate(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def as_display(self) -> str:
        return f"{self.lat:.6f}, {self.lng:.6f}"


class AddressInput(BaseModel):
    """The residential address a user claims."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1, alias="zipCode")

    @field_validator("street", "city", "state", "zip_code", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"


class Activity(str, Enum):
    HOME = "Home"
    SLEEPING = "Sleeping"
    WORK = "Work"
    SHOPPING = "Shopping"
    RESTAURANT = "Restaurant"
    GYM = "Gym"
    TRAVEL = "Travel"


HOME_ACTIVITIES: tuple[Activity, ...] = (Activity.HOME, Activity.SLEEPING)
AWAY_ACTIVITIES: tuple[Activity, ...] = (
    Activity.WORK,
    Activity.SHOPPING,
    Activity.RESTAURANT,
    Activity.GYM,
    Activity.TRAVEL,
)


class LocationHistoryEntry(BaseModel):
    """One sample of a (simulated) location-history trace."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    coordinate: Coordinate
    address: str
    activity: Activity


class LocationHistoryAnalysis(BaseModel):
    """Consistency verdict over a location-history trace, recomputed fresh per run."""

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(..., ge=0)
    home_frequency: float = Field(..., ge=0, le=100)
    consistency_score: float = Field(..., ge=0, le=100)
    recent_activity: list[LocationHistoryEntry] = Field(default_factory=list)
    suspicious_patterns: list[str] = Field(default_factory=list)
    is_consistent: bool


class PhotoEXIF(BaseModel):
    """GPS + timestamp fields extracted from a photo's metadata."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    timestamp: datetime | None = None

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(lat=self.latitude, lng=self.longitude)


class AddressValidation(BaseModel):
    """Address-database lookup outcome."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    coordinate: Coordinate | None = None


class PhotoUpload(BaseModel):
    """Metadata of a captured photo; the image bytes are never inspected."""

    model_config = ConfigDict(frozen=True)

    filename: str = "photo.jpg"
    content_type: str
    size_bytes: int = Field(..., ge=0)


TrustLevel = Literal["high", "medium", "low"]


class ValidationResult(BaseModel):
    """Terminal artifact of one verification attempt."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    gps_match: bool
    photo_exif_match: bool
    address_valid: bool
    location_history_match: bool
    distance: float = Field(..., ge=0)
    trust_level: TrustLevel
    points: int = Field(..., ge=0)
    message: str
    location_history_analysis: LocationHistoryAnalysis | None = None


class AddressAward(BaseModel):
    """What a completed address verification hands to the point-award consumer."""

    model_config = ConfigDict(frozen=True)

    full_address: str
    coordinate: Coordinate
    trust_level: TrustLevel
    points: int = Field(..., ge=0)
    result: ValidationResult

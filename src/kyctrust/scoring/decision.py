"""
Trust-level decision engine.

Fuses the address, GPS, photo-EXIF and location-history signals into one verdict.

Two profiles share the same engine:
- `full`: all four signals are wired in (points 25/15/10 by default)
- `basic`: address + GPS only (points 15/10/5 by default)

Each profile is an ordered rule table; the first rule whose required signals all passed wins.
The last rule of every table requires nothing, so a verdict is always produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kyctrust.config.settings import DecisionProfileName, Settings
from kyctrust.core.geo import distance_km
from kyctrust.domain.models import (
    AddressValidation,
    Coordinate,
    LocationHistoryAnalysis,
    PhotoEXIF,
    TrustLevel,
    ValidationResult,
)
from kyctrust.verification.errors import MissingPreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signals:
    """The four boolean checks the rule tables look at."""

    address_valid: bool
    gps_match: bool
    photo_exif_match: bool
    location_history_match: bool

    def satisfies(self, required: frozenset[str]) -> bool:
        return all(getattr(self, name) for name in required)


@dataclass(frozen=True)
class DecisionRule:
    required: frozenset[str]
    trust_level: TrustLevel
    message: str


def _rule(required: tuple[str, ...], trust_level: TrustLevel, message: str) -> DecisionRule:
    return DecisionRule(required=frozenset(required), trust_level=trust_level, message=message)


DECISION_TABLES: dict[DecisionProfileName, tuple[DecisionRule, ...]] = {
    "full": (
        _rule(
            ("address_valid", "gps_match", "photo_exif_match", "location_history_match"),
            "high",
            "All verification checks passed! Your address has been fully verified with location history analysis.",
        ),
        _rule(
            ("address_valid", "gps_match", "location_history_match"),
            "medium",
            "Address verified with GPS and location history match. Photo location data not available or not matching.",
        ),
        _rule(
            ("address_valid", "gps_match"),
            "medium",
            "Address verified with GPS match. Location history analysis inconclusive.",
        ),
        _rule(
            ("address_valid",),
            "low",
            "Address exists in database, but location verification failed.",
        ),
        _rule((), "low", "Unable to verify address. Please check your details."),
    ),
    "basic": (
        _rule(("address_valid", "gps_match"), "high", "Address verified with GPS match."),
        _rule(
            ("address_valid",),
            "medium",
            "Address exists in database, but your GPS location is too far from it.",
        ),
        _rule((), "low", "Unable to verify address. Please check your details."),
    ),
}

# Signals a profile actually consumes; the others are still reported but never decide.
PROFILE_SIGNALS: dict[DecisionProfileName, frozenset[str]] = {
    "full": frozenset({"photo_exif", "location_history"}),
    "basic": frozenset(),
}


class DecisionEngine:
    """Applies a profile's rule table to the collected signals."""

    def __init__(self, settings: Settings, profile: DecisionProfileName | None = None):
        self._settings = settings
        self.profile: DecisionProfileName = profile or settings.decision.profile
        if self.profile not in DECISION_TABLES:
            raise ValueError(f"Unknown decision profile: {self.profile!r}")

    @property
    def uses_photo_exif(self) -> bool:
        return "photo_exif" in PROFILE_SIGNALS[self.profile]

    @property
    def uses_location_history(self) -> bool:
        return "location_history" in PROFILE_SIGNALS[self.profile]

    def points_for(self, trust_level: TrustLevel) -> int:
        return getattr(self._settings.decision.points[self.profile], trust_level)

    def evaluate(self, signals: Signals) -> DecisionRule:
        for rule in DECISION_TABLES[self.profile]:
            if signals.satisfies(rule.required):
                return rule
        raise AssertionError("decision table has no catch-all rule")

    def decide(
        self,
        address_validation: AddressValidation,
        gps_fix: Coordinate | None,
        exif: PhotoEXIF | None,
        location_analysis: LocationHistoryAnalysis | None = None,
    ) -> ValidationResult:
        if gps_fix is None:
            raise MissingPreconditionError("A GPS fix is required before deciding a trust level.")

        radius = self._settings.decision.match_radius_km
        address_point = address_validation.coordinate if address_validation.valid else None

        distance = 0.0
        gps_match = False
        photo_exif_match = False
        if address_point is not None:
            distance = distance_km(gps_fix, address_point)
            gps_match = distance < radius
            photo_point = exif.coordinate if exif is not None else None
            if photo_point is not None:
                photo_exif_match = distance_km(photo_point, address_point) < radius

        location_history_match = location_analysis.is_consistent if location_analysis is not None else False

        signals = Signals(
            address_valid=address_validation.valid,
            gps_match=gps_match,
            photo_exif_match=photo_exif_match,
            location_history_match=location_history_match,
        )
        rule = self.evaluate(signals)
        points = self.points_for(rule.trust_level)
        logger.info(
            "Trust decision (%s): level=%s points=%d distance=%.3fkm signals=%s",
            self.profile,
            rule.trust_level,
            points,
            distance,
            signals,
        )

        return ValidationResult(
            is_valid=address_validation.valid,
            gps_match=gps_match,
            photo_exif_match=photo_exif_match,
            address_valid=address_validation.valid,
            location_history_match=location_history_match,
            distance=distance,
            trust_level=rule.trust_level,
            points=points,
            message=rule.message,
            location_history_analysis=location_analysis,
        )

"""
Address verification session (step state machine).

    input → gps → photo → location-history → validating → result
      ↖──── back() to the preceding step (validating/result go back to location-history)

One `VerificationSession` owns everything collected for one user's address check: the claimed
address, the GPS fix, the photo metadata, and the final `ValidationResult`. Nothing is shared
between sessions; `reset()` discards all of it and restarts at `input`.

Suspending operations (`capture_gps`, `verify`) hold a run token. `back()` and `reset()` bump the
token, so a run that resumes after the user navigated away raises `VerificationAbandonedError`
instead of writing stale state into the session.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping
from uuid import uuid4

from pydantic import BaseModel

from kyctrust.analysis.location_history import analyze_location_history
from kyctrust.config.settings import Settings
from kyctrust.core.noise import NoiseSource
from kyctrust.core.time import now_in
from kyctrust.domain.models import (
    AddressAward,
    AddressInput,
    AddressValidation,
    Coordinate,
    LocationHistoryAnalysis,
    LocationHistoryEntry,
    PhotoEXIF,
    PhotoUpload,
    ValidationResult,
)
from kyctrust.ingestion.geocoding import ReverseGeocoder
from kyctrust.scoring.decision import DecisionEngine
from kyctrust.simulation.address_db import validate_address
from kyctrust.simulation.exif import extract_photo_exif
from kyctrust.simulation.location_history import generate_location_history
from kyctrust.verification.errors import (
    AnalysisFailedError,
    GeolocationUnavailableError,
    InvalidTransitionError,
    MissingPreconditionError,
    PhotoRejectedError,
    VerificationAbandonedError,
)

logger = logging.getLogger(__name__)

LocationSource = Callable[[], Awaitable[Coordinate]]


class VerificationStep(str, Enum):
    INPUT = "input"
    GPS = "gps"
    PHOTO = "photo"
    LOCATION_HISTORY = "location-history"
    VALIDATING = "validating"
    RESULT = "result"


BACK_TRANSITIONS: dict[VerificationStep, VerificationStep] = {
    VerificationStep.GPS: VerificationStep.INPUT,
    VerificationStep.PHOTO: VerificationStep.GPS,
    VerificationStep.LOCATION_HISTORY: VerificationStep.PHOTO,
    # `validating` is transient, so stepping back from the verdict lands on the step that starts a run.
    VerificationStep.VALIDATING: VerificationStep.LOCATION_HISTORY,
    VerificationStep.RESULT: VerificationStep.LOCATION_HISTORY,
}


def check_photo(photo: PhotoUpload, *, settings: Settings) -> PhotoUpload:
    """Reject non-images and oversized files before they enter the session."""
    cfg = settings.photo
    if not photo.content_type.lower().startswith(cfg.content_type_prefix):
        raise PhotoRejectedError("Please upload an image file")
    if photo.size_bytes > cfg.max_bytes:
        raise PhotoRejectedError(f"Image size must be less than {cfg.max_bytes // (1024 * 1024)}MB")
    return photo


class SessionState(BaseModel):
    """Read-only view of a session, used for API responses."""

    session_id: str
    step: VerificationStep
    profile: str
    address: AddressInput | None = None
    gps_fix: Coordinate | None = None
    gps_label: str | None = None
    photo: PhotoUpload | None = None
    result: ValidationResult | None = None
    award: AddressAward | None = None


class VerificationSession:
    """State machine driving one address verification."""

    def __init__(
        self,
        settings: Settings,
        *,
        noise: NoiseSource | None = None,
        engine: DecisionEngine | None = None,
        geocoder: ReverseGeocoder | None = None,
        session_id: str | None = None,
    ):
        self.settings = settings
        self.session_id = session_id or uuid4().hex
        self.noise = noise or NoiseSource(settings.simulation.seed)
        self.engine = engine or DecisionEngine(settings)
        self.geocoder = geocoder or ReverseGeocoder(settings)
        self.created_at: datetime = now_in(settings.app.timezone)
        self._run_token = 0
        self._clear()

    def _clear(self) -> None:
        self.step = VerificationStep.INPUT
        self.address: AddressInput | None = None
        self.gps_fix: Coordinate | None = None
        self.gps_label: str | None = None
        self.photo: PhotoUpload | None = None
        self._clear_outcome()

    def _clear_outcome(self) -> None:
        self.location_history: list[LocationHistoryEntry] = []
        self.location_analysis: LocationHistoryAnalysis | None = None
        self.photo_exif: PhotoEXIF | None = None
        self.address_validation: AddressValidation | None = None
        self.result: ValidationResult | None = None
        self.award: AddressAward | None = None

    def _require_step(self, expected: VerificationStep, operation: str) -> None:
        if self.step != expected:
            raise InvalidTransitionError(
                f"Cannot {operation} at step '{self.step.value}' (expected '{expected.value}')"
            )

    def _move(self, step: VerificationStep) -> None:
        logger.debug("Session %s: %s -> %s", self.session_id, self.step.value, step.value)
        self.step = step

    def _begin_run(self) -> int:
        self._run_token += 1
        return self._run_token

    def _ensure_current(self, token: int) -> None:
        if token != self._run_token:
            raise VerificationAbandonedError("Verification was abandoned; the session moved on.")

    def submit_address(self, address: AddressInput | Mapping[str, Any]) -> AddressInput:
        self._require_step(VerificationStep.INPUT, "submit an address")
        if not isinstance(address, AddressInput):
            missing = [k for k in ("street", "city", "state") if not str(address.get(k) or "").strip()]
            if not str(address.get("zip_code") or address.get("zipCode") or "").strip():
                missing.append("zip_code")
            if missing:
                raise MissingPreconditionError(f"Please fill in all address fields (missing: {', '.join(missing)})")
            address = AddressInput.model_validate(address)
        self.address = address
        self._move(VerificationStep.GPS)
        return address

    async def capture_gps(self, source: Coordinate | LocationSource) -> Coordinate:
        """Acquire a GPS fix from `source`, bounded by the geolocation timeout. Never retries."""
        self._require_step(VerificationStep.GPS, "capture a GPS fix")
        token = self._begin_run()

        if isinstance(source, Coordinate):
            fix = source
        else:
            try:
                fix = await asyncio.wait_for(source(), timeout=self.settings.geolocation.timeout_seconds)
            except Exception as e:
                logger.warning("Session %s: GPS acquisition failed: %s", self.session_id, e)
                raise GeolocationUnavailableError(
                    "Failed to get GPS location. Please enable location permissions."
                ) from e
            self._ensure_current(token)

        label = await self.geocoder.describe(fix)
        self._ensure_current(token)

        self.gps_fix = fix
        self.gps_label = label
        self._move(VerificationStep.PHOTO)
        return fix

    def attach_photo(self, photo: PhotoUpload) -> PhotoUpload:
        self._require_step(VerificationStep.PHOTO, "attach a photo")
        self.photo = check_photo(photo, settings=self.settings)
        self._move(VerificationStep.LOCATION_HISTORY)
        return self.photo

    async def verify(self) -> ValidationResult:
        """Run the simulated checks and the decision engine; lands on `result`."""
        self._require_step(VerificationStep.LOCATION_HISTORY, "start verification")
        if self.address is None or self.gps_fix is None or self.photo is None:
            raise MissingPreconditionError("Missing required data")

        address, fix, photo = self.address, self.gps_fix, self.photo
        token = self._begin_run()
        self._clear_outcome()
        self._move(VerificationStep.VALIDATING)

        try:
            history: list[LocationHistoryEntry] = []
            analysis: LocationHistoryAnalysis | None = None
            if self.engine.uses_location_history:
                history = generate_location_history(
                    fix, address.street, address.city, settings=self.settings, noise=self.noise
                )
                analysis = await analyze_location_history(
                    history, address.full_address, fix, settings=self.settings
                )
                self._ensure_current(token)

            exif = await extract_photo_exif(photo, fix, settings=self.settings, noise=self.noise)
            self._ensure_current(token)

            validation = await validate_address(address, fix, settings=self.settings, noise=self.noise)
            self._ensure_current(token)

            result = self.engine.decide(validation, fix, exif, analysis)
        except VerificationAbandonedError:
            raise
        except asyncio.CancelledError:
            if token == self._run_token:
                self._move(VerificationStep.LOCATION_HISTORY)
            raise
        except Exception as e:
            if token == self._run_token:
                self._move(VerificationStep.LOCATION_HISTORY)
            logger.warning("Session %s: verification failed: %s", self.session_id, e)
            raise AnalysisFailedError("Location history analysis failed. Please try again.") from e

        self.location_history = history
        self.location_analysis = analysis
        self.photo_exif = exif
        self.address_validation = validation
        self.result = result
        self._move(VerificationStep.RESULT)
        return result

    def back(self) -> VerificationStep:
        if self.step not in BACK_TRANSITIONS:
            raise InvalidTransitionError(f"Cannot go back from step '{self.step.value}'")
        self._run_token += 1
        self._clear_outcome()
        self._move(BACK_TRANSITIONS[self.step])
        return self.step

    def complete(self) -> AddressAward:
        """Hand the verdict and awarded points to the caller."""
        self._require_step(VerificationStep.RESULT, "complete verification")
        if self.award is not None:
            return self.award
        assert self.result is not None and self.address is not None and self.gps_fix is not None
        self.award = AddressAward(
            full_address=self.address.full_address,
            coordinate=self.gps_fix,
            trust_level=self.result.trust_level,
            points=self.result.points,
            result=self.result,
        )
        logger.info(
            "Session %s completed: %s (+%d)", self.session_id, self.award.trust_level, self.award.points
        )
        return self.award

    def reset(self) -> None:
        self._run_token += 1
        self._clear()

    def state(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            step=self.step,
            profile=self.engine.profile,
            address=self.address,
            gps_fix=self.gps_fix,
            gps_label=self.gps_label,
            photo=self.photo,
            result=self.result,
            award=self.award,
        )

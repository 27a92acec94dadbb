"""
API routes.

Endpoints:
- POST `/api/sessions`: open an address-verification session.
- GET  `/api/sessions/{id}`: current step + collected data.
- DELETE `/api/sessions/{id}`: end the session and drop its state.
- POST `/api/sessions/{id}/address|gps|photo|verify|back|complete|reset`: drive the step machine.
- POST `/api/address/decide`: stateless trust decision from explicit signals.
- GET  `/api/settings`: public settings for the web UI.
- GET  `/api/validating-phrases`: progress phrases for the `validating` step.

Sessions live in process memory; there is no persistent store.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from kyctrust.config.overrides import apply_settings_overrides
from kyctrust.config.settings import DecisionProfileName, get_settings
from kyctrust.domain.models import (
    AddressAward,
    AddressInput,
    AddressValidation,
    Coordinate,
    LocationHistoryAnalysis,
    PhotoEXIF,
    PhotoUpload,
    ValidationResult,
)
from kyctrust.scoring.decision import DecisionEngine
from kyctrust.verification.errors import (
    AnalysisFailedError,
    GeolocationUnavailableError,
    InvalidTransitionError,
    MissingPreconditionError,
    PhotoRejectedError,
    VerificationAbandonedError,
    VerificationError,
)
from kyctrust.verification.progress import VALIDATING_PHRASES
from kyctrust.verification.session import SessionState, VerificationSession

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR: tuple[tuple[type[VerificationError], int], ...] = (
    (MissingPreconditionError, 400),
    (PhotoRejectedError, 400),
    (InvalidTransitionError, 409),
    (VerificationAbandonedError, 409),
    (GeolocationUnavailableError, 422),
    (AnalysisFailedError, 503),
)


class SessionRegistry:
    """In-memory map of session id -> session, bounded to `max_sessions` (oldest evicted first)."""

    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[str, VerificationSession] = {}
        self._max_sessions = max_sessions

    def add(self, session: VerificationSession) -> VerificationSession:
        while len(self._sessions) >= self._max_sessions:
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest).reset()
            logger.info("Evicted verification session %s", oldest)
        self._sessions[session.session_id] = session
        return session

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> VerificationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise HTTPException(
                status_code=404,
                detail={"code": "SESSION_NOT_FOUND", "message": f"Unknown session '{session_id}'"},
            )
        return session

    def remove(self, session_id: str) -> VerificationSession:
        session = self.get(session_id)
        del self._sessions[session_id]
        return session

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache
def _registry() -> SessionRegistry:
    return SessionRegistry(max_sessions=get_settings().app.max_sessions)


def _http_error(e: VerificationError) -> HTTPException:
    status = 400
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            status = code
            break
    return HTTPException(status_code=status, detail={"code": e.code, "message": str(e)})


class SessionCreate(BaseModel):
    settings_overrides: dict[str, Any] | None = None


class DecideRequest(BaseModel):
    address_validation: AddressValidation
    gps_fix: Coordinate
    exif: PhotoEXIF | None = None
    location_analysis: LocationHistoryAnalysis | None = None
    profile: DecisionProfileName | None = None


@router.post("/api/sessions", response_model=SessionState, status_code=201)
def create_session(payload: SessionCreate | None = None) -> SessionState:
    """Open a new verification session at step `input`."""
    try:
        settings = apply_settings_overrides(get_settings(), payload.settings_overrides if payload else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    session = _registry().add(VerificationSession(settings))
    logger.info("Opened verification session %s (profile=%s)", session.session_id, session.engine.profile)
    return session.state()


@router.get("/api/sessions/{session_id}", response_model=SessionState)
def get_session(session_id: str) -> SessionState:
    return _registry().get(session_id).state()


@router.delete("/api/sessions/{session_id}", status_code=204)
def end_session(session_id: str) -> Response:
    """End a session; everything it collected is discarded."""
    session = _registry().remove(session_id)
    session.reset()
    logger.info("Closed verification session %s", session_id)
    return Response(status_code=204)


@router.post("/api/sessions/{session_id}/address", response_model=SessionState)
def submit_address(session_id: str, address: AddressInput) -> SessionState:
    session = _registry().get(session_id)
    try:
        session.submit_address(address)
    except VerificationError as e:
        raise _http_error(e) from e
    return session.state()


@router.post("/api/sessions/{session_id}/gps", response_model=SessionState)
async def capture_gps(session_id: str, fix: Coordinate) -> SessionState:
    """Record the fix the browser's geolocation API produced."""
    session = _registry().get(session_id)
    try:
        await session.capture_gps(fix)
    except VerificationError as e:
        raise _http_error(e) from e
    return session.state()


@router.post("/api/sessions/{session_id}/photo", response_model=SessionState)
def attach_photo(session_id: str, photo: PhotoUpload) -> SessionState:
    session = _registry().get(session_id)
    try:
        session.attach_photo(photo)
    except VerificationError as e:
        raise _http_error(e) from e
    return session.state()


@router.post("/api/sessions/{session_id}/verify", response_model=SessionState)
async def verify(session_id: str) -> SessionState:
    session = _registry().get(session_id)
    try:
        await session.verify()
    except VerificationError as e:
        raise _http_error(e) from e
    return session.state()


@router.post("/api/sessions/{session_id}/back", response_model=SessionState)
def back(session_id: str) -> SessionState:
    session = _registry().get(session_id)
    try:
        session.back()
    except VerificationError as e:
        raise _http_error(e) from e
    return session.state()


@router.post("/api/sessions/{session_id}/complete", response_model=AddressAward)
def complete(session_id: str) -> AddressAward:
    session = _registry().get(session_id)
    try:
        return session.complete()
    except VerificationError as e:
        raise _http_error(e) from e


@router.post("/api/sessions/{session_id}/reset", response_model=SessionState)
def reset(session_id: str) -> SessionState:
    session = _registry().get(session_id)
    session.reset()
    return session.state()


@router.post("/api/address/decide", response_model=ValidationResult)
def decide(payload: DecideRequest) -> ValidationResult:
    """Run the decision engine on caller-supplied signals (no simulation, no session)."""
    engine = DecisionEngine(get_settings(), profile=payload.profile)
    return engine.decide(payload.address_validation, payload.gps_fix, payload.exif, payload.location_analysis)


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings for UI defaults."""
    data = get_settings().model_dump(mode="json")
    return {
        "app": {"timezone": data["app"]["timezone"]},
        "decision": data["decision"],
        "geolocation": data["geolocation"],
        "photo": data["photo"],
        "trust_score": data["trust_score"],
    }


@router.get("/api/validating-phrases")
def get_validating_phrases() -> dict:
    return {"phrases": list(VALIDATING_PHRASES)}

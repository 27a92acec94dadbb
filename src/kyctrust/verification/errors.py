"""
Verification errors.

All of these are session-local: the session stays usable and the user can retry from an
earlier step. The API maps them to 4xx responses.
"""

from __future__ import annotations


class VerificationError(Exception):
    """Base class for address-verification failures."""

    code = "VERIFICATION_ERROR"


class MissingPreconditionError(VerificationError, ValueError):
    """A required signal (address field, GPS fix, photo) is missing."""

    code = "MISSING_PRECONDITION"


class InvalidTransitionError(VerificationError):
    """The operation is not allowed at the session's current step."""

    code = "INVALID_TRANSITION"


class GeolocationUnavailableError(VerificationError):
    """The location source was denied, failed, or timed out."""

    code = "GEOLOCATION_UNAVAILABLE"


class PhotoRejectedError(VerificationError, ValueError):
    """The uploaded file is not an image or is too large."""

    code = "PHOTO_REJECTED"


class AnalysisFailedError(VerificationError):
    """Location-history analysis or address validation raised; no result was produced."""

    code = "ANALYSIS_FAILED"


class VerificationAbandonedError(VerificationError):
    """An in-flight verification run was invalidated by `back()` or `reset()`."""

    code = "VERIFICATION_ABANDONED"

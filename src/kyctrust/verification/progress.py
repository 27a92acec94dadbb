"""Progress phrases shown while a verification run is in the `validating` step."""

from __future__ import annotations

from itertools import cycle
from typing import Iterator

VALIDATING_PHRASES: tuple[str, ...] = (
    "Extracting photo EXIF data...",
    "Validating address in database...",
    "Cross-checking GPS coordinates...",
    "Analyzing location history patterns...",
    "Calculating trust score...",
)


def validating_phrases() -> Iterator[str]:
    """Endless cycle over `VALIDATING_PHRASES`; the caller decides the tick rate."""
    return cycle(VALIDATING_PHRASES)

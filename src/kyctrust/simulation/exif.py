"""
Photo EXIF simulator.

We never parse the uploaded image. A photo taken at the claimed address is modelled as the
captured GPS fix plus ~50 m of jitter; without a fix the photo carries no GPS tags.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from kyctrust.config.settings import Settings
from kyctrust.core.geo import offset_point
from kyctrust.core.noise import NoiseSource
from kyctrust.core.time import now_in
from kyctrust.domain.models import Coordinate, PhotoEXIF, PhotoUpload


async def extract_photo_exif(
    photo: PhotoUpload,
    gps_fix: Coordinate | None,
    *,
    settings: Settings,
    noise: NoiseSource,
    now: datetime | None = None,
) -> PhotoEXIF:
    await asyncio.sleep(settings.simulation.latency.exif_seconds)
    timestamp = now or now_in(settings.app.timezone)

    if gps_fix is None:
        return PhotoEXIF(latitude=None, longitude=None, timestamp=timestamp)

    jitter = settings.simulation.exif.jitter_deg
    point = offset_point(gps_fix, noise.jitter(jitter), noise.jitter(jitter))
    return PhotoEXIF(
        latitude=point.lat,
        longitude=point.lng,
        timestamp=timestamp,
    )

"""
Logging configuration.

We use a YAML logging config (`src/kyctrust/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `KYCTRUST_LOG_LEVEL`).

What gets logged, by logger:
- `kyctrust.verification.session`: step transitions (DEBUG), GPS and verification failures,
  completed awards.
- `kyctrust.scoring.decision`: every trust decision with its signals, distance and points.
- `kyctrust.analysis.location_history`: consistency score and flagged patterns per trace.
- `kyctrust.ingestion.geocoding`: reverse-geocoding fallbacks.
- `kyctrust.api.routes`: sessions opened, closed and evicted.

Records go to stderr so CLI `--json` output on stdout stays machine-readable.
"""

from __future__ import annotations

import copy
import logging.config

from kyctrust.config.settings import get_logging_config, get_settings


def configure_logging() -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = get_settings()
    config = copy.deepcopy(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    config.setdefault("loggers", {}).setdefault("kyctrust", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)

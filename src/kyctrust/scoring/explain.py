"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of verification verdicts.
"""

from __future__ import annotations

from kyctrust.domain.models import LocationHistoryAnalysis, ValidationResult


def _mark(passed: bool) -> str:
    return "ok" if passed else "no"


def one_line_summary(result: ValidationResult) -> str:
    """Render a compact single-line summary for a verdict."""
    parts = [
        f"trust={result.trust_level} (+{result.points})",
        f"address={_mark(result.address_valid)}",
        f"gps={_mark(result.gps_match)} ({result.distance:.3f} km)",
        f"photo={_mark(result.photo_exif_match)}",
        f"history={_mark(result.location_history_match)}",
    ]
    return " | ".join(parts)


def history_summary(analysis: LocationHistoryAnalysis) -> str:
    patterns = ", ".join(analysis.suspicious_patterns) or "none"
    return (
        f"entries={analysis.total_entries} home={analysis.home_frequency:.1f}% "
        f"score={analysis.consistency_score:.1f} consistent={analysis.is_consistent} patterns={patterns}"
    )

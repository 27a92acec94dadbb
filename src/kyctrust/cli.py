"""
KYC Trust CLI entrypoint.

This CLI is intended for quick local demos and debugging without the web UI.
It drives a `VerificationSession` end to end with simulated latency switched off.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from pydantic import ValidationError

from kyctrust.analysis.location_history import analyze_location_history
from kyctrust.config.overrides import apply_settings_overrides
from kyctrust.config.settings import Settings, get_settings
from kyctrust.core.logging import configure_logging
from kyctrust.core.noise import NoiseSource
from kyctrust.domain.models import AddressInput, Coordinate, PhotoUpload
from kyctrust.scoring.explain import history_summary, one_line_summary
from kyctrust.simulation.location_history import generate_location_history
from kyctrust.verification.session import VerificationSession


def _cli_settings(args: argparse.Namespace) -> Settings:
    """Base settings with zero latency plus the optional seed/profile flags."""
    overrides: dict[str, Any] = {
        "simulation": {
            "latency": {"exif_seconds": 0, "address_db_seconds": 0, "history_analysis_seconds": 0},
        }
    }
    if getattr(args, "seed", None) is not None:
        overrides["simulation"]["seed"] = int(args.seed)
    if getattr(args, "profile", None):
        overrides["decision"] = {"profile": args.profile}
    return apply_settings_overrides(get_settings(), overrides)


async def _run_verification(args: argparse.Namespace, settings: Settings) -> VerificationSession:
    session = VerificationSession(settings)
    session.submit_address(
        AddressInput(street=args.street, city=args.city, state=args.state, zip_code=args.zip)
    )
    await session.capture_gps(Coordinate(lat=float(args.lat), lng=float(args.lng)))
    session.attach_photo(PhotoUpload(filename=args.photo_name, content_type="image/jpeg", size_bytes=1024))
    await session.verify()
    return session


def _cmd_verify(args: argparse.Namespace) -> int:
    """Handle the `verify` subcommand."""
    settings = _cli_settings(args)
    session = asyncio.run(_run_verification(args, settings))
    award = session.complete()

    if args.json:
        print(json.dumps(award.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"Address: {award.full_address}")
    print(f"GPS: {session.gps_label}")
    print(one_line_summary(award.result))
    print(award.result.message)
    if award.result.location_history_analysis is not None:
        print(f"History: {history_summary(award.result.location_history_analysis)}")
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    """Handle the `history` subcommand."""
    settings = _cli_settings(args)
    home = Coordinate(lat=float(args.lat), lng=float(args.lng))
    noise = NoiseSource(settings.simulation.seed)
    history = generate_location_history(home, args.street, args.city, settings=settings, noise=noise)
    analysis = asyncio.run(
        analyze_location_history(history, f"{args.street}, {args.city}", home, settings=settings)
    )

    if args.json:
        payload = {
            "history": [e.model_dump(mode="json") for e in history],
            "analysis": analysis.model_dump(mode="json"),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    for entry in history:
        c = entry.coordinate
        print(f"{entry.timestamp.isoformat()}  {entry.activity.value:<10} {c.lat:.5f},{c.lng:.5f}  {entry.address}")
    print(history_summary(analysis))
    return 0


def _describe_validation_error(e: ValidationError) -> str:
    """One-line summary of pydantic errors, e.g. "lat: Input should be less than or equal to 90"."""
    parts = []
    for err in e.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "invalid input: " + "; ".join(parts)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the KYC Trust CLI."""
    parser = argparse.ArgumentParser(prog="kyctrust")
    sub = parser.add_subparsers(dest="command", required=True)

    ver = sub.add_parser("verify", help="Run a simulated address verification and print the verdict.")
    ver.add_argument("--street", required=True)
    ver.add_argument("--city", required=True)
    ver.add_argument("--state", required=True)
    ver.add_argument("--zip", required=True)
    ver.add_argument("--lat", required=True, type=float, help="Captured GPS latitude")
    ver.add_argument("--lng", required=True, type=float, help="Captured GPS longitude")
    ver.add_argument("--photo-name", default="doorstep.jpg")
    ver.add_argument("--seed", type=int, default=None, help="Seed the simulators for a reproducible run")
    ver.add_argument("--profile", choices=["full", "basic"], default=None)
    ver.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    ver.set_defaults(func=_cmd_verify)

    hist = sub.add_parser("history", help="Generate and analyze a simulated 30-day location history.")
    hist.add_argument("--lat", required=True, type=float)
    hist.add_argument("--lng", required=True, type=float)
    hist.add_argument("--street", required=True)
    hist.add_argument("--city", required=True)
    hist.add_argument("--seed", type=int, default=None)
    hist.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    hist.set_defaults(func=_cmd_history)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m kyctrust.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except ValidationError as e:
        parser.error(_describe_validation_error(e))


if __name__ == "__main__":
    raise SystemExit(main())

import asyncio
from itertools import islice

import pytest

import kyctrust.verification.session as session_module
from conftest import build_settings
from kyctrust.core.geo import destination_point
from kyctrust.core.noise import NoiseSource
from kyctrust.domain.models import AddressInput, AddressValidation, Coordinate, PhotoUpload
from kyctrust.scoring.trust_score import TrustScore
from kyctrust.verification.errors import (
    AnalysisFailedError,
    GeolocationUnavailableError,
    InvalidTransitionError,
    MissingPreconditionError,
    PhotoRejectedError,
    VerificationAbandonedError,
)
from kyctrust.verification.progress import VALIDATING_PHRASES, validating_phrases
from kyctrust.verification.session import VerificationSession, VerificationStep

HOME = Coordinate(lat=6.4, lng=3.4)
ADDRESS = AddressInput(street="17 Toyin Street", city="Abeokuta", state="Lagos", zip_code="10001")
PHOTO = PhotoUpload(filename="door.jpg", content_type="image/jpeg", size_bytes=350_000)


async def _at_location_history(session: VerificationSession, fix: Coordinate = HOME) -> VerificationSession:
    session.submit_address(ADDRESS)
    await session.capture_gps(fix)
    session.attach_photo(PHOTO)
    return session


def test_full_flow_at_home_is_high_trust(exact_settings):
    async def run():
        session = await _at_location_history(VerificationSession(exact_settings, noise=NoiseSource(11)))
        assert session.step is VerificationStep.LOCATION_HISTORY
        result = await session.verify()
        return session, result

    session, result = asyncio.run(run())

    assert session.step is VerificationStep.RESULT
    assert result.location_history_analysis is not None and result.location_history_analysis.is_consistent
    assert len(session.location_history) == 30
    assert (result.trust_level, result.points) == ("high", 25)

    award = session.complete()
    assert award.full_address == "17 Toyin Street, Abeokuta, Lagos 10001"
    assert award.coordinate == HOME
    assert (award.trust_level, award.points) == ("high", 25)
    assert session.complete() is award


def test_basic_profile_skips_location_history():
    basic = build_settings(
        {
            "decision": {"profile": "basic"},
            "simulation": {"exif": {"jitter_deg": 0}, "address_db": {"jitter_deg": 0}},
        }
    )

    async def run():
        session = await _at_location_history(VerificationSession(basic, noise=NoiseSource(3)))
        return session, await session.verify()

    session, result = asyncio.run(run())
    assert session.location_history == []
    assert result.location_history_analysis is None
    assert (result.trust_level, result.points) == ("high", 15)


def test_address_step_requires_every_field(settings):
    session = VerificationSession(settings)
    with pytest.raises(MissingPreconditionError, match="state"):
        session.submit_address({"street": "17 Toyin Street", "city": "Abeokuta", "state": "", "zipCode": "10001"})
    assert session.step is VerificationStep.INPUT

    session.submit_address({"street": "17 Toyin Street", "city": "Abeokuta", "state": "Lagos", "zipCode": "10001"})
    assert session.step is VerificationStep.GPS
    assert session.address.full_address == "17 Toyin Street, Abeokuta, Lagos 10001"


def test_operations_out_of_order_are_rejected(settings):
    session = VerificationSession(settings)
    with pytest.raises(InvalidTransitionError):
        asyncio.run(session.verify())
    with pytest.raises(InvalidTransitionError):
        session.attach_photo(PHOTO)
    with pytest.raises(InvalidTransitionError):
        session.complete()
    with pytest.raises(InvalidTransitionError):
        session.back()


def test_back_walks_to_the_preceding_step(settings):
    session = asyncio.run(_at_location_history(VerificationSession(settings)))
    assert session.back() is VerificationStep.PHOTO
    assert session.back() is VerificationStep.GPS
    assert session.back() is VerificationStep.INPUT
    with pytest.raises(InvalidTransitionError):
        session.back()


def test_back_from_result_discards_the_verdict(settings):
    async def run():
        session = await _at_location_history(VerificationSession(settings, noise=NoiseSource(5)))
        await session.verify()
        return session

    session = asyncio.run(run())
    assert session.result is not None
    assert session.back() is VerificationStep.LOCATION_HISTORY
    assert session.result is None
    assert session.location_analysis is None


def test_reset_discards_everything(settings):
    session = asyncio.run(_at_location_history(VerificationSession(settings)))
    session.reset()
    assert session.step is VerificationStep.INPUT
    assert session.address is None and session.gps_fix is None and session.photo is None


def test_gps_timeout_keeps_session_on_gps_step():
    quick = build_settings({"geolocation": {"timeout_seconds": 0.01}})
    session = VerificationSession(quick)
    session.submit_address(ADDRESS)

    async def slow_fix():
        await asyncio.sleep(1)
        return HOME

    with pytest.raises(GeolocationUnavailableError):
        asyncio.run(session.capture_gps(slow_fix))
    assert session.step is VerificationStep.GPS
    assert session.gps_fix is None


def test_gps_permission_denied_is_reported(settings):
    session = VerificationSession(settings)
    session.submit_address(ADDRESS)

    async def denied():
        raise PermissionError("User denied Geolocation")

    with pytest.raises(GeolocationUnavailableError) as exc:
        asyncio.run(session.capture_gps(denied))
    assert isinstance(exc.value.__cause__, PermissionError)
    assert session.step is VerificationStep.GPS


def test_gps_source_coroutine_is_accepted(settings):
    session = VerificationSession(settings)
    session.submit_address(ADDRESS)

    async def browser_fix():
        return HOME

    assert asyncio.run(session.capture_gps(browser_fix)) == HOME
    assert session.gps_label == "6.400000, 3.400000"
    assert session.step is VerificationStep.PHOTO


@pytest.mark.parametrize(
    "photo",
    [
        PhotoUpload(filename="id.pdf", content_type="application/pdf", size_bytes=1000),
        PhotoUpload(filename="huge.png", content_type="image/png", size_bytes=11 * 1024 * 1024),
    ],
)
def test_bad_photos_are_rejected(settings, photo):
    session = VerificationSession(settings)
    session.submit_address(ADDRESS)
    asyncio.run(session.capture_gps(HOME))
    with pytest.raises(PhotoRejectedError):
        session.attach_photo(photo)
    assert session.step is VerificationStep.PHOTO


def test_analysis_failure_returns_to_location_history(settings, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("timeline service unavailable")

    monkeypatch.setattr(session_module, "analyze_location_history", broken)
    session = asyncio.run(_at_location_history(VerificationSession(settings)))

    with pytest.raises(AnalysisFailedError):
        asyncio.run(session.verify())
    assert session.step is VerificationStep.LOCATION_HISTORY
    assert session.result is None


def test_back_during_validation_abandons_the_run():
    slow = build_settings({"simulation": {"latency": {"history_analysis_seconds": 0.05}}})

    async def run():
        session = await _at_location_history(VerificationSession(slow, noise=NoiseSource(2)))
        task = asyncio.create_task(session.verify())
        await asyncio.sleep(0)
        assert session.step is VerificationStep.VALIDATING
        session.back()
        with pytest.raises(VerificationAbandonedError):
            await task
        return session

    session = asyncio.run(run())
    assert session.step is VerificationStep.LOCATION_HISTORY
    assert session.result is None


def test_fix_five_km_from_database_point_ends_low(settings, monkeypatch):
    database_point = destination_point(HOME, 45, 5.0)

    async def far_lookup(address, gps_fix, **kwargs):
        return AddressValidation(valid=True, coordinate=database_point)

    monkeypatch.setattr(session_module, "validate_address", far_lookup)

    async def run():
        session = await _at_location_history(VerificationSession(settings, noise=NoiseSource(9)))
        return await session.verify()

    result = asyncio.run(run())
    assert result.distance == pytest.approx(5.0, rel=1e-6)
    assert not result.gps_match
    assert result.location_history_match
    assert (result.trust_level, result.points) == ("low", 10)


def test_award_feeds_the_trust_score(exact_settings):
    async def run():
        session = await _at_location_history(VerificationSession(exact_settings, noise=NoiseSource(4)))
        await session.verify()
        return session.complete()

    award = asyncio.run(run())
    score = TrustScore().apply_email(settings=exact_settings).apply_address_award(award)
    assert score.breakdown.address == 25
    assert score.total == 35


def test_validating_phrases_cycle_forever():
    phrases = list(islice(validating_phrases(), len(VALIDATING_PHRASES) + 2))
    assert phrases[: len(VALIDATING_PHRASES)] == list(VALIDATING_PHRASES)
    assert phrases[-2:] == list(VALIDATING_PHRASES[:2])


@pytest.mark.parametrize("fix", [Coordinate(lat=-16.8, lng=180.0), Coordinate(lat=64.7, lng=-180.0), Coordinate(lat=90.0, lng=0.0)])
def test_verification_completes_on_the_antimeridian_and_the_pole(settings, fix):
    for seed in range(5):

        async def run():
            session = await _at_location_history(VerificationSession(settings, noise=NoiseSource(seed)), fix)
            return session, await session.verify()

        session, result = asyncio.run(run())
        assert session.step is VerificationStep.RESULT
        assert result.gps_match and result.photo_exif_match
        assert len(session.location_history) == 30

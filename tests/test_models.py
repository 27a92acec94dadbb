import pytest
from pydantic import ValidationError

from kyctrust.domain.models import AddressInput, Coordinate, PhotoEXIF


def test_full_address_formatting():
    address = AddressInput(street="17 Toyin Street", city="Abeokuta", state="Lagos", zip_code="10001")
    assert address.full_address == "17 Toyin Street, Abeokuta, Lagos 10001"
    assert address.model_dump()["full_address"] == "17 Toyin Street, Abeokuta, Lagos 10001"


def test_address_accepts_camel_case_zip_and_strips_fields():
    address = AddressInput.model_validate(
        {"street": " 17 Toyin Street ", "city": "Abeokuta", "state": "Lagos", "zipCode": "10001 "}
    )
    assert address.zip_code == "10001"
    assert address.street == "17 Toyin Street"


def test_address_rejects_blank_fields():
    with pytest.raises(ValidationError):
        AddressInput(street="17 Toyin Street", city="   ", state="Lagos", zip_code="10001")


def test_address_is_immutable():
    address = AddressInput(street="17 Toyin Street", city="Abeokuta", state="Lagos", zip_code="10001")
    with pytest.raises(ValidationError):
        address.city = "Ibadan"


@pytest.mark.parametrize("lat,lng", [(91, 0), (-91, 0), (0, 181), (0, -181)])
def test_coordinate_range_is_enforced(lat, lng):
    with pytest.raises(ValidationError):
        Coordinate(lat=lat, lng=lng)


@pytest.mark.parametrize("fields", [{"latitude": 95.0, "longitude": 3.4}, {"latitude": 6.4, "longitude": -181.0}])
def test_photo_exif_range_is_enforced(fields):
    with pytest.raises(ValidationError):
        PhotoEXIF(**fields)


def test_photo_exif_without_gps_has_no_coordinate():
    assert PhotoEXIF().coordinate is None
    assert PhotoEXIF(latitude=0.0, longitude=0.0).coordinate == Coordinate(lat=0, lng=0)

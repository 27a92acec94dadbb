import json

import pytest

from kyctrust.cli import build_parser, main

VERIFY_ARGS = [
    "verify",
    "--street", "17 Toyin Street",
    "--city", "Abeokuta",
    "--state", "Lagos",
    "--zip", "10001",
    "--lat", "6.4",
    "--lng", "3.4",
    "--seed", "8",
]


def test_verify_json_prints_the_award(capsys):
    assert main([*VERIFY_ARGS, "--json"]) == 0
    award = json.loads(capsys.readouterr().out)

    assert award["full_address"] == "17 Toyin Street, Abeokuta, Lagos 10001"
    assert award["coordinate"] == {"lat": 6.4, "lng": 3.4}
    assert award["result"]["gps_match"] is True
    assert award["points"] == award["result"]["points"]


def test_verify_basic_profile_is_high_at_home(capsys):
    assert main([*VERIFY_ARGS, "--profile", "basic", "--json"]) == 0
    award = json.loads(capsys.readouterr().out)
    assert (award["trust_level"], award["points"]) == ("high", 15)
    assert award["result"]["location_history_analysis"] is None


def test_verify_text_output(capsys):
    assert main(VERIFY_ARGS) == 0
    out = capsys.readouterr().out
    assert out.startswith("Address: 17 Toyin Street, Abeokuta, Lagos 10001")
    assert "GPS: 6.400000, 3.400000" in out


def test_history_json_has_thirty_days(capsys):
    assert main(["history", "--lat", "6.4", "--lng", "3.4", "--street", "Toyin Street", "--city", "Lagos", "--seed", "3", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["history"]) == 30
    assert payload["analysis"]["total_entries"] == 30


def test_unknown_profile_is_a_usage_error():
    with pytest.raises(SystemExit):
        build_parser().parse_args([*VERIFY_ARGS, "--profile", "lenient"])


def test_out_of_range_latitude_is_a_usage_error(capsys):
    args = [a if a != "6.4" else "95" for a in VERIFY_ARGS]
    with pytest.raises(SystemExit) as exc:
        main(args)
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "invalid input" in err and "lat" in err
    assert "Traceback" not in err


def test_blank_street_is_a_usage_error(capsys):
    args = [a if a != "17 Toyin Street" else "  " for a in VERIFY_ARGS]
    with pytest.raises(SystemExit) as exc:
        main(args)
    assert exc.value.code == 2
    assert "street" in capsys.readouterr().err


def test_history_rejects_out_of_range_longitude(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["history", "--lat", "6.4", "--lng", "200", "--street", "Toyin Street", "--city", "Lagos"])
    assert exc.value.code == 2
    assert "lng" in capsys.readouterr().err

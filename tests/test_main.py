"""End-to-end tests of the batch enrichment CLI with a stubbed geocoder."""

from __future__ import annotations

import json

import pytest

from core.models import Coordinate
from infrastructure.csv_repository import CSV_HEADERS, parse_inventory
import main as cli

INPUT = "\n".join(
    [
        ",".join(CSV_HEADERS),
        "1,Chartres,500 Chartres St,Good,2,img/1.jpg,,,,,29.9575,-90.0633",
        "2,Royal,700 Royal St,,,,,,,,,",
        "3,Dauphine,1 Nowhere Ln,Faded,,,,,,,,",
        "4,Bourbon,400 Bourbon St,,1,,,,,,,",
    ]
) + "\n"


@pytest.fixture
def workspace(tmp_path, monkeypatch, stub_geocoder, geocode_error):
    geocoder = stub_geocoder(
        {
            "700 Royal St": Coordinate(29.9581, -90.0648),
            "1 Nowhere Ln": None,
            "400 Bourbon St": geocode_error("GeocoderTimedOut: Service timed out"),
        }
    )
    monkeypatch.setattr(cli, "NominatimGeocodingClient", lambda **kwargs: geocoder)
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"geocoding": {"min_delay_seconds": 0}}), encoding="utf-8")
    src = tmp_path / "inventory.csv"
    src.write_text(INPUT, encoding="utf-8")
    return tmp_path, geocoder


def _run(tmp_path, *args: str) -> int:
    return cli.main(
        ["--settings", str(tmp_path / "settings.json"), "--log-dir", str(tmp_path / "logs"), *args]
    )


def test_enriches_and_writes_output(workspace, capsys):
    tmp_path, geocoder = workspace
    out = tmp_path / "out" / "inventory_latlong.csv"

    code = _run(tmp_path, "-i", str(tmp_path / "inventory.csv"), "-o", str(out))

    assert code == 0
    ds = parse_inventory(out.read_bytes())
    assert [r.id for r in ds] == [1, 2, 3, 4]
    assert ds[0].coordinate == Coordinate(29.9575, -90.0633)
    assert ds[1].coordinate == Coordinate(29.9581, -90.0648)
    assert ds[2].coordinate is None
    assert ds[3].coordinate is None
    assert len(geocoder.calls) == 3  # record 1 already located

    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[3] == "3,Dauphine,1 Nowhere Ln,Faded,,,,,,,,"

    err = capsys.readouterr().err
    assert "WARNING" in err
    assert "GeocoderTimedOut" in err


def test_writes_catalog_map(workspace):
    tmp_path, _ = workspace
    map_html = tmp_path / "catalog.html"

    code = _run(
        tmp_path,
        "--in",
        str(tmp_path / "inventory.csv"),
        "--out",
        str(tmp_path / "out.csv"),
        "--map",
        str(map_html),
    )

    assert code == 0
    assert map_html.read_text(encoding="utf-8").count("L.marker(") == 2


def test_missing_input_exits_non_zero(workspace, capsys):
    tmp_path, geocoder = workspace

    code = _run(tmp_path, "-i", str(tmp_path / "missing.csv"), "-o", str(tmp_path / "out.csv"))

    assert code == 1
    assert "missing.csv" in capsys.readouterr().err
    assert geocoder.calls == []
    assert not (tmp_path / "out.csv").exists()


def test_malformed_input_exits_non_zero(workspace, capsys):
    tmp_path, _ = workspace
    bad = tmp_path / "bad.csv"
    bad.write_text(",".join(CSV_HEADERS) + "\nnot-a-number,Royal,1 Royal St,,,,,,,,,\n", encoding="utf-8")

    code = _run(tmp_path, "-i", str(bad), "-o", str(tmp_path / "out.csv"))

    assert code == 1
    assert "row 1" in capsys.readouterr().err


def test_write_failure_exits_non_zero(workspace, capsys):
    tmp_path, _ = workspace
    blocker = tmp_path / "blocker"
    blocker.write_text("x")

    code = _run(tmp_path, "-i", str(tmp_path / "inventory.csv"), "-o", str(blocker / "out.csv"))

    assert code == 1
    assert "cannot write" in capsys.readouterr().err


@pytest.mark.parametrize(
    "settings",
    [
        {"geocoding": {"min_delay_seconds": "fast"}},
        {"geocoding": {"min_delay_seconds": -1}},
        {"geocoding": {"timeout_seconds": None}},
        {"map": {"center": "French Quarter"}},
        {"map": {"center": [29.95, "east"]}},
    ],
)
def test_bad_settings_exit_non_zero(workspace, capsys, settings):
    tmp_path, geocoder = workspace
    (tmp_path / "settings.json").write_text(json.dumps(settings), encoding="utf-8")

    code = _run(tmp_path, "-i", str(tmp_path / "inventory.csv"), "-o", str(tmp_path / "out.csv"))

    assert code == 1
    assert "Error:" in capsys.readouterr().err
    assert geocoder.calls == []
    assert not (tmp_path / "out.csv").exists()


def test_blank_user_agent_exits_non_zero(tmp_path, capsys):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"geocoding": {"user_agent": ""}}), encoding="utf-8")
    src = tmp_path / "inventory.csv"
    src.write_text(INPUT, encoding="utf-8")

    code = _run(tmp_path, "-i", str(src), "-o", str(tmp_path / "out.csv"))

    assert code == 1
    assert "user_agent" in capsys.readouterr().err
    assert not (tmp_path / "out.csv").exists()


def test_required_flags():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-i", "only-input.csv"])
    assert excinfo.value.code != 0

"""End-to-end CLI tests over payload files written to tmp_path."""

import json
import xml.etree.ElementTree as ET

import pandas as pd
import pytest

from strava_export.config import BIKELOG_FILE, KML_FILE
from strava_export.main import build_parser, main

ENCODED = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


@pytest.fixture
def payload_files(tmp_path):
    activities = [
        {
            "id": 1,
            "name": "Commute in",
            "type": "Ride",
            "start_date": "2024-03-02T16:00:00Z",
            "start_date_local": "2024-03-02T08:00:00Z",
            "moving_time": 1800,
            "elapsed_time": 2000,
            "distance": 10000.0,
            "total_elevation_gain": 120.0,
            "commute": True,
            "gear_id": "b1",
            "map": {"summary_polyline": ENCODED},
            "segment_efforts": [{"name": "Kings", "moving_time": 300, "elapsed_time": 310}],
        },
        {
            "id": 2,
            "name": "Dog walk",
            "type": "Walk",
            "start_date": "2024-03-03T16:00:00Z",
            "start_date_local": "2024-03-03T08:00:00Z",
            "moving_time": 1200,
            "elapsed_time": 1300,
            "distance": 2000.0,
            "total_elevation_gain": 10.0,
        },
    ]
    segments = [
        {"id": 10, "name": "Kings", "country": "United States", "state": "California",
         "map": {"polyline": ENCODED}},
    ]
    athlete = {"bikes": [{"id": "b1", "name": "Serotta Colorado"}]}
    files = {}
    for name, data in (("acts", activities), ("segs", segments), ("athlete", athlete)):
        path = tmp_path / f"{name}.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        files[name] = str(path)
    return files


def test_cli_writes_all_outputs(tmp_path, payload_files):
    kml = tmp_path / "out.kml"
    bikelog = tmp_path / "bikelog.xml"
    xlsx = tmp_path / "bikelog.xlsx"
    rc = main(
        [
            "--activities", payload_files["acts"],
            "--segments", payload_files["segs"],
            "--athlete", payload_files["athlete"],
            "--kml", str(kml),
            "--bikelog", str(bikelog),
            "--xlsx", str(xlsx),
            "--more",
            "--date-range", "2024-03-01:2024-03-31",
        ]
    )
    assert rc == 0

    text = kml.read_text(encoding="utf-8")
    assert "<name>Activities 2024-03-01 to 2024-03-31</name>" in text
    assert '<Placemark id="StravaTrack1">' in text
    assert "#StravaLineStyleCommute" in text
    assert "Segments for California, United States" in text
    assert text.count("<Placemark ") == 2

    root = ET.parse(bikelog).getroot()
    assert root.find("day/group/group/bike").text == "S1"
    assert root.find("day/group/group/dist").text == "10"
    assert len(root.findall("day/group")) == 2

    df = pd.read_excel(xlsx, sheet_name="Bikelog")
    assert len(df) == 2


def test_cli_filters_commutes(tmp_path, payload_files):
    bikelog = tmp_path / "bikelog.xml"
    rc = main(["--activities", payload_files["acts"], "--bikelog", str(bikelog), "--no-commute"])
    assert rc == 0
    root = ET.parse(bikelog).getroot()
    (day,) = root.findall("day/group")
    assert day.find("note0").text.startswith("Walk: 2km Dog walk")


def test_cli_requires_an_output():
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2


def test_cli_rejects_bad_date_range():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--date-range", "2024-03-01"])


def test_cli_reports_missing_input(tmp_path):
    rc = main(["--activities", str(tmp_path / "missing.json"), "--kml", str(tmp_path / "a.kml")])
    assert rc == 1


def test_kml_and_bikelog_flags_default_to_configured_paths():
    args = build_parser().parse_args(["--kml", "--bikelog"])
    assert args.kml == KML_FILE
    assert args.bikelog == BIKELOG_FILE


def test_cli_laps_flag(tmp_path, payload_files):
    acts = json.loads((tmp_path / "acts.json").read_text(encoding="utf-8"))
    acts[0]["laps"] = [{"start_index": 0}, {"start_index": 2}]
    path = tmp_path / "laps.json"
    path.write_text(json.dumps(acts), encoding="utf-8")
    kml = tmp_path / "laps.kml"
    assert main(["--activities", str(path), "--kml", str(kml), "--laps"]) == 0
    text = kml.read_text(encoding="utf-8")
    assert "<name>Lap 2</name>" in text
    assert "<coordinates>-126.453,43.252,0</coordinates>" in text


def test_cli_rejects_line_styles_that_are_not_an_object(tmp_path, payload_files, caplog):
    styles = tmp_path / "styles.json"
    styles.write_text(json.dumps([{"color": "C03030C0", "width": 2}]), encoding="utf-8")
    rc = main(
        [
            "--activities", payload_files["acts"],
            "--line-styles", str(styles),
            "--kml", str(tmp_path / "out.kml"),
        ]
    )
    assert rc == 1
    assert any("Expected a JSON object" in r.getMessage() for r in caplog.records)

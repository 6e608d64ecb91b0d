from __future__ import annotations

import pytest

from dealtracker.errors import ValidationError
from dealtracker.services.csv_import import parse_score, parse_startups, startup_id_for

SHEET = """Company,Industry,Country,Overall Score,Website,Summary
PayFlow,Fintech,UK,"$1,200",https://payflow.example,B2B payments
MediScan,Health,DE,87%,,Imaging
,Climate,FR,50,,No name here
GridSmart,Climate,NL,,,Grid balancing
"""

MAPPING = {
    "name": "Company",
    "sector": "Industry",
    "country": "Country",
    "score": "Overall Score",
    "website": "Website",
    "description": "Summary",
    "notAField": "Industry",
}


@pytest.mark.parametrize(
    "raw, expected",
    [("87%", 87.0), ("$1,200", 1200.0), (" 4.5 ", 4.5), ("", 0.0), ("n/a", 0.0)],
)
def test_parse_score(raw, expected):
    assert parse_score(raw) == expected


def test_parse_startups_maps_columns():
    startups = parse_startups(SHEET, MAPPING)

    assert [s.name for s in startups] == ["PayFlow", "MediScan", "GridSmart"]
    payflow = startups[0]
    assert payflow.id == startup_id_for("PayFlow")
    assert payflow.sector == "Fintech"
    assert payflow.score == 1200.0
    assert payflow.description == "B2B payments"
    assert payflow.company_info == {"website": "https://payflow.example"}
    assert payflow.pipeline_stage == "Deal Flow"
    assert startups[1].company_info is None
    assert startups[2].score == 0.0


def test_mapping_must_include_name():
    with pytest.raises(ValidationError) as excinfo:
        parse_startups(SHEET, {"sector": "Industry"})
    assert "mapping.name" in excinfo.value.fields


def test_mapping_name_column_must_exist():
    with pytest.raises(ValidationError):
        parse_startups(SHEET, {"name": "Startup Name"})


@pytest.mark.parametrize("text", ["", "Company,Industry\n"])
def test_sheet_without_rows_is_rejected(text):
    with pytest.raises(ValidationError):
        parse_startups(text, {"name": "Company"})


def test_upload_endpoint_skips_rows_already_stored(client):
    first = client.post("/startups/upload", json={"csvText": SHEET, "mapping": MAPPING})
    again = client.post("/startups/upload", json={"csvText": SHEET, "mapping": MAPPING})

    assert first.status_code == 201, first.text
    assert first.json() == {
        "message": "Successfully uploaded 3 startups",
        "total": 3,
        "inserted": 3,
        "skipped": 0,
    }
    assert again.json()["inserted"] == 0
    assert again.json()["skipped"] == 3

    listed = client.get("/startups", params={"search": "payflow"}).json()["startups"]
    assert listed[0]["companyInfo"] == {"website": "https://payflow.example"}
    assert listed[0]["rank"] is None


def test_upload_with_bad_mapping_is_400(client):
    resp = client.post("/startups/upload", json={"csvText": SHEET, "mapping": {"sector": "Industry"}})

    assert resp.status_code == 400
    assert resp.json()["fields"] == {"mapping.name": "missing or not found in CSV headers"}

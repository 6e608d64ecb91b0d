from __future__ import annotations

import datetime as dt
import json

import pytest

from dealtracker.errors import GenerationFailed
from dealtracker.services.threshold_issues import collect_commentary, parse_issues_response
from tests.conftest import USER, make_startup

ISSUE = {
    "category": "Team Risk",
    "issue": "Single technical founder",
    "riskRating": "High",
    "mitigation": "Hire a CTO before close",
}

SCORECARD = [
    {
        "scores": {"team-experience": 3, "market-size": 8},
        "comments": {
            "team-experience": "Founder has never shipped a product",
            "market-size": "  ",
        },
    }
]


def _create_issue(client, startup_id="s1", **overrides):
    payload = dict(ISSUE, startupId=startup_id, **overrides)
    return client.post("/threshold-issues", headers=USER, json=payload)


def test_writes_require_identity(client):
    make_startup(client, id="s1")

    assert client.post("/threshold-issues", json=dict(ISSUE, startupId="s1")).status_code == 401
    assert client.put("/threshold-issues/x", json=ISSUE).status_code == 401
    assert client.delete("/threshold-issues/x").status_code == 401
    assert client.post("/startups/s1/generate-issues").status_code == 401


def test_create_applies_defaults(client):
    make_startup(client, id="s1")

    resp = _create_issue(client)

    assert resp.status_code == 201
    issue = resp.json()
    assert issue["startupId"] == "s1"
    assert issue["status"] == "Open"
    assert issue["source"] == "Manual"
    assert issue["identifiedDate"] == dt.date.today().isoformat()
    assert client.get("/startups/s1").json()["thresholdIssues"][0]["id"] == issue["id"]


def test_create_validates_fields(client):
    make_startup(client, id="s1")

    missing = client.post(
        "/threshold-issues",
        headers=USER,
        json={"startupId": "s1", "category": "Team Risk", "issue": "x", "riskRating": "High"},
    )
    bad_rating = _create_issue(client, riskRating="Catastrophic")

    assert missing.status_code == 400
    assert "mitigation" in missing.json()["fields"]
    assert bad_rating.status_code == 400


def test_create_for_unknown_startup_is_404(client):
    assert _create_issue(client, startup_id="ghost").status_code == 404


def test_update_and_delete(client):
    make_startup(client, id="s1")
    issue = _create_issue(client).json()

    resp = client.put(
        f"/threshold-issues/{issue['id']}",
        headers=USER,
        json=dict(ISSUE, riskRating="Medium", status="Resolved"),
    )
    assert resp.status_code == 200
    assert resp.json()["riskRating"] == "Medium"
    assert resp.json()["status"] == "Resolved"

    assert client.delete(f"/threshold-issues/{issue['id']}", headers=USER).status_code == 200
    assert client.delete(f"/threshold-issues/{issue['id']}", headers=USER).status_code == 404
    assert client.get("/startups/s1").json()["thresholdIssues"] == []


def test_generate_issues_skips_existing_text(client, fake_llm):
    make_startup(client, id="s1", investmentScorecard=SCORECARD)
    _create_issue(client, issue="single technical   FOUNDER")
    fake_llm.handler = lambda prompt: "```json\n" + json.dumps({
        "issues": [
            ISSUE,
            {"category": "Moonshot Risk", "issue": "No go-to-market plan", "riskRating": "Severe", "mitigation": "Hire sales"},
            {"category": "Market Risk", "issue": "No go-to-market plan", "riskRating": "High", "mitigation": "Dup"},
        ]
    }) + "\n```"

    resp = client.post("/startups/s1/generate-issues", headers=USER)

    assert resp.status_code == 200, resp.text
    assert resp.json()["count"] == 1
    assert resp.json()["skipped"] == 2
    assert "Founder has never shipped a product" in fake_llm.calls[0]

    issues = client.get("/startups/s1").json()["thresholdIssues"]
    generated = [i for i in issues if i["source"] == "AI"]
    assert len(generated) == 1
    assert generated[0]["category"] == "Other"
    assert generated[0]["riskRating"] == "Medium"


def test_generate_issues_without_scorecards(client):
    make_startup(client, id="s1")

    resp = client.post("/startups/s1/generate-issues", headers=USER)

    assert resp.status_code == 400
    assert resp.json()["error"] == "No scorecards found for this startup"


def test_generate_issues_for_unknown_startup(client):
    assert client.post("/startups/ghost/generate-issues", headers=USER).status_code == 404


def test_generate_issues_with_bad_model_output(client, fake_llm):
    make_startup(client, id="s1", investmentScorecard=SCORECARD)
    fake_llm.handler = lambda prompt: "I could not find any issues."

    resp = client.post("/startups/s1/generate-issues", headers=USER)

    assert resp.status_code == 502


def test_generate_issues_when_llm_unconfigured(client, fake_llm):
    make_startup(client, id="s1", investmentScorecard=SCORECARD)
    fake_llm.ready = False

    resp = client.post("/startups/s1/generate-issues", headers=USER)

    assert resp.status_code == 503


def test_collect_commentary_skips_blank_comments():
    assert collect_commentary(SCORECARD) == [
        {
            "section": "team",
            "criterion": "experience",
            "comment": "Founder has never shipped a product",
            "score": 3,
        }
    ]
    assert collect_commentary(None) == []


def test_parse_issues_response_rejects_non_json():
    with pytest.raises(GenerationFailed):
        parse_issues_response("not json")
    assert parse_issues_response('{"issues": []}') == []

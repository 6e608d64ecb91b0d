from __future__ import annotations

from tests.conftest import OTHER_USER, USER, make_startup


def _toggle(client, startup_id, shortlisted, headers=USER):
    return client.post(
        "/shortlist",
        headers=headers,
        json={"startupId": startup_id, "shortlisted": shortlisted},
    )


def test_toggle_requires_identity(client):
    make_startup(client, id="s1")

    resp = _toggle(client, "s1", True, headers={})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


def test_shortlisting_twice_keeps_one_record(client):
    make_startup(client, id="s1")

    first = _toggle(client, "s1", True)
    second = _toggle(client, "s1", True)

    assert first.json() == {"success": True, "shortlisted": True}
    assert second.json() == {"success": True, "shortlisted": True}
    data = client.get("/shortlist", params={"startupId": "s1"}).json()
    assert data["count"] == 1
    assert data["shortlistedBy"][0]["userId"] == "analyst-1"
    assert data["shortlistedBy"][0]["shortlistedAt"]


def test_unshortlisting_when_absent_succeeds(client):
    make_startup(client, id="s1")

    resp = _toggle(client, "s1", False)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "shortlisted": False}


def test_unshortlisting_removes_only_own_record(client):
    make_startup(client, id="s1")
    _toggle(client, "s1", True)
    _toggle(client, "s1", True, headers=OTHER_USER)

    _toggle(client, "s1", False)

    data = client.get("/shortlist", params={"startupId": "s1"}).json()
    assert data["count"] == 1
    assert [s["userId"] for s in data["shortlistedBy"]] == ["analyst-2"]


def test_shortlisting_unknown_startup_is_404(client):
    resp = _toggle(client, "ghost", True)
    assert resp.status_code == 404


def test_shortlisters_require_startup_id(client):
    resp = client.get("/shortlist")
    assert resp.status_code == 400


def test_listing_marks_current_users_shortlist(client):
    make_startup(client, id="s1", name="Alpha", score=90)
    make_startup(client, id="s2", name="Beta", score=80)
    _toggle(client, "s2", True)

    mine = client.get("/startups", headers=USER).json()["startups"]
    theirs = client.get("/startups", headers=OTHER_USER).json()["startups"]
    anonymous = client.get("/startups").json()["startups"]

    assert {s["id"]: s["shortlisted"] for s in mine} == {"s1": False, "s2": True}
    assert not any(s["shortlisted"] for s in theirs)
    assert not any(s["shortlisted"] for s in anonymous)
    assert client.get("/startups/s2", headers=USER).json()["shortlisted"] is True

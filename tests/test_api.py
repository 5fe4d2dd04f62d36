"""End-to-end tests for the HTTP adapter."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from autoscheduler.main import app, scheduler

_NOW = datetime(2026, 6, 1, 7, 0, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0, day: int = 0) -> str:
    return ((_NOW + timedelta(days=day)).replace(hour=hour, minute=minute)).isoformat()


def _reset() -> None:
    scheduler.store.clear()
    scheduler.action_repo.clear()
    scheduler.history_repo.clear()
    scheduler.rescheduler._conflicts = []


@pytest.fixture(autouse=True)
def _fixed_clock(monkeypatch):
    """Reset in-memory state and pin the clock before each test."""
    _reset()
    monkeypatch.setattr(scheduler, "clock", lambda: _NOW)
    yield
    _reset()


@pytest.fixture()
def client():
    return TestClient(app)


def _post_block(client: TestClient, title: str, start: str, end: str, **extra) -> dict:
    resp = client.post(
        "/blocks",
        json={"title": title, "start": start, "end": end, "type": "meeting", **extra},
    )
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def test_add_list_and_remove_block(client):
    block = _post_block(client, "Standup", _at(9), _at(9, 15))

    listed = client.get("/blocks").json()
    assert [b["id"] for b in listed] == [block["id"]]

    assert client.delete(f"/blocks/{block['id']}").status_code == 200
    assert client.get(f"/blocks/{block['id']}").status_code == 404
    assert client.delete(f"/blocks/{block['id']}").status_code == 404


def test_inverted_interval_is_rejected(client):
    resp = client.post(
        "/blocks",
        json={"title": "Broken", "start": _at(10), "end": _at(9), "type": "meeting"},
    )
    assert resp.status_code == 422


def test_unknown_enum_is_rejected(client):
    resp = client.post(
        "/blocks",
        json={"title": "Nap", "start": _at(13), "end": _at(14), "type": "siesta"},
    )
    assert resp.status_code == 422


def test_naive_datetimes_are_rejected(client):
    resp = client.post(
        "/blocks",
        json={
            "title": "Sync",
            "start": "2026-06-01T09:00:00",
            "end": "2026-06-01T10:00:00",
            "type": "meeting",
        },
    )
    assert resp.status_code == 422

    resp = client.post(
        "/tasks/auto-schedule",
        json={"title": "Report", "duration_minutes": 60, "deadline": "2026-06-02T12:00:00"},
    )
    assert resp.status_code == 422

    assert client.get("/blocks").json() == []
    assert client.get("/conflicts").status_code == 200


def test_duplicate_block_id_conflicts(client):
    block = _post_block(client, "Standup", _at(9), _at(9, 15))
    resp = client.post(
        "/blocks",
        json={"id": block["id"], "title": "Again", "start": _at(11), "end": _at(12), "type": "task"},
    )
    assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def test_auto_schedule_task(client):
    resp = client.post(
        "/tasks/auto-schedule",
        json={"title": "Draft report", "duration_minutes": 60, "priority": "high"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert datetime.fromisoformat(body["start"]) == datetime.fromisoformat(_at(8))
    assert body["flexibility_score"] == 40
    assert body["is_flexible"] is True


def test_auto_schedule_task_without_slot(client):
    _post_block(client, "Offsite", _at(8), _at(12))
    resp = client.post(
        "/tasks/auto-schedule",
        json={
            "title": "Hotfix",
            "duration_minutes": 60,
            "priority": "critical",
            "deadline": _at(11),
        },
    )
    assert resp.status_code == 409
    assert len(client.get("/blocks").json()) == 1


def test_auto_schedule_rejects_negative_duration(client):
    resp = client.post(
        "/tasks/auto-schedule",
        json={"title": "Oops", "duration_minutes": -5, "priority": "low"},
    )
    assert resp.status_code == 422


def test_protect_focus_time_and_habits(client):
    focus = client.post("/focus-time", json={"hours_per_day": 2, "preferred_time": "afternoon"})
    assert focus.status_code == 201
    assert len(focus.json()) == 5

    habits = client.post(
        "/habits",
        json={
            "title": "Stretch",
            "duration_minutes": 15,
            "frequency": "weekends",
            "preferred_time": "evening",
        },
    )
    assert habits.status_code == 201
    assert len(habits.json()) == 4
    assert len(client.get("/blocks").json()) == 9


# ---------------------------------------------------------------------------
# Conflicts and actions
# ---------------------------------------------------------------------------


def test_conflict_apply_flow(client):
    _post_block(client, "A", _at(9), _at(10, 30), flexibility_score=20)
    b = _post_block(client, "B", _at(10), _at(11), flexibility_score=80)

    conflicts = client.get("/conflicts").json()
    assert len(conflicts) == 1
    assert conflicts[0]["auto_resolvable"] is True
    action_id = conflicts[0]["actions"][0]["id"]

    pending = client.get("/actions", params={"status": "pending"}).json()
    assert [a["id"] for a in pending] == [action_id]

    applied = client.post(f"/actions/{action_id}/apply")
    assert applied.status_code == 200
    assert applied.json()["status"] == "applied"

    moved = client.get(f"/blocks/{b['id']}").json()
    assert datetime.fromisoformat(moved["start"]) == datetime.fromisoformat(_at(10, 30))
    assert client.get("/conflicts").json() == []

    again = client.post(f"/actions/{action_id}/apply")
    assert again.status_code == 400

    history = client.get(f"/blocks/{b['id']}/history").json()
    assert [e["type"] for e in history] == ["inserted", "moved", "reschedule_applied"]


def test_reject_and_unknown_actions(client):
    _post_block(client, "A", _at(9), _at(10, 30), flexibility_score=20)
    _post_block(client, "B", _at(10), _at(11), flexibility_score=80)
    action_id = client.get("/conflicts").json()[0]["actions"][0]["id"]

    rejected = client.post(f"/actions/{action_id}/reject")
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"

    assert client.post(f"/actions/{action_id}/apply").status_code == 400
    assert client.post("/actions/nope/apply").status_code == 404
    assert client.post("/actions/nope/reject").status_code == 404


def test_auto_resolve_endpoint(client):
    _post_block(client, "A", _at(9), _at(10, 30), flexibility_score=20)
    _post_block(client, "B", _at(10), _at(11), flexibility_score=80)

    resp = client.post("/conflicts/auto-resolve")
    assert resp.status_code == 200
    assert resp.json()["resolved"] == 1
    assert client.get("/conflicts").json() == []


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def test_efficiency_and_energy(client):
    client.post("/focus-time", json={})
    _post_block(client, "Lunch", _at(12), _at(13))

    report = client.get("/efficiency").json()
    assert report == {"total_scheduled": 180, "focus_time": 120, "efficiency": 67, "conflicts": 0}

    energy = client.get("/energy", params={"at": _at(9, 30)}).json()
    assert energy["level"] == "peak"
    assert client.get("/energy").json()["hour"] == 7


def test_history_for_unknown_block(client):
    assert client.get("/blocks/missing/history").status_code == 404

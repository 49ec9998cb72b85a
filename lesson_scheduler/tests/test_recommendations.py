from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lesson_scheduler.analytics.store import clear_events
from lesson_scheduler.app import app
from lesson_scheduler.settings.store import reset_settings

client = TestClient(app)

_DEMO_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"


@pytest.fixture(autouse=True)
def _demo_data(monkeypatch):
    monkeypatch.setattr("lesson_scheduler.recommendations.data_store._DATA_DIR", _DEMO_DIR)
    reset_settings()
    clear_events()


def _query(**overrides) -> dict:
    body = {
        "student_id": "s-001",
        "date": "2026-10-21",
        "time_slot_id": "C",
        "subject": "math",
    }
    body.update(overrides)
    return body


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata():
    resp = client.get("/metadata")
    assert resp.status_code == 200
    body = resp.json()
    assert "math" in body["subjects"]
    assert body["time_slots"] == ["A", "B", "C"]
    assert body["active_teachers"] == 3


def test_recommendations_returns_ranked_candidates():
    resp = client.post("/recommendations", json=_query())
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_teachers"] == 3
    assert body["total_candidates"] == 3
    assert [c["teacher_id"] for c in body["candidates"]] == ["t-001", "t-002", "t-003"]


def test_recommendations_explain_continuity():
    body = client.post("/recommendations", json=_query()).json()
    top = body["candidates"][0]
    rules = {c["rule"]: c["contribution"] for c in top["contributions"]}
    assert rules["continuity"] == 0.5
    assert "currently teaches this student" in top["reasons"]


def test_recommendations_score_ordering():
    body = client.post("/recommendations", json=_query()).json()
    scores = [c["score"] for c in body["candidates"]]
    assert scores == sorted(scores, reverse=True)


def test_recommendations_respects_limit():
    body = client.post("/recommendations", json=_query(limit=1)).json()
    assert len(body["candidates"]) == 1
    assert body["total_candidates"] == 3


def test_recommendations_excludes_ng_teacher():
    body = client.post("/recommendations", json=_query(student_id="s-002")).json()
    ids = [c["teacher_id"] for c in body["candidates"]]
    assert "t-003" not in ids
    assert body["rejection_reasons"] == {"ng_teacher": 1}


def test_recommendations_inactive_student_is_empty():
    resp = client.post("/recommendations", json=_query(student_id="s-004", subject="science"))
    assert resp.status_code == 200
    assert resp.json()["candidates"] == []


def test_recommendations_unknown_student_is_404():
    resp = client.post("/recommendations", json=_query(student_id="s-999"))
    assert resp.status_code == 404


@pytest.mark.parametrize("field", ["date", "time_slot_id", "subject"])
def test_recommendations_missing_field_is_422(field):
    body = _query()
    del body[field]
    resp = client.post("/recommendations", json=body)
    assert resp.status_code == 422
    assert field in resp.json()["detail"]["fields"]


def test_recommendations_validation_rejects_bad_limit():
    resp = client.post("/recommendations", json=_query(limit=0))
    assert resp.status_code == 422


def test_recommendations_use_current_settings():
    client.put("/settings", json={
        "continuity_weight": 0.0,
        "student_load_weight": 0.0,
        "grade_fit_weight": 0.0,
    })
    body = client.post("/recommendations", json=_query()).json()
    assert [c["teacher_id"] for c in body["candidates"]][0] == "t-002"


def test_recommendations_are_idempotent():
    first = client.post("/recommendations", json=_query()).json()
    second = client.post("/recommendations", json=_query()).json()
    assert first == second


# ── Stateless evaluation ─────────────────────────────────────────────────


def _snapshot(**overrides) -> dict:
    body = {
        "request": {"date": "2026-10-21", "time_slot_id": "B", "subject": "math"},
        "student": {"id": "s-1", "grade": 6, "ng_teacher_ids": ["t-c"]},
        "roster": [
            {"id": "t-a", "cap_week_slots": 10, "cap_students": 10, "current_week_slots": 9,
             "skills": [{"subject": "math", "grade_min": 1, "grade_max": 12}]},
            {"id": "t-b", "cap_week_slots": 10, "cap_students": 10, "current_week_slots": 3,
             "skills": [{"subject": "math", "grade_min": 1, "grade_max": 12}]},
            {"id": "t-c", "cap_week_slots": 10, "cap_students": 10,
             "skills": [{"subject": "math", "grade_min": 1, "grade_max": 12}]},
        ],
        "history": [],
    }
    body.update(overrides)
    return body


def test_evaluate_snapshot():
    resp = client.post("/recommendations/evaluate", json=_snapshot())
    assert resp.status_code == 200
    body = resp.json()
    assert [c["teacher_id"] for c in body["candidates"]] == ["t-b", "t-a"]
    assert body["rejection_reasons"] == {"ng_teacher": 1}


def test_evaluate_empty_roster():
    resp = client.post("/recommendations/evaluate", json=_snapshot(roster=[]))
    assert resp.status_code == 200
    assert resp.json()["candidates"] == []


def test_evaluate_missing_subject_is_422():
    snapshot = _snapshot(request={"date": "2026-10-21", "time_slot_id": "B"})
    resp = client.post("/recommendations/evaluate", json=snapshot)
    assert resp.status_code == 422


def test_explain_teacher():
    resp = client.post("/recommendations/teachers/t-c", json=_snapshot())
    assert resp.status_code == 200
    body = resp.json()
    assert body["eligible"] is False
    assert body["disqualification"] == "ng_teacher"
    assert body["hard_constraints"]["not_in_ng_list"] is False


def test_explain_unknown_teacher_is_404():
    resp = client.post("/recommendations/teachers/t-zzz", json=_snapshot())
    assert resp.status_code == 404

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lesson_scheduler.analytics.aggregator import compute_analytics
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


def _recommend(student_id: str = "s-001", subject: str = "math") -> None:
    client.post("/recommendations", json={
        "student_id": student_id,
        "date": "2026-10-21",
        "time_slot_id": "C",
        "subject": subject,
    })


def test_analytics_returns_empty_initially():
    resp = client.get("/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_requests"] == 0
    assert body["avg_response_time_ms"] == 0.0
    assert body["empty_result_rate"] == 0.0


def test_analytics_tracks_requests():
    _recommend()
    _recommend()
    body = client.get("/analytics").json()
    assert body["total_requests"] == 2
    assert body["top_subjects"] == [{"name": "math", "count": 2}]
    assert body["top_recommended_teachers"] == [{"teacher_id": "t-001", "count": 2}]


def test_analytics_counts_rejections():
    _recommend(student_id="s-002")
    body = client.get("/analytics").json()
    assert body["rejection_reasons"] == {"ng_teacher": 1}


def test_analytics_empty_result_rate():
    _recommend(subject="history")
    _recommend()
    body = client.get("/analytics").json()
    assert body["empty_result_rate"] == 50.0
    assert body["rejection_reasons"]["cannot_teach_subject"] == 3


def test_failed_requests_are_not_recorded():
    client.post("/recommendations", json={"student_id": "s-999", "date": "2026-10-21",
                                          "time_slot_id": "C", "subject": "math"})
    assert client.get("/analytics").json()["total_requests"] == 0


def test_compute_analytics_ignores_other_events():
    events = [{"type": "other"}, {"type": "recommendation", "subject": "math", "eligible": 2,
                                  "response_time_ms": 4.0, "top_teacher_id": "t-1"}]
    body = compute_analytics(events)
    assert body["total_requests"] == 1
    assert body["avg_eligible_teachers"] == 2.0
    assert body["avg_response_time_ms"] == 4.0

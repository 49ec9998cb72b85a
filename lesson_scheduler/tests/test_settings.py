from __future__ import annotations

from fastapi.testclient import TestClient

from lesson_scheduler.app import app
from lesson_scheduler.settings.models import SettingsUpdate
from lesson_scheduler.settings.store import get_settings, reset_settings, update_settings

client = TestClient(app)


def test_defaults():
    settings = reset_settings()
    assert settings.load_weight == 1.0
    assert settings.continuity_weight == 0.5
    assert settings.pair_same_subject_required is True
    assert settings.pair_max_grade_diff == 2


def test_partial_update_keeps_other_fields():
    reset_settings()
    updated = update_settings(SettingsUpdate(load_weight=2.0))
    assert updated.load_weight == 2.0
    assert updated.continuity_weight == 0.5
    assert get_settings().load_weight == 2.0
    reset_settings()


def test_get_settings_returns_copy():
    reset_settings()
    settings = get_settings()
    settings.load_weight = 99.0
    assert get_settings().load_weight == 1.0


def test_settings_endpoints():
    client.post("/settings/reset")
    resp = client.put("/settings", json={"pair_max_grade_diff": 1})
    assert resp.status_code == 200
    assert resp.json()["pair_max_grade_diff"] == 1
    assert client.get("/settings").json()["pair_max_grade_diff"] == 1

    resp = client.post("/settings/reset")
    assert resp.json()["pair_max_grade_diff"] == 2


def test_settings_validation_rejects_negative_weight():
    resp = client.put("/settings", json={"load_weight": -1})
    assert resp.status_code == 422

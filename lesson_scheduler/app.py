from __future__ import annotations

import time

from fastapi import FastAPI, HTTPException

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_recommendation
from .recommendations import data_store
from .recommendations.engine import build_recommendation, evaluate_teacher
from .recommendations.errors import NotFoundError, ValidationError
from .recommendations.models import (
    EvaluationRequest,
    RecommendationQuery,
    RecommendationResponse,
    RecommendationResult,
    SlotRequest,
    TeacherEvaluation,
)
from .settings.models import ScoringSettings, SettingsUpdate
from .settings.store import get_settings, reset_settings, update_settings

app = FastAPI(title="Lesson Scheduler Recommendation API", version="1.0.0")


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"message": str(exc), "fields": exc.fields})


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


def _response(result: RecommendationResult, limit: int | None = None) -> RecommendationResponse:
    candidates = result.candidates if limit is None else result.candidates[:limit]
    return RecommendationResponse(
        candidates=candidates,
        total_candidates=len(result.candidates),
        total_teachers=result.total_teachers,
        rejection_reasons=result.rejection_reasons,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return data_store.get_metadata()


# ── Recommendations ──────────────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(body: RecommendationQuery) -> RecommendationResponse:
    start_time = time.time()
    settings = get_settings()
    request = SlotRequest(
        date=body.date,
        time_slot_id=body.time_slot_id,
        subject=body.subject,
        position=body.position,
        student_id=body.student_id,
    )

    try:
        # Snapshots are loaded per request; nothing is reused across calls.
        student = data_store.fetch_student(body.student_id)
        if request.date is not None and request.time_slot_id:
            request.occupants = data_store.fetch_slot_occupants(
                request.date,
                request.time_slot_id,
                request.position,
                exclude_student_id=student.id,
            )
            roster = data_store.fetch_roster(request.date)
            history = data_store.fetch_history(
                student.id, request.date, settings.continuity_lookback_days,
            )
        else:
            roster, history = [], []
        result = build_recommendation(request, student, roster, history, settings)
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    except NotFoundError as exc:
        raise _not_found(exc) from exc

    response = _response(result, body.limit)
    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_recommendation(
        request, student.id, result, len(response.candidates), elapsed_ms,
    )
    return response


@app.post("/recommendations/evaluate", response_model=RecommendationResponse)
def evaluate(body: EvaluationRequest) -> RecommendationResponse:
    settings = body.settings or get_settings()
    try:
        result = build_recommendation(
            body.request, body.student, body.roster, body.history, settings,
        )
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    return _response(result)


@app.post("/recommendations/teachers/{teacher_id}", response_model=TeacherEvaluation)
def explain_teacher(teacher_id: str, body: EvaluationRequest) -> TeacherEvaluation:
    settings = body.settings or get_settings()
    try:
        return evaluate_teacher(
            teacher_id, body.request, body.student, body.roster, body.history, settings,
        )
    except ValidationError as exc:
        raise _validation_error(exc) from exc
    except NotFoundError as exc:
        raise _not_found(exc) from exc


# ── Settings ─────────────────────────────────────────────────────────────


@app.get("/settings", response_model=ScoringSettings)
def read_settings() -> ScoringSettings:
    return get_settings()


@app.put("/settings", response_model=ScoringSettings)
def write_settings(body: SettingsUpdate) -> ScoringSettings:
    return update_settings(body)


@app.post("/settings/reset", response_model=ScoringSettings)
def restore_settings() -> ScoringSettings:
    return reset_settings()


# ── Analytics ────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())

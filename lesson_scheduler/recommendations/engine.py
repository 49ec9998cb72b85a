from __future__ import annotations

import logging

from ..settings.models import ScoringSettings
from .constraints import check_hard_constraints
from .errors import NotFoundError, ValidationError
from .models import (
    WEEKDAYS,
    AssignmentRecord,
    RecommendationResult,
    ScoredCandidate,
    SlotRequest,
    Student,
    Teacher,
    TeacherEvaluation,
    week_start,
    weekday_code,
)
from .scoring import score_candidates, score_teacher

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("date", "subject", "time_slot_id")


def validate_request(request: SlotRequest, roster: list[Teacher] | None = None) -> None:
    """Raise ``ValidationError`` when the request cannot be evaluated."""
    missing = [f for f in _REQUIRED_FIELDS if not getattr(request, f)]
    if missing:
        raise ValidationError(f"missing required fields: {', '.join(missing)}", missing)

    if request.weekday is not None:
        code = request.weekday.strip().upper()
        if code not in WEEKDAYS:
            raise ValidationError(f"unknown weekday: {request.weekday}", ["weekday"])
        if code != weekday_code(request.date):
            raise ValidationError(
                f"weekday {code} does not match date {request.date.isoformat()}",
                ["weekday"],
            )

    monday = week_start(request.date)
    for teacher in roster or []:
        if teacher.load_week is not None and teacher.load_week != monday:
            raise ValidationError(
                f"load counters for teacher {teacher.id} describe the week of "
                f"{teacher.load_week.isoformat()}, not {monday.isoformat()}",
                ["roster"],
            )


def build_recommendation(
    request: SlotRequest,
    student: Student,
    roster: list[Teacher],
    history: list[AssignmentRecord],
    settings: ScoringSettings | None = None,
) -> RecommendationResult:
    """Filter the roster by hard constraints, then rank survivors by score."""
    validate_request(request, roster)
    settings = settings or ScoringSettings()

    if not roster or not student.active:
        return RecommendationResult(total_teachers=len(roster))

    eligible: list[Teacher] = []
    rejected: dict[str, str] = {}
    reasons: dict[str, int] = {}
    for teacher in roster:
        reason = check_hard_constraints(teacher, request, student, settings).disqualification
        if reason is None:
            eligible.append(teacher)
            continue
        logger.debug("Teacher %s rejected for %s: %s", teacher.id, student.id, reason)
        rejected[teacher.id] = reason
        reasons[reason] = reasons.get(reason, 0) + 1

    candidates = score_candidates(eligible, request, student, history, settings)
    logger.info(
        "Recommendation for student %s on %s/%s: %d of %d teachers eligible",
        student.id,
        request.date.isoformat(),
        request.time_slot_id,
        len(candidates),
        len(roster),
    )
    return RecommendationResult(
        candidates=candidates,
        rejected=rejected,
        rejection_reasons=reasons,
        total_teachers=len(roster),
    )


def recommend_teachers(
    request: SlotRequest,
    student: Student,
    roster: list[Teacher],
    history: list[AssignmentRecord],
    settings: ScoringSettings | None = None,
) -> list[ScoredCandidate]:
    return build_recommendation(request, student, roster, history, settings).candidates


def evaluate_teacher(
    teacher_id: str,
    request: SlotRequest,
    student: Student,
    roster: list[Teacher],
    history: list[AssignmentRecord],
    settings: ScoringSettings | None = None,
) -> TeacherEvaluation:
    """Explain whether a single teacher is eligible and, if so, how they score."""
    validate_request(request, roster)
    teacher = next((t for t in roster if t.id == teacher_id), None)
    if teacher is None:
        raise NotFoundError("teacher", teacher_id)

    check = check_hard_constraints(teacher, request, student, settings)
    if not student.active and check.satisfied:
        return TeacherEvaluation(
            teacher_id=teacher_id,
            eligible=False,
            hard_constraints=check,
            disqualification="inactive_student",
        )

    candidate = None
    if check.satisfied:
        candidate = score_teacher(teacher, request, student, history, settings)
    return TeacherEvaluation(
        teacher_id=teacher_id,
        eligible=check.satisfied,
        hard_constraints=check,
        disqualification=check.disqualification,
        candidate=candidate,
    )

from __future__ import annotations

import datetime as dt

import numpy as np

from ..settings.models import ScoringSettings
from .models import (
    AssignmentRecord,
    RuleContribution,
    ScoredCandidate,
    SlotOccupant,
    SlotRequest,
    Student,
    Teacher,
)

# Evaluation order doubles as the tie-break order.
RULE_ORDER = ["continuity", "load_balance", "student_balance", "pairing", "grade_fit"]


def _utilisation(current: int, cap: int) -> float:
    if cap <= 0:
        return 1.0
    return float(np.clip(current / cap, 0.0, 1.0))


def _load_label(current: int) -> str:
    if current == 0:
        return "no load"
    if current <= 3:
        return "light load"
    if current <= 6:
        return "moderate load"
    return "heavy load"


def _continuity(
    teacher: Teacher,
    request: SlotRequest,
    student: Student,
    history: list[AssignmentRecord],
    settings: ScoringSettings,
) -> tuple[float, str | None]:
    cutoff = None
    if request.date is not None:
        cutoff = request.date - dt.timedelta(days=settings.continuity_lookback_days)
    matches = [
        rec
        for rec in history
        if rec.teacher_id == teacher.id
        and rec.student_id == student.id
        and rec.subject == request.subject
    ]
    if any(rec.status == "active" for rec in matches):
        return 1.0, "currently teaches this student"
    if cutoff is not None and any(
        rec.status == "completed" and cutoff <= rec.date <= request.date for rec in matches
    ):
        return 1.0, "taught this student recently"
    return 0.0, None


def _pair_compatible(
    request: SlotRequest, student: Student, occupant: SlotOccupant, settings: ScoringSettings
) -> bool:
    if settings.pair_same_subject_required and occupant.subject != request.subject:
        return False
    return abs(occupant.grade - student.grade) <= settings.pair_max_grade_diff


def _pairing(
    request: SlotRequest, student: Student, settings: ScoringSettings
) -> tuple[float, str | None]:
    occupants = [o for o in request.occupants if o.student_id != student.id]
    if not occupants:
        return 0.0, None
    if all(_pair_compatible(request, student, o, settings) for o in occupants):
        return 1.0, "compatible pair"
    return -1.0, "undesired pairing"


def _grade_fit(teacher: Teacher, request: SlotRequest, student: Student) -> float:
    """Return 1.0 at the centre of the best covering grade range, 0.0 at its edge."""
    best = 0.0
    for skill in teacher.skills:
        if not skill.covers(request.subject, student.grade):
            continue
        half_span = (skill.grade_max - skill.grade_min) / 2
        if half_span <= 0:
            continue
        margin = min(student.grade - skill.grade_min, skill.grade_max - student.grade)
        best = max(best, min(margin / half_span, 1.0))
    return best


def _rule(rule: str, weight: float, value: float, note: str | None = None) -> RuleContribution:
    return RuleContribution(
        rule=rule,
        weight=weight,
        value=round(value, 4),
        contribution=round(weight * value, 4),
        note=note,
    )


def score_teacher(
    teacher: Teacher,
    request: SlotRequest,
    student: Student,
    history: list[AssignmentRecord],
    settings: ScoringSettings | None = None,
) -> ScoredCandidate:
    """Compute the weighted soft-constraint score for a single teacher."""
    settings = settings or ScoringSettings()

    continuity, continuity_note = _continuity(teacher, request, student, history, settings)
    load = 1.0 - _utilisation(teacher.current_week_slots, teacher.cap_week_slots)
    students = 1.0 - _utilisation(teacher.current_students, teacher.cap_students)
    pairing, pairing_note = _pairing(request, student, settings)
    grade_fit = _grade_fit(teacher, request, student)

    contributions = [
        _rule("continuity", settings.continuity_weight, continuity, continuity_note),
        _rule("load_balance", settings.load_weight, load, _load_label(teacher.current_week_slots)),
        _rule(
            "student_balance",
            settings.student_load_weight,
            students,
            f"{teacher.current_students}/{teacher.cap_students} students",
        ),
        _rule("pairing", settings.pair_weight, pairing, pairing_note),
        _rule("grade_fit", settings.grade_fit_weight, grade_fit),
    ]
    total = round(sum(c.contribution for c in contributions), 4)

    reasons = [c.note for c in contributions if c.note and c.contribution > 0]
    if pairing < 0:
        reasons.append("undesired pairing")
    if contributions[-1].contribution > 0:
        reasons.append("grade well inside teaching range")

    return ScoredCandidate(
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        score=total,
        contributions=contributions,
        reasons=reasons,
        current_load=teacher.current_week_slots,
    )


def _sort_key(candidate: ScoredCandidate) -> tuple:
    by_rule = {c.rule: c.contribution for c in candidate.contributions}
    return (
        -candidate.score,
        *(-by_rule.get(rule, 0.0) for rule in RULE_ORDER),
        candidate.teacher_id,
    )


def score_candidates(
    eligible: list[Teacher],
    request: SlotRequest,
    student: Student,
    history: list[AssignmentRecord],
    settings: ScoringSettings | None = None,
) -> list[ScoredCandidate]:
    """Score eligible teachers and return them best first."""
    scored = [score_teacher(t, request, student, history, settings) for t in eligible]
    return sorted(scored, key=_sort_key)

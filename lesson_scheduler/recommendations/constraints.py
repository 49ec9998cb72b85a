"""
Hard constraints.

A teacher failing any of these rules is never recommended, whatever their
score would have been.
"""
from __future__ import annotations

from collections import Counter

from ..settings.models import ScoringSettings
from .models import HardConstraintCheck, SlotOccupant, SlotRequest, Student, Teacher


def _other_occupants(request: SlotRequest, student: Student) -> list[SlotOccupant]:
    return [o for o in request.occupants if o.student_id != student.id]


def _has_availability(teacher: Teacher, request: SlotRequest) -> bool:
    if teacher.availability is None:
        return True
    return any(
        a.is_available
        and a.date == request.date
        and a.time_slot_id == request.time_slot_id
        for a in teacher.availability
    )


def _pairing_allowed(
    teacher: Teacher,
    student: Student,
    occupants: list[SlotOccupant],
    settings: ScoringSettings,
) -> bool:
    if not occupants:
        return True
    if student.requires_one_on_one:
        return False
    if any(o.requires_one_on_one for o in occupants):
        return False
    if not teacher.allow_pair:
        return False
    return len(occupants) < settings.max_students_per_position


def check_hard_constraints(
    teacher: Teacher,
    request: SlotRequest,
    student: Student,
    settings: ScoringSettings | None = None,
) -> HardConstraintCheck:
    """Evaluate every hard constraint for a single teacher."""
    settings = settings or ScoringSettings()
    occupants = _other_occupants(request, student)

    ng_ids = set(student.ng_teacher_ids)
    for o in occupants:
        ng_ids.update(o.ng_teacher_ids)

    # Students already taught this week do not consume a new weekly slot.
    under_week = (
        teacher.current_week_slots < teacher.cap_week_slots
        or student.id in teacher.week_student_ids
    )
    under_students = (
        teacher.current_students < teacher.cap_students
        or student.id in teacher.current_student_ids
    )

    needs = [(request.subject, student.grade)] + [(o.subject, o.grade) for o in occupants]
    taught_subjects = {s.subject for s in teacher.skills}
    can_teach_subject = all(subject in taught_subjects for subject, _ in needs)
    can_teach_grade = all(
        any(skill.covers(subject, grade) for skill in teacher.skills)
        for subject, grade in needs
    )

    return HardConstraintCheck(
        not_in_ng_list=teacher.id not in ng_ids,
        under_week_capacity=under_week,
        under_student_capacity=under_students,
        can_teach_subject=can_teach_subject,
        can_teach_grade=can_teach_grade,
        has_availability=_has_availability(teacher, request),
        # a position has a single teacher
        position_open=all(o.teacher_id in (None, teacher.id) for o in occupants),
        pairing_allowed=_pairing_allowed(teacher, student, occupants, settings),
        active=teacher.active,
    )


def filter_eligible(
    candidates: list[Teacher],
    request: SlotRequest,
    student: Student,
    settings: ScoringSettings | None = None,
) -> list[Teacher]:
    """Return the teachers passing every hard constraint, in input order."""
    return [
        t for t in candidates
        if check_hard_constraints(t, request, student, settings).satisfied
    ]


def rejection_summary(
    candidates: list[Teacher],
    request: SlotRequest,
    student: Student,
    settings: ScoringSettings | None = None,
) -> dict[str, int]:
    """Count the first failing rule for every rejected teacher."""
    counter: Counter[str] = Counter()
    for t in candidates:
        reason = check_hard_constraints(t, request, student, settings).disqualification
        if reason:
            counter[reason] += 1
    return dict(counter)

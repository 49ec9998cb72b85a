from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from ..settings.models import ScoringSettings

WEEKDAYS = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]


def weekday_code(day: dt.date) -> str:
    return WEEKDAYS[day.weekday()]


def week_start(day: dt.date) -> dt.date:
    """Return the Monday of the ISO week containing *day*."""
    return day - dt.timedelta(days=day.weekday())


# ── Snapshot entities ────────────────────────────────────────────────────


class TeacherSkill(BaseModel):
    subject: str = Field(..., min_length=1)
    grade_min: int
    grade_max: int

    def covers(self, subject: str, grade: int) -> bool:
        return self.subject == subject and self.grade_min <= grade <= self.grade_max


class AvailabilityEntry(BaseModel):
    date: dt.date
    time_slot_id: str
    is_available: bool = True


class Teacher(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    active: bool = True
    cap_week_slots: int = Field(..., ge=0)
    cap_students: int = Field(..., ge=0)
    allow_pair: bool = False
    skills: list[TeacherSkill] = Field(default_factory=list)
    availability: list[AvailabilityEntry] | None = Field(
        default=None,
        description="None when availability is not tracked for this teacher",
    )
    current_week_slots: int = Field(default=0, ge=0)
    current_student_ids: list[str] = Field(default_factory=list)
    week_student_ids: list[str] = Field(default_factory=list)
    load_week: dt.date | None = Field(
        default=None, description="Monday of the week the load counters describe"
    )

    @property
    def current_students(self) -> int:
        return len(set(self.current_student_ids))


class Student(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    grade: int
    subjects: list[str] = Field(default_factory=list)
    requires_one_on_one: bool = False
    ng_teacher_ids: list[str] = Field(default_factory=list)
    active: bool = True


class SlotOccupant(BaseModel):
    student_id: str
    teacher_id: str | None = None
    grade: int
    subject: str
    requires_one_on_one: bool = False
    ng_teacher_ids: list[str] = Field(default_factory=list)


class SlotRequest(BaseModel):
    date: dt.date | None = None
    weekday: str | None = None
    time_slot_id: str | None = None
    subject: str | None = None
    position: int = Field(default=1, ge=1)
    student_id: str | None = None
    occupants: list[SlotOccupant] = Field(default_factory=list)


class AssignmentRecord(BaseModel):
    date: dt.date
    time_slot_id: str
    teacher_id: str
    student_id: str
    subject: str
    status: str = "active"


# ── Engine output ────────────────────────────────────────────────────────


class RuleContribution(BaseModel):
    rule: str
    weight: float
    value: float
    contribution: float
    note: str | None = None


class ScoredCandidate(BaseModel):
    teacher_id: str
    teacher_name: str = ""
    score: float
    contributions: list[RuleContribution] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)
    current_load: int = 0
    disqualification: str | None = None


class HardConstraintCheck(BaseModel):
    not_in_ng_list: bool = True
    under_week_capacity: bool = True
    under_student_capacity: bool = True
    can_teach_subject: bool = True
    can_teach_grade: bool = True
    has_availability: bool = True
    position_open: bool = True
    pairing_allowed: bool = True
    active: bool = True

    @property
    def disqualification(self) -> str | None:
        """Return the reason code of the first failing rule, or ``None``."""
        for field, reason in _REJECTION_CODES:
            if not getattr(self, field):
                return reason
        return None

    @property
    def satisfied(self) -> bool:
        return self.disqualification is None


_REJECTION_CODES = [
    ("not_in_ng_list", "ng_teacher"),
    ("under_week_capacity", "over_week_capacity"),
    ("under_student_capacity", "over_student_capacity"),
    ("can_teach_subject", "cannot_teach_subject"),
    ("can_teach_grade", "cannot_teach_grade"),
    ("has_availability", "no_availability"),
    ("position_open", "position_taken"),
    ("pairing_allowed", "pairing_not_allowed"),
    ("active", "inactive"),
]


class RecommendationResult(BaseModel):
    candidates: list[ScoredCandidate] = Field(default_factory=list)
    rejected: dict[str, str] = Field(default_factory=dict)
    rejection_reasons: dict[str, int] = Field(default_factory=dict)
    total_teachers: int = 0


class TeacherEvaluation(BaseModel):
    teacher_id: str
    eligible: bool
    hard_constraints: HardConstraintCheck
    disqualification: str | None = None
    candidate: ScoredCandidate | None = None


# ── API payloads ─────────────────────────────────────────────────────────


class RecommendationQuery(BaseModel):
    student_id: str = Field(..., min_length=1)
    date: dt.date | None = None
    time_slot_id: str | None = None
    subject: str | None = None
    position: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=50)


class EvaluationRequest(BaseModel):
    request: SlotRequest
    student: Student
    roster: list[Teacher] = Field(default_factory=list)
    history: list[AssignmentRecord] = Field(default_factory=list)
    settings: ScoringSettings | None = None


class RecommendationResponse(BaseModel):
    candidates: list[ScoredCandidate]
    total_candidates: int
    total_teachers: int
    rejection_reasons: dict[str, int] = Field(default_factory=dict)

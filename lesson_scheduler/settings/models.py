from __future__ import annotations

from pydantic import BaseModel, Field


class ScoringSettings(BaseModel):
    load_weight: float = Field(default=1.0, ge=0.0)
    continuity_weight: float = Field(default=0.5, ge=0.0)
    student_load_weight: float = Field(default=0.5, ge=0.0)
    pair_weight: float = Field(default=0.3, ge=0.0)
    grade_fit_weight: float = Field(default=0.3, ge=0.0)
    pair_same_subject_required: bool = True
    pair_max_grade_diff: int = Field(default=2, ge=0)
    continuity_lookback_days: int = Field(default=90, ge=0)
    max_students_per_position: int = Field(default=2, ge=1)


class SettingsUpdate(BaseModel):
    load_weight: float | None = Field(default=None, ge=0.0)
    continuity_weight: float | None = Field(default=None, ge=0.0)
    student_load_weight: float | None = Field(default=None, ge=0.0)
    pair_weight: float | None = Field(default=None, ge=0.0)
    grade_fit_weight: float | None = Field(default=None, ge=0.0)
    pair_same_subject_required: bool | None = None
    pair_max_grade_diff: int | None = Field(default=None, ge=0)
    continuity_lookback_days: int | None = Field(default=None, ge=0)
    max_students_per_position: int | None = Field(default=None, ge=1)

"""
Snapshot store.

Reads the exported scheduling tables and turns them into the snapshots the
engine consumes. Tables are read on every call so that edits made by other
users are never hidden behind a stale copy.
"""
from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

import pandas as pd

from .config import DEFAULT_STORE_CONFIG, StoreConfig
from .errors import NotFoundError
from .models import (
    AssignmentRecord,
    AvailabilityEntry,
    SlotOccupant,
    Student,
    Teacher,
    TeacherSkill,
    week_start,
)

logger = logging.getLogger(__name__)

_DATA_DIR: Path = DEFAULT_STORE_CONFIG.data_dir

TABLE_COLUMNS: dict[str, list[str]] = {
    "teachers": ["id", "name", "active", "cap_week_slots", "cap_students", "allow_pair"],
    "teacher_skills": ["teacher_id", "subject", "grade_min", "grade_max"],
    "teacher_availability": ["teacher_id", "date", "time_slot_id", "is_available"],
    "students": ["id", "name", "grade", "active", "requires_one_on_one"],
    "student_subjects": ["student_id", "subject"],
    "student_ng": ["student_id", "teacher_id"],
    "assignments": [
        "id", "date", "time_slot_id", "position", "teacher_id", "student_id", "subject", "status",
    ],
    "time_slots": ["id", "start_time", "end_time"],
}

_REQUIRED_TABLES = {"teachers", "students"}
_TRUE_VALUES = {"true", "t", "1", "yes", "y"}


def _data_dir(data_dir: Path | None) -> Path:
    return Path(data_dir) if data_dir is not None else _DATA_DIR


def table_exists(name: str, data_dir: Path | None = None) -> bool:
    return (_data_dir(data_dir) / f"{name}.csv").exists()


def read_table(name: str, data_dir: Path | None = None) -> pd.DataFrame:
    """Load one table as strings; optional tables that are absent come back empty."""
    path = _data_dir(data_dir) / f"{name}.csv"
    columns = TABLE_COLUMNS[name]
    if not path.exists():
        if name in _REQUIRED_TABLES:
            raise FileNotFoundError(f"Required table missing: {path}")
        logger.debug("Optional table %s not found at %s", name, path)
        return pd.DataFrame(columns=columns)

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    for col in columns:
        if col not in df.columns:
            df[col] = ""
    return df[columns].copy()


def _to_bool(series: pd.Series) -> pd.Series:
    return series.fillna("").str.strip().str.lower().isin(_TRUE_VALUES)


def _to_int(series: pd.Series, default: int = 0) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").fillna(default).astype(int)


def _to_date(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, errors="coerce").dt.date


def _int(value, default: int = 0) -> int:
    number = pd.to_numeric(value, errors="coerce")
    return default if pd.isna(number) else int(number)


def _assignments(data_dir: Path | None) -> pd.DataFrame:
    df = read_table("assignments", data_dir)
    df["date"] = _to_date(df["date"])
    df["position"] = _to_int(df["position"], default=1)
    df["status"] = df["status"].replace("", "active").str.lower()
    return df.dropna(subset=["date"])


def fetch_roster(
    on_date: dt.date,
    data_dir: Path | None = None,
    config: StoreConfig = DEFAULT_STORE_CONFIG,
) -> list[Teacher]:
    """Return active teachers with load counters for the ISO week of *on_date*."""
    teachers = read_table("teachers", data_dir)
    teachers = teachers[_to_bool(teachers["active"])]

    skills = read_table("teacher_skills", data_dir)
    skills["grade_min"] = _to_int(skills["grade_min"])
    skills["grade_max"] = _to_int(skills["grade_max"])
    skills_by_teacher = {tid: grp for tid, grp in skills.groupby("teacher_id")}

    availability_by_teacher: dict[str, pd.DataFrame] | None = None
    if table_exists("teacher_availability", data_dir):
        avail = read_table("teacher_availability", data_dir)
        avail["date"] = _to_date(avail["date"])
        avail = avail[avail["date"] == on_date].copy()
        avail["is_available"] = _to_bool(avail["is_available"])
        availability_by_teacher = {tid: grp for tid, grp in avail.groupby("teacher_id")}

    monday = week_start(on_date)
    sunday = monday + dt.timedelta(days=6)
    assignments = _assignments(data_dir)
    counted = assignments[assignments["status"].isin(config.counted_statuses)]
    week = counted[(counted["date"] >= monday) & (counted["date"] <= sunday)]
    active = assignments[assignments["status"].isin(config.active_statuses)]

    week_slots = (
        week.drop_duplicates(subset=["teacher_id", "date", "time_slot_id", "position"])
        .groupby("teacher_id")
        .size()
    )
    week_students = week.groupby("teacher_id")["student_id"].unique()
    active_students = active.groupby("teacher_id")["student_id"].unique()

    roster: list[Teacher] = []
    for row in teachers.itertuples(index=False):
        teacher_skills = skills_by_teacher.get(row.id, pd.DataFrame(columns=skills.columns))
        availability = None
        if availability_by_teacher is not None:
            grp = availability_by_teacher.get(row.id)
            availability = [] if grp is None else [
                AvailabilityEntry(
                    date=a.date, time_slot_id=a.time_slot_id, is_available=bool(a.is_available),
                )
                for a in grp.itertuples(index=False)
            ]
        roster.append(Teacher(
            id=row.id,
            name=row.name,
            active=True,
            cap_week_slots=_int(row.cap_week_slots),
            cap_students=_int(row.cap_students),
            allow_pair=row.allow_pair.strip().lower() in _TRUE_VALUES,
            skills=[
                TeacherSkill(
                    subject=s.subject, grade_min=int(s.grade_min), grade_max=int(s.grade_max),
                )
                for s in teacher_skills.itertuples(index=False)
            ],
            availability=availability,
            current_week_slots=int(week_slots.get(row.id, 0)),
            current_student_ids=sorted(active_students.get(row.id, [])),
            week_student_ids=sorted(week_students.get(row.id, [])),
            load_week=monday,
        ))
    return roster


def _student_from_row(row, subjects: pd.DataFrame, ng: pd.DataFrame) -> Student:
    return Student(
        id=row["id"],
        name=row["name"],
        grade=_int(row["grade"]),
        subjects=sorted(subjects.loc[subjects["student_id"] == row["id"], "subject"].unique()),
        requires_one_on_one=row["requires_one_on_one"].strip().lower() in _TRUE_VALUES,
        ng_teacher_ids=sorted(ng.loc[ng["student_id"] == row["id"], "teacher_id"].unique()),
        active=row["active"].strip().lower() in _TRUE_VALUES,
    )


def fetch_student(student_id: str, data_dir: Path | None = None) -> Student:
    students = read_table("students", data_dir)
    match = students[students["id"] == student_id]
    if match.empty:
        raise NotFoundError("student", student_id)
    return _student_from_row(
        match.iloc[0],
        read_table("student_subjects", data_dir),
        read_table("student_ng", data_dir),
    )


def fetch_history(
    student_id: str,
    as_of: dt.date,
    lookback_days: int,
    data_dir: Path | None = None,
) -> list[AssignmentRecord]:
    """Return the student's assignments dated from the lookback cutoff onward."""
    df = _assignments(data_dir)
    cutoff = as_of - dt.timedelta(days=lookback_days)
    df = df[(df["student_id"] == student_id) & (df["date"] >= cutoff)]
    return [
        AssignmentRecord(
            date=r.date,
            time_slot_id=r.time_slot_id,
            teacher_id=r.teacher_id,
            student_id=r.student_id,
            subject=r.subject,
            status=r.status,
        )
        for r in df.sort_values(["date", "time_slot_id"]).itertuples(index=False)
    ]


def fetch_slot_occupants(
    on_date: dt.date,
    time_slot_id: str,
    position: int = 1,
    exclude_student_id: str | None = None,
    data_dir: Path | None = None,
    config: StoreConfig = DEFAULT_STORE_CONFIG,
) -> list[SlotOccupant]:
    """Return the students already seated at a slot position."""
    df = _assignments(data_dir)
    df = df[
        (df["date"] == on_date)
        & (df["time_slot_id"] == time_slot_id)
        & (df["position"] == position)
        & (df["status"].isin(config.counted_statuses))
    ]
    if exclude_student_id:
        df = df[df["student_id"] != exclude_student_id]
    if df.empty:
        return []

    students = read_table("students", data_dir).set_index("id", drop=False)
    ng = read_table("student_ng", data_dir)
    occupants: list[SlotOccupant] = []
    for r in df.drop_duplicates(subset=["student_id"]).itertuples(index=False):
        if r.student_id not in students.index:
            raise NotFoundError("student", r.student_id)
        s = students.loc[r.student_id]
        occupants.append(SlotOccupant(
            student_id=r.student_id,
            teacher_id=r.teacher_id,
            grade=_int(s["grade"]),
            subject=r.subject,
            requires_one_on_one=s["requires_one_on_one"].strip().lower() in _TRUE_VALUES,
            ng_teacher_ids=sorted(ng.loc[ng["student_id"] == r.student_id, "teacher_id"].unique()),
        ))
    return occupants


def get_metadata(data_dir: Path | None = None) -> dict:
    teachers = read_table("teachers", data_dir)
    students = read_table("students", data_dir)
    subjects: set[str] = set(read_table("teacher_skills", data_dir)["subject"])
    subjects.update(read_table("student_subjects", data_dir)["subject"])
    return {
        "subjects": sorted(s for s in subjects if s),
        "time_slots": read_table("time_slots", data_dir)["id"].tolist(),
        "active_teachers": int(_to_bool(teachers["active"]).sum()),
        "active_students": int(_to_bool(students["active"]).sum()),
    }

from __future__ import annotations

import time
from typing import Any

from ..recommendations.models import RecommendationResult, SlotRequest

_events: list[dict[str, Any]] = []


def record_recommendation(
    request: SlotRequest,
    student_id: str,
    result: RecommendationResult,
    returned: int,
    response_time_ms: float,
) -> None:
    """Log one served recommendation request."""
    top = result.candidates[0].teacher_id if result.candidates else None
    _events.append({
        "type": "recommendation",
        "timestamp": time.time(),
        "student_id": student_id,
        "date": request.date.isoformat() if request.date else None,
        "time_slot_id": request.time_slot_id,
        "subject": request.subject,
        "total_teachers": result.total_teachers,
        "eligible": len(result.candidates),
        "results_returned": returned,
        "top_teacher_id": top,
        "rejection_reasons": dict(result.rejection_reasons),
        "response_time_ms": response_time_ms,
    })


def get_events() -> list[dict[str, Any]]:
    return _events


def clear_events() -> None:
    _events.clear()

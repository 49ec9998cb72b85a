from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "recommendation"]
    total = len(requests)

    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Requests where nobody passed the hard constraints
    empty = sum(1 for r in requests if r.get("eligible", 0) == 0)
    eligible_counts = [r.get("eligible", 0) for r in requests]
    avg_eligible = round(sum(eligible_counts) / total, 1) if total else 0.0

    subject_counter: Counter[str] = Counter()
    for r in requests:
        subject_counter[r.get("subject") or "unknown"] += 1
    top_subjects = [{"name": n, "count": c} for n, c in subject_counter.most_common(10)]

    rejection_counter: Counter[str] = Counter()
    for r in requests:
        rejection_counter.update(r.get("rejection_reasons") or {})

    teacher_counter: Counter[str] = Counter(
        r["top_teacher_id"] for r in requests if r.get("top_teacher_id")
    )
    top_teachers = [{"teacher_id": t, "count": c} for t, c in teacher_counter.most_common(10)]

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "avg_eligible_teachers": avg_eligible,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "top_subjects": top_subjects,
        "rejection_reasons": dict(rejection_counter),
        "top_recommended_teachers": top_teachers,
    }

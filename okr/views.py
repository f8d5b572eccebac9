"""
Presentation contract: view models, dashboard summary and the text report.

Everything here is derived from the Document on demand; nothing is stored.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from okr.models import GROUPS, Document, KeyResult, Objective
from okr.progress import (
    format_number,
    group_progress,
    key_result_progress,
    objective_progress,
    progress_color,
)
from okr.status import (
    checkin_overdue,
    confidence_label,
    date_warning,
    format_date_only,
    objective_outline,
    status_label,
)

RULE_WIDTH = 60
SECTION_WIDTH = 40


def _value(enum_or_none) -> Optional[str]:
    return enum_or_none.value if enum_or_none is not None else None


def key_result_view_model(kr: KeyResult, today: Optional[date] = None) -> Dict[str, Any]:
    progress = key_result_progress(kr)
    return {
        "id": kr.id,
        "title": kr.title,
        "current": kr.current,
        "target": kr.target,
        "weight": kr.weight,
        "progress": progress,
        "status": kr.status.value,
        "statusLabel": status_label(kr.status),
        "confidence": kr.confidence.value,
        "confidenceLabel": confidence_label(kr.confidence),
        "dateWarningClass": _value(date_warning(kr.target_date, today)),
        "checkinOverdue": checkin_overdue(kr.last_checkin, today),
        "startDate": kr.start_date,
        "targetDate": kr.target_date,
        "lastCheckin": kr.last_checkin,
        "evidence": kr.evidence,
        "comments": kr.comments,
        "createdAt": format_date_only(kr.created_at),
    }


def objective_view_model(objective: Objective, today: Optional[date] = None) -> Dict[str, Any]:
    progress = objective_progress(objective)
    return {
        "id": objective.id,
        "title": objective.title,
        "group": objective.group.value,
        "year": objective.year,
        "quarter": objective.quarter,
        "purpose": objective.purpose,
        "weight": objective.weight,
        "progress": progress,
        "progressColor": progress_color(progress),
        "outlineClass": _value(objective_outline(progress, objective.target_date, today)),
        "dateWarningClass": _value(date_warning(objective.target_date, today)),
        "startDate": objective.start_date,
        "targetDate": objective.target_date,
        "lastCheckin": objective.last_checkin,
        "createdAt": format_date_only(objective.created_at),
        "keyResultCount": len(objective.key_results),
        "krViewModels": [key_result_view_model(kr, today) for kr in objective.key_results],
    }


def dashboard(document: Document) -> Dict[str, Dict[str, int]]:
    """Objective count and average progress per group."""
    summary = {}
    for group in GROUPS:
        members = [o for o in document.objectives if o.group == group]
        summary[group.value] = {"count": len(members), "progress": group_progress(members)}
    return summary


def _indent_block(text: str, prefix: str = "        ") -> str:
    return "\n".join(f"{prefix}{line}" for line in text.split("\n"))


def _period(objective: Objective) -> str:
    year = objective.year if objective.year is not None else ""
    quarter = objective.quarter if objective.quarter is not None else ""
    return f"{year} Q{quarter}"


def export_text_report(document: Document, today: Optional[date] = None) -> str:
    """
    Plain-text OKR report: a per-group summary followed by every objective
    and its key results.
    """
    today = today or date.today()
    lines: List[str] = [
        "═" * RULE_WIDTH,
        "                    OKR REPORT",
        f"                 {today.isoformat()}",
        "═" * RULE_WIDTH,
        "",
        "SUMMARY BY GROUP",
        "─" * SECTION_WIDTH,
    ]
    for group, row in dashboard(document).items():
        lines.append(f"  {group:<12} {row['count']} objective(s)    {row['progress']}% complete")
    lines += ["", "═" * RULE_WIDTH, ""]

    for index, obj in enumerate(document.objectives, start=1):
        lines += [
            f"OBJECTIVE {index}",
            "─" * SECTION_WIDTH,
            f"Group:       {obj.group.value}",
            f"Period:      {_period(obj)}",
            f"Weight:      {obj.weight}%",
            f"Created:     {format_date_only(obj.created_at) or 'N/A'}",
            f"Start Date:  {obj.start_date or 'N/A'}",
            f"Due Date:    {obj.target_date or 'N/A'}",
            f"Last Check-in: {obj.last_checkin or 'N/A'}",
            f"Progress:    {objective_progress(obj)}%",
            "",
            "Title:",
            obj.title,
        ]
        if obj.purpose:
            lines += ["", "Purpose:", obj.purpose]

        if obj.key_results:
            lines += ["", "Key Results:"]
            for kr_index, kr in enumerate(obj.key_results, start=1):
                lines += [
                    "",
                    f"  {kr_index}. {kr.title}",
                    f"     Progress: {format_number(kr.current)}/{format_number(kr.target)} "
                    f"({key_result_progress(kr)}%)",
                    f"     Status: {status_label(kr.status)}",
                    f"     Confidence: {confidence_label(kr.confidence)}",
                    f"     Weight: {kr.weight}%",
                    f"     Created: {format_date_only(kr.created_at) or 'N/A'}",
                ]
                if kr.start_date and kr.target_date:
                    lines.append(f"     Period: {kr.start_date} → {kr.target_date}")
                lines.append(f"     Last Check-in: {kr.last_checkin or 'N/A'}")
                if kr.evidence:
                    lines += ["     Evidence:", _indent_block(kr.evidence)]
                if kr.comments:
                    lines += ["     Comments:", _indent_block(kr.comments)]

        lines += ["", "═" * RULE_WIDTH, ""]

    return "\n".join(lines) + "\n"

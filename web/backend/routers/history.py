from typing import Optional

from fastapi import APIRouter

from okr.history import describe_entry
from okr.okr_service import OKRService
from okr.store import DocumentStore

router = APIRouter()


def get_okr_service() -> OKRService:
    return OKRService.from_store(DocumentStore())


@router.get("/history")
def list_history(
    item_type: Optional[str] = None,
    group: Optional[str] = None,
    entry_type: Optional[str] = None,
):
    """Newest-first change log, optionally filtered."""
    service = get_okr_service()
    entries = service.list_history(item_type=item_type, group=group, entry_type=entry_type)
    return {
        "total": len(entries),
        "entries": [
            {**entry.to_dict(), "description": describe_entry(entry)}
            for entry in entries
        ],
    }


@router.get("/trends/grouped")
def get_grouped_trend():
    series = get_okr_service().grouped_trend()
    return {
        "groups": {group: [p.to_dict() for p in points] for group, points in series.items()}
    }


@router.get("/trends/individual")
def get_individual_trend(group: Optional[str] = None, objective_id: Optional[str] = None):
    trends = get_okr_service().individual_trend(group=group, objective_id=objective_id)
    return {"objectives": [t.to_dict() for t in trends]}

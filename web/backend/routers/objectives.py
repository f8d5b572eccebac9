from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from okr.config_manager import config
from okr.exceptions import OKRError, PersistenceError, ValidationError
from okr.okr_service import OKRService
from okr.store import DocumentStore
from okr.views import key_result_view_model

router = APIRouter()

NOT_FOUND = {"status": "not_found"}


class ObjectiveCreateRequest(BaseModel):
    title: str
    group: Optional[str] = None
    year: Optional[int] = None
    quarter: Optional[int] = None
    purpose: str = ""
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    last_checkin: Optional[str] = None


class ObjectiveUpdateRequest(BaseModel):
    title: Optional[str] = None
    group: Optional[str] = None
    year: Optional[int] = None
    quarter: Optional[int] = None
    purpose: Optional[str] = None
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    weight: Optional[int] = None
    last_checkin: Optional[str] = None


class KeyResultCreateRequest(BaseModel):
    title: str
    target: float = 100
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    status: Optional[str] = None
    confidence: Optional[str] = None
    last_checkin: Optional[str] = None
    evidence: str = ""
    comments: str = ""


class KeyResultUpdateRequest(BaseModel):
    title: Optional[str] = None
    target: Optional[float] = None
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    weight: Optional[int] = None
    status: Optional[str] = None
    confidence: Optional[str] = None
    last_checkin: Optional[str] = None
    evidence: Optional[str] = None
    comments: Optional[str] = None


class ProgressRequest(BaseModel):
    delta: float = config.PROGRESS_STEP


def get_okr_service() -> OKRService:
    return OKRService.from_store(DocumentStore())


def _supplied(req: BaseModel) -> dict:
    return req.model_dump(exclude_unset=True)


def _run(action):
    """Map engine errors onto HTTP status codes."""
    try:
        return action()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=exc.get_user_message())
    except OKRError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


@router.get("")
def list_objectives(group: Optional[str] = None):
    service = get_okr_service()
    return {"objectives": service.objective_views(group=group, today=date.today())}


@router.get("/dashboard")
def get_dashboard():
    return {"groups": get_okr_service().dashboard()}


@router.get("/report", response_class=PlainTextResponse)
def get_report():
    return get_okr_service().export_report(today=date.today())


@router.post("")
def create_objective(req: ObjectiveCreateRequest):
    service = get_okr_service()
    objective = _run(lambda: service.add_objective(**req.model_dump()))
    return {"status": "created", "objective": service.objective_view(objective.id, date.today())}


@router.post("/balance")
def balance_objectives():
    service = get_okr_service()
    _run(service.balance_objective_weights)
    return {"status": "balanced", "weights": {o.id: o.weight for o in service.list_objectives()}}


@router.get("/{objective_id}")
def get_objective(objective_id: str):
    view = get_okr_service().objective_view(objective_id, date.today())
    if view is None:
        raise HTTPException(status_code=404, detail="Objective not found")
    return view


@router.patch("/{objective_id}")
def update_objective(objective_id: str, req: ObjectiveUpdateRequest):
    service = get_okr_service()
    objective = _run(lambda: service.edit_objective(objective_id, **_supplied(req)))
    if objective is None:
        return NOT_FOUND
    return {"status": "updated", "objective": service.objective_view(objective.id, date.today())}


@router.delete("/{objective_id}")
def delete_objective(objective_id: str):
    service = get_okr_service()
    if not _run(lambda: service.delete_objective(objective_id)):
        return NOT_FOUND
    return {"status": "deleted", "id": objective_id}


@router.post("/{objective_id}/key-results")
def create_key_result(objective_id: str, req: KeyResultCreateRequest):
    service = get_okr_service()
    kr = _run(lambda: service.add_key_result(objective_id, **req.model_dump()))
    if kr is None:
        return NOT_FOUND
    return {"status": "created", "keyResult": key_result_view_model(kr, date.today())}


@router.post("/{objective_id}/key-results/balance")
def balance_key_results(objective_id: str):
    service = get_okr_service()
    if not _run(lambda: service.balance_key_result_weights(objective_id)):
        return NOT_FOUND
    objective = service.get_objective(objective_id)
    return {"status": "balanced", "weights": {kr.id: kr.weight for kr in objective.key_results}}


@router.patch("/{objective_id}/key-results/{key_result_id}")
def update_key_result(objective_id: str, key_result_id: str, req: KeyResultUpdateRequest):
    service = get_okr_service()
    kr = _run(lambda: service.edit_key_result(objective_id, key_result_id, **_supplied(req)))
    if kr is None:
        return NOT_FOUND
    return {"status": "updated", "keyResult": key_result_view_model(kr, date.today())}


@router.post("/{objective_id}/key-results/{key_result_id}/progress")
def update_progress(objective_id: str, key_result_id: str, req: ProgressRequest):
    service = get_okr_service()
    kr = _run(lambda: service.adjust_progress(objective_id, key_result_id, req.delta))
    if kr is None:
        return NOT_FOUND
    return {"status": "updated", "keyResult": key_result_view_model(kr, date.today())}


@router.delete("/{objective_id}/key-results/{key_result_id}")
def delete_key_result(objective_id: str, key_result_id: str):
    service = get_okr_service()
    if not _run(lambda: service.delete_key_result(objective_id, key_result_id)):
        return NOT_FOUND
    return {"status": "deleted", "id": key_result_id}

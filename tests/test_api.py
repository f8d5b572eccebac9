import pytest
from fastapi import HTTPException

import web.backend.routers.history as history_router
import web.backend.routers.objectives as objectives_router
from okr.exceptions import PersistenceError
from okr.okr_service import OKRService


@pytest.fixture
def service(monkeypatch, clock):
    shared = OKRService(clock=clock)
    monkeypatch.setattr(objectives_router, "get_okr_service", lambda: shared)
    monkeypatch.setattr(history_router, "get_okr_service", lambda: shared)
    return shared


def _create(title="Ship v2", group="Team"):
    req = objectives_router.ObjectiveCreateRequest(title=title, group=group)
    return objectives_router.create_objective(req)["objective"]


def test_create_and_list_objectives(service):
    created = _create()

    assert created["title"] == "Ship v2"
    assert created["weight"] == 100
    assert created["progress"] == 0
    assert created["krViewModels"] == []

    listed = objectives_router.list_objectives(group="Team")["objectives"]
    assert [o["id"] for o in listed] == [created["id"]]
    assert objectives_router.list_objectives(group="Company")["objectives"] == []


def test_validation_error_maps_to_400(service):
    req = objectives_router.ObjectiveCreateRequest(title="   ")
    with pytest.raises(HTTPException) as exc:
        objectives_router.create_objective(req)
    assert exc.value.status_code == 400


def test_persistence_error_maps_to_500(service, monkeypatch):
    def fail():
        raise PersistenceError("disk full", "/tmp/okr_data.json")

    monkeypatch.setattr(service, "save", fail)
    with pytest.raises(HTTPException) as exc:
        _create()
    assert exc.value.status_code == 500


def test_unknown_ids_answer_not_found(service):
    update = objectives_router.ObjectiveUpdateRequest(title="x")
    assert objectives_router.update_objective("missing", update) == {"status": "not_found"}
    assert objectives_router.delete_objective("missing") == {"status": "not_found"}

    progress = objectives_router.ProgressRequest()
    assert objectives_router.update_progress("missing", "kr", progress) == {"status": "not_found"}

    with pytest.raises(HTTPException) as exc:
        objectives_router.get_objective("missing")
    assert exc.value.status_code == 404


def test_partial_update_only_touches_supplied_fields(service):
    created = _create()
    objectives_router.update_objective(
        created["id"], objectives_router.ObjectiveUpdateRequest(purpose="Why it matters")
    )

    objective = service.get_objective(created["id"])
    assert objective.title == "Ship v2"
    assert objective.purpose == "Why it matters"
    assert service.list_history(entry_type="updated")[0].changes == {
        "purpose": {"from": "", "to": "Why it matters"}
    }


def test_key_result_flow(service):
    objective_id = _create()["id"]
    kr = objectives_router.create_key_result(
        objective_id, objectives_router.KeyResultCreateRequest(title="Close tickets", target=20)
    )["keyResult"]

    updated = objectives_router.update_progress(
        objective_id, kr["id"], objectives_router.ProgressRequest()
    )["keyResult"]
    assert updated["current"] == 10
    assert updated["progress"] == 50

    objectives_router.update_key_result(
        objective_id,
        kr["id"],
        objectives_router.KeyResultUpdateRequest(status="off-track", confidence="Low"),
    )
    view = objectives_router.get_objective(objective_id)
    assert view["progress"] == 50
    assert view["krViewModels"][0]["statusLabel"] == "Off Track"
    assert view["krViewModels"][0]["confidence"] == "Low"

    assert objectives_router.delete_key_result(objective_id, kr["id"])["status"] == "deleted"
    assert objectives_router.get_objective(objective_id)["keyResultCount"] == 0


def test_balance_endpoints(service):
    first = _create("A")["id"]
    _create("B")
    objectives_router.update_objective(first, objectives_router.ObjectiveUpdateRequest(weight=80))

    payload = objectives_router.balance_objectives()

    assert payload["status"] == "balanced"
    assert sorted(payload["weights"].values()) == [50, 50]
    assert objectives_router.balance_key_results("missing") == {"status": "not_found"}


def test_dashboard_and_report(service):
    _create("A", group="Company")

    groups = objectives_router.get_dashboard()["groups"]
    assert groups["Company"] == {"count": 1, "progress": 0}
    assert groups["Personal"] == {"count": 0, "progress": 0}

    assert "OKR REPORT" in objectives_router.get_report()


def test_history_and_trend_endpoints(service):
    objective_id = _create()["id"]
    objectives_router.delete_objective(_create("Gone", group="Personal")["id"])

    payload = history_router.list_history(item_type="objective")
    assert payload["total"] == 3
    assert payload["entries"][0]["type"] == "deleted"
    assert "description" in payload["entries"][0]

    grouped = history_router.get_grouped_trend()["groups"]
    assert list(grouped) == ["Team"]
    assert all(point["count"] == 1 for point in grouped["Team"])

    individual = history_router.get_individual_trend()["objectives"]
    assert [t["objectiveId"] for t in individual] == [objective_id]


def test_app_routes_requests_through_http(service):
    from fastapi.testclient import TestClient

    from web.backend.app import create_app

    client = TestClient(create_app())

    assert client.get("/health").json()["status"] == "ok"

    created = client.post("/api/v1/objectives", json={"title": "Over HTTP", "group": "Company"})
    assert created.status_code == 200
    objective_id = created.json()["objective"]["id"]

    assert client.patch(f"/api/v1/objectives/{objective_id}", json={"quarter": 7}).status_code == 400
    assert client.get("/api/v1/objectives/dashboard").json()["groups"]["Company"]["count"] == 1
    assert client.get("/api/v1/history", params={"entry_type": "created"}).json()["total"] == 1
    assert "Over HTTP" in client.get("/api/v1/objectives/report").text


def test_null_weight_is_rejected(service):
    first = _create("A")["id"]
    _create("B")

    with pytest.raises(HTTPException) as exc:
        objectives_router.update_objective(first, objectives_router.ObjectiveUpdateRequest(weight=None))

    assert exc.value.status_code == 400
    assert [o.weight for o in service.list_objectives()] == [50, 50]

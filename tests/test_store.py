import json

import pytest

from okr.exceptions import PersistenceError
from okr.models import SCHEMA_VERSION, Confidence, Document, Objective
from okr.store import DocumentStore, parse_document, serialize_document


def test_missing_file_loads_empty(tmp_path):
    document = DocumentStore(tmp_path / "absent.json").load()
    assert document.objectives == []
    assert document.history == []


def test_malformed_json_loads_empty(tmp_path):
    path = tmp_path / "okr_data.json"
    path.write_text("{not json", encoding="utf-8")

    document = DocumentStore(path).load()

    assert document.objectives == []


def test_non_object_json_loads_empty():
    assert parse_document("[1, 2, 3]").objectives == []


def test_baseline_document_gets_defaults():
    raw = {
        "objectives": [
            {
                "id": "o1",
                "group": "Team",
                "year": 2024,
                "quarter": 2,
                "title": "Old objective",
                "weight": 100,
                "keyResults": [
                    {"id": "k1", "title": "Old KR", "target": 10, "current": 12, "status": "at-risk"},
                    {"title": "no id, skipped"},
                ],
            },
            "garbage",
        ]
    }

    document = parse_document(json.dumps(raw))

    (objective,) = document.objectives
    (kr,) = objective.key_results
    assert kr.confidence == Confidence.MEDIUM
    assert kr.current == 10
    assert kr.evidence == ""
    assert document.history == []
    assert document.schema_version == SCHEMA_VERSION


def test_unknown_history_type_is_skipped():
    raw = {
        "objectives": [],
        "history": [
            {"id": "h1", "timestamp": "2024-05-15T09:00:00Z", "type": "created", "itemType": "objective"},
            {"id": "h2", "timestamp": "2024-05-15T09:00:01Z", "type": "renamed"},
        ],
    }

    document = parse_document(json.dumps(raw))

    assert [e.id for e in document.history] == ["h1"]


def test_save_and_load(tmp_path):
    path = tmp_path / "nested" / "okr_data.json"
    store = DocumentStore(path)
    store.save(Document(objectives=[Objective(id="o1", title="Saved", weight=100)]))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["schemaVersion"] == SCHEMA_VERSION
    assert payload["objectives"][0]["keyResults"] == []

    assert store.load().objectives[0].title == "Saved"


def test_serialize_keeps_unicode():
    text = serialize_document(Document(objectives=[Objective(id="o1", title="读书计划")]))
    assert "读书计划" in text


def test_save_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    store = DocumentStore(blocker / "okr_data.json")

    with pytest.raises(PersistenceError) as exc:
        store.save(Document())
    assert exc.value.path == str(blocker / "okr_data.json")


def test_non_finite_numbers_fall_back_to_defaults():
    text = (
        '{"objectives": [{"id": "o1", "title": "O", "weight": Infinity, "keyResults": '
        '[{"id": "k1", "title": "K", "target": NaN, "current": Infinity}]}]}'
    )

    document = parse_document(text)

    (objective,) = document.objectives
    assert objective.weight == 0
    kr = objective.key_results[0]
    assert (kr.target, kr.current) == (100, 0)
    assert "NaN" not in serialize_document(document)

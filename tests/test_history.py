from okr.history import HistoryLog, describe_entry, diff_fields, parse_timestamp
from okr.models import HistoryEntry, HistoryType, ItemType


def test_diff_fields_only_reports_supplied_changes():
    old = {"title": "A", "purpose": None, "weight": 50}
    new = {"title": "B", "purpose": ""}

    changes = diff_fields(old, new, ["title", "purpose", "weight"], text_fields={"purpose"})

    assert changes == {"title": {"from": "A", "to": "B"}}


def test_diff_fields_unchanged_is_empty():
    assert diff_fields({"title": "A"}, {"title": "A"}, ["title"]) == {}


def test_record_is_newest_first(clock):
    log = HistoryLog([], clock=clock)
    first = log.record(HistoryType.CREATED, ItemType.OBJECTIVE, "o1", "First", {"created": True}, "Team")
    second = log.record(HistoryType.DELETED, ItemType.OBJECTIVE, "o1", "First", {"deleted": True}, "Team")

    assert log.entries == [second, first]
    assert first.timestamp < second.timestamp
    assert first.id != second.id


def test_cap_evicts_oldest(clock):
    entries = []
    log = HistoryLog(entries, limit=1000, clock=clock)
    for n in range(1001):
        log.record(HistoryType.UPDATED, ItemType.OBJECTIVE, f"o{n}", f"T{n}", {}, "Personal")

    assert len(entries) == 1000
    assert entries[0].item_id == "o1000"
    assert entries[-1].item_id == "o1"
    assert all(e.item_id != "o0" for e in entries)


def test_list_filters(clock):
    log = HistoryLog([], clock=clock)
    log.record(HistoryType.CREATED, ItemType.OBJECTIVE, "o1", "O", {"created": True}, "Team")
    log.record(HistoryType.CREATED, ItemType.KEY_RESULT, "k1", "K", {"created": True}, "Team")
    log.record(HistoryType.CREATED, ItemType.OBJECTIVE, "o2", "P", {"created": True}, "Personal")

    assert [e.item_id for e in log.list(item_type="objective")] == ["o2", "o1"]
    assert [e.item_id for e in log.list(group="Team")] == ["k1", "o1"]
    assert [e.item_id for e in log.list(item_type="keyresult", group="Personal")] == []
    assert len(log.list(entry_type="created")) == 3
    assert log.list(entry_type="bogus") == []


def test_snapshots_are_chronological(clock):
    log = HistoryLog([], clock=clock)
    for n in range(3):
        log.append(
            HistoryEntry(
                id=f"s{n}",
                timestamp=log.now().isoformat(),
                type=HistoryType.PROGRESS_SNAPSHOT,
                item_type=ItemType.SYSTEM,
                item_id="all",
                item_title="Progress Snapshot",
                changes={"snapshot": {"objectives": {}}},
                group="all",
            )
        )
    log.record(HistoryType.CREATED, ItemType.OBJECTIVE, "o1", "O", {"created": True}, "Team")

    assert [e.id for e in log.snapshots()] == ["s0", "s1", "s2"]


def test_parse_timestamp_handles_zulu_and_garbage():
    assert parse_timestamp("2024-05-15T09:00:00Z").hour == 9
    assert parse_timestamp("garbage") < parse_timestamp("2024-01-01T00:00:00")


def _entry(entry_type, changes):
    return HistoryEntry(
        id="h",
        timestamp="2024-05-15T09:00:00+00:00",
        type=entry_type,
        item_type=ItemType.KEY_RESULT,
        item_id="k1",
        item_title="K",
        changes=changes,
        group="Team",
    )


def test_describe_entry():
    assert describe_entry(_entry(HistoryType.CREATED, {"created": True})) == ""
    assert (
        describe_entry(_entry(HistoryType.PROGRESS, {"progress": {"from": "0/10 (0%)", "to": "1/10 (10%)"}}))
        == "0/10 (0%) → 1/10 (10%)"
    )
    assert (
        describe_entry(_entry(HistoryType.UPDATED, {"status": {"from": "on-track", "to": "at-risk"}}))
        == "status: On Track → At Risk"
    )


def test_oversized_history_is_trimmed_on_construction(clock):
    entries = [_entry(HistoryType.UPDATED, {}) for _ in range(7)]
    newest = entries[0]

    log = HistoryLog(entries, limit=5, clock=clock)

    assert len(entries) == 5
    assert log.entries[0] is newest

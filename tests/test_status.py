from datetime import date, datetime

from okr.status import (
    DateWarning,
    OutlineClass,
    checkin_overdue,
    confidence_label,
    date_warning,
    objective_outline,
    parse_date,
    status_label,
)

TODAY = date(2024, 5, 15)


def test_parse_date_accepts_timestamps_and_dates():
    assert parse_date("2024-05-20") == date(2024, 5, 20)
    assert parse_date("2024-05-20T23:59:00Z") == date(2024, 5, 20)
    assert parse_date(datetime(2024, 5, 20, 8, 30)) == date(2024, 5, 20)
    assert parse_date("not a date") is None
    assert parse_date("") is None


def test_date_warning_boundaries():
    assert date_warning("2024-05-20", TODAY) == DateWarning.YELLOW  # +5
    assert date_warning("2024-05-22", TODAY) == DateWarning.YELLOW  # +7
    assert date_warning("2024-05-23", TODAY) is None  # +8
    assert date_warning("2024-05-15", TODAY) == DateWarning.YELLOW  # today
    assert date_warning("2024-05-14", TODAY) == DateWarning.RED  # -1
    assert date_warning(None, TODAY) is None


def test_date_warning_ignores_time_of_day():
    assert date_warning("2024-05-15T00:00:01", TODAY) == DateWarning.YELLOW
    assert date_warning("2024-05-14T23:59:59", TODAY) == DateWarning.RED


def test_checkin_overdue():
    assert checkin_overdue("2024-05-08", TODAY) is False  # 7 days
    assert checkin_overdue("2024-05-07", TODAY) is True  # 8 days
    assert checkin_overdue(None, TODAY) is False
    assert checkin_overdue("", TODAY) is False


def test_objective_outline_overdue():
    assert objective_outline(69, "2024-05-14", TODAY) == OutlineClass.OVERDUE_RED
    assert objective_outline(70, "2024-05-14", TODAY) == OutlineClass.OVERDUE_YELLOW
    assert objective_outline(100, "2024-05-14", TODAY) == OutlineClass.OVERDUE_YELLOW


def test_objective_outline_not_yet_due():
    assert objective_outline(99, "2024-05-25", TODAY) == OutlineClass.ON_TRACK_BLUE
    assert objective_outline(70, "2024-05-25", TODAY) == OutlineClass.ON_TRACK_BLUE
    assert objective_outline(100, "2024-05-25", TODAY) == OutlineClass.COMPLETE_GREEN
    assert objective_outline(69, "2024-05-25", TODAY) is None


def test_objective_outline_without_target_date():
    assert objective_outline(100, None, TODAY) is None


def test_labels():
    assert status_label("on-track") == "On Track"
    assert status_label("off-track") == "Off Track"
    assert status_label("at-risk") == "At Risk"
    assert status_label("unknown") == "On Track"
    assert confidence_label("High") == "High"
    assert confidence_label(None) == "Medium"

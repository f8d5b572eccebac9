import os
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests away from the real data directory.
os.environ.setdefault("OKR_TRACKER_DATA_DIR", str(PROJECT_ROOT / ".pytest_data"))

TODAY = date(2024, 5, 15)


class FixedClock:
    """Deterministic clock; each call advances one second."""

    def __init__(self, start: datetime = datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def today():
    return TODAY

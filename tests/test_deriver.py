"""
FILE: tests/test_deriver.py
Unit tests for the pure status / temperature derivation functions.
"""

import pytest
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from nexuschain.checkpoints.deriver import (
    REGISTERED_STATUS,
    AlertType,
    StatusDerivationPolicy,
    classify_temperature,
    compute_temperature_alerts,
    derive_current_state,
    select_latest,
    sort_newest_first,
    supersedes,
)

T0 = datetime(2024, 6, 1, 12, 0, 0)


@dataclass
class FakeCheckpoint:
    location: str
    status: str = "IN_TRANSIT"
    timestamp: datetime = T0
    created_at: Optional[datetime] = None
    temperature: Optional[float] = None


@pytest.mark.unit
class TestClassifyTemperature:
    """classify_temperature()"""

    def test_within_range(self):
        assert classify_temperature(5.0, 2.0, 8.0) is None

    def test_bounds_are_compliant(self):
        assert classify_temperature(2.0, 2.0, 8.0) is None
        assert classify_temperature(8.0, 2.0, 8.0) is None

    def test_too_hot(self):
        alert = classify_temperature(10.0, 2.0, 8.0)

        assert alert.alert_type is AlertType.TOO_HOT
        assert alert.threshold == 8.0

    def test_too_cold(self):
        alert = classify_temperature(-1.0, 2.0, 8.0)

        assert alert.alert_type is AlertType.TOO_COLD
        assert alert.threshold == 2.0

    def test_missing_reading_never_flagged(self):
        assert classify_temperature(None, 2.0, 8.0) is None

    def test_zero_bound_is_respected(self):
        assert classify_temperature(-0.5, 0.0, None).alert_type is AlertType.TOO_COLD
        assert classify_temperature(0.5, None, 0.0).alert_type is AlertType.TOO_HOT

    def test_single_bound(self):
        assert classify_temperature(100.0, 2.0, None) is None
        assert classify_temperature(-100.0, None, 8.0) is None


@pytest.mark.unit
class TestComputeTemperatureAlerts:
    """compute_temperature_alerts()"""

    def test_no_range_yields_nothing(self):
        checkpoints = [FakeCheckpoint("A", temperature=99.0)]

        assert compute_temperature_alerts(checkpoints, None, None) == []

    def test_preserves_input_order(self):
        checkpoints = [
            FakeCheckpoint("A", temperature=10.0),
            FakeCheckpoint("B", temperature=5.0),
            FakeCheckpoint("C", temperature=1.0),
        ]

        result = compute_temperature_alerts(checkpoints, 2.0, 8.0)

        assert [(cp.location, alert.alert_type) for cp, alert in result] == [
            ("A", AlertType.TOO_HOT),
            ("C", AlertType.TOO_COLD),
        ]


@pytest.mark.unit
class TestOrdering:
    """sort_newest_first() / select_latest() / supersedes()"""

    def test_sort_by_timestamp_desc(self):
        checkpoints = [
            FakeCheckpoint("B", timestamp=T0 + timedelta(hours=1)),
            FakeCheckpoint("A", timestamp=T0),
            FakeCheckpoint("C", timestamp=T0 + timedelta(hours=2)),
        ]

        assert [cp.location for cp in sort_newest_first(checkpoints)] == ["C", "B", "A"]

    def test_ties_broken_by_creation(self):
        checkpoints = [
            FakeCheckpoint("first", created_at=T0),
            FakeCheckpoint("second", created_at=T0 + timedelta(seconds=1)),
        ]

        assert [cp.location for cp in sort_newest_first(checkpoints)] == ["second", "first"]

    def test_select_latest_by_policy(self):
        newer = FakeCheckpoint("newer", timestamp=T0 + timedelta(days=1), created_at=T0)
        backdated = FakeCheckpoint("backdated", timestamp=T0 - timedelta(days=1), created_at=T0 + timedelta(hours=1))

        assert select_latest([newer, backdated], StatusDerivationPolicy.LATEST_TIMESTAMP) is newer
        assert select_latest([newer, backdated], StatusDerivationPolicy.LAST_WRITE_WINS) is backdated

    def test_select_latest_empty(self):
        assert select_latest([]) is None

    def test_supersedes(self):
        current = FakeCheckpoint("current", timestamp=T0)
        older = FakeCheckpoint("older", timestamp=T0 - timedelta(minutes=1))
        same = FakeCheckpoint("same", timestamp=T0)

        assert supersedes(older, None) is True
        assert supersedes(older, current, StatusDerivationPolicy.LATEST_TIMESTAMP) is False
        assert supersedes(same, current, StatusDerivationPolicy.LATEST_TIMESTAMP) is True
        assert supersedes(older, current, StatusDerivationPolicy.LAST_WRITE_WINS) is True


@pytest.mark.unit
class TestDeriveCurrentState:
    """derive_current_state()"""

    def test_falls_back_to_origin(self):
        state = derive_current_state("Factory", [])

        assert state.status == REGISTERED_STATUS
        assert state.location == "Factory"

    def test_uses_latest_checkpoint(self):
        checkpoints = [
            FakeCheckpoint("Hub", status="IN_TRANSIT", timestamp=T0),
            FakeCheckpoint("Store", status="DELIVERED", timestamp=T0 + timedelta(hours=4)),
        ]

        state = derive_current_state("Factory", checkpoints)

        assert (state.status, state.location) == ("DELIVERED", "Store")

"""
Tests for taskboard_bulk.domain.progress -- percentage arithmetic, event
construction and terminal events.
"""

from datetime import datetime, timezone
from uuid import UUID

import pytest
from hypothesis import given
from hypothesis import strategies as st

from taskboard_kernel.exceptions import StoreFailureError

from taskboard_bulk.domain.progress import (
    Failed,
    Succeeded,
    batch_event,
    build_event,
    compute_percentage,
    make_operation_id,
    start_event,
    terminal_event,
)
from taskboard_bulk.domain.types import OperationType

TS = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)
PROJECT_ID = UUID("00000000-0000-4000-8000-000000000001")
OP = f"status_update_{PROJECT_ID}_1718443800"


class TestComputePercentage:
    @pytest.mark.parametrize("processed,total,expected", [
        (0, 0, 0.0),
        (5, 0, 0.0),
        (0, 10, 0.0),
        (1, 3, 33.3),
        (2, 3, 66.7),
        (1, 8, 12.5),
        (500, 1201, 41.6),
        (1201, 1201, 100.0),
    ])
    def test_one_decimal_half_up(self, processed, total, expected):
        assert compute_percentage(processed, total) == expected

    @given(
        total=st.integers(min_value=1, max_value=10_000),
        data=st.data(),
    )
    def test_monotonic(self, total, data):
        a = data.draw(st.integers(min_value=0, max_value=total))
        b = data.draw(st.integers(min_value=a, max_value=total))
        assert compute_percentage(a, total) <= compute_percentage(b, total)
        assert 0.0 <= compute_percentage(b, total) <= 100.0


class TestOperationId:
    def test_format(self):
        op_id = make_operation_id(OperationType.PRIORITY_UPDATE, PROJECT_ID, TS)
        assert op_id == f"priority_update_{PROJECT_ID}_{int(TS.timestamp())}"


class TestEvents:
    def test_start_event(self):
        event = start_event(OP, OperationType.DUE_DATE_UPDATE, 42, TS)
        assert event.processed == 0
        assert event.total == 42
        assert event.percentage == 0.0
        assert event.message == "Starting bulk due date update..."
        assert event.timestamp == TS.isoformat()
        assert not event.is_terminal

    def test_batch_event_message(self):
        event = batch_event(OP, OperationType.STATUS_UPDATE, 500, 1201, TS)
        assert event.message == "Updated 500 of 1201 tasks (41.6%)"
        assert event.percentage == 41.6

    def test_processed_capped_at_total(self):
        event = batch_event(OP, OperationType.STATUS_UPDATE, 12, 10, TS)
        assert event.processed == 10
        assert event.percentage == 100.0
        assert event.message == "Updated 10 of 10 tasks (100.0%)"

    def test_build_event_clamps_negative(self):
        event = build_event(OP, OperationType.STATUS_UPDATE, -3, 10, "m", TS)
        assert event.processed == 0

    def test_payload_has_exactly_nine_fields(self):
        payload = start_event(OP, OperationType.STATUS_UPDATE, 3, TS).to_payload()
        assert set(payload) == {
            "operation_id", "operation_type", "processed", "total", "percentage",
            "message", "completed", "error", "timestamp",
        }
        assert payload["operation_type"] == "status_update"


class TestTerminalEvent:
    def test_success(self):
        event = terminal_event(
            OP, OperationType.STATUS_UPDATE,
            Succeeded(total=3, message="Successfully updated 3 tasks to 'done'"),
            TS,
        )
        assert event.completed is True
        assert event.error is False
        assert event.processed == event.total == 3
        assert event.percentage == 100.0

    def test_success_with_zero_total(self):
        event = terminal_event(
            OP, OperationType.STATUS_UPDATE, Succeeded(total=0, message="ok"), TS,
        )
        assert event.completed is True
        assert event.percentage == 0.0

    def test_failure_keeps_counters(self):
        error = StoreFailureError(OP, "batch update", "disk full")
        event = terminal_event(
            OP, OperationType.PRIORITY_UPDATE,
            Failed(processed=500, total=1200, error=error),
            TS,
        )
        assert event.error is True
        assert event.completed is False
        assert event.processed == 500
        assert event.total == 1200
        assert event.percentage == 41.7
        assert event.message == "Error: Store failure during batch update: disk full"

    def test_unknown_outcome(self):
        with pytest.raises(TypeError):
            terminal_event(OP, OperationType.STATUS_UPDATE, object(), TS)  # type: ignore[arg-type]

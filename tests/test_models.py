from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from equipment_allocator.domain.models import STATUS_ALLOCATED, Equipment, EquipmentRequest
from equipment_allocator.utils.config import get_settings


def test_equipment_clone_is_an_equal_independent_value() -> None:
    original = Equipment(7, "Monitor", "monitor", total=4, available=3, cost_per_day=20)

    clone = original.clone()
    reduced = clone.with_available(1)

    assert clone == original
    assert clone is not original
    assert original.available == 3
    assert reduced.available == 1
    with pytest.raises(FrozenInstanceError):
        original.available = 0  # type: ignore[misc]


def test_mark_allocated_returns_a_new_request() -> None:
    request = EquipmentRequest("r-1", "P-1", "Dr. A", priority="low", equipment_type="pump")

    allocated = request.mark_allocated()

    assert request.is_pending
    assert not allocated.is_pending
    assert allocated.status == STATUS_ALLOCATED


@pytest.mark.parametrize(
    ("status", "expected"),
    [("Pending", True), ("pending", True), ("PENDING", True), (None, True), ("", True),
     ("Allocated", False), ("cancelled", False)],
)
def test_pending_detection(status, expected) -> None:
    request = EquipmentRequest(1, "P-1", "Dr. A", priority=1, equipment_id=1, status=status)

    assert request.is_pending is expected


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("ALLOCATION_DEFAULT_BUDGET", "1200")
    monkeypatch.setenv("ALLOCATION_MAX_TABLE_CELLS", "99")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.allocation_default_budget == 1200
        assert settings.allocation_max_table_cells == 99
    finally:
        get_settings.cache_clear()


def test_settings_reject_non_integer_budget(monkeypatch) -> None:
    monkeypatch.setenv("ALLOCATION_DEFAULT_BUDGET", "plenty")
    get_settings.cache_clear()
    try:
        with pytest.raises(ValueError, match="ALLOCATION_DEFAULT_BUDGET"):
            get_settings()
    finally:
        get_settings.cache_clear()

"""Domain-level validation rules applied before any allocator runs."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Any

from equipment_allocator.domain.models import Equipment, EquipmentRequest


class AllocationValidationError(Exception):
    """Raised when allocation inputs are structurally invalid."""


@dataclass(frozen=True)
class AllocationConfig:
    budget: int
    max_table_cells: int


def validate_allocation_config(config: AllocationConfig) -> None:
    if config.budget < 0:
        raise ValueError("budget must be >= 0")
    if config.max_table_cells <= 0:
        raise ValueError("max_table_cells must be > 0")


def _ensure_sequence(value: Any, name: str) -> None:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise AllocationValidationError(f"{name} must be a list, got {type(value).__name__}")


def validate_equipment(equipment: Any) -> None:
    _ensure_sequence(equipment, "equipment")
    seen_ids: set[Any] = set()
    for position, item in enumerate(equipment):
        if not isinstance(item, Equipment):
            raise AllocationValidationError(
                f"equipment[{position}] must be Equipment, got {type(item).__name__}"
            )
        if item.equipment_id in seen_ids:
            raise AllocationValidationError(
                f"duplicate equipment_id={item.equipment_id!r}"
            )
        seen_ids.add(item.equipment_id)
        if not isinstance(item.total, int) or not isinstance(item.available, int):
            raise AllocationValidationError(
                f"equipment_id={item.equipment_id!r} total/available must be integers"
            )
        if not 0 <= item.available <= item.total:
            raise AllocationValidationError(
                f"equipment_id={item.equipment_id!r} violates 0 <= available <= total"
            )
        if item.cost_per_day is not None and (
            isinstance(item.cost_per_day, bool)
            or not isinstance(item.cost_per_day, Real)
            or not math.isfinite(item.cost_per_day)
            or item.cost_per_day < 0
        ):
            raise AllocationValidationError(
                f"equipment_id={item.equipment_id!r} cost_per_day must be a non-negative number"
            )


def validate_requests(requests: Any) -> None:
    _ensure_sequence(requests, "requests")
    seen_ids: set[Any] = set()
    for position, item in enumerate(requests):
        if not isinstance(item, EquipmentRequest):
            raise AllocationValidationError(
                f"requests[{position}] must be EquipmentRequest, got {type(item).__name__}"
            )
        if item.request_id in seen_ids:
            raise AllocationValidationError(f"duplicate request_id={item.request_id!r}")
        seen_ids.add(item.request_id)
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise AllocationValidationError(
                f"request_id={item.request_id!r} quantity must be an integer >= 1"
            )


def normalize_budget(budget: Any) -> int:
    """Floor fractional budgets and clamp negatives to zero."""
    if isinstance(budget, bool) or not isinstance(budget, Real):
        raise AllocationValidationError(f"budget must be a number, got {budget!r}")
    if isinstance(budget, float) and not math.isfinite(budget):
        raise AllocationValidationError("budget must be finite")
    return max(0, math.floor(budget))


def dp_weight(cost: float) -> int:
    """Integer spend used by the knapsack table; fractional costs round up."""
    return int(math.ceil(cost))


def validate_table_size(item_count: int, budget: int, max_table_cells: int) -> None:
    cells = (item_count + 1) * (budget + 1)
    if cells > max_table_cells:
        raise AllocationValidationError(
            f"knapsack table of {item_count + 1} x {budget + 1} cells exceeds "
            f"max_table_cells={max_table_cells}"
        )

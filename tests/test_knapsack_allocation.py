from __future__ import annotations

from datetime import datetime, timezone
from itertools import combinations

import pytest

from equipment_allocator.domain.constraints import AllocationValidationError
from equipment_allocator.domain.models import STATUS_ALLOCATED, Equipment, EquipmentRequest
from equipment_allocator.services.inventory import WorkingInventory
from equipment_allocator.services.knapsack_service import (
    AllocationCancelledError,
    KnapsackItem,
    backtrack_selection,
    build_dp_table,
    build_knapsack_items,
    knapsack_allocation,
)
from equipment_allocator.utils.clock import FixedClock


START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _clock() -> FixedClock:
    return FixedClock(START)


def _equipment(equipment_id, cost, available=5, equipment_type=None):
    return Equipment(
        equipment_id=equipment_id,
        name=f"unit-{equipment_id}",
        equipment_type=equipment_type or f"type-{equipment_id}",
        total=available,
        available=available,
        cost_per_day=cost,
    )


def _request(request_id, priority, equipment_id, quantity=1, timestamp=0.0, **overrides):
    fields = {
        "request_id": request_id,
        "patient": f"patient-{request_id}",
        "doctor": "Dr. Okafor",
        "priority": priority,
        "quantity": quantity,
        "equipment_id": equipment_id,
        "timestamp": timestamp,
    }
    fields.update(overrides)
    return EquipmentRequest(**fields)


def _brute_force_best(items: list[KnapsackItem], budget: int) -> int:
    best = 0
    for size in range(len(items) + 1):
        for subset in combinations(items, size):
            if sum(item.weight for item in subset) <= budget:
                best = max(best, sum(item.value for item in subset))
    return best


def test_optimal_subset_beats_single_expensive_item() -> None:
    equipment = [_equipment(1, cost=100), _equipment(2, cost=200), _equipment(3, cost=150)]
    requests = [
        _request(1, priority="Critical", equipment_id=1),
        _request(2, priority="High", equipment_id=2),
        _request(3, priority="Medium", equipment_id=3),
    ]

    result = knapsack_allocation(requests, equipment, 250, clock=_clock())

    assert sorted(allocation.request_id for allocation in result.allocations) == [1, 3]
    assert result.total_cost == 250
    assert result.total_value == 1600
    assert result.max_value == 1600
    assert result.budget_remaining == 0
    assert all(allocation.algorithm == "knapsack" for allocation in result.allocations)
    assert {allocation.request_id: allocation.value for allocation in result.allocations} == {
        1: 1000,
        3: 600,
    }


def test_zero_budget_returns_empty_result() -> None:
    equipment = [_equipment(1, cost=0)]
    requests = [_request(1, priority=1, equipment_id=1)]

    result = knapsack_allocation(requests, equipment, 0, clock=_clock())

    assert result.allocations == []
    assert result.budget_remaining == 0
    assert result.total_cost == 0
    assert result.failed_request_ids == [1]


def test_negative_budget_is_clamped() -> None:
    equipment = [_equipment(1, cost=10)]

    result = knapsack_allocation([_request(1, 1, 1)], equipment, -50, clock=_clock())

    assert result.budget == 0
    assert result.allocations == []


def test_all_items_over_budget_explains_early_exit() -> None:
    equipment = [_equipment(1, cost=500), _equipment(2, cost=900)]
    requests = [_request(1, 1, 1), _request(2, 2, 2)]

    result = knapsack_allocation(requests, equipment, 400, clock=_clock())

    assert result.allocations == []
    assert result.budget_remaining == 400
    descriptions = [step.description for step in result.step_trace]
    assert "No affordable requests within budget" in descriptions
    skipped = [step.data for step in result.step_trace if step.complexity == "Skipped"]
    assert skipped == ["Cost $500 exceeds budget $400", "Cost $900 exceeds budget $400"]


def test_zero_cost_items_are_selectable() -> None:
    equipment = [_equipment(1, cost=0), _equipment(2, cost=100)]
    requests = [_request(1, priority=4, equipment_id=1), _request(2, priority=1, equipment_id=2)]

    result = knapsack_allocation(requests, equipment, 100, clock=_clock())

    assert sorted(allocation.request_id for allocation in result.allocations) == [1, 2]
    valuation = result.step_trace[1].data
    assert {row["request_id"]: row["ratio"] for row in valuation} == {1: 0.0, 2: 10.0}


def test_feasibility_and_optimality_against_brute_force() -> None:
    costs = [120, 75, 310, 45, 200, 90, 160]
    priorities = [1, "low", 2, "MEDIUM", 3, 4, "critical"]
    equipment = [_equipment(i, cost=cost) for i, cost in enumerate(costs)]
    requests = [
        _request(i, priority=priority, equipment_id=i, timestamp=float(i))
        for i, priority in enumerate(priorities)
    ]

    for budget in (0, 50, 199, 400, 637, 1000):
        result = knapsack_allocation(requests, equipment, budget, clock=_clock())
        inventory = WorkingInventory(equipment, requests)
        items, _ = build_knapsack_items(inventory.pending_requests(), inventory, budget)

        assert result.total_cost <= budget
        if budget > 0:
            assert result.total_value == _brute_force_best(items, budget)


def test_keep_flags_drive_backtracking_on_value_ties() -> None:
    equipment = [_equipment(1, cost=50), _equipment(2, cost=50)]
    inventory = WorkingInventory(equipment, [_request(1, 2, 1), _request(2, 2, 2)])
    items, _ = build_knapsack_items(inventory.pending_requests(), inventory, 50)

    dp, keep = build_dp_table(items, 50)
    selected = backtrack_selection(items, keep, 50)

    assert dp[2][50] == 800
    assert keep[2][50] is False
    assert selected == [0]


def test_contention_on_single_unit_fails_second_commit() -> None:
    equipment = [_equipment(1, cost=100, available=1)]
    requests = [
        _request(1, priority=2, equipment_id=1, timestamp=1.0),
        _request(2, priority=1, equipment_id=1, timestamp=2.0),
    ]

    result = knapsack_allocation(requests, equipment, 500, clock=_clock())

    assert result.max_value == 1800
    assert [allocation.request_id for allocation in result.allocations] == [2]
    assert result.total_value == 1000
    assert result.total_cost == 100
    assert result.budget_remaining == 400
    assert result.updated_equipment[0].available == 0
    assert result.failed_request_ids == [1]
    statuses = {request.request_id: request.status for request in result.updated_requests}
    assert statuses == {1: "Pending", 2: STATUS_ALLOCATED}


def test_requests_exceeding_starting_availability_are_ineligible() -> None:
    equipment = [_equipment(1, cost=10, available=1)]

    result = knapsack_allocation([_request(1, 1, 1, quantity=2)], equipment, 100, clock=_clock())

    assert result.allocations == []
    assert any(step.data == "Available: 1, Needed: 2" for step in result.step_trace)


def test_type_resolution_and_fractional_costs() -> None:
    equipment = [_equipment(1, cost=33.4, equipment_type="pump")]
    requests = [
        _request(1, priority=1, equipment_id=None, equipment_type="pump", quantity=3),
    ]

    result = knapsack_allocation(requests, equipment, 101, clock=_clock())

    assert len(result.allocations) == 1
    assert result.allocations[0].cost == pytest.approx(100.2)
    assert result.budget_remaining == pytest.approx(0.8)


def test_fractional_cost_that_rounds_over_budget_is_rejected() -> None:
    equipment = [_equipment(1, cost=100.5)]

    result = knapsack_allocation([_request(1, 1, 1)], equipment, 100, clock=_clock())

    assert result.allocations == []
    assert result.total_cost <= 100


def test_inputs_are_not_mutated() -> None:
    equipment = [_equipment(1, cost=10, available=1)]
    requests = [_request(1, 1, 1)]

    knapsack_allocation(requests, equipment, 100, clock=_clock())

    assert equipment[0].available == 1
    assert requests[0].status == "Pending"


def test_trace_covers_every_phase_in_order() -> None:
    equipment = [_equipment(1, cost=100), _equipment(2, cost=150)]
    requests = [_request(1, 1, 1), _request(2, 3, 2)]

    result = knapsack_allocation(requests, equipment, 250, clock=_clock())

    descriptions = [step.description for step in result.step_trace]
    assert descriptions[0] == "Initialize Knapsack Algorithm"
    assert descriptions[1] == "Calculate value and cost for each request"
    assert descriptions[2] == "Build Dynamic Programming table"
    assert result.step_trace[2].data == "Table size: 3 x 251"
    assert descriptions[3] == "DP table filled - finding optimal solution"
    assert "Backtrack to find selected requests" in descriptions
    assert descriptions[-1] == "Knapsack Algorithm Complete"
    assert [step.step for step in result.step_trace] == list(range(1, len(descriptions) + 1))


def test_table_size_guard_rejects_oversized_runs() -> None:
    equipment = [_equipment(1, cost=10)]

    with pytest.raises(AllocationValidationError, match="max_table_cells"):
        knapsack_allocation([_request(1, 1, 1)], equipment, 10_000, max_table_cells=100)


def test_cancellation_between_rows() -> None:
    equipment = [_equipment(i, cost=10) for i in range(3)]
    requests = [_request(i, 1, i) for i in range(3)]
    calls = []

    def should_cancel() -> bool:
        calls.append(1)
        return len(calls) > 1

    with pytest.raises(AllocationCancelledError, match="row 2 of 3"):
        knapsack_allocation(requests, equipment, 100, clock=_clock(), should_cancel=should_cancel)

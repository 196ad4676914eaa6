"""Budget-constrained 0/1 knapsack equipment allocation.

Each pending request is an item whose weight is its integer cost and whose
value is its priority utility. The table ``dp[i][w]`` holds the best value
reachable with the first ``i`` items and spend ``<= w``; a parallel ``keep``
table records whether item ``i`` was taken at ``(i, w)`` so backtracking does
not depend on comparing values that may tie.

The table only models money. Two selected items can still compete for the
same equipment units; those are committed in urgency order and an item that
loses the contention fails at commit time, so its value and cost are not
counted in the committed totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from equipment_allocator.domain.constraints import (
    dp_weight,
    normalize_budget,
    validate_equipment,
    validate_requests,
    validate_table_size,
)
from equipment_allocator.domain.models import (
    ALGORITHM_KNAPSACK,
    Allocation,
    AllocationResult,
    Equipment,
    EquipmentRequest,
)
from equipment_allocator.domain.priority import ordering_key_of, priority_label, utility_value_of
from equipment_allocator.services.inventory import WorkingInventory, build_allocation_id, cost_of
from equipment_allocator.services.step_trace import StepTraceRecorder
from equipment_allocator.utils.clock import Clock, SystemClock
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)


class AllocationCancelledError(Exception):
    """Raised when a caller cancels the knapsack table fill."""


@dataclass(frozen=True)
class KnapsackItem:
    request: EquipmentRequest
    equipment: Equipment
    cost: float
    weight: int
    value: int

    @property
    def ratio(self) -> float:
        return self.value / self.cost if self.cost > 0 else 0.0


def build_knapsack_items(
    pending: Sequence[EquipmentRequest],
    inventory: WorkingInventory,
    budget: int,
) -> tuple[list[KnapsackItem], dict[int | str, str]]:
    """Value each pending request and split eligible items from rejected ones."""
    items: list[KnapsackItem] = []
    rejected: dict[int | str, str] = {}
    for request in pending:
        equipment = inventory.resolve(request)
        if equipment is None:
            rejected[request.request_id] = "Equipment not found"
            continue
        if equipment.available < request.quantity:
            rejected[request.request_id] = (
                f"Available: {equipment.available}, Needed: {request.quantity}"
            )
            continue
        cost = cost_of(equipment, request.quantity)
        weight = dp_weight(cost)
        if weight > budget:
            rejected[request.request_id] = f"Cost ${cost} exceeds budget ${budget}"
            continue
        items.append(
            KnapsackItem(
                request=request,
                equipment=equipment,
                cost=cost,
                weight=weight,
                value=utility_value_of(request.priority),
            )
        )
    return items, rejected


def build_dp_table(
    items: Sequence[KnapsackItem],
    budget: int,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> tuple[list[list[int]], list[list[bool]]]:
    """Fill the value table and keep flags for ``len(items)`` x ``budget``."""
    n = len(items)
    dp = [[0] * (budget + 1) for _ in range(n + 1)]
    keep = [[False] * (budget + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        if should_cancel is not None and should_cancel():
            raise AllocationCancelledError(f"knapsack table fill cancelled at row {i} of {n}")
        weight = items[i - 1].weight
        value = items[i - 1].value
        previous = dp[i - 1]
        row = dp[i]
        keep_row = keep[i]
        for w in range(budget + 1):
            row[w] = previous[w]
            if weight <= w:
                include_value = previous[w - weight] + value
                if include_value > previous[w]:
                    row[w] = include_value
                    keep_row[w] = True
    return dp, keep


def backtrack_selection(
    items: Sequence[KnapsackItem],
    keep: Sequence[Sequence[bool]],
    budget: int,
) -> list[int]:
    """Walk the keep flags from ``(n, budget)``; returns selected item indexes, last first."""
    selected: list[int] = []
    w = budget
    for i in range(len(items), 0, -1):
        if keep[i][w]:
            selected.append(i - 1)
            w -= items[i - 1].weight
    return selected


def knapsack_allocation(
    requests: Sequence[EquipmentRequest],
    equipment: Sequence[Equipment],
    budget: float,
    *,
    clock: Optional[Clock] = None,
    max_table_cells: Optional[int] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> AllocationResult:
    validate_requests(requests)
    validate_equipment(equipment)
    normalized_budget = normalize_budget(budget)
    if normalized_budget != budget:
        logger.warning(
            "Knapsack budget normalized | requested=%s | effective=%s",
            budget,
            normalized_budget,
        )
    budget = normalized_budget
    clock = clock or SystemClock()

    inventory = WorkingInventory(equipment, requests)
    trace = StepTraceRecorder()
    pending = inventory.pending_requests()

    trace.record(
        "Initialize Knapsack Algorithm",
        f"Found {len(pending)} pending requests, Budget: ${budget}",
        "O(1) - Initialization",
    )

    items, rejected = build_knapsack_items(pending, inventory, budget)
    trace.record(
        "Calculate value and cost for each request",
        [
            {
                "request_id": item.request.request_id,
                "equipment_id": item.equipment.equipment_id,
                "patient": item.request.patient,
                "priority": priority_label(item.request.priority),
                "cost": item.cost,
                "value": item.value,
                "ratio": item.ratio,
            }
            for item in items
        ],
        "O(n) - Linear scan",
    )
    for request_id, reason in rejected.items():
        trace.record(
            f"Request #{request_id} is not eligible",
            reason,
            "Skipped",
        )

    if not items or budget <= 0:
        if budget <= 0:
            reason = f"Budget: ${budget} insufficient"
        elif not pending:
            reason = "No pending requests"
        else:
            reason = f"No eligible requests within budget ${budget}"
        trace.record(
            "No affordable requests within budget",
            reason,
            "Complete",
        )
        logger.info(
            "Knapsack allocation skipped | pending_requests=%s | eligible_items=%s | budget=%s",
            len(pending),
            len(items),
            budget,
        )
        return AllocationResult(
            algorithm=ALGORITHM_KNAPSACK,
            allocations=[],
            updated_equipment=inventory.equipment,
            updated_requests=inventory.requests,
            step_trace=trace.as_list(),
            pending_count=len(pending),
            failed_request_ids=[request.request_id for request in pending],
            budget=budget,
            budget_remaining=budget,
            max_value=0,
        )

    n = len(items)
    if max_table_cells is not None:
        validate_table_size(n, budget, max_table_cells)

    trace.record(
        "Build Dynamic Programming table",
        f"Table size: {n + 1} x {budget + 1}",
        "O(n x W) - DP table construction",
    )
    dp, keep = build_dp_table(items, budget, should_cancel=should_cancel)
    max_value = dp[n][budget]
    trace.record(
        "DP table filled - finding optimal solution",
        f"Maximum value achievable: {max_value}",
        "O(n x W) - Filling table",
    )

    selected = backtrack_selection(items, keep, budget)
    running_budget = budget
    for index in selected:
        item = items[index]
        running_budget -= item.weight
        trace.record(
            f"Selected request #{item.request.request_id} for {item.request.patient}",
            f"Cost: ${item.cost}, Value: {item.value}, Remaining: ${running_budget}",
            "O(1) - Backtracking step",
        )
    trace.record(
        "Backtrack to find selected requests",
        f"Selected {len(selected)} requests",
        "O(n) - Backtracking",
    )

    commit_order = sorted(
        (items[index] for index in selected),
        key=lambda item: (ordering_key_of(item.request.priority), item.request.timestamp),
    )
    allocations: list[Allocation] = []
    for item in commit_order:
        allocated_at = clock.now()
        allocation = inventory.commit(
            request=item.request,
            equipment_id=item.equipment.equipment_id,
            algorithm=ALGORITHM_KNAPSACK,
            allocation_id=build_allocation_id(ALGORITHM_KNAPSACK, allocated_at, len(allocations)),
            allocated_at=allocated_at,
            value=item.value,
        )
        if allocation is None:
            current = inventory.current(item.equipment.equipment_id)
            logger.warning(
                "Knapsack commit failed on equipment contention | request_id=%s | "
                "equipment_id=%s | available=%s | needed=%s",
                item.request.request_id,
                current.equipment_id,
                current.available,
                item.request.quantity,
            )
            trace.record(
                f"Allocation failed for {item.request.patient}",
                f"Available: {current.available}, Needed: {item.request.quantity}",
                "Failed",
            )
            continue
        allocations.append(allocation)
        trace.record(
            f"Allocated {allocation.equipment_name} to {item.request.patient}",
            f"Cost: ${allocation.cost}, Value: {item.value}, Priority: {allocation.priority_label}",
            "Success",
        )

    total_cost = sum(allocation.cost for allocation in allocations)
    total_value = sum(allocation.value or 0 for allocation in allocations)
    budget_remaining = budget - total_cost
    allocated_ids = {allocation.request_id for allocation in allocations}
    failed_request_ids = [
        request.request_id
        for request in pending
        if request.request_id not in allocated_ids
    ]

    trace.record(
        "Knapsack Algorithm Complete",
        (
            f"Allocated {len(allocations)} requests | Total Cost: ${total_cost} | "
            f"Total Value: {total_value} | Budget Remaining: ${budget_remaining}"
        ),
        f"Overall Time Complexity: O(n x W) = O({n} x {budget})",
    )
    logger.info(
        (
            "Knapsack allocation completed | allocations=%s | max_value=%s | "
            "total_value=%s | total_cost=%s | budget_remaining=%s"
        ),
        len(allocations),
        max_value,
        total_value,
        total_cost,
        budget_remaining,
    )
    return AllocationResult(
        algorithm=ALGORITHM_KNAPSACK,
        allocations=allocations,
        updated_equipment=inventory.equipment,
        updated_requests=inventory.requests,
        step_trace=trace.as_list(),
        pending_count=len(pending),
        failed_request_ids=failed_request_ids,
        total_cost=total_cost,
        total_value=total_value,
        budget=budget,
        budget_remaining=budget_remaining,
        max_value=max_value,
    )

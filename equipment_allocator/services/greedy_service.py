"""Priority-greedy equipment allocation without budget awareness."""

from __future__ import annotations

from typing import Optional, Sequence

from equipment_allocator.domain.constraints import validate_equipment, validate_requests
from equipment_allocator.domain.models import (
    ALGORITHM_GREEDY,
    Allocation,
    AllocationResult,
    Equipment,
    EquipmentRequest,
)
from equipment_allocator.domain.priority import ordering_key_of, priority_label
from equipment_allocator.services.inventory import WorkingInventory, build_allocation_id
from equipment_allocator.services.step_trace import StepTraceRecorder
from equipment_allocator.utils.clock import Clock, SystemClock
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)


def sort_by_urgency(requests: Sequence[EquipmentRequest]) -> list[EquipmentRequest]:
    """Most urgent first, first-come-first-served within a tier (stable)."""
    return sorted(
        requests,
        key=lambda request: (ordering_key_of(request.priority), request.timestamp),
    )


def greedy_allocation(
    requests: Sequence[EquipmentRequest],
    equipment: Sequence[Equipment],
    *,
    clock: Optional[Clock] = None,
) -> AllocationResult:
    """Allocate pending requests strictly by urgency until availability runs out.

    Each commit decrements the working availability immediately, so later
    requests in the same pass see what earlier ones consumed. Requests that
    cannot be served are recorded as failed and the pass continues.
    """
    validate_requests(requests)
    validate_equipment(equipment)
    clock = clock or SystemClock()

    inventory = WorkingInventory(equipment, requests)
    trace = StepTraceRecorder()
    pending = sort_by_urgency(inventory.pending_requests())

    trace.record(
        "Sort requests by priority (Critical > High > Medium > Low)",
        f"Found {len(pending)} pending requests, sorted by priority",
        "O(n log n) - Sorting operation",
    )

    if not pending:
        trace.record(
            "No pending requests",
            "Nothing to allocate",
            "Complete",
        )
        logger.info("Greedy allocation skipped | pending_requests=0")
        return AllocationResult(
            algorithm=ALGORITHM_GREEDY,
            allocations=[],
            updated_equipment=inventory.equipment,
            updated_requests=inventory.requests,
            step_trace=trace.as_list(),
            pending_count=0,
        )

    allocations: list[Allocation] = []
    failed_request_ids: list[int | str] = []
    for request in pending:
        label = priority_label(request.priority)
        trace.record(
            f"Process request #{request.request_id} - "
            f"{request.equipment_name or request.equipment_type or request.equipment_id}",
            f"Priority: {label}, Patient: {request.patient}",
            "O(1) - Constant time check",
        )

        target = inventory.resolve(request)
        if target is None:
            failed_request_ids.append(request.request_id)
            trace.record(
                f"Allocation failed for {request.patient}",
                "Equipment not found",
                "Failed",
            )
            continue

        allocated_at = clock.now()
        allocation = inventory.commit(
            request=request,
            equipment_id=target.equipment_id,
            algorithm=ALGORITHM_GREEDY,
            allocation_id=build_allocation_id(ALGORITHM_GREEDY, allocated_at, len(allocations)),
            allocated_at=allocated_at,
        )
        if allocation is None:
            failed_request_ids.append(request.request_id)
            trace.record(
                f"Allocation failed for {request.patient}",
                f"Available: {target.available}, Needed: {request.quantity}",
                "Failed",
            )
            continue

        allocations.append(allocation)
        remaining = inventory.current(target.equipment_id)
        trace.record(
            f"Successfully allocated {remaining.name} to {request.patient}",
            (
                f"Priority: {label}, Cost: ${allocation.cost}, "
                f"Remaining: {remaining.available}/{remaining.total}"
            ),
            "Success",
        )

    total_cost = sum(allocation.cost for allocation in allocations)
    trace.record(
        "Algorithm Complete",
        f"Successfully allocated {len(allocations)} out of {len(pending)} requests",
        "Overall Time Complexity: O(n log n)",
    )
    logger.info(
        "Greedy allocation completed | allocations=%s | failed=%s | total_cost=%s",
        len(allocations),
        len(failed_request_ids),
        total_cost,
    )
    return AllocationResult(
        algorithm=ALGORITHM_GREEDY,
        allocations=allocations,
        updated_equipment=inventory.equipment,
        updated_requests=inventory.requests,
        step_trace=trace.as_list(),
        pending_count=len(pending),
        failed_request_ids=failed_request_ids,
        total_cost=total_cost,
    )

"""Side-by-side greedy vs knapsack comparison isolated from live inventory.

Each algorithm runs against its own cloned snapshot of the caller's equipment
and requests. Neither run observes the other's commits and the caller's
collections are left untouched; the comparison is a simulation and never
merges results back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence
from uuid import uuid4

from equipment_allocator.domain.constraints import (
    AllocationValidationError,
    validate_equipment,
    validate_requests,
)
from equipment_allocator.domain.models import (
    ALGORITHM_GREEDY,
    ALGORITHM_KNAPSACK,
    AllocationResult,
    Equipment,
    EquipmentRequest,
)
from equipment_allocator.services.allocation_service import EquipmentAllocationService
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)

WINNER_TIE = "tie"


class ComparisonValidationError(Exception):
    """Raised when comparison inputs cannot be simulated."""


@dataclass(frozen=True)
class AlgorithmMetrics:
    algorithm: str
    allocation_count: int
    total_cost: float
    total_value: Optional[int]
    efficiency: float
    budget_remaining: Optional[float]

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "allocation_count": self.allocation_count,
            "total_cost": self.total_cost,
            "total_value": self.total_value,
            "efficiency": self.efficiency,
            "budget_remaining": self.budget_remaining,
        }


@dataclass(frozen=True)
class ComparisonReport:
    run_id: str
    pending_count: int
    budget: int
    greedy: AlgorithmMetrics
    knapsack: AlgorithmMetrics
    winner: str
    reason: str
    greedy_result: AllocationResult
    knapsack_result: AllocationResult

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "pending_count": self.pending_count,
            "budget": self.budget,
            "greedy": self.greedy.to_api_dict(),
            "knapsack": self.knapsack.to_api_dict(),
            "winner": self.winner,
            "reason": self.reason,
            "greedy_result": self.greedy_result.to_api_dict(),
            "knapsack_result": self.knapsack_result.to_api_dict(),
        }


def snapshot(
    requests: Sequence[EquipmentRequest],
    equipment: Sequence[Equipment],
) -> tuple[list[EquipmentRequest], list[Equipment]]:
    return [item.clone() for item in requests], [item.clone() for item in equipment]


def compute_metrics(result: AllocationResult, pending_count: int) -> AlgorithmMetrics:
    is_knapsack = result.algorithm == ALGORITHM_KNAPSACK
    return AlgorithmMetrics(
        algorithm=result.algorithm,
        allocation_count=len(result.allocations),
        total_cost=float(result.total_cost),
        total_value=result.total_value if is_knapsack else None,
        efficiency=len(result.allocations) / max(pending_count, 1),
        budget_remaining=float(result.budget_remaining) if is_knapsack else None,
    )


def determine_winner(greedy: AlgorithmMetrics, knapsack: AlgorithmMetrics) -> tuple[str, str]:
    """More allocations wins; equal counts are a tie."""
    if greedy.allocation_count > knapsack.allocation_count:
        return ALGORITHM_GREEDY, "More allocations made"
    if knapsack.allocation_count > greedy.allocation_count:
        return ALGORITHM_KNAPSACK, "More allocations within budget"
    return WINNER_TIE, "Equal number of allocations"


class AlgorithmComparisonService:
    """Runs both allocators on independent snapshots and reports metrics."""

    def __init__(self, allocation_service: Optional[EquipmentAllocationService] = None) -> None:
        self._allocation_service = allocation_service or EquipmentAllocationService()

    def _validate_inputs(
        self,
        requests: Sequence[EquipmentRequest],
        equipment: Sequence[Equipment],
    ) -> int:
        try:
            validate_requests(requests)
            validate_equipment(equipment)
        except AllocationValidationError as exc:
            raise ComparisonValidationError(str(exc)) from exc

        pending_count = sum(1 for request in requests if request.is_pending)
        if pending_count == 0:
            raise ComparisonValidationError(
                f"No pending requests found. Total requests: {len(requests)}"
            )
        return pending_count

    def compare(
        self,
        requests: Sequence[EquipmentRequest],
        equipment: Sequence[Equipment],
        budget: Optional[float] = None,
    ) -> ComparisonReport:
        pending_count = self._validate_inputs(requests, equipment)
        run_id = str(uuid4())
        logger.info(
            "Algorithm comparison started | run_id=%s | pending_requests=%s | equipment=%s | budget=%s",
            run_id,
            pending_count,
            len(equipment),
            budget,
        )

        try:
            greedy_requests, greedy_equipment = snapshot(requests, equipment)
            greedy_result = self._allocation_service.allocate_greedy(
                greedy_requests,
                greedy_equipment,
            )
            knapsack_requests, knapsack_equipment = snapshot(requests, equipment)
            knapsack_result = self._allocation_service.allocate_knapsack(
                knapsack_requests,
                knapsack_equipment,
                budget=budget,
            )
        except AllocationValidationError as exc:
            raise ComparisonValidationError(str(exc)) from exc

        greedy_metrics = compute_metrics(greedy_result, pending_count)
        knapsack_metrics = compute_metrics(knapsack_result, pending_count)
        winner, reason = determine_winner(greedy_metrics, knapsack_metrics)

        logger.info(
            (
                "Algorithm comparison completed | run_id=%s | greedy_allocations=%s | "
                "knapsack_allocations=%s | winner=%s"
            ),
            run_id,
            greedy_metrics.allocation_count,
            knapsack_metrics.allocation_count,
            winner,
        )
        return ComparisonReport(
            run_id=run_id,
            pending_count=pending_count,
            budget=knapsack_result.budget if knapsack_result.budget is not None else 0,
            greedy=greedy_metrics,
            knapsack=knapsack_metrics,
            winner=winner,
            reason=reason,
            greedy_result=greedy_result,
            knapsack_result=knapsack_result,
        )

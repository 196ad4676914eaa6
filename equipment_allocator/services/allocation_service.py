"""Allocation orchestration: settings, clock and validation around both allocators."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from equipment_allocator.domain.constraints import (
    AllocationConfig,
    AllocationValidationError,
    normalize_budget,
    validate_allocation_config,
)
from equipment_allocator.domain.models import AllocationResult, Equipment, EquipmentRequest
from equipment_allocator.services.greedy_service import greedy_allocation
from equipment_allocator.services.knapsack_service import knapsack_allocation
from equipment_allocator.utils.clock import Clock, SystemClock
from equipment_allocator.utils.config import Settings, get_settings
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)


class EquipmentAllocationService:
    """Runs the greedy and knapsack allocators with project settings applied.

    Results are returned to the caller, never merged into any inventory; the
    caller decides whether to commit ``updated_equipment``/``updated_requests``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or SystemClock()

    def build_config(self, budget: Optional[float] = None) -> AllocationConfig:
        config = AllocationConfig(
            budget=normalize_budget(
                budget if budget is not None else self._settings.allocation_default_budget
            ),
            max_table_cells=self._settings.allocation_max_table_cells,
        )
        try:
            validate_allocation_config(config)
        except ValueError as exc:
            raise AllocationValidationError(str(exc)) from exc
        return config

    def allocate_greedy(
        self,
        requests: Sequence[EquipmentRequest],
        equipment: Sequence[Equipment],
    ) -> AllocationResult:
        return greedy_allocation(requests, equipment, clock=self._clock)

    def allocate_knapsack(
        self,
        requests: Sequence[EquipmentRequest],
        equipment: Sequence[Equipment],
        budget: Optional[float] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> AllocationResult:
        config = self.build_config(budget)
        if budget is not None and config.budget != budget:
            logger.warning(
                "Knapsack budget normalized | requested=%s | effective=%s",
                budget,
                config.budget,
            )
        return knapsack_allocation(
            requests,
            equipment,
            config.budget,
            clock=self._clock,
            max_table_cells=config.max_table_cells,
            should_cancel=should_cancel,
        )

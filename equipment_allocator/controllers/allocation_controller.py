"""HTTP controller layer for greedy/knapsack allocation and comparison."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from equipment_allocator.controllers.dependencies import (
    get_allocation_service,
    get_comparison_service,
)
from equipment_allocator.domain.constraints import AllocationValidationError
from equipment_allocator.domain.models import STATUS_PENDING, Equipment, EquipmentRequest
from equipment_allocator.services.allocation_service import EquipmentAllocationService
from equipment_allocator.services.comparison_service import (
    AlgorithmComparisonService,
    ComparisonValidationError,
)
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["allocation"])


class EquipmentPayload(BaseModel):
    """Equipment record validated before entering the service layer."""

    equipment_id: int | str
    name: str = Field(min_length=1)
    equipment_type: str = Field(min_length=1)
    total: int = Field(ge=0)
    available: int = Field(ge=0)
    cost_per_day: float = Field(default=0.0, ge=0.0)
    location: str | None = None

    @model_validator(mode="after")
    def validate_available_within_total(self) -> "EquipmentPayload":
        if self.available > self.total:
            raise ValueError("available must not exceed total")
        return self

    def to_domain(self) -> Equipment:
        return Equipment(
            equipment_id=self.equipment_id,
            name=self.name,
            equipment_type=self.equipment_type,
            total=self.total,
            available=self.available,
            cost_per_day=self.cost_per_day,
            location=self.location,
        )


class RequestPayload(BaseModel):
    request_id: int | str
    patient: str = Field(min_length=1)
    doctor: str = Field(min_length=1)
    priority: int | str = 4
    quantity: int = Field(default=1, ge=1)
    equipment_id: int | str | None = None
    equipment_type: str | None = None
    equipment_name: str | None = None
    status: str | None = STATUS_PENDING
    timestamp: float = 0.0

    @model_validator(mode="after")
    def validate_equipment_reference(self) -> "RequestPayload":
        if self.equipment_id is None and not self.equipment_type:
            raise ValueError("either equipment_id or equipment_type is required")
        return self

    def to_domain(self) -> EquipmentRequest:
        return EquipmentRequest(
            request_id=self.request_id,
            patient=self.patient,
            doctor=self.doctor,
            priority=self.priority,
            quantity=self.quantity,
            equipment_id=self.equipment_id,
            equipment_type=self.equipment_type,
            equipment_name=self.equipment_name,
            status=self.status,
            timestamp=self.timestamp,
        )


class GreedyAllocationRequest(BaseModel):
    requests: list[RequestPayload]
    equipment: list[EquipmentPayload]


class BudgetedAllocationRequest(GreedyAllocationRequest):
    budget: float | None = Field(default=None)


class AllocationResponse(BaseModel):
    allocation_id: str
    request_id: int | str
    equipment_id: int | str
    equipment_name: str
    equipment_type: str
    patient: str
    doctor: str
    quantity: int = Field(ge=1)
    cost: float = Field(ge=0.0)
    value: int | None = None
    priority: int | str
    priority_label: str
    algorithm: str
    allocated_at: datetime
    status: str


class RequestStatusResponse(BaseModel):
    request_id: int | str
    status: str | None


class TraceStepResponse(BaseModel):
    step: int = Field(ge=1)
    description: str
    data: Any
    complexity: str


class AllocationResultResponse(BaseModel):
    algorithm: str
    allocations: list[AllocationResponse]
    updated_equipment: list[EquipmentPayload]
    updated_requests: list[RequestStatusResponse]
    step_trace: list[TraceStepResponse]
    pending_count: int = Field(ge=0)
    failed_request_ids: list[int | str]
    total_cost: float = Field(ge=0.0)
    total_value: int = Field(ge=0)
    budget: int | None = None
    budget_remaining: float | None = None
    max_value: int | None = None


class AlgorithmMetricsResponse(BaseModel):
    algorithm: str
    allocation_count: int = Field(ge=0)
    total_cost: float = Field(ge=0.0)
    total_value: int | None = None
    efficiency: float = Field(ge=0.0, le=1.0)
    budget_remaining: float | None = None


class ComparisonResponse(BaseModel):
    run_id: str
    pending_count: int = Field(ge=1)
    budget: int = Field(ge=0)
    greedy: AlgorithmMetricsResponse
    knapsack: AlgorithmMetricsResponse
    winner: str
    reason: str
    greedy_result: AllocationResultResponse
    knapsack_result: AllocationResultResponse


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/allocate/greedy",
    response_model=AllocationResultResponse,
    status_code=status.HTTP_200_OK,
)
async def allocate_greedy(
    payload: GreedyAllocationRequest,
    service: EquipmentAllocationService = Depends(get_allocation_service),
) -> AllocationResultResponse:
    """Allocate by urgency with no budget; the caller decides whether to commit."""
    try:
        result = service.allocate_greedy(
            [item.to_domain() for item in payload.requests],
            [item.to_domain() for item in payload.equipment],
        )
        return AllocationResultResponse(**result.to_api_dict())
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected greedy allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run greedy allocation",
        ) from exc


@router.post(
    "/allocate/knapsack",
    response_model=AllocationResultResponse,
    status_code=status.HTTP_200_OK,
)
async def allocate_knapsack(
    payload: BudgetedAllocationRequest,
    service: EquipmentAllocationService = Depends(get_allocation_service),
) -> AllocationResultResponse:
    """Maximise urgency utility within the budget (0/1 knapsack)."""
    try:
        result = service.allocate_knapsack(
            [item.to_domain() for item in payload.requests],
            [item.to_domain() for item in payload.equipment],
            budget=payload.budget,
        )
        return AllocationResultResponse(**result.to_api_dict())
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected knapsack allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run knapsack allocation",
        ) from exc


@router.post(
    "/compare",
    response_model=ComparisonResponse,
    status_code=status.HTTP_200_OK,
)
async def compare_algorithms(
    payload: BudgetedAllocationRequest,
    service: AlgorithmComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse:
    """Run greedy and knapsack on isolated snapshots of the same input."""
    try:
        report = service.compare(
            [item.to_domain() for item in payload.requests],
            [item.to_domain() for item in payload.equipment],
            budget=payload.budget,
        )
        return ComparisonResponse(**report.to_api_dict())
    except ComparisonValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected comparison failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compare allocation algorithms",
        ) from exc

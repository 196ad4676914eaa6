"""Domain models for equipment allocation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional


STATUS_PENDING = "Pending"
STATUS_ALLOCATED = "Allocated"

ALGORITHM_GREEDY = "greedy"
ALGORITHM_KNAPSACK = "knapsack"


@dataclass(frozen=True)
class Equipment:
    equipment_id: int | str
    name: str
    equipment_type: str
    total: int
    available: int
    cost_per_day: float = 0
    location: Optional[str] = None

    def clone(self) -> Equipment:
        return replace(self)

    def with_available(self, available: int) -> Equipment:
        return replace(self, available=available)


@dataclass(frozen=True)
class EquipmentRequest:
    request_id: int | str
    patient: str
    doctor: str
    priority: int | str
    quantity: int = 1
    equipment_id: Optional[int | str] = None
    equipment_type: Optional[str] = None
    equipment_name: Optional[str] = None
    status: Optional[str] = STATUS_PENDING
    timestamp: float = 0.0

    @property
    def is_pending(self) -> bool:
        """Missing status or any letter case of "pending" counts as pending."""
        if not self.status:
            return True
        return self.status.strip().lower() == STATUS_PENDING.lower()

    def clone(self) -> EquipmentRequest:
        return replace(self)

    def mark_allocated(self) -> EquipmentRequest:
        return replace(self, status=STATUS_ALLOCATED)


@dataclass(frozen=True)
class Allocation:
    allocation_id: str
    request_id: int | str
    equipment_id: int | str
    equipment_name: str
    equipment_type: str
    patient: str
    doctor: str
    quantity: int
    cost: float
    priority: int | str
    priority_label: str
    algorithm: str
    allocated_at: datetime
    value: Optional[int] = None
    status: str = STATUS_ALLOCATED

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "allocation_id": self.allocation_id,
            "request_id": self.request_id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "equipment_type": self.equipment_type,
            "patient": self.patient,
            "doctor": self.doctor,
            "quantity": self.quantity,
            "cost": self.cost,
            "value": self.value,
            "priority": self.priority,
            "priority_label": self.priority_label,
            "algorithm": self.algorithm,
            "allocated_at": self.allocated_at.isoformat(),
            "status": self.status,
        }


@dataclass(frozen=True)
class TraceStep:
    step: int
    description: str
    data: Any
    complexity: str

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "description": self.description,
            "data": self.data,
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class AllocationResult:
    algorithm: str
    allocations: list[Allocation]
    updated_equipment: list[Equipment]
    updated_requests: list[EquipmentRequest]
    step_trace: list[TraceStep]
    pending_count: int
    failed_request_ids: list[int | str] = field(default_factory=list)
    total_cost: float = 0
    total_value: int = 0
    budget: Optional[int] = None
    budget_remaining: Optional[float] = None
    max_value: Optional[int] = None

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "allocations": [allocation.to_api_dict() for allocation in self.allocations],
            "updated_equipment": [
                {
                    "equipment_id": item.equipment_id,
                    "name": item.name,
                    "equipment_type": item.equipment_type,
                    "total": item.total,
                    "available": item.available,
                    "cost_per_day": item.cost_per_day,
                    "location": item.location,
                }
                for item in self.updated_equipment
            ],
            "updated_requests": [
                {
                    "request_id": item.request_id,
                    "status": item.status,
                }
                for item in self.updated_requests
            ],
            "step_trace": [step.to_api_dict() for step in self.step_trace],
            "pending_count": self.pending_count,
            "failed_request_ids": list(self.failed_request_ids),
            "total_cost": self.total_cost,
            "total_value": self.total_value,
            "budget": self.budget,
            "budget_remaining": self.budget_remaining,
            "max_value": self.max_value,
        }

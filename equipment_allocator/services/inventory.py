"""Working copy of inventory state used during a single allocator run.

Both allocators resolve requests and commit allocations through this module so
that availability bookkeeping, allocation records and request status changes
stay consistent: a commit either updates all three or none of them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from equipment_allocator.domain.models import Allocation, Equipment, EquipmentRequest
from equipment_allocator.domain.priority import priority_label
from equipment_allocator.utils.clock import epoch_millis


def cost_of(equipment: Equipment, quantity: int) -> float:
    """Monetary cost of a request; missing cost data counts as free."""
    return (equipment.cost_per_day or 0) * quantity


def build_allocation_id(algorithm: str, allocated_at: datetime, index: int) -> str:
    return f"{algorithm}-{epoch_millis(allocated_at)}-{index}"


class WorkingInventory:
    """Private, mutable view over cloned equipment and request snapshots."""

    def __init__(
        self,
        equipment: Sequence[Equipment],
        requests: Sequence[EquipmentRequest],
    ) -> None:
        self._equipment = [item.clone() for item in equipment]
        self._requests = [item.clone() for item in requests]
        self._equipment_position = {
            item.equipment_id: position for position, item in enumerate(self._equipment)
        }
        self._request_position = {
            item.request_id: position for position, item in enumerate(self._requests)
        }

    @property
    def equipment(self) -> list[Equipment]:
        return list(self._equipment)

    @property
    def requests(self) -> list[EquipmentRequest]:
        return list(self._requests)

    def pending_requests(self) -> list[EquipmentRequest]:
        return [item for item in self._requests if item.is_pending]

    def resolve(self, request: EquipmentRequest) -> Optional[Equipment]:
        """Match by pinned equipment id, otherwise by the first instance of the type."""
        if request.equipment_id is not None:
            position = self._equipment_position.get(request.equipment_id)
            return self._equipment[position] if position is not None else None
        if request.equipment_type is None:
            return None
        for item in self._equipment:
            if item.equipment_type == request.equipment_type:
                return item
        return None

    def current(self, equipment_id: int | str) -> Equipment:
        return self._equipment[self._equipment_position[equipment_id]]

    def commit(
        self,
        *,
        request: EquipmentRequest,
        equipment_id: int | str,
        algorithm: str,
        allocation_id: str,
        allocated_at: datetime,
        value: Optional[int] = None,
    ) -> Optional[Allocation]:
        """Commit one request; returns ``None`` if availability no longer covers it."""
        equipment = self.current(equipment_id)
        if equipment.available < request.quantity:
            return None

        allocation = Allocation(
            allocation_id=allocation_id,
            request_id=request.request_id,
            equipment_id=equipment.equipment_id,
            equipment_name=equipment.name,
            equipment_type=equipment.equipment_type,
            patient=request.patient,
            doctor=request.doctor,
            quantity=request.quantity,
            cost=cost_of(equipment, request.quantity),
            priority=request.priority,
            priority_label=priority_label(request.priority),
            algorithm=algorithm,
            allocated_at=allocated_at,
            value=value,
        )
        self._equipment[self._equipment_position[equipment_id]] = equipment.with_available(
            equipment.available - request.quantity
        )
        request_position = self._request_position[request.request_id]
        self._requests[request_position] = self._requests[request_position].mark_allocated()
        return allocation

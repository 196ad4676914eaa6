"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from equipment_allocator.services.allocation_service import EquipmentAllocationService
from equipment_allocator.services.comparison_service import AlgorithmComparisonService


def get_allocation_service(request: Request) -> EquipmentAllocationService:
    service = getattr(request.app.state, "allocation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Allocation service is not initialized",
        )
    return service


def get_comparison_service(request: Request) -> AlgorithmComparisonService:
    service = getattr(request.app.state, "comparison_service", None)
    if service is None:
        allocation_service = getattr(request.app.state, "allocation_service", None)
        if allocation_service is not None:
            service = AlgorithmComparisonService(allocation_service=allocation_service)
            request.app.state.comparison_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comparison service is not initialized",
        )
    return service

"""
app.py — FastAPI application factory.

This is the ASGI application object imported by uvicorn. It wires the
allocation and comparison services and registers the allocation router. The
application is stateless: equipment and requests arrive with every call and
results are returned to the caller, never stored.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from equipment_allocator.controllers.allocation_controller import router as allocation_router
from equipment_allocator.services.allocation_service import EquipmentAllocationService
from equipment_allocator.services.comparison_service import AlgorithmComparisonService
from equipment_allocator.utils.clock import Clock
from equipment_allocator.utils.config import Settings, get_settings
from equipment_allocator.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are injected via app.state so controllers resolve them through
    dependencies instead of module-level singletons.
    """
    settings = settings or get_settings()

    allocation_service = EquipmentAllocationService(settings=settings, clock=clock)
    comparison_service = AlgorithmComparisonService(allocation_service=allocation_service)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
    )
    app.include_router(allocation_router)

    app.state.allocation_service = allocation_service
    app.state.comparison_service = comparison_service

    logger.info(
        "Application created | default_budget=%s | max_table_cells=%s",
        settings.allocation_default_budget,
        settings.allocation_max_table_cells,
    )
    return app


# Module-level app object for uvicorn
app = create_app()

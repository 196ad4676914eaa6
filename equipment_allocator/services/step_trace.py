"""Step trace collection for allocator explanations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from equipment_allocator.domain.models import TraceStep


@dataclass
class StepTraceRecorder:
    """Collect numbered trace steps in the order decisions are made."""

    _sequence: int = 0
    _items: list[TraceStep] = field(default_factory=list)

    def record(self, description: str, data: Any, complexity: str) -> TraceStep:
        self._sequence += 1
        step = TraceStep(
            step=self._sequence,
            description=description,
            data=data,
            complexity=complexity,
        )
        self._items.append(step)
        return step

    def as_list(self) -> list[TraceStep]:
        return list(self._items)

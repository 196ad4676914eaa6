"""Priority valuation shared by the greedy and knapsack allocators.

Requests arrive with heterogeneous urgency encodings: numeric ordinals
(1 = Critical ... 4 = Low) or labels in any letter case. Both encodings are
normalised to an urgency tier here, and each allocator derives what it needs
from that tier:

- greedy ordering uses the tier itself (lower sorts first);
- knapsack optimisation uses a fixed utility table (higher is more valuable).

Anything unrecognised degrades to the lowest tier instead of failing.
"""

from __future__ import annotations

from typing import Any


LOWEST_TIER = 4

TIER_BY_LABEL: dict[str, int] = {
    "critical": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
}

LABEL_BY_TIER: dict[int, str] = {
    1: "Critical",
    2: "High",
    3: "Medium",
    4: "Low",
}

UTILITY_BY_TIER: dict[int, int] = {
    1: 1000,
    2: 800,
    3: 600,
    4: 400,
}


def ordering_key_of(priority: Any) -> int:
    """Return the greedy sort key (1..4) for a numeric or labelled priority."""
    if isinstance(priority, bool):
        return LOWEST_TIER
    if isinstance(priority, int):
        return priority if priority in LABEL_BY_TIER else LOWEST_TIER
    if isinstance(priority, float):
        return int(priority) if priority.is_integer() and int(priority) in LABEL_BY_TIER else LOWEST_TIER
    if isinstance(priority, str):
        normalized = priority.strip().lower()
        if normalized.isascii() and normalized.isdecimal():
            return ordering_key_of(int(normalized))
        return TIER_BY_LABEL.get(normalized, LOWEST_TIER)
    return LOWEST_TIER


def utility_value_of(priority: Any) -> int:
    """Return the knapsack utility; strictly larger for more urgent tiers."""
    return UTILITY_BY_TIER[ordering_key_of(priority)]


def priority_label(priority: Any) -> str:
    return LABEL_BY_TIER[ordering_key_of(priority)]

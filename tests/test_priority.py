from __future__ import annotations

import pytest

from equipment_allocator.domain.priority import (
    ordering_key_of,
    priority_label,
    utility_value_of,
)


@pytest.mark.parametrize(
    ("priority", "expected"),
    [
        (1, 1),
        (2, 2),
        (3, 3),
        (4, 4),
        ("Critical", 1),
        ("critical", 1),
        ("CRITICAL", 1),
        ("High", 2),
        ("medium", 3),
        ("LOW", 4),
        ("2", 2),
        (" high ", 2),
    ],
)
def test_ordering_key_for_known_encodings(priority, expected) -> None:
    assert ordering_key_of(priority) == expected


@pytest.mark.parametrize(
    "priority",
    ["urgent-ish", "", None, 0, 5, -1, 2.5, True, object(), "²", "③", "١"],
)
def test_unknown_priority_degrades_to_lowest_tier(priority) -> None:
    assert ordering_key_of(priority) == 4
    assert utility_value_of(priority) == 400
    assert priority_label(priority) == "Low"


def test_utility_value_is_strictly_monotonic_with_urgency() -> None:
    values = [utility_value_of(tier) for tier in (1, 2, 3, 4)]
    assert values == [1000, 800, 600, 400]
    assert values == sorted(values, reverse=True)


def test_labels_and_numbers_share_one_scale() -> None:
    assert utility_value_of("Critical") == utility_value_of(1)
    assert utility_value_of("medium") == utility_value_of(3)
    assert priority_label(2) == "High"


def test_valuation_is_pure() -> None:
    first = [(ordering_key_of(p), utility_value_of(p)) for p in (1, "High", "bogus", 3.0)]
    second = [(ordering_key_of(p), utility_value_of(p)) for p in (1, "High", "bogus", 3.0)]
    assert first == second
    assert first[3] == (3, 600)

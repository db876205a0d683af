from __future__ import annotations

import pytest

from showdown.benchmark.queries import QUERY_SETS, rotation, shape_for


def test_basic_rotation_cycles_three_shapes() -> None:
    shapes = rotation("basic")
    labels = [shape_for(i, shapes).label for i in range(6)]
    assert labels == [
        "Get all transactions",
        "Calculate sum of all transactions",
        "Find largest transaction",
    ] * 2


def test_extended_set_adds_filters() -> None:
    keys = [shape.key for shape in rotation("extended")]
    assert keys[:3] == [shape.key for shape in QUERY_SETS["basic"]]
    assert keys[3:] == ["range_filter", "city_pattern"]


def test_unknown_query_set() -> None:
    with pytest.raises(ValueError, match="Unknown query set"):
        rotation("everything")

"""Shared test fixtures for tidykit tests.

Provides grid builders, template factories and the small spreadsheets used
across the resolver, matcher, tiler, transform and engine tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from tidykit.areas import AreaInfo
from tidykit.config import TidyConfig
from tidykit.grid import Grid
from tidykit.models import (
    CellSelection,
    ContextTransform,
    Direction,
    ReferenceLayer,
    Size,
    TableTemplate,
    Transform,
    Traverse,
)


# ---------------------------------------------------------------------------
# Factory Helpers
# ---------------------------------------------------------------------------


def make_grid(*rows: list[Any]) -> Grid:
    """Grid from literal rows."""
    return Grid(rows)


def make_area(
    x: int,
    y: int,
    width: int,
    height: int,
    *,
    layer: int = 1,
    parent: AreaInfo | None = None,
) -> AreaInfo:
    """Bare AreaInfo for resolver/constraint tests."""
    area = AreaInfo(
        area_layer=layer,
        template_index=0,
        x_index=0,
        y_index=0,
        x_offset=x - (parent.x if parent else 0),
        y_offset=y - (parent.y if parent else 0),
        x=x,
        y=y,
        width=width,
        height=height,
    )
    area.set_parent(parent)
    return area


def make_template(
    *,
    x: int = 0,
    y: int = 0,
    layer: ReferenceLayer = ReferenceLayer.CURRENT,
    width: Any = 1,
    height: Any = 1,
    x_direction: Direction = Direction.NONE,
    y_direction: Direction = Direction.NONE,
    constraints: list[Any] | None = None,
    transform: Transform | None = None,
    children: list[TableTemplate] | None = None,
    **kwargs: Any,
) -> TableTemplate:
    """Factory for TableTemplate test instances."""
    return TableTemplate(
        start_cell=CellSelection(reference_layer=layer, x_offset=x, y_offset=y),
        size=Size(width=width, height=height),
        traverse=Traverse(x_direction=x_direction, y_direction=y_direction),
        constraints=constraints or [],
        transform=transform,
        children=children or [],
        **kwargs,
    )


def context_top() -> Transform:
    """Context transform taking column names from the enclosing area's top row."""
    return Transform(target_cols="context", context=ContextTransform(position="top"))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tidy_config() -> TidyConfig:
    """Default TidyConfig."""
    return TidyConfig()


@pytest.fixture()
def people_grid() -> Grid:
    """Header row plus two records."""
    return make_grid(
        ["Name", "Age"],
        ["Alice", "30"],
        ["Bob", "25"],
    )


@pytest.fixture()
def people_templates() -> list[TableTemplate]:
    """Header template (not emitted) and a data row template tiled downwards."""
    header = make_template(width=2, height=1, name="header")
    data = make_template(
        y=1,
        layer=ReferenceLayer.ROOT,
        width=2,
        height=1,
        y_direction=Direction.AFTER,
        transform=context_top(),
        name="data",
    )
    return [header, data]


@pytest.fixture()
def blocks_grid() -> Grid:
    """Two stacked blocks, each a title row, a header row and two data rows."""
    return make_grid(
        ["Region", "North", None],
        ["Product", "Q1", "Q2"],
        ["Apples", 10, 12],
        ["Pears", 4, 5],
        ["Region", "South", None],
        ["Product", "Q1", "Q2"],
        ["Apples", 7, 9],
        ["Pears", 1, 2],
    )

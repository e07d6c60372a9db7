"""Tests for the transform engine: positional, computed and context mappings."""

from __future__ import annotations

import pytest

from tidykit.areas import AreaInfo, CellContext
from tidykit.config import TidyConfig
from tidykit.errors import TemplateValidationError
from tidykit.grid import Grid
from tidykit.matcher import AreaMatcher
from tidykit.models import (
    CellSelection,
    ContextPosition,
    ContextTransform,
    ReferenceLayer,
    TableTemplate,
    Transform,
)
from tidykit.transform import TransformEngine, direction_selection
from tests.conftest import context_top, make_area, make_grid, make_template


def match_and_apply(
    grid: Grid,
    template: TableTemplate,
    enclosing: AreaInfo | None = None,
    root: AreaInfo | None = None,
) -> AreaInfo:
    config = TidyConfig()
    root = root or AreaInfo.root_for(grid.width, grid.height)
    area = AreaMatcher(grid, config).match_first(
        template, enclosing or root, root, template_index=0, template_path=(0,)
    )
    assert area is not None
    TransformEngine(grid, config).apply(area, root)
    return area


def columns(area: AreaInfo) -> list[str | None]:
    return [c.target_col for c in area.area_cells]


@pytest.fixture()
def table_grid():
    return make_grid(
        ["Name", "Age", "City"],
        ["Alice", 30, "Oslo"],
        ["Bob", 25, None],
    )


# ---------------------------------------------------------------------------
# Positional / computed
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestPositional:
    def test_positional_list(self, table_grid) -> None:
        template = make_template(
            y=1, width=3, transform=Transform(target_cols=["A", "B", None])
        )
        area = match_and_apply(table_grid, template)
        assert columns(area) == ["A", "B", None]

    def test_values_unchanged(self, table_grid) -> None:
        template = make_template(y=1, width=3, transform=Transform(target_cols=["A", "B", "C"]))
        area = match_and_apply(table_grid, template)
        assert [c.value for c in area.area_cells] == ["Alice", 30, "Oslo"]

    def test_empty_string_excludes(self, table_grid) -> None:
        template = make_template(width=2, transform=Transform(target_cols=["", "B"]))
        assert columns(match_and_apply(table_grid, template)) == [None, "B"]

    def test_length_mismatch(self, table_grid) -> None:
        template = make_template(width=None, transform=Transform(target_cols=["A"]))
        with pytest.raises(TemplateValidationError, match="1 entries for an area of 3 cells"):
            match_and_apply(table_grid, template)

    def test_no_transform_leaves_cells_unmapped(self, table_grid) -> None:
        area = match_and_apply(table_grid, make_template(width=3))
        assert columns(area) == [None, None, None]


@pytest.mark.unit
class TestComputedColumns:
    def test_rule_receives_ordered_cells(self, table_grid) -> None:
        seen = []

        def by_offset(cells):
            seen.extend((c.x_offset, c.y_offset) for c in cells)
            return [f"col{c.x_offset}" for c in cells]

        template = make_template(y=1, width=2, transform=Transform(target_cols=by_offset))
        area = match_and_apply(table_grid, template)
        assert seen == [(0, 0), (1, 0)]
        assert columns(area) == ["col0", "col1"]

    def test_numeric_names_stringified(self, table_grid) -> None:
        template = make_template(width=2, transform=Transform(target_cols=lambda cells: [1, None]))
        assert columns(match_and_apply(table_grid, template)) == ["1", None]

    def test_rule_must_return_list(self, table_grid) -> None:
        template = make_template(transform=Transform(target_cols=lambda cells: "x"))
        with pytest.raises(TemplateValidationError, match="must return a list"):
            match_and_apply(table_grid, template)

    def test_non_string_name_rejected(self, table_grid) -> None:
        template = make_template(transform=Transform(target_cols=lambda cells: [{"a": 1}]))
        with pytest.raises(TemplateValidationError, match="non-string column name"):
            match_and_apply(table_grid, template)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestContext:
    def test_top_uses_enclosing_top_row(self, table_grid) -> None:
        template = make_template(y=1, width=3, transform=context_top())
        assert columns(match_and_apply(table_grid, template)) == ["Name", "Age", "City"]

    def test_left_uses_enclosing_left_column(self) -> None:
        grid = make_grid(["Q1", 10, 11], ["Q2", 20, 21])
        template = make_template(
            x=1,
            y=1,
            width=2,
            transform=Transform(target_cols="context", context=ContextTransform(position="left")),
        )
        assert columns(match_and_apply(grid, template)) == ["Q2", "Q2"]

    def test_bottom_and_right(self) -> None:
        grid = make_grid([1, 2, "R0"], [3, 4, "R1"], ["B0", "B1", None])
        bottom = make_template(
            width=2,
            transform=Transform(target_cols="context", context={"position": "bottom"}),
        )
        right = make_template(
            height=2,
            transform=Transform(target_cols="context", context={"position": "right"}),
        )
        assert columns(match_and_apply(grid, bottom)) == ["B0", "B1"]
        assert columns(match_and_apply(grid, right)) == ["R0", "R1"]

    def test_context_relative_to_enclosing_area(self) -> None:
        grid = make_grid(
            ["x", "x", "x"],
            ["x", "Name", "Age"],
            ["x", "Alice", 30],
        )
        root = AreaInfo.root_for(3, 3)
        block = make_area(1, 1, 2, 2, parent=root)
        template = make_template(y=1, width=2, transform=context_top())
        area = match_and_apply(grid, template, enclosing=block, root=root)
        assert columns(area) == ["Name", "Age"]

    def test_empty_context_excludes_cell(self, table_grid) -> None:
        grid = make_grid(["Name", None, ""], ["Alice", 30, "Oslo"])
        template = make_template(y=1, width=3, transform=context_top())
        assert columns(match_and_apply(grid, template)) == ["Name", None, None]

    def test_numeric_context_value_stringified(self) -> None:
        grid = make_grid([2023, 2024], [1, 2])
        template = make_template(y=1, width=2, transform=context_top())
        assert columns(match_and_apply(grid, template)) == ["2023", "2024"]

    def test_target_col_rule_receives_contexts(self, table_grid) -> None:
        seen: list[CellContext] = []

        def prefixed(ctx: CellContext) -> str:
            seen.append(ctx)
            return f"{ctx.context_value}_{ctx.x_offset}"

        template = make_template(
            y=2,
            width=2,
            transform=Transform(
                target_cols="context",
                context=ContextTransform(position="top", target_col=prefixed),
            ),
        )
        area = match_and_apply(table_grid, template)
        assert columns(area) == ["Name_0", "Age_1"]
        assert seen[0].value == "Bob"
        assert (seen[1].contexts[0].x, seen[1].contexts[0].y) == (1, 0)
        assert seen[0].area is area

    def test_position_rule_selections(self, table_grid) -> None:
        def header_two_up(ctx: CellContext) -> list[CellSelection]:
            return [CellSelection(reference_layer=ReferenceLayer.CURRENT, y_offset=-2)]

        template = make_template(
            y=2,
            transform=Transform(
                target_cols="context", context=ContextTransform(position=header_two_up)
            ),
        )
        assert columns(match_and_apply(table_grid, template)) == ["Name"]

    def test_position_rule_dict_selections(self, table_grid) -> None:
        template = make_template(
            y=1,
            x=1,
            transform=Transform(
                target_cols="context",
                context={"position": lambda ctx: [{"referenceLayer": "root", "xOffset": ctx.x}]},
            ),
        )
        assert columns(match_and_apply(table_grid, template)) == ["Age"]

    def test_position_rule_single_dict_selection(self, table_grid) -> None:
        template = make_template(
            y=1,
            x=1,
            transform=Transform(
                target_cols="context",
                context={"position": lambda ctx: {"referenceLayer": "root", "xOffset": ctx.x}},
            ),
        )
        assert columns(match_and_apply(table_grid, template)) == ["Age"]

    def test_position_rule_invalid_selection(self, table_grid) -> None:
        template = make_template(
            y=1,
            transform=Transform(
                target_cols="context",
                context={"position": lambda ctx: [{"referenceLayer": "bogus"}]},
            ),
        )
        with pytest.raises(TemplateValidationError, match="invalid selection") as exc_info:
            match_and_apply(table_grid, template)
        assert exc_info.value.stage == "transform"

    def test_position_rule_non_list_result(self, table_grid) -> None:
        template = make_template(
            y=1,
            transform=Transform(target_cols="context", context={"position": lambda ctx: 3}),
        )
        with pytest.raises(TemplateValidationError, match="must return a selection"):
            match_and_apply(table_grid, template)

    def test_out_of_grid_primary_context_excludes(self, table_grid) -> None:
        template = make_template(
            y=1,
            transform=Transform(
                target_cols="context",
                context={
                    "position": lambda ctx: [
                        CellSelection(y_offset=-9),
                        CellSelection(y_offset=-1),
                    ]
                },
            ),
        )
        assert columns(match_and_apply(table_grid, template)) == [None]

    def test_out_of_grid_secondary_context_is_absent(self, table_grid) -> None:
        seen: list[CellContext] = []

        def record(ctx: CellContext) -> str:
            seen.append(ctx)
            return "col"

        template = make_template(
            y=1,
            transform=Transform(
                target_cols="context",
                context={
                    "position": lambda ctx: [
                        CellSelection(y_offset=-1),
                        CellSelection(x_offset=-5),
                    ],
                    "targetCol": record,
                },
            ),
        )
        assert columns(match_and_apply(table_grid, template)) == ["col"]
        assert [c.value for c in seen[0].contexts] == ["Name", None]
        assert (seen[0].contexts[1].x, seen[0].contexts[1].y) == (-5, 1)

    def test_no_context_cells_excludes(self, table_grid) -> None:
        template = make_template(
            y=1,
            transform=Transform(target_cols="context", context={"position": lambda ctx: []}),
        )
        assert columns(match_and_apply(table_grid, template)) == [None]


@pytest.mark.unit
class TestDirectionSelection:
    @pytest.mark.parametrize(
        "position,expected",
        [
            (ContextPosition.TOP, (3, 1)),
            (ContextPosition.BOTTOM, (3, 4)),
            (ContextPosition.LEFT, (1, 2)),
            (ContextPosition.RIGHT, (5, 2)),
        ],
    )
    def test_projection(self, position: ContextPosition, expected: tuple[int, int]) -> None:
        from tidykit.areas import AreaCell
        from tidykit.resolver import Frames, resolve_unchecked

        root = AreaInfo.root_for(10, 10)
        enclosing = make_area(1, 1, 5, 4, parent=root)
        cell = AreaCell(x_offset=0, y_offset=0, value=None, x=3, y=2)
        selection = direction_selection(position, cell, enclosing)
        frames = Frames(current=make_area(3, 2, 1, 1, layer=2, parent=enclosing), parent=enclosing, root=root)
        assert resolve_unchecked(selection, frames) == expected

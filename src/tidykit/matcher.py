"""Area Matcher: finds and validates the first region of a template.

The start cell is resolved against the enclosing area, the size rule fixes
the region's width and height, and the constraints decide whether the
region counts as a match.  "No match" is reported as ``None``.
"""

from __future__ import annotations

import logging

from tidykit.areas import AreaCell, AreaInfo, Rect
from tidykit.config import TidyConfig
from tidykit.constraints import evaluate_constraints
from tidykit.errors import OutOfBoundsError
from tidykit.grid import Grid, is_empty
from tidykit.models import TO_PARENT_X, TO_PARENT_Y, TableTemplate
from tidykit.resolver import Frames, resolve_position

logger = logging.getLogger("tidykit")


def collect_cells(grid: Grid, x: int, y: int, width: int, height: int) -> list[AreaCell]:
    """Cells of a rectangle in row-major order (y offset, then x offset)."""
    return [
        AreaCell(
            x_offset=dx,
            y_offset=dy,
            value=grid.value(x + dx, y + dy),
            x=x + dx,
            y=y + dy,
        )
        for dy in range(height)
        for dx in range(width)
    ]


def _row_empty(grid: Grid, y: int, x0: int, x1: int) -> bool:
    return all(is_empty(grid.value(x, y)) for x in range(x0, x1))


def _col_empty(grid: Grid, x: int, y0: int, y1: int) -> bool:
    return all(is_empty(grid.value(x, y)) for y in range(y0, y1))


def compute_size(
    template: TableTemplate,
    x: int,
    y: int,
    enclosing: AreaInfo,
    grid: Grid,
) -> tuple[int, int] | None:
    """Fix width and height for a region anchored at ``(x, y)``.

    ``toParentX``/``toParentY`` extend to the enclosing area's far edge.
    Unbounded (``None``) axes do the same and then drop trailing lines
    whose cells are all empty, keeping at least one line.

    Returns:
        ``(width, height)``, or None when the anchor leaves no room inside
        the enclosing area.
    """
    remaining_x = enclosing.right - x
    remaining_y = enclosing.bottom - y
    if remaining_x < 1 or remaining_y < 1:
        return None

    width_rule = template.size.width
    height_rule = template.size.height
    width = remaining_x if width_rule in (TO_PARENT_X, None) else width_rule
    height = remaining_y if height_rule in (TO_PARENT_Y, None) else height_rule

    if height_rule is None:
        while height > 1 and _row_empty(grid, y + height - 1, x, x + width):
            height -= 1
    if width_rule is None:
        while width > 1 and _col_empty(grid, x + width - 1, y, y + height):
            width -= 1
    return width, height


class AreaMatcher:
    """Resolves, sizes and validates candidate regions for one run."""

    def __init__(self, grid: Grid, config: TidyConfig) -> None:
        self._grid = grid
        self._config = config

    def accept(
        self,
        template: TableTemplate,
        *,
        x: int,
        y: int,
        width: int,
        height: int,
        enclosing: AreaInfo,
        root: AreaInfo,
        template_index: int,
        template_path: tuple[int, ...],
        x_index: int = 0,
        y_index: int = 0,
    ) -> AreaInfo | None:
        """Build the candidate area and return it if bounds and constraints hold."""
        grid = self._grid
        if not grid.contains_rect(x, y, width, height):
            return None
        if not enclosing.rect.contains(Rect(x=x, y=y, width=width, height=height)):
            return None

        candidate = AreaInfo(
            area_layer=enclosing.area_layer + 1,
            template_index=template_index,
            x_index=x_index,
            y_index=y_index,
            x_offset=x - enclosing.x,
            y_offset=y - enclosing.y,
            x=x,
            y=y,
            width=width,
            height=height,
            template_path=template_path,
            template=template,
        )
        candidate.set_parent(enclosing)

        frames = Frames(current=candidate, parent=enclosing, root=root)
        if not evaluate_constraints(
            template.constraints,
            frames,
            grid,
            log_values=self._config.log_cell_values,
        ):
            return None

        candidate.area_cells = collect_cells(grid, x, y, width, height)
        return candidate

    def match_first(
        self,
        template: TableTemplate,
        enclosing: AreaInfo,
        root: AreaInfo,
        *,
        template_index: int,
        template_path: tuple[int, ...],
    ) -> AreaInfo | None:
        """Find the anchor match (tile indices 0, 0) of *template* in *enclosing*.

        Raises:
            OutOfBoundsError: Only for a top-level template whose start cell
                leaves the grid while ``strict_root_bounds`` is enabled.
        """
        frames = Frames(current=enclosing, parent=enclosing.parent, root=root)
        try:
            x, y = resolve_position(template.start_cell, frames, self._grid)
        except OutOfBoundsError as exc:
            if enclosing.area_layer == 0 and self._config.strict_root_bounds:
                exc.error.template_path = list(template_path)
                raise
            logger.debug(
                "Template %s: start cell outside grid, no match", list(template_path)
            )
            return None

        size = compute_size(template, x, y, enclosing, self._grid)
        if size is None:
            logger.debug(
                "Template %s: start cell (%d, %d) outside enclosing area",
                list(template_path),
                x,
                y,
            )
            return None
        width, height = size

        return self.accept(
            template,
            x=x,
            y=y,
            width=width,
            height=height,
            enclosing=enclosing,
            root=root,
            template_index=template_index,
            template_path=template_path,
        )

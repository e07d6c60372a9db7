"""Transform Engine: assigns an output column (or exclusion) to every cell of an area.

Three strategies, chosen by ``Transform.target_cols``:

* positional list -- cell *i* (row-major) gets ``target_cols[i]``;
* ``"context"``    -- each cell's column is derived from a context cell;
* ``Computed``     -- a rule maps the whole ordered cell list at once.

Only ``AreaCell.target_col`` is written; values are never altered.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from tidykit.areas import AreaCell, AreaInfo, CellContext, ContextCell
from tidykit.config import TidyConfig
from tidykit.errors import OutOfBoundsError, TemplateValidationError
from tidykit.grid import Grid, is_empty
from tidykit.models import (
    CONTEXT,
    CellSelection,
    Computed,
    ContextPosition,
    ContextTransform,
    ReferenceCorner,
    ReferenceLayer,
)
from tidykit.resolver import Frames, resolve_position

logger = logging.getLogger("tidykit")


def _column_name(value: Any, rule: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TemplateValidationError(
        message=f"{rule} produced a non-string column name of type {type(value).__name__}",
        stage="transform",
    )


def direction_selection(
    position: ContextPosition, cell: AreaCell, enclosing: AreaInfo
) -> CellSelection:
    """Selection projecting *cell* onto one edge of its enclosing area."""
    dx = cell.x - enclosing.x
    dy = cell.y - enclosing.y
    if position == ContextPosition.TOP:
        return CellSelection(
            reference_layer=ReferenceLayer.PARENT,
            reference_corner=ReferenceCorner.TOP_LEFT,
            x_offset=dx,
        )
    if position == ContextPosition.BOTTOM:
        return CellSelection(
            reference_layer=ReferenceLayer.PARENT,
            reference_corner=ReferenceCorner.BOTTOM_LEFT,
            x_offset=dx,
        )
    if position == ContextPosition.LEFT:
        return CellSelection(
            reference_layer=ReferenceLayer.PARENT,
            reference_corner=ReferenceCorner.TOP_LEFT,
            y_offset=dy,
        )
    return CellSelection(
        reference_layer=ReferenceLayer.PARENT,
        reference_corner=ReferenceCorner.TOP_RIGHT,
        y_offset=dy,
    )


class TransformEngine:
    """Applies a template's transform to the cells of its matched areas."""

    def __init__(self, grid: Grid, config: TidyConfig) -> None:
        self._grid = grid
        self._config = config

    def apply(self, area: AreaInfo, root: AreaInfo) -> None:
        template = area.template
        if template is None or template.transform is None:
            return
        transform = template.transform
        target_cols = transform.target_cols

        if isinstance(target_cols, list):
            self._assign(area, target_cols, "Positional mapping")
        elif isinstance(target_cols, Computed):
            result = target_cols(list(area.area_cells))
            if not isinstance(result, Sequence) or isinstance(result, str):
                raise TemplateValidationError(
                    message=f"Column rule {target_cols.name!r} must return a list",
                    stage="transform",
                )
            self._assign(area, list(result), f"Column rule {target_cols.name!r}")
        elif target_cols == CONTEXT:
            if transform.context is None:
                raise TemplateValidationError(
                    message="targetCols 'context' requires a context transform",
                    stage="transform",
                )
            self._apply_context(area, root, transform.context)

        logger.debug(
            "Template %s tile (%d, %d): %d of %d cells mapped",
            list(area.template_path),
            area.x_index,
            area.y_index,
            sum(1 for c in area.area_cells if c.target_col is not None),
            len(area.area_cells),
        )

    def _assign(self, area: AreaInfo, columns: list[Any], rule: str) -> None:
        cells = area.area_cells
        if len(columns) != len(cells):
            raise TemplateValidationError(
                message=f"{rule} has {len(columns)} entries for an area of "
                f"{len(cells)} cells ({area.width}x{area.height})",
                stage="transform",
            )
        for cell, column in zip(cells, columns):
            cell.target_col = _column_name(column, rule)

    def _apply_context(
        self, area: AreaInfo, root: AreaInfo, context: ContextTransform
    ) -> None:
        enclosing = area.parent
        frames = Frames(current=area, parent=enclosing, root=root)
        for cell in area.area_cells:
            bare = CellContext(
                x=cell.x,
                y=cell.y,
                x_offset=cell.x_offset,
                y_offset=cell.y_offset,
                value=cell.value,
                area=area,
                root=root,
            )
            contexts = self._resolve_contexts(context, cell, bare, enclosing, frames)
            cell.target_col = self._context_column(context, bare, contexts)

    def _resolve_contexts(
        self,
        context: ContextTransform,
        cell: AreaCell,
        bare: CellContext,
        enclosing: AreaInfo | None,
        frames: Frames,
    ) -> tuple[ContextCell, ...]:
        position = context.position
        if isinstance(position, Computed):
            selections = position(bare)
            if isinstance(selections, (CellSelection, Mapping)):
                selections = [selections]
            elif not isinstance(selections, Sequence) or isinstance(selections, str):
                raise TemplateValidationError(
                    message=f"Context position rule {position.name!r} must return "
                    f"a selection or a list of selections",
                    stage="transform",
                )
        else:
            if enclosing is None:
                return ()
            selections = [direction_selection(position, cell, enclosing)]

        resolved: list[ContextCell] = []
        for selection in selections:
            if not isinstance(selection, CellSelection):
                try:
                    selection = CellSelection.model_validate(selection)
                except ValidationError as exc:
                    raise TemplateValidationError(
                        message=f"Context position rule {position.name!r} returned an "
                        f"invalid selection: {exc.errors()[0]['msg']}",
                        stage="transform",
                    ) from exc
            try:
                x, y = resolve_position(selection, frames, self._grid)
            except OutOfBoundsError as exc:
                # outside the grid reads as an absent value
                resolved.append(ContextCell(x=exc.error.x, y=exc.error.y, value=None))
                continue
            resolved.append(ContextCell(x=x, y=y, value=self._grid.value(x, y)))
        return tuple(resolved)

    def _context_column(
        self,
        context: ContextTransform,
        bare: CellContext,
        contexts: tuple[ContextCell, ...],
    ) -> str | None:
        # an unusable primary context cell excludes the cell outright
        if not contexts or is_empty(contexts[0].value):
            return None
        if not isinstance(context.target_col, Computed):
            return _column_name(contexts[0].value, "Context cell")
        rule = context.target_col
        ctx = replace(bare, contexts=contexts)
        return _column_name(rule(ctx), f"Context rule {rule.name!r}")

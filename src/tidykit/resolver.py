"""Position Resolver: turns a relative cell selection into a grid coordinate.

A selection names a reference frame (the current, parent or root area, or
a computed absolute layer), a corner of that frame, and x/y offsets that are
literals or functions of ``(current, root)``.  Resolution is pure.
"""

from __future__ import annotations

from dataclasses import dataclass

from tidykit.areas import AreaInfo
from tidykit.errors import OutOfBoundsError, TemplateValidationError
from tidykit.grid import Grid
from tidykit.models import CellSelection, Computed, ReferenceCorner, ReferenceLayer


@dataclass(frozen=True)
class Frames:
    """The three-level reference frame a selection is resolved in."""

    current: AreaInfo
    parent: AreaInfo | None
    root: AreaInfo


def _reference_area(selection: CellSelection, frames: Frames) -> AreaInfo:
    layer = selection.reference_layer
    if isinstance(layer, Computed):
        target = layer(frames.current)
        if not isinstance(target, int) or isinstance(target, bool):
            raise TemplateValidationError(
                message=f"Reference layer rule {layer.name!r} must return an int, "
                f"got {type(target).__name__}",
                stage="resolve",
            )
        area = frames.current.ancestor_at(target)
        if area is None:
            raise TemplateValidationError(
                message=f"Reference layer {target} is not an ancestor of layer "
                f"{frames.current.area_layer}",
                stage="resolve",
            )
        return area
    if layer == ReferenceLayer.CURRENT:
        return frames.current
    if layer == ReferenceLayer.ROOT:
        return frames.root
    if frames.parent is None:
        raise TemplateValidationError(
            message="Reference frame 'parent' has no area at this level",
            stage="resolve",
        )
    return frames.parent


def corner_of(area: AreaInfo, corner: ReferenceCorner) -> tuple[int, int]:
    """Absolute coordinate of one corner cell of *area*."""
    if corner == ReferenceCorner.TOP_LEFT:
        return area.x, area.y
    if corner == ReferenceCorner.TOP_RIGHT:
        return area.right - 1, area.y
    if corner == ReferenceCorner.BOTTOM_LEFT:
        return area.x, area.bottom - 1
    return area.right - 1, area.bottom - 1


def _offset(value: int | Computed, frames: Frames, axis: str) -> int:
    if not isinstance(value, Computed):
        return value
    result = value(frames.current, frames.root)
    if not isinstance(result, int) or isinstance(result, bool):
        raise TemplateValidationError(
            message=f"{axis} offset rule {value.name!r} must return an int, "
            f"got {type(result).__name__}",
            stage="resolve",
        )
    return result


def resolve_unchecked(selection: CellSelection, frames: Frames) -> tuple[int, int]:
    """Resolve *selection* without checking grid bounds."""
    area = _reference_area(selection, frames)
    cx, cy = corner_of(area, selection.reference_corner)
    return (
        cx + _offset(selection.x_offset, frames, "x"),
        cy + _offset(selection.y_offset, frames, "y"),
    )


def resolve_position(
    selection: CellSelection, frames: Frames, grid: Grid
) -> tuple[int, int]:
    """Resolve *selection* to an absolute ``(x, y)`` inside *grid*.

    Raises:
        OutOfBoundsError: If the resolved coordinate lies outside the grid.
        TemplateValidationError: If a rule returns a non-integer or names a
            reference frame that does not exist at this level.
    """
    x, y = resolve_unchecked(selection, frames)
    if not grid.contains(x, y):
        raise OutOfBoundsError(
            message=f"Resolved position ({x}, {y}) lies outside the "
            f"{grid.width}x{grid.height} grid",
            stage="resolve",
            x=x,
            y=y,
        )
    return x, y

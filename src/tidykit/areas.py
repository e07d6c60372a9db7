"""Runtime match tree: resolved areas, their cells and rule-function context.

``AreaInfo`` nodes own their children; the link back to the parent is a
weak reference used only for upward navigation (reference-frame
resolution).  The caller keeps the root alive for the lifetime of the tree.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from pydantic import BaseModel, ConfigDict

from tidykit.grid import CellValue

if TYPE_CHECKING:
    from tidykit.models import TableTemplate


class Rect(BaseModel):
    """Axis-aligned rectangle in grid coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int

    def contains(self, other: Rect) -> bool:
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.x + other.width <= self.x + self.width
            and other.y + other.height <= self.y + self.height
        )


@dataclass(eq=False)
class AreaCell:
    """One cell of a matched area and its output column assignment.

    ``target_col`` stays ``None`` for cells that are excluded from the tidy
    output (no transform, null mapping, or unusable context).
    """

    x_offset: int
    y_offset: int
    value: CellValue
    x: int
    y: int
    target_col: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "x_offset": self.x_offset,
            "y_offset": self.y_offset,
            "value": self.value,
            "target_col": self.target_col,
        }


@dataclass(eq=False)
class AreaInfo:
    """A concrete rectangular match of a template against the grid.

    ``x``/``y`` are absolute grid coordinates; ``x_offset``/``y_offset`` are
    relative to the parent area.  ``x_index``/``y_index`` give the area's
    position among the tiles its template produced in the same parent.
    """

    area_layer: int
    template_index: int
    x_index: int
    y_index: int
    x_offset: int
    y_offset: int
    x: int
    y: int
    width: int
    height: int
    template_path: tuple[int, ...] = ()
    template: TableTemplate | None = field(default=None, repr=False)
    area_cells: list[AreaCell] = field(default_factory=list, repr=False)
    children: list[AreaInfo] = field(default_factory=list, repr=False)
    _parent_ref: weakref.ref[AreaInfo] | None = field(
        default=None, repr=False, compare=False
    )

    @classmethod
    def root_for(cls, width: int, height: int) -> AreaInfo:
        """The implicit layer-0 area covering the whole grid."""
        return cls(
            area_layer=0,
            template_index=0,
            x_index=0,
            y_index=0,
            x_offset=0,
            y_offset=0,
            x=0,
            y=0,
            width=width,
            height=height,
        )

    @property
    def parent(self) -> AreaInfo | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def set_parent(self, parent: AreaInfo | None) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    def add_child(self, child: AreaInfo) -> None:
        child.set_parent(self)
        self.children.append(child)

    @property
    def rect(self) -> Rect:
        return Rect(x=self.x, y=self.y, width=self.width, height=self.height)

    @property
    def right(self) -> int:
        """Column index one past the area's last column."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Row index one past the area's last row."""
        return self.y + self.height

    def ancestor_at(self, layer: int) -> AreaInfo | None:
        """Walk up the parent chain to the area at absolute *layer*."""
        node: AreaInfo | None = self
        while node is not None and node.area_layer > layer:
            node = node.parent
        if node is not None and node.area_layer == layer:
            return node
        return None

    def walk(self) -> Iterator[AreaInfo]:
        """Pre-order traversal of this area and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        """Structural snapshot (no parent links), used for comparisons and export."""
        return {
            "area_layer": self.area_layer,
            "template_index": self.template_index,
            "template_path": list(self.template_path),
            "x_index": self.x_index,
            "y_index": self.y_index,
            "x_offset": self.x_offset,
            "y_offset": self.y_offset,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "area_cells": [c.to_dict() for c in self.area_cells],
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True)
class ContextCell:
    """A resolved context cell: absolute position and value."""

    x: int
    y: int
    value: CellValue


@dataclass(frozen=True)
class CellContext:
    """Explicit argument passed to per-cell rule functions.

    Carries the invoking cell's position and value, the area it belongs to,
    the root area, and (for target-column rules) its resolved context cells.
    """

    x: int
    y: int
    x_offset: int
    y_offset: int
    value: CellValue
    area: AreaInfo
    root: AreaInfo
    contexts: tuple[ContextCell, ...] = ()

    @property
    def context_value(self) -> CellValue:
        """Value of the primary (first) context cell, or None."""
        return self.contexts[0].value if self.contexts else None

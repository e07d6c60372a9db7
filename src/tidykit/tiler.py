"""Tiler: discovers repeated matches of a template along one or two axes.

Tiles sit on a lattice anchored at the first match and spaced by its fixed
width/height.  Each axis follows its own policy:

* ``none``   -- the anchor only.
* ``after``  -- step forward from the anchor until a tile is rejected.
* ``before`` -- step backward from the anchor until a tile is rejected.
* ``whole``  -- every lattice position inside the enclosing area.

With both axes active the scan is row-major: the y policy walks rows, and
each row runs the x policy re-anchored at that row.  A row counts as
accepted when its x scan yields at least one tile.  Results are in
ascending position; indices are assigned 0..n-1 in that order.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tidykit.areas import AreaInfo
from tidykit.config import TidyConfig
from tidykit.errors import TraversalOverflowError
from tidykit.matcher import AreaMatcher
from tidykit.models import Direction, TableTemplate

logger = logging.getLogger("tidykit")

T = TypeVar("T")


def scan_axis(
    policy: Direction,
    probe: Callable[[int], T | None],
    k_min: int,
    k_max: int,
) -> list[T]:
    """Run one axis policy over lattice steps ``k_min..k_max`` (0 is the anchor).

    *probe* returns the accepted result at a step, or None if rejected.
    """
    found: list[T] = []
    if policy == Direction.NONE:
        result = probe(0)
        if result is not None:
            found.append(result)
    elif policy == Direction.AFTER:
        for k in range(0, k_max + 1):
            result = probe(k)
            if result is None:
                break
            found.append(result)
    elif policy == Direction.BEFORE:
        for k in range(0, k_min - 1, -1):
            result = probe(k)
            if result is None:
                break
            found.append(result)
        found.reverse()
    else:
        for k in range(k_min, k_max + 1):
            result = probe(k)
            if result is not None:
                found.append(result)
    return found


def lattice_bounds(anchor: int, step: int, lo: int, hi: int) -> tuple[int, int]:
    """Smallest and largest step keeping a tile of size *step* within ``[lo, hi)``."""
    return -((anchor - lo) // step), (hi - anchor - step) // step


class Tiler:
    """Expands a first match into the full list of same-template tiles."""

    def __init__(self, matcher: AreaMatcher, config: TidyConfig) -> None:
        self._matcher = matcher
        self._config = config

    def tile(
        self,
        template: TableTemplate,
        first: AreaInfo,
        enclosing: AreaInfo,
        root: AreaInfo,
    ) -> list[AreaInfo]:
        """Return every accepted tile, with ``x_index``/``y_index`` assigned.

        Raises:
            TraversalOverflowError: If more than ``max_tiles_per_traversal``
                tiles are accepted.
        """
        traverse = template.traverse
        if not traverse.is_tiled:
            return [first]

        width, height = first.width, first.height
        kx_min, kx_max = lattice_bounds(first.x, width, enclosing.x, enclosing.right)
        ky_min, ky_max = lattice_bounds(first.y, height, enclosing.y, enclosing.bottom)
        ceiling = self._config.max_tiles_per_traversal
        accepted = 0

        def probe(i: int, j: int) -> AreaInfo | None:
            nonlocal accepted
            if i == 0 and j == 0:
                tile: AreaInfo | None = first
            else:
                tile = self._matcher.accept(
                    template,
                    x=first.x + i * width,
                    y=first.y + j * height,
                    width=width,
                    height=height,
                    enclosing=enclosing,
                    root=root,
                    template_index=first.template_index,
                    template_path=first.template_path,
                    x_index=i,
                    y_index=j,
                )
            if tile is not None:
                accepted += 1
                if accepted > ceiling:
                    raise TraversalOverflowError(
                        message=f"Tiling accepted more than {ceiling} tiles",
                        stage="traverse",
                        template_path=list(first.template_path),
                        x=tile.x,
                        y=tile.y,
                    )
            return tile

        def probe_row(j: int) -> list[AreaInfo] | None:
            row = scan_axis(
                traverse.x_direction, lambda i: probe(i, j), kx_min, kx_max
            )
            return row or None

        rows = scan_axis(traverse.y_direction, probe_row, ky_min, ky_max)

        tiles: list[AreaInfo] = []
        for y_index, row in enumerate(rows):
            for x_index, tile in enumerate(row):
                tile.x_index = x_index
                tile.y_index = y_index
                tiles.append(tile)

        logger.debug(
            "Template %s: %d tile(s) in %d row(s)",
            list(first.template_path),
            len(tiles),
            len(rows),
        )
        return tiles

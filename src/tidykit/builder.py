"""Tree Builder: recursively applies a template forest to a grid.

For every area a template produces (after tiling), the template's children
are matched inside that area.  Children are appended in template
declaration order, then tile order.

Runtime failures (out-of-grid start cells under ``strict_root_bounds``,
tiling overflow) abort only the template application they occur in.  With
``branch_error_policy="raise"`` they propagate to the caller; with
``"skip"`` the branch is left empty and a ``W_BRANCH_SKIPPED`` warning is
recorded.  Template validation errors and the global area ceiling always
propagate.
"""

from __future__ import annotations

import logging
from typing import Sequence

from tidykit.areas import AreaInfo
from tidykit.config import BranchErrorPolicy, TidyConfig
from tidykit.errors import (
    TemplateValidationError,
    TidyError,
    TidyErrorCode,
    TidyException,
    TraversalOverflowError,
)
from tidykit.grid import Grid
from tidykit.matcher import AreaMatcher
from tidykit.models import TableTemplate
from tidykit.tiler import Tiler
from tidykit.transform import TransformEngine

logger = logging.getLogger("tidykit")


class TreeBuilder:
    """Builds the AreaInfo tree for one (grid, templates) run."""

    def __init__(self, grid: Grid, config: TidyConfig) -> None:
        self._grid = grid
        self._config = config
        self._matcher = AreaMatcher(grid, config)
        self._tiler = Tiler(self._matcher, config)
        self._transformer = TransformEngine(grid, config)
        self._area_count = 0
        self.warnings: list[TidyError] = []

    @property
    def area_count(self) -> int:
        return self._area_count

    def build(self, templates: Sequence[TableTemplate]) -> AreaInfo:
        """Match *templates* as the children of a root area spanning the grid."""
        root = AreaInfo.root_for(self._grid.width, self._grid.height)
        self._area_count = 0
        self.warnings = []
        self._apply_children(root, templates, (), root)
        return root

    def _apply_children(
        self,
        enclosing: AreaInfo,
        templates: Sequence[TableTemplate],
        prefix: tuple[int, ...],
        root: AreaInfo,
    ) -> None:
        for index, template in enumerate(templates):
            path = prefix + (index,)
            for area in self._apply_template(template, index, path, enclosing, root):
                enclosing.add_child(area)

    def _apply_template(
        self,
        template: TableTemplate,
        index: int,
        path: tuple[int, ...],
        enclosing: AreaInfo,
        root: AreaInfo,
    ) -> list[AreaInfo]:
        try:
            first = self._matcher.match_first(
                template,
                enclosing,
                root,
                template_index=index,
                template_path=path,
            )
            if first is None:
                logger.debug("Template %s: no match", list(path))
                if enclosing.area_layer == 0:
                    self.warnings.append(
                        TidyError(
                            code=TidyErrorCode.W_NO_MATCH,
                            message="Top-level template matched nothing",
                            stage="build",
                            recoverable=True,
                            template_path=list(path),
                        )
                    )
                return []

            areas = self._tiler.tile(template, first, enclosing, root)
            self._count(len(areas), path)

            for area in areas:
                self._transformer.apply(area, root)
                self._apply_children(area, template.children, path, root)
            return areas
        except TidyException as exc:
            if not exc.error.template_path:
                exc.error.template_path = list(path)
            if isinstance(exc, TemplateValidationError):
                raise
            if exc.code == TidyErrorCode.E_AREA_LIMIT_EXCEEDED:
                raise
            if self._config.branch_error_policy == BranchErrorPolicy.RAISE.value:
                raise
            logger.warning(
                "Skipping template %s after %s: %s",
                exc.error.template_path,
                exc.code.value,
                exc.message,
            )
            self.warnings.append(
                TidyError(
                    code=TidyErrorCode.W_BRANCH_SKIPPED,
                    message=f"{exc.code.value}: {exc.message}",
                    stage="build",
                    recoverable=True,
                    template_path=exc.error.template_path,
                    x=exc.error.x,
                    y=exc.error.y,
                )
            )
            return []

    def _count(self, added: int, path: tuple[int, ...]) -> None:
        self._area_count += added
        if self._area_count > self._config.max_areas:
            raise TraversalOverflowError(
                code=TidyErrorCode.E_AREA_LIMIT_EXCEEDED,
                message=f"Run produced more than {self._config.max_areas} areas",
                stage="build",
                template_path=list(path),
            )

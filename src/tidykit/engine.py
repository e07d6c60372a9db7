"""TidyEngine: one match run of a template forest against a grid.

Validates the templates, builds the area tree, assigns output columns and
assembles both outputs: the tidy table and the match/geometry tree.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union

from tidykit.areas import AreaInfo
from tidykit.builder import TreeBuilder
from tidykit.config import TidyConfig
from tidykit.errors import TidyError
from tidykit.grid import Grid
from tidykit.models import TableTemplate
from tidykit.output import MatchNode, TidyTable, assemble_table, build_match_tree
from tidykit.rules import RuleRegistry, load_templates
from tidykit.validation import template_depth, validate_templates

logger = logging.getLogger("tidykit")

TemplateSource = Union[TableTemplate, Mapping[str, Any], Sequence[Any]]


@dataclass
class TidyResult:
    """Everything a run produces.

    ``root`` owns the whole area tree; keep the result alive while the tree
    is in use (parent links are weak).
    """

    root: AreaInfo
    table: TidyTable
    match_tree: list[MatchNode]
    templates: list[TableTemplate]
    warnings: list[TidyError] = field(default_factory=list)
    area_count: int = 0
    duration_seconds: float = 0.0
    engine_version: str = ""

    def areas_for(self, template_path: Sequence[int]) -> list[AreaInfo]:
        """All areas produced by the template at *template_path*, in tree order."""
        wanted = tuple(template_path)
        return [
            a
            for a in self.root.walk()
            if a.template is not None and a.template_path == wanted
        ]


class TidyEngine:
    """Executes templates against grids with a fixed configuration."""

    def __init__(
        self,
        config: TidyConfig | None = None,
        rules: RuleRegistry | None = None,
    ) -> None:
        self._config = config or TidyConfig()
        self._rules = rules

    @property
    def config(self) -> TidyConfig:
        return self._config

    def run(self, grid: Grid, templates: TemplateSource) -> TidyResult:
        """Match *templates* against *grid*.

        Raises:
            TemplateValidationError: Before any matching, if a template is
                structurally invalid.
            TraversalOverflowError: If a ceiling is exceeded (depth is
                checked eagerly; tiles and areas during matching).
            OutOfBoundsError: For an out-of-grid top-level start cell when
                ``strict_root_bounds`` is enabled.
        """
        start = time.monotonic()
        forest = load_templates(templates, self._rules)
        validate_templates(forest, max_depth=self._config.max_depth)

        logger.info(
            "Tidy run: grid %dx%d, %d top-level template(s), depth %d",
            grid.width,
            grid.height,
            len(forest),
            template_depth(forest),
        )

        builder = TreeBuilder(grid, self._config)
        root = builder.build(forest)
        warnings = list(builder.warnings)
        table = assemble_table(root, warnings)
        match_tree = build_match_tree(forest, root)

        duration = time.monotonic() - start
        logger.info(
            "Tidy run finished: %d area(s), %d row(s), %d column(s), %d warning(s) (%.3fs)",
            builder.area_count,
            len(table.rows),
            len(table.columns),
            len(warnings),
            duration,
        )
        return TidyResult(
            root=root,
            table=table,
            match_tree=match_tree,
            templates=forest,
            warnings=warnings,
            area_count=builder.area_count,
            duration_seconds=duration,
            engine_version=self._config.engine_version,
        )


def tidy(
    grid: Grid,
    templates: TemplateSource,
    config: TidyConfig | None = None,
    rules: RuleRegistry | None = None,
) -> TidyResult:
    """Convenience wrapper: ``TidyEngine(config, rules).run(grid, templates)``."""
    return TidyEngine(config, rules).run(grid, templates)

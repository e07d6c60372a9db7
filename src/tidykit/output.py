"""Output Assembler: flattens a resolved area tree into a tidy table.

Row grouping
------------
Every mapped cell gets a *record key*: the sequence of
``(area_layer, x_index, y_index)`` of its tiled ancestors-or-self, i.e. the
areas whose template traverses along at least one axis.  Below a template
marked ``record_boundary`` no further tiles contribute.

Cells sharing a key form one record.  A record whose key is a strict prefix
of another record's key (for example a block title above repeated data
rows) is broadcast into every longer record rather than emitted alone.
Rows appear in the order their keys are first seen in a pre-order walk.

The module also builds the template-shaped match tree consumed by
renderers: per template node, its layer classification and the rectangle
of every area it produced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import BaseModel, Field

from tidykit.areas import AreaInfo, Rect
from tidykit.errors import TidyError, TidyErrorCode
from tidykit.grid import CellValue
from tidykit.models import TableTemplate, TransformKind

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger("tidykit")

RecordKey = tuple[tuple[int, int, int], ...]


# ---------------------------------------------------------------------------
# Output Models
# ---------------------------------------------------------------------------


class CellRef(BaseModel):
    """Source grid coordinate of an emitted value."""

    x: int
    y: int


class TidyRow(BaseModel):
    """One output record: column name to value, plus value provenance."""

    values: dict[str, CellValue] = Field(default_factory=dict)
    sources: dict[str, CellRef] = Field(default_factory=dict)


class TidyTable(BaseModel):
    """Ordered tidy rows over the union of all assigned column names."""

    columns: list[str] = Field(default_factory=list)
    rows: list[TidyRow] = Field(default_factory=list)

    def records(self) -> list[dict[str, CellValue]]:
        """Rows as plain dicts (columns missing from a row are omitted)."""
        return [dict(row.values) for row in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        """Rows as a DataFrame with one column per assigned name, in first-seen order."""
        import pandas as pd

        return pd.DataFrame(
            [[row.values.get(c) for c in self.columns] for row in self.rows],
            columns=self.columns,
        )


class MatchNode(BaseModel):
    """Template-shaped node of the match/geometry tree."""

    template_path: list[int]
    name: str | None = None
    kind: TransformKind
    matches: list[Rect] = Field(
        default_factory=list,
        description="Rectangles of every area this template produced, in tree order.",
    )
    children: list[MatchNode] = Field(default_factory=list)


MatchNode.model_rebuild()


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _collect_records(
    root: AreaInfo,
) -> dict[RecordKey, list[tuple[str, CellValue, CellRef]]]:
    records: dict[RecordKey, list[tuple[str, CellValue, CellRef]]] = {}

    def visit(area: AreaInfo, key: RecordKey, frozen: bool) -> None:
        template = area.template
        if template is not None and not frozen and template.traverse.is_tiled:
            key = key + ((area.area_layer, area.x_index, area.y_index),)
        for cell in area.area_cells:
            if cell.target_col is None:
                continue
            records.setdefault(key, []).append(
                (cell.target_col, cell.value, CellRef(x=cell.x, y=cell.y))
            )
        child_frozen = frozen or (template is not None and template.record_boundary)
        for child in area.children:
            visit(child, key, child_frozen)

    visit(root, (), False)
    return records


def assemble_table(
    root: AreaInfo, warnings: list[TidyError] | None = None
) -> TidyTable:
    """Flatten the mapped cells under *root* into a ``TidyTable``."""
    records = _collect_records(root)
    keys = list(records)

    columns: list[str] = []
    seen_columns: set[str] = set()
    for key in keys:
        for column, _, _ in records[key]:
            if column not in seen_columns:
                seen_columns.add(column)
                columns.append(column)

    prefixes = {key[:depth] for key in keys for depth in range(len(key))}
    maximal = [key for key in keys if key not in prefixes]

    rows: list[TidyRow] = []
    for key in maximal:
        row = TidyRow()
        for depth in range(len(key) + 1):
            for column, value, ref in records.get(key[:depth], []):
                if column in row.values:
                    logger.warning(
                        "Column %r assigned twice in one record; keeping the later value",
                        column,
                    )
                    if warnings is not None:
                        warnings.append(
                            TidyError(
                                code=TidyErrorCode.W_COLUMN_OVERWRITTEN,
                                message=f"Column {column!r} assigned twice in one record",
                                stage="assemble",
                                recoverable=True,
                                x=ref.x,
                                y=ref.y,
                            )
                        )
                row.values[column] = value
                row.sources[column] = ref
        rows.append(row)

    return TidyTable(columns=columns, rows=rows)


def build_match_tree(
    templates: Sequence[TableTemplate], root: AreaInfo
) -> list[MatchNode]:
    """Template-shaped tree with every produced area's rectangle per node."""
    rects: dict[tuple[int, ...], list[Rect]] = {}
    for area in root.walk():
        if area.template is not None:
            rects.setdefault(area.template_path, []).append(area.rect)

    def node(template: TableTemplate, path: tuple[int, ...]) -> MatchNode:
        return MatchNode(
            template_path=list(path),
            name=template.name,
            kind=template.kind,
            matches=rects.get(path, []),
            children=[
                node(child, path + (i,)) for i, child in enumerate(template.children)
            ],
        )

    return [node(t, (i,)) for i, t in enumerate(templates)]


def match_tree_to_dicts(nodes: list[MatchNode]) -> list[dict[str, Any]]:
    """JSON-ready form of the match tree for rendering collaborators."""
    return [n.model_dump(mode="json") for n in nodes]

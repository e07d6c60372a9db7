"""Pydantic v2 data models for tidykit templates.

A template is a recursive, author-written description of where a region
sits in a grid (``start_cell`` + ``size``), when a candidate region counts as
a match (``constraints``), how to look for repetitions of it (``traverse``)
and how each of its cells maps to an output column (``transform``).

Fields that may be either a literal or a caller-supplied function are typed
as ``<literal type> | Computed``.  Bare callables and ``{"rule": "<name>"}``
references are normalized to ``Computed`` once, at construction time, so the
engine dispatches on ``isinstance(value, Computed)`` instead of probing
callability at match time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Literal, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from tidykit.errors import TemplateValidationError
from tidykit.grid import CellValue, normalize_value


TO_PARENT_X = "toParentX"
TO_PARENT_Y = "toParentY"
CELL_VALUE = "cellValue"
CONTEXT = "context"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ReferenceLayer(str, Enum):
    """Reference frame a cell selection is resolved against."""

    CURRENT = "current"
    PARENT = "parent"
    ROOT = "root"


class ReferenceCorner(str, Enum):
    """Corner of the reference frame that offsets are applied to."""

    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"


class Direction(str, Enum):
    """Tiling policy along one axis."""

    NONE = "none"
    AFTER = "after"
    BEFORE = "before"
    WHOLE = "whole"


class ValueType(str, Enum):
    """Type check a constraint can require of a cell value."""

    STRING = "string"
    NUMBER = "number"
    NONE = "none"


class ContextPosition(str, Enum):
    """Edge of the enclosing area a cell is projected onto to find its context cell."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class TransformKind(str, Enum):
    """Layer classification of a template node, as shown by renderers."""

    POSITION = "position"
    CONTEXT = "context"
    VALUE = "value"
    NULL = "null"


# ---------------------------------------------------------------------------
# Tagged variants
# ---------------------------------------------------------------------------


class Computed:
    """A caller-supplied pure function standing in for a literal field value.

    The call signature depends on the field it is used for:

    * offsets: ``fn(current: AreaInfo, root: AreaInfo) -> int``
    * reference layer: ``fn(current: AreaInfo) -> int`` (absolute layer, 0 = root)
    * value predicate: ``fn(value) -> bool``
    * column mapping: ``fn(cells: list[AreaCell]) -> list[str | None]``
    * context position: ``fn(ctx: CellContext) -> list[CellSelection]``
    * context target column: ``fn(ctx: CellContext) -> str | None``
    """

    __slots__ = ("fn", "name")

    def __init__(self, fn: Callable[..., Any], name: str | None = None) -> None:
        if not callable(fn):
            raise TypeError(f"Computed expects a callable, got {type(fn).__name__}")
        self.fn = fn
        self.name = name or getattr(fn, "__name__", None)

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)

    def __repr__(self) -> str:
        return f"Computed({self.name!r})"


class Equals(BaseModel):
    """Constraint predicate: the cell value must equal ``value`` exactly."""

    model_config = ConfigDict(frozen=True)

    value: CellValue

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_like_grid(cls, v: Any) -> Any:
        # booleans compare the way loaders store them: "TRUE" / "FALSE"
        return normalize_value(v)


def _as_computed(value: Any, info: ValidationInfo) -> Any:
    """Normalize callables and named rule references to ``Computed``."""
    if isinstance(value, Computed):
        return value
    if isinstance(value, Mapping) and set(value) == {"rule"}:
        registry = (info.context or {}).get("rules")
        if registry is None:
            raise ValueError(
                f"Rule reference '{value['rule']}' requires a RuleRegistry"
            )
        return registry.computed(value["rule"])
    if callable(value) and not isinstance(value, type):
        return Computed(value)
    return value


class _TemplateModel(BaseModel):
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Template Models
# ---------------------------------------------------------------------------


class CellSelection(_TemplateModel):
    """Relative cell-selection rule: reference frame, corner and offsets."""

    reference_layer: ReferenceLayer | Computed = ReferenceLayer.CURRENT
    reference_corner: ReferenceCorner = ReferenceCorner.TOP_LEFT
    x_offset: int | Computed = 0
    y_offset: int | Computed = 0

    @field_validator("reference_layer", "x_offset", "y_offset", mode="before")
    @classmethod
    def _normalize_computed(cls, v: Any, info: ValidationInfo) -> Any:
        return _as_computed(v, info)


class CellConstraint(CellSelection):
    """A cell selection paired with a value predicate.

    ``value_constraint`` accepts an ``Equals``, a ``ValueType`` or a
    ``Computed`` predicate.  As shorthand, a bare string/number means
    ``Equals``, ``{"equals": v}`` means ``Equals(v)``, ``{"type": "number"}``
    means ``ValueType.NUMBER``.
    """

    value_constraint: Equals | ValueType | Computed

    @field_validator("value_constraint", mode="before")
    @classmethod
    def _normalize_value_constraint(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, (Equals, ValueType)):
            return v
        if isinstance(v, Mapping):
            if set(v) == {"equals"}:
                return Equals(value=v["equals"])
            if set(v) == {"type"}:
                return ValueType(v["type"])
            if set(v) == {"value"}:
                return Equals(value=v["value"])
        if v is None or isinstance(v, (str, int, float)):
            return Equals(value=v)
        return _as_computed(v, info)


class Size(_TemplateModel):
    """Area extent.

    Each axis is a positive integer, ``"toParentX"``/``"toParentY"`` (extend
    to the enclosing area's far edge), or ``None`` (unbounded: extend to the
    far edge, then trim trailing empty lines).
    """

    width: StrictInt | Literal["toParentX"] | None = 1
    height: StrictInt | Literal["toParentY"] | None = 1


class Traverse(_TemplateModel):
    """Tiling policy per axis."""

    x_direction: Direction = Direction.NONE
    y_direction: Direction = Direction.NONE

    @property
    def is_tiled(self) -> bool:
        return self.x_direction != Direction.NONE or self.y_direction != Direction.NONE


class ContextTransform(_TemplateModel):
    """How a cell finds its context cell and derives a column name from it."""

    position: ContextPosition | Computed = ContextPosition.TOP
    target_col: Literal["cellValue"] | Computed = CELL_VALUE

    @field_validator("position", "target_col", mode="before")
    @classmethod
    def _normalize_computed(cls, v: Any, info: ValidationInfo) -> Any:
        return _as_computed(v, info)


class Transform(_TemplateModel):
    """Cell-to-column mapping of a matched area.

    ``target_cols`` is a positional list (one entry per cell in row-major
    order), the literal ``"context"`` (use ``context``), or a ``Computed``
    receiving the area's cells and returning a same-length list.
    """

    target_cols: list[str | None] | Literal["context"] | Computed
    context: ContextTransform | None = None

    @field_validator("target_cols", mode="before")
    @classmethod
    def _normalize_computed(cls, v: Any, info: ValidationInfo) -> Any:
        return _as_computed(v, info)


class TableTemplate(_TemplateModel):
    """Recursive template definition.

    Every field has a default, so a partial record describes a complete
    template; see ``fill_template_defaults``.
    """

    name: str | None = None
    start_cell: CellSelection = Field(default_factory=CellSelection)
    size: Size = Field(default_factory=Size)
    constraints: list[CellConstraint] = Field(default_factory=list)
    traverse: Traverse = Field(default_factory=Traverse)
    transform: Transform | None = None
    children: list[TableTemplate] = Field(default_factory=list)
    record_boundary: bool = Field(
        default=False,
        description="Tiles below this template do not split output rows.",
    )

    @property
    def kind(self) -> TransformKind:
        if self.transform is None:
            return TransformKind.NULL
        if isinstance(self.transform.target_cols, list):
            return TransformKind.POSITION
        if self.transform.target_cols == CONTEXT:
            return TransformKind.CONTEXT
        return TransformKind.VALUE


TableTemplate.model_rebuild()


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def template_path_from_loc(loc: tuple[int | str, ...]) -> list[int]:
    """Extract the child-index path from a Pydantic error location."""
    path: list[int] = []
    for i, part in enumerate(loc):
        if isinstance(part, int) and (i == 0 or loc[i - 1] == "children"):
            path.append(part)
    return path


def fill_template_defaults(
    partial: Mapping[str, Any] | TableTemplate,
    rules: Any = None,
    *,
    path: list[int] | None = None,
) -> TableTemplate:
    """Build a fully-populated template from a partial record.

    Missing keys take their defaults (start cell at the current area's top
    left corner, size 1x1, no constraints, no traversal, no transform, no
    children).  Keys may be given in snake_case or camelCase.  Rule
    references (``{"rule": "<name>"}``) are resolved through *rules*.

    Raises:
        TemplateValidationError: If the record does not describe a valid
            template.  The error carries the child-index path of the
            offending template.
    """
    if isinstance(partial, TableTemplate):
        return partial
    base_path = list(path or [])
    try:
        return TableTemplate.model_validate(partial, context={"rules": rules})
    except ValidationError as exc:
        first = exc.errors()[0]
        raise TemplateValidationError(
            message=f"Invalid template: {exc.error_count()} error(s); first: "
            f"{'.'.join(str(p) for p in first['loc'])}: {first['msg']}",
            stage="template_load",
            template_path=base_path + template_path_from_loc(tuple(first["loc"])),
        ) from exc

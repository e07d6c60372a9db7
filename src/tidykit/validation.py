"""Eager structural validation of a template tree.

Runs before any grid matching.  Every problem found here is fatal for the
whole run and is reported with the child-index path of the template that
caused it.
"""

from __future__ import annotations

from typing import Sequence

from tidykit.errors import TemplateValidationError, TidyErrorCode, TraversalOverflowError
from tidykit.models import (
    CONTEXT,
    TO_PARENT_X,
    TO_PARENT_Y,
    ReferenceLayer,
    TableTemplate,
)


def _fail(path: tuple[int, ...], message: str) -> None:
    raise TemplateValidationError(
        message=message, stage="validate", template_path=list(path)
    )


def _validate_one(template: TableTemplate, path: tuple[int, ...]) -> None:
    width = template.size.width
    height = template.size.height
    for axis, value, sentinel in (("width", width, TO_PARENT_X), ("height", height, TO_PARENT_Y)):
        if value is None or value == sentinel:
            continue
        if not isinstance(value, int):
            _fail(path, f"size.{axis} must be a positive integer, {sentinel!r} or null")
        if value < 1:
            _fail(path, f"size.{axis} must be >= 1, got {value}")

    if len(path) == 1 and template.start_cell.reference_layer == ReferenceLayer.PARENT:
        _fail(path, "startCell of a top-level template cannot reference 'parent'")

    transform = template.transform
    if transform is None:
        return
    target_cols = transform.target_cols
    if target_cols == CONTEXT and transform.context is None:
        _fail(path, "targetCols 'context' requires a context transform")
    if isinstance(target_cols, list) and isinstance(width, int) and isinstance(height, int):
        expected = width * height
        if len(target_cols) != expected:
            _fail(
                path,
                f"Positional mapping has {len(target_cols)} entries for a "
                f"{width}x{height} area ({expected} cells)",
            )


def template_depth(templates: Sequence[TableTemplate]) -> int:
    """Nesting depth of a template forest (top-level templates have depth 1)."""
    if not templates:
        return 0
    return 1 + max(template_depth(t.children) for t in templates)


def validate_templates(
    templates: Sequence[TableTemplate], *, max_depth: int
) -> None:
    """Validate a template forest.

    Raises:
        TemplateValidationError: On the first structurally invalid template.
        TraversalOverflowError: With E_DEPTH_EXCEEDED if the nesting is
            deeper than *max_depth*.
    """

    def walk(items: Sequence[TableTemplate], prefix: tuple[int, ...]) -> None:
        for index, template in enumerate(items):
            path = prefix + (index,)
            if len(path) > max_depth:
                raise TraversalOverflowError(
                    code=TidyErrorCode.E_DEPTH_EXCEEDED,
                    message=f"Template nesting exceeds max_depth={max_depth}",
                    stage="validate",
                    template_path=list(path),
                )
            _validate_one(template, path)
            walk(template.children, path)

    walk(templates, ())

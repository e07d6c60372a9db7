"""Constraint Evaluator: decides whether a candidate area satisfies its template.

Each constraint resolves a cell relative to the candidate and tests that
cell's value.  A constraint whose cell falls outside the grid is treated as
failed; constraint failure is the normal "template does not apply here"
outcome, never an error.
"""

from __future__ import annotations

import logging

from tidykit.errors import OutOfBoundsError
from tidykit.grid import CellValue, Grid, is_empty
from tidykit.models import CellConstraint, Computed, Equals, ValueType
from tidykit.resolver import Frames, resolve_position

logger = logging.getLogger("tidykit")


def check_value(value: CellValue, predicate: Equals | ValueType | Computed) -> bool:
    """Apply one value predicate to a cell value."""
    if isinstance(predicate, Equals):
        # "30" and 30 are different values
        return value == predicate.value and (
            isinstance(value, str) == isinstance(predicate.value, str)
        )
    if isinstance(predicate, ValueType):
        if predicate == ValueType.STRING:
            return isinstance(value, str) and value != ""
        if predicate == ValueType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return is_empty(value)
    return bool(predicate(value))


def evaluate_constraints(
    constraints: list[CellConstraint],
    frames: Frames,
    grid: Grid,
    *,
    log_values: bool = False,
) -> bool:
    """Return True if every constraint holds for the candidate in ``frames.current``."""
    for index, constraint in enumerate(constraints):
        try:
            x, y = resolve_position(constraint, frames, grid)
        except OutOfBoundsError:
            logger.debug("Constraint %d rejected: cell outside grid", index)
            return False
        value = grid.value(x, y)
        if not check_value(value, constraint.value_constraint):
            if log_values:
                logger.debug(
                    "Constraint %d rejected at (%d, %d): value %r", index, x, y, value
                )
            else:
                logger.debug("Constraint %d rejected at (%d, %d)", index, x, y)
            return False
    return True

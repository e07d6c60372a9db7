"""Normalized error codes and structured error model for the tidykit engine.

Follows the ingestkit convention: a ``str`` enum of stable codes, a Pydantic
model describing one error or warning, and a raisable exception that wraps
the model.  The three failure classes the engine distinguishes (invalid
template, out-of-grid position, traversal ceiling) are exposed as subclasses
so callers can ``except`` them individually.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TidyErrorCode(str, Enum):
    """Normalized error codes for the tidykit engine.

    Codes prefixed with ``E_`` are errors; codes prefixed with ``W_`` are
    non-fatal warnings.  Every member's name equals its string value.
    """

    # Template errors
    E_TEMPLATE_INVALID = "E_TEMPLATE_INVALID"

    # Resolution errors
    E_OUT_OF_BOUNDS = "E_OUT_OF_BOUNDS"

    # Traversal / resource ceilings
    E_TRAVERSAL_OVERFLOW = "E_TRAVERSAL_OVERFLOW"
    E_DEPTH_EXCEEDED = "E_DEPTH_EXCEEDED"
    E_AREA_LIMIT_EXCEEDED = "E_AREA_LIMIT_EXCEEDED"

    # Grid loading
    E_GRID_LOAD_FAILED = "E_GRID_LOAD_FAILED"

    # Warnings (non-fatal)
    W_BRANCH_SKIPPED = "W_BRANCH_SKIPPED"
    W_COLUMN_OVERWRITTEN = "W_COLUMN_OVERWRITTEN"
    W_NO_MATCH = "W_NO_MATCH"


class TidyError(BaseModel):
    """Structured error with code, message, and template location.

    Note: This is a Pydantic model (data structure), not a Python Exception.
    To raise errors, use ``TidyException`` or one of its subclasses.
    """

    code: TidyErrorCode
    message: str
    stage: str | None = None
    recoverable: bool = False
    template_path: list[int] = Field(
        default_factory=list,
        description="Child indices from the top-level template list down to the failing template.",
    )
    x: int | None = None
    y: int | None = None


class TidyException(Exception):
    """Raisable exception wrapping a TidyError data model.

    Carries the structured ``TidyError`` as the ``.error`` attribute for
    inspection and serialization.
    """

    default_code: TidyErrorCode | None = None

    def __init__(self, **kwargs: object) -> None:
        if "code" not in kwargs and self.default_code is not None:
            kwargs["code"] = self.default_code
        self.error = TidyError(**kwargs)  # type: ignore[arg-type]
        super().__init__(self.error.message)

    @property
    def code(self) -> TidyErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable

    @property
    def template_path(self) -> list[int]:
        return self.error.template_path


class TemplateValidationError(TidyException):
    """The template is structurally invalid. Always aborts the whole run."""

    default_code = TidyErrorCode.E_TEMPLATE_INVALID


class OutOfBoundsError(TidyException):
    """A resolved position lies outside the grid."""

    default_code = TidyErrorCode.E_OUT_OF_BOUNDS


class TraversalOverflowError(TidyException):
    """A tiling scan, the nesting depth or the area count exceeded its ceiling."""

    default_code = TidyErrorCode.E_TRAVERSAL_OVERFLOW

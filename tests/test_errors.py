"""Unit tests for tidykit.errors -- TidyErrorCode enum, TidyError model and exceptions."""

from __future__ import annotations

import pytest

from tidykit.errors import (
    OutOfBoundsError,
    TemplateValidationError,
    TidyError,
    TidyErrorCode,
    TidyException,
    TraversalOverflowError,
)


# ---------------------------------------------------------------------------
# TidyErrorCode enum tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestTidyErrorCodeEnum:
    """Tests for the TidyErrorCode(str, Enum) taxonomy."""

    def test_total_member_count(self) -> None:
        """Enum has exactly 9 members (6 E_* + 3 W_*)."""
        assert len(TidyErrorCode) == 9

    def test_all_names_equal_values(self) -> None:
        for member in TidyErrorCode:
            assert member.name == member.value

    def test_all_members_are_strings(self) -> None:
        for member in TidyErrorCode:
            assert isinstance(member, str)

    def test_prefix_split(self) -> None:
        errors = [m for m in TidyErrorCode if m.value.startswith("E_")]
        warnings = [m for m in TidyErrorCode if m.value.startswith("W_")]
        assert len(errors) == 6
        assert len(warnings) == 3

    @pytest.mark.parametrize(
        "code",
        [
            "E_TEMPLATE_INVALID",
            "E_OUT_OF_BOUNDS",
            "E_TRAVERSAL_OVERFLOW",
            "E_DEPTH_EXCEEDED",
            "E_AREA_LIMIT_EXCEEDED",
            "E_GRID_LOAD_FAILED",
        ],
    )
    def test_error_code_exists(self, code: str) -> None:
        assert TidyErrorCode(code).value == code


# ---------------------------------------------------------------------------
# TidyError model tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestTidyErrorModel:
    def test_minimal_construction(self) -> None:
        err = TidyError(code=TidyErrorCode.E_OUT_OF_BOUNDS, message="outside")
        assert err.stage is None
        assert err.recoverable is False
        assert err.template_path == []
        assert err.x is None and err.y is None

    def test_serialization_roundtrip(self) -> None:
        err = TidyError(
            code=TidyErrorCode.W_BRANCH_SKIPPED,
            message="skipped",
            stage="build",
            recoverable=True,
            template_path=[1, 0],
            x=3,
            y=4,
        )
        restored = TidyError.model_validate_json(err.model_dump_json())
        assert restored == err
        assert err.model_dump()["code"] == "W_BRANCH_SKIPPED"

    def test_code_from_string(self) -> None:
        err = TidyError(code="E_TEMPLATE_INVALID", message="bad")
        assert err.code is TidyErrorCode.E_TEMPLATE_INVALID


# ---------------------------------------------------------------------------
# Exception tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestExceptions:
    def test_wraps_model(self) -> None:
        exc = TidyException(
            code=TidyErrorCode.E_GRID_LOAD_FAILED, message="boom", stage="grid_load"
        )
        assert isinstance(exc.error, TidyError)
        assert exc.code is TidyErrorCode.E_GRID_LOAD_FAILED
        assert exc.message == "boom"
        assert exc.stage == "grid_load"
        assert exc.recoverable is False
        assert str(exc) == "boom"

    @pytest.mark.parametrize(
        "cls,code",
        [
            (TemplateValidationError, TidyErrorCode.E_TEMPLATE_INVALID),
            (OutOfBoundsError, TidyErrorCode.E_OUT_OF_BOUNDS),
            (TraversalOverflowError, TidyErrorCode.E_TRAVERSAL_OVERFLOW),
        ],
    )
    def test_subclass_default_codes(self, cls: type[TidyException], code: TidyErrorCode) -> None:
        exc = cls(message="x", template_path=[0, 2])
        assert exc.code is code
        assert exc.template_path == [0, 2]
        assert isinstance(exc, TidyException)

    def test_subclass_code_override(self) -> None:
        exc = TraversalOverflowError(code=TidyErrorCode.E_DEPTH_EXCEEDED, message="deep")
        assert exc.code is TidyErrorCode.E_DEPTH_EXCEEDED

    def test_catchable_as_base(self) -> None:
        with pytest.raises(TidyException):
            raise OutOfBoundsError(message="outside", x=9, y=9)

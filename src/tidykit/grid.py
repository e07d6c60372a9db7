"""Grid: the immutable rectangular source of cell values.

Coordinates are zero-based ``(x, y)`` pairs where ``x`` is the column and
``y`` is the row.  Cell values are restricted to ``str``, ``int``/``float``
or ``None`` (absent); anything else a loader produces is stringified.

Adapters build a grid from plain row lists, a pandas ``DataFrame`` or an
openpyxl worksheet / ``.xlsx`` file.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Iterable, Sequence, Union

import openpyxl

from tidykit.errors import OutOfBoundsError, TidyErrorCode, TidyException

if TYPE_CHECKING:
    import pandas as pd
    from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger("tidykit")

CellValue = Union[str, int, float, None]


def normalize_value(raw: Any) -> CellValue:
    """Map a loader value onto the engine's string/number/absent value space."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return str(raw).upper()
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return None
        return raw
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    # numpy scalars expose .item()
    item = getattr(raw, "item", None)
    if callable(item):
        return normalize_value(item())
    return str(raw)


def is_empty(value: CellValue) -> bool:
    """True for absent cells and empty strings."""
    return value is None or value == ""


class Grid:
    """Immutable rows x columns table of cell values.

    Ragged input rows are padded with ``None`` to the widest row.
    """

    __slots__ = ("_rows", "_width", "_height")

    def __init__(self, rows: Iterable[Sequence[Any]]) -> None:
        materialized = [[normalize_value(v) for v in row] for row in rows]
        width = max((len(r) for r in materialized), default=0)
        self._rows: tuple[tuple[CellValue, ...], ...] = tuple(
            tuple(r) + (None,) * (width - len(r)) for r in materialized
        )
        self._width = width
        self._height = len(self._rows)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Any]]) -> Grid:
        return cls(rows)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, *, include_header: bool = True) -> Grid:
        """Build a grid from a DataFrame.

        With ``include_header`` the column labels become the first grid row,
        so header text can be matched like any other cell.  Frames read
        with ``header=None`` should pass ``include_header=False``.
        """
        rows: list[list[Any]] = []
        if include_header:
            rows.append([str(c) for c in df.columns])
        rows.extend(df.itertuples(index=False, name=None))
        return cls(rows)

    @classmethod
    def from_worksheet(cls, ws: Worksheet) -> Grid:
        """Build a grid from an openpyxl worksheet (cached values only)."""
        return cls(ws.iter_rows(values_only=True))

    @classmethod
    def from_file(cls, file_path: str, sheet_name: str | None = None) -> Grid:
        """Load one sheet of an ``.xlsx`` workbook.

        Raises:
            TidyException: With E_GRID_LOAD_FAILED if the workbook or sheet
                cannot be opened.
        """
        try:
            wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
        except Exception as exc:
            raise TidyException(
                code=TidyErrorCode.E_GRID_LOAD_FAILED,
                message=f"Failed to open workbook: {exc}",
                stage="grid_load",
            ) from exc

        try:
            if sheet_name is not None:
                if sheet_name not in wb.sheetnames:
                    raise TidyException(
                        code=TidyErrorCode.E_GRID_LOAD_FAILED,
                        message=f"Sheet '{sheet_name}' not found in workbook",
                        stage="grid_load",
                    )
                ws = wb[sheet_name]
            else:
                ws = wb.active
            grid = cls.from_worksheet(ws)
        finally:
            wb.close()

        logger.info(
            "Loaded grid %dx%d from %s", grid.width, grid.height, file_path
        )
        return grid

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def rows(self) -> tuple[tuple[CellValue, ...], ...]:
        return self._rows

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def contains_rect(self, x: int, y: int, width: int, height: int) -> bool:
        return (
            width >= 1
            and height >= 1
            and self.contains(x, y)
            and self.contains(x + width - 1, y + height - 1)
        )

    def value(self, x: int, y: int) -> CellValue:
        if not self.contains(x, y):
            raise OutOfBoundsError(
                message=f"Cell ({x}, {y}) lies outside the {self._width}x{self._height} grid",
                stage="grid",
                x=x,
                y=y,
            )
        return self._rows[y][x]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._rows == other._rows

    def __hash__(self) -> int:
        return hash(self._rows)

    def __repr__(self) -> str:
        return f"Grid(width={self._width}, height={self._height})"

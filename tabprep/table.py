"""Table helpers: column kinds, column specs and column selection.

A table is a ``pandas.DataFrame`` with unique column names. Row order and
the index are carried through every transformation unchanged.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from tabprep.exceptions import ColumnKindError, EmptyColumnError, MissingColumnError


class ColumnKind(str, Enum):
    """Kind of values a column holds."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


def is_numeric_column(series: pd.Series) -> bool:
    """True for numeric, non-boolean dtypes."""
    return ptypes.is_numeric_dtype(series.dtype) and not ptypes.is_bool_dtype(series.dtype)


def matches_kind(series: pd.Series, kind: ColumnKind) -> bool:
    """Whether a column can be consumed by a stage expecting ``kind``.

    Categorical stages accept any dtype, since integer codes are valid
    labels.
    """
    if kind == ColumnKind.NUMERIC:
        return is_numeric_column(series)
    return True


def check_kind(frame: pd.DataFrame, kind: ColumnKind) -> None:
    """Raise ColumnKindError for the first column that does not match ``kind``."""
    for column in frame.columns:
        if not matches_kind(frame[column], kind):
            raise ColumnKindError(column, kind.value, frame[column].dtype)


def as_frame(data: Any) -> pd.DataFrame:
    """Coerce a DataFrame, Series or 1-D sequence to a DataFrame.

    A Series keeps its name (``0`` when unnamed); a plain sequence becomes a
    single column named ``0``.
    """
    if isinstance(data, pd.DataFrame):
        frame = data
    elif isinstance(data, pd.Series):
        frame = data.to_frame(name=0 if data.name is None else data.name)
    else:
        values = np.asarray(data)
        if values.ndim != 1:
            raise ValueError(f"Expected a DataFrame, Series or 1-D sequence, got shape {values.shape}")
        frame = pd.Series(list(data)).to_frame(name=0)

    if frame.columns.has_duplicates:
        duplicated = frame.columns[frame.columns.duplicated()].unique().tolist()
        raise ValueError(f"Table has duplicate column names: {duplicated}")
    return frame


def ensure_not_empty(frame: pd.DataFrame) -> None:
    """Raise EmptyColumnError if there is nothing to fit on."""
    if frame.shape[1] == 0:
        raise EmptyColumnError("Cannot fit on a table with no columns")
    if frame.shape[0] == 0:
        raise EmptyColumnError(f"Cannot fit on columns {list(frame.columns)}: no rows")


def select_columns(frame: pd.DataFrame, columns: Sequence[Any]) -> pd.DataFrame:
    """Return ``frame[columns]`` in the given order, or raise MissingColumnError."""
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise MissingColumnError(missing, frame.columns)
    return frame.loc[:, list(columns)]


@dataclass(frozen=True)
class ColumnSpec:
    """A subset of table columns.

    Exactly one of ``columns`` (names and/or integer positions) or
    ``select`` (every column of a kind, in table order) is used.

    Args:
        columns: Column names or positions, in the order the stage sees them.
        kind: Kind the stage expects; ``None`` defers to the transformer.
        select: Pick every column of this kind instead of naming columns.
    """

    columns: tuple[Any, ...] = ()
    kind: ColumnKind | None = None
    select: ColumnKind | None = None

    def __post_init__(self):
        if self.select is not None and self.columns:
            raise ValueError("ColumnSpec takes either explicit columns or a kind selector, not both")
        if self.select is None and not self.columns:
            raise ValueError("ColumnSpec needs at least one column or a kind selector")
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"ColumnSpec lists a column twice: {list(self.columns)}")

    @classmethod
    def of(cls, columns: "ColumnSpec | Sequence[Any] | str") -> "ColumnSpec":
        """Build a spec from a spec, a single name or a list of names/positions."""
        if isinstance(columns, ColumnSpec):
            return columns
        if isinstance(columns, (str, int)):
            return cls(columns=(columns,))
        return cls(columns=tuple(columns))

    @classmethod
    def of_kind(cls, kind: ColumnKind | str) -> "ColumnSpec":
        """Select every column of a kind."""
        kind = ColumnKind(kind)
        return cls(select=kind, kind=kind)

    def resolve(self, frame: pd.DataFrame) -> tuple[Any, ...]:
        """Resolve this spec against a table into an ordered tuple of names."""
        if self.select is not None:
            if self.select == ColumnKind.NUMERIC:
                return tuple(c for c in frame.columns if is_numeric_column(frame[c]))
            return tuple(c for c in frame.columns if not is_numeric_column(frame[c]))

        resolved = []
        missing = []
        width = frame.shape[1]
        for column in self.columns:
            if column in frame.columns:
                resolved.append(column)
            elif isinstance(column, int) and not isinstance(column, bool) and -width <= column < width:
                resolved.append(frame.columns[column])
            else:
                missing.append(column)
        if missing:
            raise MissingColumnError(missing, frame.columns)
        if len(set(resolved)) != len(resolved):
            raise ValueError(f"ColumnSpec {list(self.columns)} resolves to the same column twice: {resolved}")
        return tuple(resolved)


__all__ = [
    "ColumnKind",
    "ColumnSpec",
    "as_frame",
    "check_kind",
    "ensure_not_empty",
    "is_numeric_column",
    "matches_kind",
    "select_columns",
]

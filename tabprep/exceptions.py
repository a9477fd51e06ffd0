"""Error types raised by tabprep transformers, routers and pipelines."""

from collections.abc import Iterable
from typing import Any


class TabprepError(Exception):
    """Base class for all tabprep errors."""


class DegenerateScaleError(TabprepError, ValueError):
    """A fitted scale statistic is zero, so the scaling formula is undefined."""

    def __init__(self, column: Any, policy: str, statistic: str):
        super().__init__(
            f"Cannot fit '{policy}' on column '{column}': {statistic} is zero"
        )
        self.column = column
        self.policy = policy
        self.statistic = statistic


class UnknownCategoryError(TabprepError, ValueError):
    """A value is not part of a fitted ordinal vocabulary."""

    def __init__(self, column: Any, values: Iterable[Any]):
        self.column = column
        self.values = list(values)
        super().__init__(
            f"Unknown categories in column '{column}': {self.values}"
        )


class MissingColumnError(TabprepError, KeyError):
    """A declared column is absent from the input table."""

    def __init__(self, columns: Iterable[Any], available: Iterable[Any] = ()):
        self.columns = list(columns)
        self.available = list(available)
        super().__init__(self.columns)

    def __str__(self) -> str:
        return f"Columns {self.columns} not found in table with columns {self.available}"


class DuplicateColumnClaimError(TabprepError, ValueError):
    """Two stages claim the same column, or produce the same output name."""

    def __init__(self, column: Any, owners: Iterable[str]):
        self.column = column
        self.owners = list(owners)
        super().__init__(f"Column '{column}' is claimed by more than one stage: {self.owners}")


class NotFittedError(TabprepError, RuntimeError):
    """transform or predict called before fit."""


class ColumnKindError(TabprepError, TypeError):
    """A column does not have the kind a stage expects."""

    def __init__(self, column: Any, expected: str, dtype: Any):
        super().__init__(f"Column '{column}' has dtype {dtype}, expected a {expected} column")
        self.column = column
        self.expected = expected
        self.dtype = dtype


class EmptyColumnError(TabprepError, ValueError):
    """Nothing to fit on: no rows, no columns, or no usable values."""


__all__ = [
    "TabprepError",
    "DegenerateScaleError",
    "UnknownCategoryError",
    "MissingColumnError",
    "DuplicateColumnClaimError",
    "NotFittedError",
    "ColumnKindError",
    "EmptyColumnError",
]

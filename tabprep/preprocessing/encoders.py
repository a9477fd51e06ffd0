"""Encoding policies for categorical columns.

One-hot encoding is lenient: a value outside the fitted vocabulary turns
into an all-zero row. Ordinal encoding is strict and raises
``UnknownCategoryError`` for the same input.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from tabprep.exceptions import UnknownCategoryError
from tabprep.preprocessing.base import FittedState, Transformer, to_python
from tabprep.table import ColumnKind


def sort_categories(values: Iterable[Any]) -> list[Any]:
    """Sort categories in natural order, or by their string form if mixed."""
    values = list(values)
    try:
        return sorted(values)
    except TypeError:
        return sorted(values, key=str)


def observed_categories(series: pd.Series) -> list[Any]:
    """Distinct non-missing values of a column, in first-seen order."""
    values = series.astype(object)
    return [to_python(v) for v in pd.unique(values[values.notna()])]


def _explicit_order(column: Any, order: Sequence[Any]) -> list[Any]:
    order = [to_python(v) for v in order]
    if len(set(order)) != len(order):
        raise ValueError(f"Category order for column '{column}' has duplicates: {order}")
    return order


@dataclass(frozen=True)
class OneHotState(FittedState):
    """Fitted vocabularies of a one-hot encoder.

    Attributes:
        categories: Ordered vocabulary per column.
        drop_first: Whether the first category of each vocabulary has no
            output column.
    """

    categories: tuple[tuple[Any, ...], ...]
    drop_first: bool = False

    def retained(self, index: int) -> tuple[Any, ...]:
        """Categories of the ``index``-th column that get an output column."""
        categories = self.categories[index]
        return categories[1:] if self.drop_first else categories

    def output_names(self, index: int) -> tuple[str, ...]:
        column = self.columns[index]
        return tuple(f"{column}_{category}" for category in self.retained(index))

    @property
    def output_columns(self) -> tuple[str, ...]:
        names: list[str] = []
        for i in range(len(self.columns)):
            names.extend(self.output_names(i))
        return tuple(names)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy": self.policy,
            "columns": list(self.columns),
            "categories": [list(c) for c in self.categories],
            "drop_first": self.drop_first,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "OneHotState":
        return cls(
            policy=d["policy"],
            columns=tuple(d["columns"]),
            categories=tuple(tuple(c) for c in d["categories"]),
            drop_first=bool(d.get("drop_first", False)),
        )


@dataclass(frozen=True)
class OrdinalState(FittedState):
    """Fitted rank order per column; a category's rank is its position."""

    categories: tuple[tuple[Any, ...], ...]

    def ranks(self, index: int) -> dict[Any, int]:
        return {category: rank for rank, category in enumerate(self.categories[index])}

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy": self.policy,
            "columns": list(self.columns),
            "categories": [list(c) for c in self.categories],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "OrdinalState":
        return cls(
            policy=d["policy"],
            columns=tuple(d["columns"]),
            categories=tuple(tuple(c) for c in d["categories"]),
        )


class OneHotEncoder(Transformer):
    """One binary column per category.

    Args:
        categories: ``"auto"`` keeps first-seen order, ``"sorted"`` sorts the
            observed categories, and a mapping gives an explicit vocabulary
            for some columns (the rest use first-seen order).
        drop_first: Drop the first category of each column to avoid a
            redundant column.
    """

    policy = "one_hot"
    kind = ColumnKind.CATEGORICAL
    state_type = OneHotState

    def __init__(
        self,
        categories: str | Mapping[Any, Sequence[Any]] = "auto",
        drop_first: bool = False,
    ):
        if isinstance(categories, str) and categories not in ("auto", "sorted"):
            raise ValueError(f"Unknown categories option: {categories}")
        self.categories = categories
        self.drop_first = drop_first

    def get_params(self) -> dict[str, Any]:
        return {"categories": self.categories, "drop_first": self.drop_first}

    def _fit(self, frame: pd.DataFrame) -> OneHotState:
        vocabularies = []
        for column in frame.columns:
            if isinstance(self.categories, Mapping) and column in self.categories:
                vocabulary = _explicit_order(column, self.categories[column])
            elif self.categories == "sorted":
                vocabulary = sort_categories(observed_categories(frame[column]))
            else:
                vocabulary = observed_categories(frame[column])
            vocabularies.append(tuple(vocabulary))

        state = OneHotState(
            policy=self.policy,
            columns=tuple(frame.columns),
            categories=tuple(vocabularies),
            drop_first=self.drop_first,
        )
        names = state.output_columns
        if len(set(names)) != len(names):
            raise ValueError(f"One-hot output names collide: {list(names)}")
        return state

    def _transform(self, frame: pd.DataFrame, state: OneHotState) -> pd.DataFrame:
        out = {}
        for i, column in enumerate(state.columns):
            values = frame[column].astype(object)
            for name, category in zip(state.output_names(i), state.retained(i)):
                out[name] = values.eq(category).to_numpy(dtype=np.int64)
        return pd.DataFrame(out, index=frame.index, columns=list(state.output_columns))

    def _inverse_transform(self, frame: pd.DataFrame, state: OneHotState) -> pd.DataFrame:
        out = {}
        for i, column in enumerate(state.columns):
            # All-zero rows decode to the dropped category, or to missing
            fallback = state.categories[i][0] if state.drop_first and state.categories[i] else None
            decoded = np.full(len(frame), fallback, dtype=object)

            names = list(state.output_names(i))
            if names:
                hot = frame[names].to_numpy(dtype=np.float64) > 0.5
                has_hot = hot.any(axis=1)
                labels = np.array(state.retained(i), dtype=object)
                decoded[has_hot] = labels[hot.argmax(axis=1)[has_hot]]
            out[column] = decoded
        return pd.DataFrame(out, index=frame.index, columns=list(state.columns))


class OrdinalEncoder(Transformer):
    """Map each category to its zero-based rank.

    Args:
        categories: Explicit rank order per column. Columns without one use
            their observed categories in sorted order.
    """

    policy = "ordinal"
    kind = ColumnKind.CATEGORICAL
    state_type = OrdinalState

    def __init__(self, categories: Mapping[Any, Sequence[Any]] | None = None):
        self.categories = dict(categories) if categories else {}

    def get_params(self) -> dict[str, Any]:
        return {"categories": self.categories or None}

    def _fit(self, frame: pd.DataFrame) -> OrdinalState:
        orders = []
        for column in frame.columns:
            observed = observed_categories(frame[column])
            if column in self.categories:
                order = _explicit_order(column, self.categories[column])
                known = set(order)
                unknown = [v for v in observed if v not in known]
                if unknown:
                    raise UnknownCategoryError(column, unknown)
            else:
                order = sort_categories(observed)
            orders.append(tuple(order))

        return OrdinalState(policy=self.policy, columns=tuple(frame.columns), categories=tuple(orders))

    def _transform(self, frame: pd.DataFrame, state: OrdinalState) -> pd.DataFrame:
        out = {}
        for i, column in enumerate(state.columns):
            values = frame[column].astype(object)
            missing = values.isna()
            codes = values.map(state.ranks(i))

            unknown = values[~missing & codes.isna()]
            if len(unknown):
                raise UnknownCategoryError(column, pd.unique(unknown))

            dtype = np.float64 if missing.any() else np.int64
            out[column] = codes.astype(dtype).to_numpy()
        return pd.DataFrame(out, index=frame.index, columns=list(state.columns))

    def _inverse_transform(self, frame: pd.DataFrame, state: OrdinalState) -> pd.DataFrame:
        out = {}
        for i, column in enumerate(state.columns):
            categories = state.categories[i]
            ranks = frame[column].to_numpy(dtype=np.float64, na_value=np.nan)
            present = ~np.isnan(ranks)
            rounded = np.round(ranks[present])

            valid = np.isclose(ranks[present], rounded) & (rounded >= 0) & (rounded < len(categories))
            if not valid.all():
                raise UnknownCategoryError(column, np.unique(ranks[present][~valid]).tolist())

            decoded = np.full(len(frame), None, dtype=object)
            decoded[present] = np.array(categories, dtype=object)[rounded.astype(np.int64)]
            out[column] = decoded
        return pd.DataFrame(out, index=frame.index, columns=list(state.columns))


__all__ = [
    "OneHotEncoder",
    "OneHotState",
    "OrdinalEncoder",
    "OrdinalState",
    "observed_categories",
    "sort_categories",
]

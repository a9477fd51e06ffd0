"""Scaling policies for numeric columns.

Every scaler learns a center and a scale per column and maps
``x -> (x - center) / scale``; the inverse is ``x * scale + center``.
Statistics are computed over finite values only, and a zero scale is
rejected at fit time with ``DegenerateScaleError``.
"""

from abc import abstractmethod
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import pandas as pd

from tabprep.exceptions import DegenerateScaleError, EmptyColumnError
from tabprep.preprocessing.base import FittedState, Transformer
from tabprep.table import ColumnKind


@dataclass(frozen=True)
class StandardStats:
    """Mean and population standard deviation of a column."""

    mean: float
    std: float

    @property
    def center(self) -> float:
        return self.mean

    @property
    def scale(self) -> float:
        return self.std


@dataclass(frozen=True)
class MinMaxStats:
    """Minimum and maximum of a column, plus the target range.

    Values are mapped so that ``min -> low`` and ``max -> high``.
    """

    min: float
    max: float
    low: float = 0.0
    high: float = 1.0

    @property
    def scale(self) -> float:
        return (self.max - self.min) / (self.high - self.low)

    @property
    def center(self) -> float:
        return self.min - self.low * self.scale


@dataclass(frozen=True)
class MeanNormStats:
    """Mean, minimum and maximum of a column."""

    mean: float
    min: float
    max: float

    @property
    def center(self) -> float:
        return self.mean

    @property
    def scale(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class MaxAbsStats:
    """Largest absolute value of a column."""

    max_abs: float

    @property
    def center(self) -> float:
        return 0.0

    @property
    def scale(self) -> float:
        return self.max_abs


@dataclass(frozen=True)
class RobustStats:
    """Median and quartiles of a column."""

    median: float
    q1: float
    q3: float

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    @property
    def center(self) -> float:
        return self.median

    @property
    def scale(self) -> float:
        return self.iqr


ColumnStats = StandardStats | MinMaxStats | MeanNormStats | MaxAbsStats | RobustStats

STATS_TYPES: dict[str, type] = {
    "standardize": StandardStats,
    "min_max": MinMaxStats,
    "mean_normalize": MeanNormStats,
    "max_abs": MaxAbsStats,
    "robust": RobustStats,
}


@dataclass(frozen=True)
class ScalerState(FittedState):
    """Fitted statistics of a scaler, one record per column."""

    stats: tuple[ColumnStats, ...]

    def __getitem__(self, column: Any) -> ColumnStats:
        """Get statistics for a column."""
        try:
            return self.stats[self.columns.index(column)]
        except ValueError:
            raise KeyError(column) from None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "policy": self.policy,
            "columns": list(self.columns),
            "stats": [asdict(s) for s in self.stats],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ScalerState":
        """Create from dictionary."""
        stats_type = STATS_TYPES[d["policy"]]
        return cls(
            policy=d["policy"],
            columns=tuple(d["columns"]),
            stats=tuple(stats_type(**s) for s in d["stats"]),
        )


def finite_values(series: pd.Series) -> np.ndarray:
    """Return the finite values of a numeric column as float64."""
    values = series.to_numpy(dtype=np.float64, na_value=np.nan)
    return values[np.isfinite(values)]


class Scaler(Transformer):
    """Shared fit/transform logic of the scaling policies."""

    kind = ColumnKind.NUMERIC
    state_type = ScalerState

    def _fit(self, frame: pd.DataFrame) -> ScalerState:
        stats = []
        for column in frame.columns:
            values = finite_values(frame[column])
            if values.size == 0:
                raise EmptyColumnError(f"Column '{column}' has no finite values to fit {self.policy}")
            stats.append(self._column_stats(column, values))

        return ScalerState(policy=self.policy, columns=tuple(frame.columns), stats=tuple(stats))

    def _transform(self, frame: pd.DataFrame, state: ScalerState) -> pd.DataFrame:
        out = {}
        for column, stats in zip(state.columns, state.stats):
            values = frame[column].to_numpy(dtype=np.float64, na_value=np.nan)
            out[column] = (values - stats.center) / stats.scale
        return pd.DataFrame(out, index=frame.index, columns=list(state.columns))

    def _inverse_transform(self, frame: pd.DataFrame, state: ScalerState) -> pd.DataFrame:
        out = {}
        for column, stats in zip(state.columns, state.stats):
            values = frame[column].to_numpy(dtype=np.float64, na_value=np.nan)
            out[column] = values * stats.scale + stats.center
        return pd.DataFrame(out, index=frame.index, columns=list(state.columns))

    @abstractmethod
    def _column_stats(self, column: Any, values: np.ndarray) -> ColumnStats:
        """Statistics of one column from its finite values."""


class StandardScaler(Scaler):
    """Standard (z-score) scaling: ``(x - mean) / std``.

    Uses the population standard deviation (ddof=0).
    """

    policy = "standardize"

    def _column_stats(self, column: Any, values: np.ndarray) -> StandardStats:
        # A constant column can leave a rounding-sized std, so test spread directly
        if values.min() == values.max():
            raise DegenerateScaleError(column, self.policy, "standard deviation")
        return StandardStats(mean=float(np.mean(values)), std=float(np.std(values)))


class MinMaxScaler(Scaler):
    """Min-max scaling to ``[low, high]``, ``[0, 1]`` by default.

    Args:
        feature_range: Tuple of (low, high) the fitted min and max map to.
    """

    policy = "min_max"

    def __init__(self, feature_range: tuple[float, float] = (0.0, 1.0)):
        low, high = (float(v) for v in feature_range)
        if not low < high:
            raise ValueError(f"feature_range must satisfy low < high, got {feature_range}")
        self.feature_range = (low, high)

    def get_params(self) -> dict[str, Any]:
        return {"feature_range": self.feature_range}

    def _column_stats(self, column: Any, values: np.ndarray) -> MinMaxStats:
        vmin, vmax = float(values.min()), float(values.max())
        if vmax == vmin:
            raise DegenerateScaleError(column, self.policy, "range (max - min)")
        low, high = self.feature_range
        return MinMaxStats(min=vmin, max=vmax, low=low, high=high)


class MeanNormalizer(Scaler):
    """Mean normalization: ``(x - mean) / (max - min)``."""

    policy = "mean_normalize"

    def _column_stats(self, column: Any, values: np.ndarray) -> MeanNormStats:
        vmin, vmax = float(values.min()), float(values.max())
        if vmax == vmin:
            raise DegenerateScaleError(column, self.policy, "range (max - min)")
        return MeanNormStats(mean=float(np.mean(values)), min=vmin, max=vmax)


class MaxAbsScaler(Scaler):
    """Scale by the largest absolute value, mapping into ``[-1, 1]``."""

    policy = "max_abs"

    def _column_stats(self, column: Any, values: np.ndarray) -> MaxAbsStats:
        max_abs = float(np.max(np.abs(values)))
        if max_abs == 0:
            raise DegenerateScaleError(column, self.policy, "maximum absolute value")
        return MaxAbsStats(max_abs=max_abs)


class RobustScaler(Scaler):
    """Robust scaling: ``(x - median) / (Q3 - Q1)``.

    Quartiles use linear interpolation between order statistics.
    """

    policy = "robust"

    def _column_stats(self, column: Any, values: np.ndarray) -> RobustStats:
        q1, median, q3 = (float(q) for q in np.quantile(values, [0.25, 0.5, 0.75]))
        if q3 - q1 == 0:
            raise DegenerateScaleError(column, self.policy, "interquartile range")
        return RobustStats(median=median, q1=q1, q3=q3)


__all__ = [
    "ColumnStats",
    "MaxAbsScaler",
    "MaxAbsStats",
    "MeanNormStats",
    "MeanNormalizer",
    "MinMaxScaler",
    "MinMaxStats",
    "RobustScaler",
    "RobustStats",
    "ScalerState",
    "StandardScaler",
    "StandardStats",
    "finite_values",
]

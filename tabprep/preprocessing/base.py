"""Base classes shared by every transformer policy.

A transformer holds configuration only. ``fit`` returns a frozen
``FittedState`` describing the learned mapping, and ``transform`` is a pure
function of the input table and that state.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
import pandas as pd

from tabprep.table import ColumnKind, as_frame, check_kind, ensure_not_empty, select_columns

logger = logging.getLogger(__name__)


def to_python(value: Any) -> Any:
    """Convert numpy scalars to plain Python scalars for serialization."""
    if isinstance(value, np.generic):
        return value.item()
    return value


@dataclass(frozen=True)
class FittedState:
    """Immutable result of fitting a transformer.

    Attributes:
        policy: Name of the policy that produced this state.
        columns: Input columns, in the order the transformer consumes them.
    """

    policy: str
    columns: tuple[Any, ...]

    @property
    def output_columns(self) -> tuple[Any, ...]:
        """Names of the columns ``transform`` produces, in order."""
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of scalars and lists.

        Subclasses extend this with their fitted fields.
        """
        return {"policy": self.policy, "columns": list(self.columns)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "FittedState":
        """Create from dictionary."""
        return cls(policy=d["policy"], columns=tuple(d["columns"]))


class Transformer(ABC):
    """A single fit/transform policy over one or more columns of one kind."""

    policy: ClassVar[str]
    kind: ClassVar[ColumnKind]
    state_type: ClassVar[type[FittedState]]

    def fit(self, data: pd.DataFrame | pd.Series | Any) -> FittedState:
        """Learn the statistics or vocabulary of every column in ``data``.

        Args:
            data: Training table, Series, or 1-D sequence of values.

        Returns:
            A new frozen state. Fitting never touches earlier states.
        """
        frame = as_frame(data)
        ensure_not_empty(frame)
        check_kind(frame, self.kind)

        state = self._fit(frame)
        logger.debug(
            f"Fitted {self.policy} on {len(frame)} rows, columns {list(state.columns)}"
        )
        return state

    def transform(self, data: pd.DataFrame | pd.Series | Any, state: FittedState) -> pd.DataFrame:
        """Apply the fitted mapping to the fitted columns of ``data``.

        Columns of ``data`` that were not fitted are ignored.
        """
        self._check_state(state)
        frame = select_columns(as_frame(data), state.columns)
        check_kind(frame, self.kind)
        return self._transform(frame, state)

    def inverse_transform(self, data: pd.DataFrame | pd.Series | Any, state: FittedState) -> pd.DataFrame:
        """Map transformed columns back to the original columns."""
        self._check_state(state)
        frame = select_columns(as_frame(data), state.output_columns)
        return self._inverse_transform(frame, state)

    def fit_transform(self, data: pd.DataFrame | pd.Series | Any) -> tuple[FittedState, pd.DataFrame]:
        """Fit on ``data`` and transform it with the new state."""
        state = self.fit(data)
        return state, self.transform(data, state)

    def get_params(self) -> dict[str, Any]:
        """Constructor parameters of this transformer."""
        return {}

    def _check_state(self, state: FittedState) -> None:
        if not isinstance(state, self.state_type) or state.policy != self.policy:
            raise ValueError(
                f"{type(self).__name__} cannot use a state fitted by policy "
                f"'{getattr(state, 'policy', type(state).__name__)}'"
            )

    @abstractmethod
    def _fit(self, frame: pd.DataFrame) -> FittedState:
        ...

    @abstractmethod
    def _transform(self, frame: pd.DataFrame, state: FittedState) -> pd.DataFrame:
        ...

    @abstractmethod
    def _inverse_transform(self, frame: pd.DataFrame, state: FittedState) -> pd.DataFrame:
        ...

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.get_params().items())
        return f"{type(self).__name__}({params})"

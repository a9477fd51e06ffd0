"""Pipeline: fit a sequence of steps once, replay it on any later table."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import pandas as pd

from tabprep.compose.router import ColumnRouter, RouterState
from tabprep.exceptions import NotFittedError
from tabprep.preprocessing.base import FittedState, Transformer
from tabprep.preprocessing.registry import state_from_dict
from tabprep.table import as_frame, ensure_not_empty, select_columns

logger = logging.getLogger(__name__)

Step = Transformer | ColumnRouter
StepState = FittedState | RouterState


@runtime_checkable
class Consumer(Protocol):
    """Terminal stage fed with the transformed table, e.g. a model."""

    def fit(self, table: pd.DataFrame, labels: Any = None) -> Any:
        ...

    def predict(self, table: pd.DataFrame) -> Any:
        ...


@dataclass(frozen=True)
class PipelineState:
    """Fitted states of every pipeline step, in step order."""

    steps: tuple[tuple[str, StepState], ...]
    input_columns: tuple[Any, ...]
    output_columns: tuple[Any, ...]

    def __getitem__(self, name: str) -> StepState:
        """Get the state of a step by name."""
        for step_name, state in self.steps:
            if step_name == name:
                return state
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        steps = []
        for name, state in self.steps:
            kind = "router" if isinstance(state, RouterState) else "transformer"
            steps.append({"name": name, "type": kind, "state": state.to_dict()})
        return {
            "steps": steps,
            "input_columns": list(self.input_columns),
            "output_columns": list(self.output_columns),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PipelineState":
        """Create from dictionary."""
        steps = []
        for step in d["steps"]:
            if step["type"] == "router":
                state = RouterState.from_dict(step["state"])
            else:
                state = state_from_dict(step["state"])
            steps.append((step["name"], state))
        return cls(
            steps=tuple(steps),
            input_columns=tuple(d["input_columns"]),
            output_columns=tuple(d["output_columns"]),
        )


class Pipeline:
    """Ordered composition of transformers and column routers.

    Each step is fitted on the output of the previous one. The fitted
    states are kept on the pipeline and replayed by ``transform``; nothing
    is re-estimated after ``fit``.

    Args:
        steps: ``(name, step)`` pairs, where a step is a Transformer (applied
            to every column it receives) or a ColumnRouter.
        consumer: Optional terminal stage with ``fit(table, labels)`` and
            ``predict(table)``.
    """

    def __init__(
        self,
        steps: Sequence[tuple[str, Step]],
        consumer: Consumer | None = None,
    ):
        names: list[str] = []
        for name, step in steps:
            if not isinstance(name, str) or not name:
                raise ValueError(f"Step names must be non-empty strings, got {name!r}")
            if name in names:
                raise ValueError(f"Duplicate step name: {name}")
            if not isinstance(step, (Transformer, ColumnRouter)):
                raise TypeError(
                    f"Step '{name}' must be a Transformer or ColumnRouter, got {type(step).__name__}"
                )
            names.append(name)

        if consumer is not None and not isinstance(consumer, Consumer):
            raise TypeError(f"Consumer must define fit and predict, got {type(consumer).__name__}")

        self.steps = list(steps)
        self.consumer = consumer
        self._state: PipelineState | None = None

    @property
    def named_steps(self) -> dict[str, Step]:
        return dict(self.steps)

    @property
    def is_fitted(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> PipelineState:
        """Fitted state; raises NotFittedError before ``fit``."""
        if self._state is None:
            raise NotFittedError("Pipeline is not fitted yet; call fit first")
        return self._state

    @property
    def output_columns(self) -> tuple[Any, ...]:
        return self.state.output_columns

    def fit(self, table: pd.DataFrame, labels: Any = None) -> PipelineState:
        """Fit every step in order, then the consumer if there is one.

        The first failure propagates and leaves the previous state, if
        any, untouched.

        Args:
            table: Training table.
            labels: Targets passed to the consumer's ``fit``.

        Returns:
            The new pipeline state.
        """
        state, _ = self._fit(table, labels)
        return state

    def fit_transform(self, table: pd.DataFrame, labels: Any = None) -> pd.DataFrame:
        """Fit on ``table`` and return its transformed form."""
        _, output = self._fit(table, labels)
        return output

    def _fit(self, table: pd.DataFrame, labels: Any) -> tuple[PipelineState, pd.DataFrame]:
        frame = as_frame(table)
        ensure_not_empty(frame)
        if labels is not None and len(labels) != len(frame):
            raise ValueError(f"Got {len(labels)} labels for {len(frame)} rows")

        logger.info(
            f"Fitting pipeline with {len(self.steps)} steps on {len(frame)} rows, {frame.shape[1]} columns"
        )

        current = frame
        states = []
        for name, step in self.steps:
            logger.debug(f"Fitting step '{name}'")
            step_state = step.fit(current)
            current = step.transform(current, step_state)
            states.append((name, step_state))

        state = PipelineState(
            steps=tuple(states),
            input_columns=tuple(frame.columns),
            output_columns=tuple(current.columns),
        )

        if self.consumer is not None:
            logger.info(f"Fitting consumer {type(self.consumer).__name__} on {current.shape[1]} features")
            self.consumer.fit(current, labels)

        self._state = state
        logger.info(f"Pipeline fitted: {len(state.output_columns)} output columns")
        return state, current

    def transform(self, table: pd.DataFrame) -> pd.DataFrame:
        """Replay every fitted step on ``table``.

        The output always has the fitted ``output_columns``, in that order.
        """
        state = self.state
        current = as_frame(table)
        if not self.steps:
            return select_columns(current, state.output_columns)
        for (_, step), (_, step_state) in zip(self.steps, state.steps):
            current = step.transform(current, step_state)
        return current

    def inverse_transform(self, table: pd.DataFrame) -> pd.DataFrame:
        """Undo every step, last to first."""
        state = self.state
        current = as_frame(table)
        if not self.steps:
            return select_columns(current, state.input_columns)
        for (_, step), (_, step_state) in zip(reversed(self.steps), reversed(state.steps)):
            current = step.inverse_transform(current, step_state)
        return current

    def predict(self, table: pd.DataFrame) -> Any:
        """Transform ``table`` and hand it to the consumer's ``predict``."""
        if self.consumer is None:
            raise ValueError("Pipeline has no consumer to predict with")
        return self.consumer.predict(self.transform(table))

    def __repr__(self) -> str:
        steps = ", ".join(f"({name!r}, {step!r})" for name, step in self.steps)
        consumer = f", consumer={self.consumer!r}" if self.consumer is not None else ""
        return f"Pipeline([{steps}]{consumer})"

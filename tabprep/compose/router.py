"""Column routing: apply different transformers to different column subsets.

A router holds an ordered list of ``(name, transformer, columns)`` stages and
a remainder policy for columns no stage claims. Output columns are the stage
outputs in declaration order, followed by the passthrough columns when the
remainder policy is ``"passthrough"``.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from tabprep.exceptions import DuplicateColumnClaimError, MissingColumnError
from tabprep.preprocessing.base import FittedState, Transformer
from tabprep.preprocessing.registry import state_from_dict
from tabprep.table import ColumnKind, ColumnSpec, as_frame, check_kind, select_columns

logger = logging.getLogger(__name__)

REMAINDER_POLICIES = ("drop", "passthrough")


@dataclass(frozen=True)
class StageState:
    """Fitted state of one router stage.

    Attributes:
        name: Stage name.
        columns: Input columns the stage consumes, in ColumnSpec order.
        state: Fitted transformer state, or None when the stage's kind
            selector matched no column and the stage was skipped.
        output_columns: Names the stage's outputs get in the router output.
    """

    name: str
    columns: tuple[Any, ...]
    state: FittedState | None
    output_columns: tuple[Any, ...]

    @property
    def skipped(self) -> bool:
        return self.state is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "state": None if self.state is None else self.state.to_dict(),
            "output_columns": list(self.output_columns),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "StageState":
        return cls(
            name=d["name"],
            columns=tuple(d["columns"]),
            state=None if d["state"] is None else state_from_dict(d["state"]),
            output_columns=tuple(d["output_columns"]),
        )


@dataclass(frozen=True)
class RouterState:
    """Fitted state of a ColumnRouter."""

    stages: tuple[StageState, ...]
    input_columns: tuple[Any, ...]
    passthrough_columns: tuple[Any, ...]
    output_columns: tuple[Any, ...]

    def __getitem__(self, name: str) -> FittedState | None:
        """Get the fitted transformer state of a stage by name (None if skipped)."""
        for stage in self.stages:
            if stage.name == name:
                return stage.state
        raise KeyError(name)

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "stages": [stage.to_dict() for stage in self.stages],
            "input_columns": list(self.input_columns),
            "passthrough_columns": list(self.passthrough_columns),
            "output_columns": list(self.output_columns),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RouterState":
        """Create from dictionary."""
        return cls(
            stages=tuple(StageState.from_dict(s) for s in d["stages"]),
            input_columns=tuple(d["input_columns"]),
            passthrough_columns=tuple(d["passthrough_columns"]),
            output_columns=tuple(d["output_columns"]),
        )


def hstack(parts: list[pd.DataFrame], index: pd.Index) -> pd.DataFrame:
    """Concatenate frames side by side on a shared index."""
    if not parts:
        return pd.DataFrame(index=index)
    result = pd.concat([part.reset_index(drop=True) for part in parts], axis=1)
    result.index = index
    return result


class ColumnRouter:
    """Dispatch column subsets to transformers and reassemble one table.

    Args:
        stages: ``(name, transformer, columns)`` triples. ``columns`` is a
            ColumnSpec, a column name, or a list of names/positions.
        remainder: ``"drop"`` or ``"passthrough"`` for unclaimed columns.
        prefix_stage_names: Name stage outputs ``"{stage}__{column}"``.
    """

    def __init__(
        self,
        stages: Sequence[tuple[str, Transformer, ColumnSpec | Sequence[Any] | str]],
        remainder: str = "drop",
        prefix_stage_names: bool = False,
    ):
        if remainder not in REMAINDER_POLICIES:
            raise ValueError(f"Unknown remainder policy: {remainder}")

        self.stages: list[tuple[str, Transformer, ColumnSpec]] = []
        for name, transformer, columns in stages:
            if not isinstance(name, str) or not name:
                raise ValueError(f"Stage names must be non-empty strings, got {name!r}")
            if name in self.stage_names:
                raise ValueError(f"Duplicate stage name: {name}")
            if not isinstance(transformer, Transformer):
                raise TypeError(f"Stage '{name}' needs a Transformer, got {type(transformer).__name__}")
            self.stages.append((name, transformer, ColumnSpec.of(columns)))

        self.remainder = remainder
        self.prefix_stage_names = prefix_stage_names

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _, _ in self.stages]

    def fit(self, table: pd.DataFrame) -> RouterState:
        """Fit every stage on its columns of ``table``.

        Args:
            table: Training table.

        Returns:
            Router state with one fitted state per stage.
        """
        frame = as_frame(table)

        # Resolve every claim before fitting anything
        claims: dict[Any, str] = {}
        resolved: list[tuple[Any, ...]] = []
        for name, _, spec in self.stages:
            columns = spec.resolve(frame)
            for column in columns:
                if column in claims:
                    raise DuplicateColumnClaimError(column, [claims[column], name])
                claims[column] = name
            resolved.append(columns)

        stage_states = []
        for (name, transformer, spec), columns in zip(self.stages, resolved):
            # A kind selector may match nothing in this table
            if spec.select is not None and not columns:
                logger.debug(f"Skipping stage '{name}': no {ColumnKind(spec.select).value} columns")
                stage_states.append(StageState(name=name, columns=(), state=None, output_columns=()))
                continue

            subset = frame.loc[:, list(columns)]
            if spec.kind is not None:
                check_kind(subset, spec.kind)

            logger.debug(f"Fitting stage '{name}' ({transformer.policy}) on columns {list(columns)}")
            state = transformer.fit(subset)

            outputs = state.output_columns
            if self.prefix_stage_names:
                outputs = tuple(f"{name}__{column}" for column in outputs)
            stage_states.append(StageState(name=name, columns=columns, state=state, output_columns=outputs))

        passthrough: tuple[Any, ...] = ()
        if self.remainder == "passthrough":
            passthrough = tuple(c for c in frame.columns if c not in claims)

        owners: dict[Any, str] = {}
        output_columns: list[Any] = []
        for stage in stage_states:
            for column in stage.output_columns:
                if column in owners:
                    raise DuplicateColumnClaimError(column, [owners[column], stage.name])
                owners[column] = stage.name
                output_columns.append(column)
        for column in passthrough:
            if column in owners:
                raise DuplicateColumnClaimError(column, [owners[column], "remainder"])
            output_columns.append(column)

        return RouterState(
            stages=tuple(stage_states),
            input_columns=tuple(frame.columns),
            passthrough_columns=passthrough,
            output_columns=tuple(output_columns),
        )

    def transform(self, table: pd.DataFrame, state: RouterState) -> pd.DataFrame:
        """Transform ``table`` with fitted stage states.

        Columns are taken by their fitted names; columns not seen at fit
        time are ignored.
        """
        self._check_state(state)
        frame = as_frame(table)

        needed = [c for stage in state.stages for c in stage.columns] + list(state.passthrough_columns)
        missing = [c for c in needed if c not in frame.columns]
        if missing:
            raise MissingColumnError(missing, frame.columns)

        parts = []
        for (_, transformer, _), stage in zip(self.stages, state.stages):
            if stage.skipped:
                continue
            out = transformer.transform(frame.loc[:, list(stage.columns)], stage.state)
            parts.append(out.set_axis(list(stage.output_columns), axis=1))
        if state.passthrough_columns:
            parts.append(frame.loc[:, list(state.passthrough_columns)])

        return hstack(parts, frame.index)

    def inverse_transform(self, table: pd.DataFrame, state: RouterState) -> pd.DataFrame:
        """Recover the original columns from a transformed table.

        Returns the stage and passthrough columns in fit-time input order.
        Dropped remainder columns cannot be recovered.
        """
        self._check_state(state)
        frame = select_columns(as_frame(table), state.output_columns)

        parts = []
        for (_, transformer, _), stage in zip(self.stages, state.stages):
            if stage.skipped:
                continue
            block = frame.loc[:, list(stage.output_columns)].set_axis(
                list(stage.state.output_columns), axis=1
            )
            parts.append(transformer.inverse_transform(block, stage.state))
        if state.passthrough_columns:
            parts.append(frame.loc[:, list(state.passthrough_columns)])

        recovered = hstack(parts, frame.index)
        return recovered.loc[:, [c for c in state.input_columns if c in recovered.columns]]

    def fit_transform(self, table: pd.DataFrame) -> tuple[RouterState, pd.DataFrame]:
        """Fit on ``table`` and transform it with the new state."""
        state = self.fit(table)
        return state, self.transform(table, state)

    def _check_state(self, state: RouterState) -> None:
        if not isinstance(state, RouterState) or list(state.stage_names) != self.stage_names:
            raise ValueError(f"State does not belong to a router with stages {self.stage_names}")

    def __repr__(self) -> str:
        stages = ", ".join(
            f"({name!r}, {transformer!r}, {list(spec.columns) or spec.select})"
            for name, transformer, spec in self.stages
        )
        return f"ColumnRouter([{stages}], remainder={self.remainder!r})"

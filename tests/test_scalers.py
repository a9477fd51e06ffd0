"""Tests for the numeric scaling policies."""

import dataclasses

import numpy as np
import pandas as pd
import pytest
from tabprep.exceptions import (
    ColumnKindError,
    DegenerateScaleError,
    EmptyColumnError,
    MissingColumnError,
)
from tabprep.preprocessing import (
    FittedState,
    MaxAbsScaler,
    MeanNormalizer,
    MinMaxScaler,
    RobustScaler,
    ScalerState,
    StandardScaler,
    state_from_dict,
)
from tabprep.preprocessing.scalers import Scaler


def column(values: list[float], name: str = "x") -> pd.DataFrame:
    return pd.DataFrame({name: values})


class TestStandardScaler:
    """Tests for z-score standardization."""

    def test_known_values(self) -> None:
        """Test the documented example output."""
        data = column([20, 22, 24, 26, 28])
        state, out = StandardScaler().fit_transform(data)

        assert out["x"].tolist() == pytest.approx([-1.41, -0.71, 0.0, 0.71, 1.41], abs=0.01)
        assert state["x"].mean == 24.0
        assert state["x"].std == pytest.approx(np.sqrt(8))

    def test_zero_mean_unit_std(self) -> None:
        """Test that the fitted data has mean 0 and population std 1."""
        data = column([3.5, -1.0, 8.25, 0.0, 12.0, 7.0])
        _, out = StandardScaler().fit_transform(data)

        assert out["x"].mean() == pytest.approx(0.0, abs=1e-12)
        assert np.std(out["x"].to_numpy()) == pytest.approx(1.0)

    def test_constant_column_raises(self) -> None:
        """Test that a zero-variance column is rejected."""
        with pytest.raises(DegenerateScaleError) as exc_info:
            StandardScaler().fit(column([5.0, 5.0, 5.0]))

        assert exc_info.value.column == "x"
        assert exc_info.value.policy == "standardize"

    def test_constant_non_representable_value_raises(self) -> None:
        """Test that rounding noise in the std does not hide a constant column."""
        with pytest.raises(DegenerateScaleError):
            StandardScaler().fit(column([0.1] * 7))

    def test_accepts_plain_sequence(self) -> None:
        """Test fitting and transforming a plain list of values."""
        scaler = StandardScaler()
        state = scaler.fit([1.0, 2.0, 3.0])
        out = scaler.transform([1.0, 2.0, 3.0], state)

        assert state.columns == (0,)
        assert out[0].tolist() == pytest.approx([-1.2247, 0.0, 1.2247], abs=1e-4)

    def test_accepts_named_series(self) -> None:
        """Test that a Series keeps its name as the column."""
        state = StandardScaler().fit(pd.Series([1.0, 2.0], name="age"))

        assert state.columns == ("age",)


class TestMinMaxScaler:
    """Tests for min-max scaling."""

    def test_known_values(self) -> None:
        """Test that min maps to 0 and max to 1."""
        _, out = MinMaxScaler().fit_transform(column([10, 20, 30]))

        assert out["x"].tolist() == [0.0, 0.5, 1.0]

    def test_custom_range(self) -> None:
        """Test scaling to [-1, 1]."""
        _, out = MinMaxScaler(feature_range=(-1, 1)).fit_transform(column([10, 20, 30]))

        assert out["x"].tolist() == pytest.approx([-1.0, 0.0, 1.0])

    def test_invalid_range(self) -> None:
        """Test that an empty target range is rejected."""
        with pytest.raises(ValueError):
            MinMaxScaler(feature_range=(1, 1))

    def test_no_clamping(self) -> None:
        """Test that values outside the fitted range are not clipped."""
        scaler = MinMaxScaler()
        state = scaler.fit(column([10, 20, 30]))
        out = scaler.transform(column([0, 40]), state)

        assert out["x"].tolist() == [-0.5, 1.5]

    def test_constant_column_raises(self) -> None:
        """Test that max == min is rejected."""
        with pytest.raises(DegenerateScaleError):
            MinMaxScaler().fit(column([7, 7]))


class TestMeanNormalizer:
    """Tests for mean normalization."""

    def test_known_values(self) -> None:
        """Test (x - mean) / (max - min)."""
        _, out = MeanNormalizer().fit_transform(column([10, 20, 30]))

        assert out["x"].tolist() == pytest.approx([-0.5, 0.0, 0.5])

    def test_constant_column_raises(self) -> None:
        """Test that max == min is rejected."""
        with pytest.raises(DegenerateScaleError):
            MeanNormalizer().fit(column([1.0, 1.0, 1.0]))


class TestMaxAbsScaler:
    """Tests for max-abs scaling."""

    def test_known_values(self) -> None:
        """Test division by the largest absolute value."""
        _, out = MaxAbsScaler().fit_transform(column([-10, 0, 5, 10]))

        assert out["x"].tolist() == [-1.0, 0.0, 0.5, 1.0]

    def test_all_zero_raises(self) -> None:
        """Test that an all-zero column is rejected."""
        with pytest.raises(DegenerateScaleError) as exc_info:
            MaxAbsScaler().fit(column([0, 0, 0]))

        assert exc_info.value.statistic == "maximum absolute value"


class TestRobustScaler:
    """Tests for robust scaling."""

    def test_known_values(self) -> None:
        """Test (x - median) / IQR with an outlier."""
        state, out = RobustScaler().fit_transform(column([1, 2, 3, 4, 100]))

        assert out["x"].tolist() == pytest.approx([-1.0, -0.5, 0.0, 0.5, 48.5])
        assert state["x"].median == 3.0
        assert state["x"].iqr == 2.0

    def test_linear_interpolation(self) -> None:
        """Test that quartiles interpolate between order statistics."""
        state = RobustScaler().fit(column([1, 2, 3, 4]))

        assert state["x"].q1 == pytest.approx(1.75)
        assert state["x"].q3 == pytest.approx(3.25)

    def test_zero_iqr_raises(self) -> None:
        """Test that a zero interquartile range is rejected."""
        with pytest.raises(DegenerateScaleError):
            RobustScaler().fit(column([1, 1, 1, 1, 2]))


class TestScalerCommon:
    """Behavior shared by every scaler."""

    def test_non_finite_values_skipped_in_fit(self) -> None:
        """Test that NaN and inf do not affect statistics and NaN passes through."""
        scaler = MinMaxScaler()
        state = scaler.fit(column([1.0, np.nan, 3.0, np.inf]))
        out = scaler.transform(column([1.0, np.nan, 3.0]), state)

        assert state["x"].min == 1.0
        assert state["x"].max == 3.0
        assert out["x"].iloc[0] == 0.0
        assert np.isnan(out["x"].iloc[1])

    def test_no_finite_values_raises(self) -> None:
        """Test that a column with only NaN cannot be fitted."""
        with pytest.raises(EmptyColumnError):
            StandardScaler().fit(column([np.nan, np.nan]))

    def test_empty_input_raises(self) -> None:
        """Test that fitting on nothing fails."""
        with pytest.raises(EmptyColumnError):
            StandardScaler().fit([])

    def test_categorical_column_rejected(self) -> None:
        """Test that a numeric policy refuses a string column."""
        with pytest.raises(ColumnKindError):
            StandardScaler().fit(pd.DataFrame({"city": ["a", "b"]}))

    def test_scaler_needs_column_stats(self) -> None:
        """Test that a scaler without a statistics rule cannot be built."""

        class NoStats(Scaler):
            policy = "no_stats"

        with pytest.raises(TypeError):
            NoStats()

    def test_base_state_dict(self) -> None:
        """Test that the shared state fields convert to and from a dict."""
        state = FittedState(policy="standardize", columns=("age", "fare"))

        assert state.to_dict() == {"policy": "standardize", "columns": ["age", "fare"]}
        assert FittedState.from_dict(state.to_dict()) == state

    def test_multiple_columns_fitted_independently(self) -> None:
        """Test that each column gets its own statistics."""
        data = pd.DataFrame({"a": [0.0, 10.0], "b": [100.0, 300.0]})
        state, out = MinMaxScaler().fit_transform(data)

        assert state.columns == ("a", "b")
        assert out["a"].tolist() == [0.0, 1.0]
        assert out["b"].tolist() == [0.0, 1.0]

    def test_statistics_come_from_fit_data_only(self) -> None:
        """Test that transform uses the stored statistics, not the new table's."""
        scaler = MinMaxScaler()
        state = scaler.fit(column([0, 10]))
        out = scaler.transform(column([100, 200, 300]), state)

        assert out["x"].tolist() == [10.0, 20.0, 30.0]

    def test_transform_does_not_change_state(self) -> None:
        """Test that state is unchanged by transform and cannot be mutated."""
        scaler = StandardScaler()
        state = scaler.fit(column([1.0, 2.0, 4.0]))
        before = state.to_dict()

        scaler.transform(column([50.0, -3.0]), state)

        assert state.to_dict() == before
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.stats[0].mean = 0.0

    def test_refit_gives_independent_state(self) -> None:
        """Test that fitting again leaves the first state alone."""
        scaler = StandardScaler()
        first = scaler.fit(column([1.0, 2.0, 3.0]))
        second = scaler.fit(column([10.0, 20.0, 30.0]))

        assert first["x"].mean == 2.0
        assert second["x"].mean == 20.0

    def test_index_preserved(self) -> None:
        """Test that the output keeps the input index and row order."""
        data = pd.DataFrame({"x": [3.0, 1.0, 2.0]}, index=[10, 5, 7])
        _, out = MaxAbsScaler().fit_transform(data)

        assert out.index.tolist() == [10, 5, 7]
        assert out["x"].tolist() == pytest.approx([1.0, 1 / 3, 2 / 3])

    def test_extra_columns_ignored_missing_raise(self) -> None:
        """Test column selection by fitted names."""
        scaler = MaxAbsScaler()
        state = scaler.fit(column([1.0, 2.0]))

        out = scaler.transform(pd.DataFrame({"y": [9.0], "x": [4.0]}), state)
        assert out.columns.tolist() == ["x"]

        with pytest.raises(MissingColumnError):
            scaler.transform(pd.DataFrame({"y": [1.0]}), state)

    def test_foreign_state_rejected(self) -> None:
        """Test that a state from another policy is refused."""
        state = MinMaxScaler().fit(column([1.0, 2.0]))

        with pytest.raises(ValueError):
            StandardScaler().transform(column([1.0]), state)

    def test_inverse_transform(self) -> None:
        """Test that inverse_transform recovers the original values."""
        data = column([1.0, 2.0, 3.0, 4.0, 100.0])
        scaler = RobustScaler()
        state, out = scaler.fit_transform(data)

        restored = scaler.inverse_transform(out, state)

        np.testing.assert_allclose(restored["x"].to_numpy(), data["x"].to_numpy())

    def test_state_dict_conversion(self) -> None:
        """Test that a state survives to_dict / from_dict."""
        state = MinMaxScaler(feature_range=(-1, 1)).fit(column([2.0, 4.0, 9.0]))

        restored = state_from_dict(state.to_dict())

        assert isinstance(restored, ScalerState)
        assert restored == state

"""Lookup of transformer policies by name."""

from typing import Any

from tabprep.preprocessing.base import FittedState, Transformer
from tabprep.preprocessing.encoders import OneHotEncoder, OrdinalEncoder
from tabprep.preprocessing.scalers import (
    MaxAbsScaler,
    MeanNormalizer,
    MinMaxScaler,
    RobustScaler,
    StandardScaler,
)

TRANSFORMERS: dict[str, type[Transformer]] = {
    StandardScaler.policy: StandardScaler,
    MinMaxScaler.policy: MinMaxScaler,
    MeanNormalizer.policy: MeanNormalizer,
    MaxAbsScaler.policy: MaxAbsScaler,
    RobustScaler.policy: RobustScaler,
    OneHotEncoder.policy: OneHotEncoder,
    OrdinalEncoder.policy: OrdinalEncoder,
}


def get_transformer(policy: str, **params: Any) -> Transformer:
    """Get a transformer by policy name.

    Args:
        policy: Policy name ("standardize", "min_max", "mean_normalize",
            "max_abs", "robust", "one_hot", "ordinal").
        **params: Constructor parameters of the policy.

    Returns:
        Unfitted transformer.
    """
    if policy not in TRANSFORMERS:
        raise ValueError(f"Unknown policy: {policy}")
    return TRANSFORMERS[policy](**params)


def state_from_dict(d: dict[str, Any]) -> FittedState:
    """Rebuild any fitted transformer state from its ``to_dict`` form."""
    policy = d.get("policy")
    if policy not in TRANSFORMERS:
        raise ValueError(f"Unknown policy: {policy}")
    return TRANSFORMERS[policy].state_type.from_dict(d)

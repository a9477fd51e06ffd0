"""Column transformers: numeric scaling and categorical encoding."""

from .base import FittedState, Transformer
from .encoders import OneHotEncoder, OneHotState, OrdinalEncoder, OrdinalState
from .registry import TRANSFORMERS, get_transformer, state_from_dict
from .scalers import (
    MaxAbsScaler,
    MeanNormalizer,
    MinMaxScaler,
    RobustScaler,
    ScalerState,
    StandardScaler,
)

__all__ = [
    "Transformer",
    "FittedState",
    # Scalers
    "StandardScaler",
    "MinMaxScaler",
    "MeanNormalizer",
    "MaxAbsScaler",
    "RobustScaler",
    "ScalerState",
    # Encoders
    "OneHotEncoder",
    "OrdinalEncoder",
    "OneHotState",
    "OrdinalState",
    # Registry
    "TRANSFORMERS",
    "get_transformer",
    "state_from_dict",
]

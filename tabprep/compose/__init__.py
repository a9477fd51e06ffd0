"""Composition of transformers: column routing and pipelines."""

from .pipeline import Consumer, Pipeline, PipelineState
from .router import ColumnRouter, RouterState, StageState

__all__ = [
    "ColumnRouter",
    "RouterState",
    "StageState",
    "Pipeline",
    "PipelineState",
    "Consumer",
]

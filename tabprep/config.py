"""Configuration management for tabprep.

Loads YAML pipeline definitions and builds transformers, routers and
pipelines from them. A definition looks like::

    pipeline:
      steps:
        - name: features
          router:
            remainder: passthrough
            stages:
              - name: numeric
                policy: standardize
                columns: [age, fare]
              - name: city
                policy: one_hot
                params: {drop_first: true}
                columns: [city]
        - name: rescale
          policy: max_abs
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from tabprep.compose import ColumnRouter, Pipeline
from tabprep.preprocessing import Transformer, get_transformer
from tabprep.table import ColumnKind, ColumnSpec

TRANSFORMER_KEYS = {"name", "policy", "params"}
STAGE_KEYS = TRANSFORMER_KEYS | {"columns", "select", "kind"}
ROUTER_KEYS = {"stages", "remainder", "prefix_stage_names"}


def load_config(config_path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary containing the configuration.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _check_keys(section: Mapping[str, Any], allowed: set[str], where: str) -> None:
    unknown = set(section) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in {where}: {sorted(unknown)}")


def build_transformer(config: Mapping[str, Any]) -> Transformer:
    """Build a transformer from ``{"policy": ..., "params": {...}}``."""
    if "policy" not in config:
        raise ValueError(f"Transformer config needs a 'policy': {dict(config)}")
    return get_transformer(config["policy"], **(config.get("params") or {}))


def build_column_spec(config: Mapping[str, Any]) -> ColumnSpec:
    """Build a ColumnSpec from a stage's ``columns``/``select``/``kind`` keys."""
    kind = ColumnKind(config["kind"]) if config.get("kind") else None
    if "select" in config:
        if "columns" in config:
            raise ValueError("A stage takes either 'columns' or 'select', not both")
        return ColumnSpec(select=ColumnKind(config["select"]), kind=kind or ColumnKind(config["select"]))
    if "columns" not in config:
        raise ValueError(f"Stage '{config.get('name')}' needs 'columns' or 'select'")

    columns = config["columns"]
    if isinstance(columns, (str, int)):
        columns = [columns]
    return ColumnSpec(columns=tuple(columns), kind=kind)


def build_router(config: Mapping[str, Any]) -> ColumnRouter:
    """Build a ColumnRouter from ``{"stages": [...], "remainder": ...}``."""
    _check_keys(config, ROUTER_KEYS, "router")

    stages = []
    for stage in config.get("stages") or []:
        _check_keys(stage, STAGE_KEYS, f"stage '{stage.get('name')}'")
        stages.append((stage.get("name"), build_transformer(stage), build_column_spec(stage)))

    return ColumnRouter(
        stages,
        remainder=config.get("remainder", "drop"),
        prefix_stage_names=bool(config.get("prefix_stage_names", False)),
    )


def build_pipeline(config: Mapping[str, Any]) -> Pipeline:
    """Build a Pipeline from ``{"steps": [...]}``.

    Each step has a ``name`` and either a ``router`` section or a
    ``policy`` (with optional ``params``).
    """
    steps = []
    for step in config.get("steps") or []:
        name = step.get("name")
        if "router" in step:
            _check_keys(step, {"name", "router"}, f"step '{name}'")
            steps.append((name, build_router(step["router"])))
        else:
            _check_keys(step, TRANSFORMER_KEYS, f"step '{name}'")
            steps.append((name, build_transformer(step)))
    return Pipeline(steps)


def get_pipeline(config_path: str | Path) -> Pipeline:
    """Load a YAML file and build the pipeline in its ``pipeline`` section.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Unfitted pipeline.
    """
    config = load_config(config_path)
    if "pipeline" not in config:
        raise ValueError(f"No 'pipeline' section in {config_path}")
    return build_pipeline(config["pipeline"])

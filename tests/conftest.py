"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pandas as pd
import pytest


@pytest.fixture
def passengers() -> pd.DataFrame:
    """Small mixed-kind training table."""
    return pd.DataFrame(
        {
            "age": [22.0, 38.0, 26.0, 35.0, 54.0, 2.0],
            "fare": [7.25, 71.28, 7.92, 53.1, 51.86, 21.08],
            "city": ["Lahore", "Karachi", "Islamabad", "Lahore", "Karachi", "Lahore"],
            "education": ["Bachelor", "PhD", "High School", "Master", "Bachelor", "High School"],
            "survived": [0, 1, 1, 1, 0, 1],
        }
    )


@pytest.fixture
def new_passengers() -> pd.DataFrame:
    """Table seen only at transform time, with different statistics."""
    return pd.DataFrame(
        {
            "age": [80.0, 61.0],
            "fare": [512.33, 0.0],
            "city": ["Karachi", "Multan"],
            "education": ["Master", "PhD"],
            "survived": [1, 0],
        }
    )


@pytest.fixture
def tmp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for config files."""
    return tmp_path


@pytest.fixture
def sample_config_yaml(tmp_config_dir: Path) -> Path:
    """Create a sample YAML pipeline config for testing."""
    config_content = """
pipeline:
  steps:
    - name: features
      router:
        remainder: passthrough
        stages:
          - name: numeric
            policy: robust
            columns: [age, fare]
          - name: city
            policy: one_hot
            params:
              drop_first: true
            columns: city
"""
    config_path = tmp_config_dir / "test_config.yaml"
    config_path.write_text(config_content)
    return config_path


@pytest.fixture
def passengers_config_path() -> Path:
    """Path to the bundled passengers pipeline config."""
    return Path(__file__).parent.parent / "config" / "passengers.yaml"

#!/usr/bin/env python3
"""Fit a feature pipeline on a training CSV and apply it to other CSVs.

Usage:
    python scripts/fit_transform.py --config config/passengers.yaml --train data/train.csv
    python scripts/fit_transform.py --config config/passengers.yaml --train data/train.csv \
        --apply data/test.csv --output-dir out/ --drop survived
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tabprep.config import get_pipeline
from tabprep.exceptions import TabprepError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fit a tabprep pipeline and transform CSV tables",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/passengers.yaml",
        help="Path to pipeline YAML file",
    )
    parser.add_argument(
        "--train",
        type=str,
        required=True,
        help="CSV table the pipeline is fitted on",
    )
    parser.add_argument(
        "--apply",
        type=str,
        nargs="*",
        default=[],
        help="Further CSV tables to transform with the fitted pipeline",
    )
    parser.add_argument(
        "--drop",
        type=str,
        nargs="*",
        default=[],
        help="Columns removed before fitting (e.g. targets)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="transformed",
        help="Directory for transformed CSVs and the fitted state",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def read_table(path: Path, drop: list[str]) -> pd.DataFrame:
    """Read a CSV and remove the excluded columns."""
    df = pd.read_csv(path)
    logger.info(f"Loaded {path}: {len(df)} rows, {len(df.columns)} columns")
    return df.drop(columns=drop, errors="ignore")


def output_paths(tables: list[Path], output_dir: Path) -> list[Path]:
    """Output CSV path for each input table, named after the input file.

    Raises:
        ValueError: If two inputs share a file name and would write the
            same output.
    """
    sources: dict[str, Path] = {}
    for path in tables:
        if path.name in sources:
            raise ValueError(
                f"{sources[path.name]} and {path} would both be written to {output_dir / path.name}"
            )
        sources[path.name] = path
    return [output_dir / path.name for path in tables]


def main():
    """Fit on the training table, transform every table, save outputs."""
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    config_path = Path(args.config)
    if not config_path.exists():
        config_path = Path(__file__).parent.parent / args.config

    try:
        pipeline = get_pipeline(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    logger.info(f"Loaded pipeline from: {config_path}")

    tables = [Path(args.train)] + [Path(p) for p in args.apply]
    output_dir = Path(args.output_dir)
    try:
        out_paths = output_paths(tables, output_dir)
    except ValueError as e:
        logger.error(f"Invalid inputs: {e}")
        sys.exit(1)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        train = read_table(tables[0], args.drop)
        state = pipeline.fit(train)

        for i, (path, out_path) in enumerate(zip(tables, out_paths)):
            df = train if i == 0 else read_table(path, args.drop)
            pipeline.transform(df).to_csv(out_path, index=False)
            logger.info(f"Wrote {out_path}")
    except TabprepError as e:
        logger.error(f"Pipeline failed: {e}")
        sys.exit(1)

    state_path = output_dir / "pipeline_state.json"
    with open(state_path, "w") as f:
        json.dump(state.to_dict(), f, indent=2)
    logger.info(f"Fitted state saved to: {state_path}")
    logger.info(f"Output columns: {list(state.output_columns)}")


if __name__ == "__main__":
    main()

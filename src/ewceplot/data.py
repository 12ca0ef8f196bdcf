"""
Loading, merging and saving of EWCE enrichment results tables.
"""

from typing import Dict, Union
from pathlib import Path
import logging

import polars as pl

logger = logging.getLogger(__name__)

# Column names used by the R EWCE package
LEGACY_COLUMNS = {
    'CellType': 'cell_type',
    'p': 'p_value',
    'Direction': 'direction',
    'list': 'list_name',
}

REQUIRED_COLUMNS = ['cell_type', 'p_value', 'sd_from_mean']

# R's write.csv writes missing values as NA
MISSING_VALUES = ['NA', 'NaN', '']

_TAB_SUFFIXES = {'.tsv', '.txt', '.tab'}


def _separator_for(file_path: Path) -> str:
    return '\t' if file_path.suffix.lower() in _TAB_SUFFIXES else ','


def normalise_columns(df: pl.DataFrame) -> pl.DataFrame:
    """
    Rename legacy EWCE column names to the names used by this package.

    A legacy column is only renamed when its new name is not already present.

    Args:
        df: Results table

    Returns:
        DataFrame with normalised column names
    """
    renames = {
        old: new for old, new in LEGACY_COLUMNS.items()
        if old in df.columns and new not in df.columns
    }
    if renames:
        logger.debug(f"Renaming legacy columns: {renames}")
        df = df.rename(renames)
    return df


def validate_results(df: pl.DataFrame) -> pl.DataFrame:
    """
    Check that a results table has the columns needed for plotting.

    Args:
        df: Results table

    Returns:
        The same DataFrame

    Raises:
        ValueError: If any required column is missing
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in results table: {', '.join(missing)}")
    return df


def load_results(file_path: Union[str, Path]) -> pl.DataFrame:
    """
    Load an enrichment results table.

    Tab-separated files are recognised by a .tsv, .txt or .tab suffix,
    anything else is read as comma-separated.

    Args:
        file_path: Path to the results file

    Returns:
        DataFrame with at least cell_type, p_value and sd_from_mean columns
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Results file not found: {file_path}")

    df = pl.read_csv(
        file_path,
        separator=_separator_for(file_path),
        has_header=True,
        null_values=MISSING_VALUES
    )
    df = validate_results(normalise_columns(df))

    logger.info(f"Loaded {df.height} result rows from {file_path}")
    return df


def merge_results(tables: Dict[str, pl.DataFrame]) -> pl.DataFrame:
    """
    Combine several results tables into one, labelled by list_name.

    Tables do not need identical columns; missing columns are filled with
    nulls. Any existing list_name column is overwritten by the dict key.

    Args:
        tables: Mapping of gene list name to its results table

    Returns:
        Single DataFrame with a list_name column
    """
    if not tables:
        raise ValueError("No results tables to merge")

    labelled = [
        df.with_columns(pl.lit(name).alias('list_name'))
        for name, df in tables.items()
    ]
    merged = pl.concat(labelled, how='diagonal_relaxed')

    logger.info(f"Merged {len(tables)} results tables into {merged.height} rows")
    return merged


def save_prepared_results(df: pl.DataFrame, output_path: Union[str, Path]) -> Path:
    """
    Write a prepared results table to disk.

    Args:
        df: Prepared results table
        output_path: Destination file; a tab-separated suffix writes TSV

    Returns:
        Path the table was written to
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(output_path, separator=_separator_for(output_path))
    logger.info(f"Saved prepared results to {output_path}")
    return output_path

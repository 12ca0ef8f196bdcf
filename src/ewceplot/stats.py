"""
Multiple-testing correction and derived columns for EWCE results tables.
"""

import logging
from typing import Sequence

import numpy as np
import polars as pl
from statsmodels.stats.multitest import multipletests

logger = logging.getLogger(__name__)

# Method names as accepted by R's p.adjust
MTC_METHODS = ("holm", "hochberg", "hommel", "bonferroni", "BH", "BY", "fdr", "none")

_STATSMODELS_METHODS = {
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
    "bonferroni": "bonferroni",
    "BH": "fdr_bh",
    "BY": "fdr_by",
    "fdr": "fdr_bh",
}

SIGNIFICANCE_THRESHOLD = 0.05
LABEL_OFFSET_FACTOR = 1.05

DERIVED_COLUMNS = ("q_value", "is_significant", "abs_deviation", "label_y_offset")


class InvalidArgument(ValueError):
    """Raised when a multiple-testing correction method is not recognised."""


def validate_mtc_method(method: str) -> str:
    """
    Check that a correction method is one of MTC_METHODS.

    Args:
        method: Name of the multiple-testing correction method

    Returns:
        The method name, unchanged

    Raises:
        InvalidArgument: If the method is not recognised
    """
    if method not in MTC_METHODS:
        raise InvalidArgument(
            f"Invalid mtc_method argument '{method}'. "
            f"Valid methods are: {', '.join(MTC_METHODS)}"
        )
    return method


def adjust_p_values(p_values: Sequence[float], method: str = "bonferroni") -> np.ndarray:
    """
    Adjust p-values for multiple comparisons.

    Missing values (NaN) are left out of the number of tests and stay
    missing in the output, as R's p.adjust does.

    Args:
        p_values: Raw p-values
        method: One of MTC_METHODS

    Returns:
        Array of adjusted p-values, same length and order as the input
    """
    validate_mtc_method(method)

    p = np.asarray(p_values, dtype=np.float64)
    if method == "none":
        return p.copy()

    q = np.full(p.shape, np.nan)
    observed = ~np.isnan(p)
    if observed.any():
        _, pvals_corrected, _, _ = multipletests(
            p[observed],
            method=_STATSMODELS_METHODS[method]
        )
        q[observed] = pvals_corrected
    return q


def prepare_results(table: pl.DataFrame, correction_method: str = "bonferroni") -> pl.DataFrame:
    """
    Add q-values and plotting columns to an enrichment results table.

    The correction runs over every row at once, even when the table holds
    several gene lists. Negative sd_from_mean values are clamped to zero
    before the bar height and label position are derived, so bars for
    depleted cell types have no height. The input table is not modified.

    Args:
        table: DataFrame with cell_type, p_value and sd_from_mean columns
            (direction and list_name are optional)
        correction_method: One of MTC_METHODS

    Returns:
        New DataFrame with q_value, is_significant, abs_deviation and
        label_y_offset appended
    """
    validate_mtc_method(correction_method)
    logger.debug(f"Adjusting {table.height} p-values with method '{correction_method}'")

    p_values = table["p_value"].cast(pl.Float64).to_numpy()
    q_values = pl.Series("q_value", adjust_p_values(p_values, correction_method)).fill_nan(None)

    clamped = pl.col("sd_from_mean").cast(pl.Float64).clip(lower_bound=0.0)

    return table.with_columns(
        q_values
    ).with_columns(
        (pl.col("q_value") < SIGNIFICANCE_THRESHOLD).fill_null(False).alias("is_significant"),
        clamped.abs().alias("abs_deviation"),
        (clamped * LABEL_OFFSET_FACTOR).alias("label_y_offset"),
    )

"""
EWCE Results Plotting
=====================

A Python package for multiple-testing correction and plotting of
Expression Weighted Cell type Enrichment results.
"""

from .pipeline import EnrichmentPlotPipeline
from .config import PlotConfig
from .data import (
    load_results as load_results,
    merge_results as merge_results,
    save_prepared_results as save_prepared_results,
)
from .stats import (
    MTC_METHODS as MTC_METHODS,
    InvalidArgument as InvalidArgument,
    adjust_p_values as adjust_p_values,
    prepare_results as prepare_results,
)
from .visualise import plot_enrichment as plot_enrichment, save_plot as save_plot
from .utils import setup_logging as setup_logging, ensure_dir as ensure_dir

__version__ = "0.1.0"

__all__ = [
    "EnrichmentPlotPipeline",
    "PlotConfig",
    "load_results",
    "merge_results",
    "save_prepared_results",
    "MTC_METHODS",
    "InvalidArgument",
    "adjust_p_values",
    "prepare_results",
    "plot_enrichment",
    "save_plot",
    "setup_logging",
    "ensure_dir",
]

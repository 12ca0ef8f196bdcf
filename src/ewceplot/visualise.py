"""
Bar charts of EWCE enrichment results with significance markers.
"""

import math
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import polars as pl
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
import seaborn as sns

from ewceplot.utils import ensure_dir

logger = logging.getLogger(__name__)

PLOT_COLUMNS = ['cell_type', 'abs_deviation', 'label_y_offset', 'is_significant']

Y_AXIS_LABEL = "Std.Devs. from the mean"

GRAPH_STYLE = {
    'axes.edgecolor': 'black',
    'grid.color': 'grey',
    'font.family': 'sans-serif',
    'font.sans-serif': ['Helvetica', 'Arial', 'DejaVu Sans'],
}


def significance_labels(prepared: pl.DataFrame) -> List[str]:
    """Asterisk for each significant row, empty string otherwise."""
    return ["*" if sig else "" for sig in prepared['is_significant'].to_list()]


def _to_pandas(df: pl.DataFrame, columns: List[str]) -> pd.DataFrame:
    # Built from python lists so pyarrow is not needed
    frame = pd.DataFrame(df.select(columns).to_dict(as_series=False))
    frame['cell_type'] = frame['cell_type'].astype(str)
    return frame


def _draw_facet(
    ax,
    subset: pl.DataFrame,
    upper_limit: Optional[float],
    directions: Optional[List[str]] = None
) -> None:
    """Draw the bars and significance markers for one gene list."""
    order = [str(ct) for ct in subset['cell_type'].unique(maintain_order=True).to_list()]

    if directions is not None:
        frame = _to_pandas(subset, ['cell_type', 'abs_deviation', 'direction'])
        frame['direction'] = frame['direction'].astype(str)
        sns.barplot(
            data=frame,
            x='cell_type',
            y='abs_deviation',
            hue='direction',
            order=order,
            hue_order=directions,
            errorbar=None,
            ax=ax
        )
        legend = ax.get_legend()
        if legend is not None:
            legend.set_title("Direction")
    else:
        frame = _to_pandas(subset, ['cell_type', 'abs_deviation'])
        sns.barplot(
            data=frame,
            x='cell_type',
            y='abs_deviation',
            order=order,
            color='red',
            errorbar=None,
            ax=ax
        )

    # Markers sit over the category centre, not over individual dodged bars
    positions = {ct: i for i, ct in enumerate(order)}
    for cell_type, y, label in zip(
        subset['cell_type'].to_list(),
        subset['label_y_offset'].to_list(),
        significance_labels(subset)
    ):
        if label and y is not None:
            ax.text(positions[str(cell_type)], y, label, ha='center', va='center', fontsize=20)

    if upper_limit is not None and upper_limit > 0:
        ax.set_yticks([0, math.ceil(upper_limit * 0.66)])
        ax.set_ylim(0, 1.1 * upper_limit)

    ax.set_xlabel("")
    ax.set_ylabel(Y_AXIS_LABEL)
    ax.tick_params(axis='x', labelrotation=55)
    for tick_label in ax.get_xticklabels():
        tick_label.set_horizontalalignment('right')

    ax.grid(True, axis='y', color='grey', linewidth=0.5)
    for spine in ax.spines.values():
        spine.set_visible(True)
        spine.set_edgecolor('black')
        spine.set_linewidth(1)


def plot_enrichment(
    prepared: pl.DataFrame,
    figsize: Optional[Tuple[float, float]] = None,
    title: Optional[str] = None
) -> Figure:
    """
    Plot standard deviations from the mean per cell type.

    Expects the output of prepare_results. A direction column gives dodged
    bars coloured by direction; a list_name column gives one row of axes per
    gene list, each showing only its own cell types. The y axis is shared in
    extent across rows and runs from zero to 1.1 times the largest bar.

    Args:
        prepared: Table returned by prepare_results
        figsize: Figure size (width, height) in inches
        title: Optional figure title

    Returns:
        Matplotlib figure; the caller is responsible for closing it
    """
    if prepared.height == 0:
        raise ValueError("Input data cannot be empty")

    missing = [col for col in PLOT_COLUMNS if col not in prepared.columns]
    if missing:
        raise ValueError(
            f"Missing plotting columns: {', '.join(missing)}. Run prepare_results first."
        )

    if 'list_name' in prepared.columns:
        facets = prepared['list_name'].unique(maintain_order=True).to_list()
    else:
        facets = [None]

    directions = None
    if 'direction' in prepared.columns:
        directions = [str(d) for d in prepared['direction'].unique(maintain_order=True).to_list()]

    upper_limit = prepared['abs_deviation'].max()

    if figsize is None:
        figsize = (8, 1.5 + 3.5 * len(facets))

    with sns.axes_style('whitegrid', GRAPH_STYLE):
        fig, axes = plt.subplots(nrows=len(facets), ncols=1, figsize=figsize, squeeze=False)

        for ax, facet in zip(axes[:, 0], facets):
            if facet is None:
                subset = prepared
            else:
                subset = prepared.filter(pl.col('list_name') == facet)
            _draw_facet(ax, subset, upper_limit, directions)

            if facet is not None:
                ax.text(
                    1.02, 0.5, str(facet),
                    transform=ax.transAxes,
                    rotation=0,
                    ha='left',
                    va='center'
                )

        if title:
            fig.suptitle(title)
        fig.tight_layout()

    logger.debug(f"Plotted {prepared.height} rows across {len(facets)} panel(s)")
    return fig


def save_plot(
    fig: Figure,
    output_path: Union[str, Path],
    dpi: int = 300
) -> Path:
    """
    Save a figure and close it.

    Args:
        fig: Figure returned by plot_enrichment
        output_path: Destination file; the suffix selects the format
        dpi: Resolution for raster formats

    Returns:
        Path the figure was written to
    """
    output_path = Path(output_path)
    ensure_dir(output_path.parent)
    fig.savefig(output_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Saved plot to {output_path}")
    return output_path

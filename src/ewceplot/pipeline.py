"""Pipeline that turns EWCE results files into an annotated bar chart."""

import logging
import time
from pathlib import Path
from typing import Dict

import polars as pl

from ewceplot.config import PlotConfig
from ewceplot.data import load_results, merge_results, save_prepared_results
from ewceplot.stats import prepare_results
from ewceplot.visualise import plot_enrichment, save_plot


class EnrichmentPlotPipeline:
    """Load, correct and plot EWCE enrichment results."""

    def __init__(self, config_path: str):
        """Initialise the pipeline with a configuration file.

        Args:
            config_path: Path to the TOML configuration file
        """
        self.config = PlotConfig(config_path)
        self.logger = logging.getLogger(__name__)
        self._load_input_data()

    def _load_input_data(self):
        """Load and validate the results tables."""
        self.logger.debug("Starting to load results files")

        for file_path in self.config.results_files:
            if not Path(file_path).is_file():
                error_msg = f"Input file not found: {file_path} (specified in results_files)"
                self.logger.error(error_msg)
                raise FileNotFoundError(error_msg)

        tables = [load_results(file_path) for file_path in self.config.results_files]

        if self.config.list_names is not None:
            list_names = self.config.list_names
        elif len(tables) > 1:
            list_names = [Path(file_path).stem for file_path in self.config.results_files]
        else:
            list_names = None

        if list_names is None:
            self.results_df = tables[0]
        else:
            if len(set(list_names)) != len(list_names):
                raise ValueError(f"Gene list names must be unique: {', '.join(list_names)}")
            self.results_df = merge_results(dict(zip(list_names, tables)))
            self.logger.info(f"Plotting {len(list_names)} gene lists: {', '.join(list_names)}")

        self.logger.info(f"Loaded {self.results_df.height} result rows")
        self.logger.debug("Finished loading results files")

    def prepare(self) -> pl.DataFrame:
        """Apply the configured multiple-testing correction.

        Returns:
            Prepared results table
        """
        self.logger.info(f"Applying {self.config.mtc_method} multiple testing correction")
        self.prepared_df = prepare_results(self.results_df, self.config.mtc_method)

        n_significant = self.prepared_df["is_significant"].sum()
        self.logger.info(f"{n_significant} of {self.prepared_df.height} rows significant after correction")
        return self.prepared_df

    def run(self) -> Dict[str, Path]:
        """Run the plotting pipeline.

        Returns:
            Dictionary mapping output kind ('plot', 'table') to written path
        """
        self.logger.info("Starting EWCE results plotting pipeline")
        start_time = time.time()

        prepared = self.prepare()

        self.logger.info("Rendering plot")
        fig = plot_enrichment(prepared, figsize=self.config.get_figsize(), title=self.config.title)

        outputs = {}
        plot_file = self.config.get_output_path('plots') / f"{self.config.prefix}_enrichment.{self.config.plot_format}"
        outputs['plot'] = save_plot(fig, plot_file, dpi=self.config.dpi)

        if self.config.save_table:
            table_file = self.config.get_output_path('data') / f"{self.config.prefix}_results.csv"
            outputs['table'] = save_prepared_results(prepared, table_file)

        elapsed_time = time.time() - start_time
        self.logger.info(f"Pipeline completed in {elapsed_time:.2f} seconds")
        return outputs

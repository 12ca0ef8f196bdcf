"""Configuration handling for EWCE result plotting."""

import tomli
import tomli_w
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ewceplot.stats import validate_mtc_method

PLOT_FORMATS = ("png", "pdf", "svg")


class PlotConfig:
    """Configuration class for plotting EWCE enrichment results."""

    def __init__(self, config_path: Union[str, Path]):
        """Initialise the configuration from a TOML file.

        Args:
            config_path: Path to the TOML configuration file
        """
        self.config_path = config_path

        try:
            with open(config_path, "rb") as f:
                self.config = tomli.load(f)
        except FileNotFoundError:
            raise ValueError(f"Error loading configuration file: {config_path} does not exist")
        except Exception as e:
            raise ValueError(f"Error loading configuration file: {str(e)}")

        required_sections = ['input', 'output']
        missing_sections = [section for section in required_sections if section not in self.config]
        if missing_sections:
            raise ValueError(f"Missing required sections in configuration: {', '.join(missing_sections)}")

        self.input_files = self.config.get("input", {})
        if 'results_files' not in self.input_files:
            raise ValueError("Missing required input files in configuration: results_files")

        # Accept a single path as well as a list of paths
        results_files = self.input_files['results_files']
        if isinstance(results_files, list):
            self.results_files = results_files
        else:
            self.results_files = [results_files]

        self.list_names: Optional[List[str]] = self.input_files.get("list_names", None)
        if self.list_names is not None and len(self.list_names) != len(self.results_files):
            raise ValueError(
                f"Number of list_names ({len(self.list_names)}) does not match "
                f"number of results_files ({len(self.results_files)})"
            )

        self.output_config = self.config.get("output", {})
        self.prefix = self.output_config.get("prefix", "ewce")
        self.save_table = self.output_config.get("save_table", True)

        self.analysis_params = self.config.get("analysis", {})
        self.mtc_method = validate_mtc_method(self.analysis_params.get("mtc_method", "bonferroni"))

        self.plot_params = self.config.get("plot", {})
        self.plot_format = self.plot_params.get("format", "png")
        if self.plot_format not in PLOT_FORMATS:
            raise ValueError(
                f"Unknown plot format: {self.plot_format}. Valid formats are: {', '.join(PLOT_FORMATS)}"
            )
        self.dpi = self.plot_params.get("dpi", 300)
        self.title = self.plot_params.get("title", None)

    def get_figsize(self) -> Optional[Tuple[float, float]]:
        """Get the figure size from the plot section.

        Returns:
            (width, height) in inches, or None to let the plot choose
        """
        if "width" in self.plot_params and "height" in self.plot_params:
            return (self.plot_params["width"], self.plot_params["height"])
        return None

    def get_output_path(self, subdir: Optional[str] = None) -> Path:
        """Get the path to the output directory or a subdirectory within it.

        Args:
            subdir: Optional subdirectory name within the output directory

        Returns:
            Path object for the requested directory
        """
        output_dir = self.output_config.get("output_dir", self.output_config.get("directory", "results"))
        base_path = Path(output_dir)

        if subdir:
            return base_path / subdir

        return base_path

    def save_config(self, output_path: Union[str, Path]) -> None:
        """Save the configuration to a TOML file.

        Args:
            output_path: Path to save the configuration file
        """
        with open(output_path, "wb") as f:
            tomli_w.dump(self.config, f)

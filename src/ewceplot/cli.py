#!/usr/bin/env python3
"""
Command line interface for plotting EWCE enrichment results.
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path
import tomli
from tomli_w import dump
from .pipeline import EnrichmentPlotPipeline
from .stats import MTC_METHODS
from .config import PLOT_FORMATS
from .utils import setup_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Plot EWCE cell type enrichment results with multiple testing correction"
    )

    parser.add_argument(
        "config_file",
        type=str,
        help="Path to TOML configuration file"
    )

    input_group = parser.add_argument_group("Input overrides")
    input_group.add_argument(
        "--results",
        type=str,
        nargs="+",
        help="Override results file path(s)"
    )
    input_group.add_argument(
        "--list-names",
        type=str,
        nargs="+",
        help="Override gene list names, one per results file"
    )

    analysis_group = parser.add_argument_group("Analysis overrides")
    analysis_group.add_argument(
        "--mtc-method",
        type=str,
        choices=MTC_METHODS,
        help="Override multiple testing correction method"
    )

    output_group = parser.add_argument_group("Output overrides")
    output_group.add_argument(
        "--output-dir",
        type=str,
        help="Override output directory"
    )
    output_group.add_argument(
        "--format",
        type=str,
        choices=PLOT_FORMATS,
        help="Override plot file format"
    )
    output_group.add_argument(
        "--dpi",
        type=int,
        help="Override plot resolution"
    )
    output_group.add_argument(
        "--no-table",
        action="store_true",
        help="Do not save the prepared results table"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def update_config(config: dict, args: argparse.Namespace):
    """Update configuration with command line overrides."""
    config.setdefault('input', {})
    config.setdefault('output', {})

    if args.results:
        config['input']['results_files'] = args.results
        # Names configured for other files no longer apply
        if not args.list_names:
            config['input'].pop('list_names', None)
    if args.list_names:
        config['input']['list_names'] = args.list_names

    if args.mtc_method:
        config.setdefault('analysis', {})['mtc_method'] = args.mtc_method

    if args.output_dir:
        config['output'].pop('output_dir', None)
        config['output']['directory'] = args.output_dir
    if args.no_table:
        config['output']['save_table'] = False

    if args.format:
        config.setdefault('plot', {})['format'] = args.format
    if args.dpi:
        config.setdefault('plot', {})['dpi'] = args.dpi

    return config


def main(argv=None):
    """Main entry point for the CLI."""
    args = parse_args(argv)

    try:
        with open(args.config_file, 'rb') as f:
            config = tomli.load(f)
    except Exception as e:
        print(f"Error loading configuration file: {str(e)}")
        sys.exit(1)

    config = update_config(config, args)

    output_dir = Path(config['output'].get('output_dir', config['output'].get('directory', 'results')))
    setup_logging(output_dir / 'logs', level=logging.DEBUG if args.verbose else logging.INFO)

    logging.info("Starting EWCE results plotting")
    logging.info(f"Using configuration file: {args.config_file}")

    # Relative paths resolve against the working directory, not the config file
    with tempfile.NamedTemporaryFile(mode="wb", prefix="ewceplot_", suffix=".toml", delete=False) as f:
        dump(config, f)
        temp_config_path = Path(f.name)

    try:
        pipeline = EnrichmentPlotPipeline(str(temp_config_path))
        outputs = pipeline.run()
        for kind, path in outputs.items():
            logging.info(f"Wrote {kind}: {path}")
        logging.info("Plotting completed successfully")
    except Exception as e:
        logging.error(f"Plotting failed: {str(e)}")
        sys.exit(1)
    finally:
        temp_config_path.unlink()


if __name__ == "__main__":
    main()

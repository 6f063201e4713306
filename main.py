"""
Main entry point of the fuzzy logic controller.

Loads an engine configuration (config/flc_config.toml by default), evaluates
each input row given on the command line, and logs the outputs. Rows are
comma-separated values, one per input variable, in declaration order:

    python main.py 0.25 0.5
    python main.py --config config/sin_x.toml 1.0 1.5 2.75
"""

import argparse
import logging
import os
import sys

from utils.logger import setup_logging
from flc.controller import FLCController
from flc.exceptions import FuzzyError
from flc.operation import str_scalar, to_scalars


def default_config_path():
    """Path of config/flc_config.toml relative to this script."""
    return os.path.join(os.path.dirname(__file__), "config", "flc_config.toml")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Evaluate a fuzzy logic controller.")
    parser.add_argument("rows", nargs="*", help="Input rows, e.g. '0.25' or '0.1,0.7'.")
    parser.add_argument("--config", default=default_config_path(), help="Engine configuration file.")
    parser.add_argument("--log-dir", default="logs", help="Directory of the per-stage log files.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Initialize logging
    setup_logging(args.log_dir)
    main_log = logging.getLogger("main")
    main_log.info("Application starting...")

    try:
        flc = FLCController.from_file(args.config)
        main_log.info("Configuration file '%s' loaded.", args.config)
        main_log.info("Inputs: %s -> Outputs: %s", ", ".join(flc.input_names), ", ".join(flc.output_names))

        for row in args.rows:
            values = to_scalars(row.replace(",", " "))
            outputs = flc.process_row(values)
            main_log.info(
                "%s -> %s",
                ", ".join(f"{n}= {str_scalar(v)}" for n, v in zip(flc.input_names, values)),
                ", ".join(f"{n}= {str_scalar(v)}" for n, v in zip(flc.output_names, outputs)),
            )
    except FuzzyError as e:
        main_log.critical("Fuzzy controller error: %s", e, exc_info=True)
        return 1
    except OSError as e:
        main_log.critical("Cannot read configuration: %s", e)
        return 1

    main_log.info("Application finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

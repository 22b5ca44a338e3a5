#!/usr/bin/env python3
"""
Command-line interface for linked micromap layouts.

Builds the layout for a CSV of region statistics and prints a summary of the
groups, rows and axis domains. Without --data it runs on the synthetic
example dataset. Interactive displays are built from Python.
"""

import argparse
import logging
import sys

import pandas as pd

from .config import MicromapConfig, config_from_dict, load_config
from .errors import MicromapError
from .link_index import PolygonCatalog

# Setup logging
logger = logging.getLogger(__name__)


def main(argv=None):
    """
    CLI entry point.
    """
    parser = argparse.ArgumentParser(
        description="Linked micromaps - compute groups, rows and linked panel layout"
    )

    parser.add_argument('--data', help='CSV with one row per region')
    parser.add_argument('--config', help='YAML display configuration (must define variables)')
    parser.add_argument('--parts', help='CSV with region_id,part_id rows in draw order; '
                                        'defaults to one part per region')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--version', action='store_true',
                        help='Show version information')

    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.version:
        from . import __version__
        print(f"Micromap Package version: {__version__}")
        return 0

    from .micromaps import build_micromaps, describe_layout

    try:
        config, variables = load_config(args.config) if args.config else config_from_dict(None)

        if args.data:
            data = pd.read_csv(args.data)
            if variables is None:
                parser.error("--config with a 'variables' section is required with --data")
            id_var = variables.get('id_var')
            if args.parts:
                catalog = PolygonCatalog.from_frame(pd.read_csv(args.parts))
            else:
                ids = data[id_var] if id_var in data.columns else []
                catalog = PolygonCatalog({rid: [rid] for rid in ids})
        else:
            from .example_data import create_micromap_synthetic_data
            data, catalog, _ = create_micromap_synthetic_data()
            variables = variables or {
                'id_var': 'ST_NAME',
                'grouping_var': {'name': 'pov', 'xlab': 'Percent', 'label': '% in Poverty'},
                'var2': {'name': 'ed', 'xlab': 'Percent', 'label': '% with University Education'},
            }
            config = config if args.config else MicromapConfig(lab_label='States', spacing='max')

        state = build_micromaps(data, variables, catalog, config)
    except MicromapError as e:
        logger.error(f"Could not build micromaps: {e}")
        return 1

    print(describe_layout(state))
    return 0


if __name__ == "__main__":
    sys.exit(main())

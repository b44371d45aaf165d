"""
Batch job: scrape the current lightning page and publish the JSON snapshot
"""

import argparse
import logging
import sys

from strikes.config import configure_logging, load_settings
from strikes.pipeline import SnapshotPipeline
from strikes.source import LightningSource
from strikes.visualizer import StrikeVisualizer


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate the lightning strike snapshot")
    parser.add_argument("--config", default=None,
                        help="YAML file overriding the default settings")
    parser.add_argument("--output", default=None,
                        help="Snapshot file (default: api/datos_rayos.json)")
    parser.add_argument("--direct", action="store_true",
                        help="Fetch the page directly instead of through the CORS relay")
    parser.add_argument("--map", action="store_true",
                        help="Also render the HTML map")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    configure_logging(settings)
    if args.direct:
        settings['source']['use_proxy'] = False

    visualizer = StrikeVisualizer(settings) if args.map else None
    pipeline = SnapshotPipeline(
        settings,
        mode='batch',
        source=LightningSource(settings),
        output_path=args.output,
        on_update=visualizer.render if visualizer else None
    )

    logging.info("Starting lightning data generation...")
    result = pipeline.run_cycle()
    if not result.ok:
        logging.error(f"Snapshot not updated: {result.error}")
        return 1

    logging.info(f"Total strikes processed and saved: {result.valid_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

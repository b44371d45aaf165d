"""
Interactive lightning map: refreshes every few minutes and on request
"""

import argparse
import logging
import sys

from strikes.config import configure_logging, load_settings
from strikes.live import LiveSession
from strikes.pipeline import SnapshotPipeline
from strikes.visualizer import StrikeVisualizer

COMMANDS = "Commands: r = refresh now, e [path] = export strikes, q = quit"


def handle_command(session: LiveSession, line: str) -> bool:
    """Apply one console command; returns False when the session should end"""
    parts = line.strip().split(maxsplit=1)
    if not parts:
        return True
    command = parts[0].lower()

    if command in ('q', 'quit', 'exit'):
        return False
    if command in ('r', 'refresh'):
        session.trigger()
    elif command in ('e', 'export'):
        try:
            path = session.export(parts[1] if len(parts) > 1 else None)
            print(f"Exported to {path}")
        except (RuntimeError, OSError) as e:
            print(f"Export failed: {e}")
    else:
        print(COMMANDS)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Live lightning strike map")
    parser.add_argument("--config", default=None,
                        help="YAML file overriding the default settings")
    parser.add_argument("--source", choices=['live', 'snapshot'], default='live',
                        help="Scrape the upstream page or read a published snapshot")
    parser.add_argument("--snapshot-url", default=None,
                        help="URL or path of the published snapshot")
    parser.add_argument("--interval", type=float, default=None,
                        help="Seconds between refreshes (default: 300)")
    parser.add_argument("--map-file", default=None,
                        help="HTML file to write (default: output/lightning_map.html)")
    parser.add_argument("--once", action="store_true",
                        help="Run a single cycle and exit")
    parser.add_argument("--export", default=None,
                        help="With --once, also export the strikes to this file")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    configure_logging(settings)
    if args.snapshot_url:
        settings['source']['snapshot_url'] = args.snapshot_url
    interval = args.interval or settings['schedule']['refresh_interval']

    visualizer = StrikeVisualizer(settings, output_file=args.map_file, refresh_interval=interval)
    pipeline = SnapshotPipeline(
        settings,
        mode='client',
        source_kind=args.source,
        on_update=visualizer.render
    )
    session = LiveSession(pipeline, interval=interval)

    if args.once:
        result = session.run_once()
        if result.ok and args.export:
            session.export(args.export)
        return 0 if result.ok else 1

    logging.info(f"Map file: {visualizer.output_file}")
    print(COMMANDS)
    session.start()
    try:
        for line in sys.stdin:
            if not handle_command(session, line):
                break
    except KeyboardInterrupt:
        pass
    finally:
        session.stop(timeout=5)
    return 0


if __name__ == "__main__":
    sys.exit(main())

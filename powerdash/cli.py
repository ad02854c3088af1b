"""Command-line interface for running the electric counter dashboard."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config_loader import ConfigurationError, create_example_config, load_config
from .config_models import SystemConfig
from .logging_config import get_logger, setup_logging
from .monitoring.dashboard_server import DashboardServer
from .session import DashboardSession


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Serve a live electrical telemetry dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the bundled sample data with simulated liveness
  python -m powerdash.cli

  # Serve a custom data file on another port
  python -m powerdash.cli --data-file data/electrical_data.json --port 8080

  # Stream simulated telemetry through the in-process client
  python -m powerdash.cli --mode stream --backend memory

  # Consume a Kafka topic
  python -m powerdash.cli --mode stream --backend kafka

  # Print the current snapshot and statuses, then exit
  python -m powerdash.cli --snapshot

  # Write an example configuration file
  python -m powerdash.cli --create-config config/config.yml.example
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        help='Path to configuration file (default: config/config.yml)'
    )

    parser.add_argument(
        '--mode',
        choices=['batch', 'stream'],
        help='Ingestion mode (overrides config)'
    )

    parser.add_argument(
        '--data-file',
        type=Path,
        help='Historical data document for batch mode (overrides config)'
    )

    parser.add_argument(
        '--backend',
        choices=['memory', 'kafka'],
        help='Stream backend for stream mode (overrides config)'
    )

    parser.add_argument('--host', help='Server host (overrides config)')
    parser.add_argument('--port', type=int, help='Server port (overrides config)')
    parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')

    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument(
        '--create-config',
        type=Path,
        metavar='PATH',
        help='Write an example configuration file and exit'
    )
    action_group.add_argument(
        '--snapshot',
        action='store_true',
        help='Print the current snapshot and statuses as JSON and exit'
    )

    return parser


def apply_overrides(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Apply command-line overrides to a loaded configuration."""
    if args.mode:
        config.ingestion.mode = args.mode
    if args.data_file:
        config.ingestion.data_file = args.data_file
    if args.backend:
        config.stream.backend = args.backend
    if args.host:
        config.dashboard.host = args.host
    if args.port:
        config.dashboard.port = args.port
    if args.debug:
        config.dashboard.debug = True
    return config


def print_snapshot(session: DashboardSession) -> None:
    """Print the session snapshot, statuses and state as JSON."""
    adapter = session.adapter
    adapter.flush()
    payload = {
        "snapshot": adapter.snapshot().to_dict(),
        "status": {metric.value: result.to_dict() for metric, result in adapter.statuses().items()},
        "state": adapter.state()
    }
    print(json.dumps(payload, indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.create_config:
        create_example_config(args.create_config)
        print(f"Example configuration written to {args.create_config}")
        return 0

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config)
    logger = get_logger(__name__)

    session = DashboardSession.from_config(config)
    try:
        session.start()

        if args.snapshot:
            print_snapshot(session)
            return 0

        server = DashboardServer(session.adapter, config.dashboard)
        try:
            server.start()
        finally:
            server.stop()

    except KeyboardInterrupt:
        logger.info("Dashboard interrupted by user")
        return 130

    finally:
        session.stop()

    return 0


if __name__ == '__main__':
    sys.exit(main())

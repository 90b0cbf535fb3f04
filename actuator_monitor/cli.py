"""
Actuator Monitor - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line entry point for polling an actuator.

- Loads configuration from .env, environment, YAML and CLI flags
- Runs one polling cycle or polls forever
- Writes each snapshot as one JSON line on stdout
- Logs to stderr so stdout stays machine-readable

============================================================
USAGE
============================================================
actuator-monitor --url http://localhost:8080 --once
actuator-monitor --url http://localhost:8080 --interval 30
actuator-monitor --config monitor.yaml --log-level DEBUG

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from actuator_monitor.config import LOG_FORMATS, LOG_LEVELS, ActuatorConfig, set_config
from actuator_monitor.exceptions import ConfigurationError
from actuator_monitor.models import PollSnapshot
from actuator_monitor.poller import ActuatorPoller


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure the root logger.

    Args:
        level: Log level
        log_format: Output format (json or text)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="actuator-monitor",
        description="Poll an application's actuator endpoints and emit normalized metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --url http://localhost:8080 --once     # One snapshot, then exit
  %(prog)s --url http://localhost:8080 -i 30      # Poll every 30 seconds
  %(prog)s --config monitor.yaml --skip-info      # YAML config, no /info
        """
    )

    parser.add_argument(
        "--url", "-u",
        type=str,
        default=None,
        help="Actuator base URL (env: ACTUATOR_BASE_URL)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML configuration file",
    )

    # --------------------------------------------------------
    # Polling Options
    # --------------------------------------------------------
    polling_group = parser.add_argument_group("Polling Options")
    polling_group.add_argument(
        "--once",
        action="store_true",
        help="Run a single polling cycle and exit",
    )
    polling_group.add_argument(
        "--interval", "-i",
        type=int,
        default=None,
        help="Seconds between polling cycles (env: ACTUATOR_POLL_INTERVAL)",
    )
    polling_group.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-request timeout in seconds (env: ACTUATOR_TIMEOUT)",
    )
    polling_group.add_argument(
        "--skip-health",
        action="store_true",
        help="Do not fetch /health",
    )
    polling_group.add_argument(
        "--skip-info",
        action="store_true",
        help="Do not fetch /info",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")
    logging_group.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level (env: LOG_LEVEL, default: INFO)",
    )
    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=LOG_FORMATS,
        default=None,
        help="Log format (env: LOG_FORMAT, default: text)",
    )

    return parser


def build_config(args: argparse.Namespace) -> ActuatorConfig:
    """
    Build configuration: environment, then YAML file, then CLI flags.

    Raises:
        ConfigurationError: If a configuration source cannot be loaded
    """
    config = ActuatorConfig.from_env()

    if args.config is not None:
        config = ActuatorConfig.from_yaml(args.config, base=config)

    config.update({
        "base_url": args.url,
        "poll_interval_seconds": args.interval,
        "timeout_seconds": args.timeout,
        "log_level": args.log_level,
        "log_format": args.log_format,
    })
    if args.skip_health:
        config.fetch_health = False
    if args.skip_info:
        config.fetch_info = False

    return config


def print_snapshot(snapshot: PollSnapshot) -> None:
    """Publisher writing one JSON document per line to stdout."""
    sys.stdout.write(json.dumps(snapshot.to_dict(), sort_keys=True) + "\n")
    sys.stdout.flush()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(config: ActuatorConfig, once: bool = False) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    poller = ActuatorPoller(config=config, publisher=print_snapshot)

    try:
        if once:
            snapshot = await poller.poll_once()
            await poller.publish(snapshot)
            return 0 if snapshot.metrics is not None else 1

        await poller.run_forever()
        return 0

    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted by user")
        return 130
    finally:
        await poller.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    set_config(config)
    setup_logging(config.log_level, config.log_format)
    logger.info(f"Polling {config.base_url} ({'single cycle' if args.once else 'continuous'})")

    try:
        return asyncio.run(async_main(config, once=args.once))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())

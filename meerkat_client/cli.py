"""
meerkat-client CLI entry point.

Queries the Meerkat API from the command line.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from meerkat_client import __version__
from meerkat_client.api import HttpStatusError, MeerkatAPIError, MeerkatClient, TransportError
from meerkat_client.config import Config, ConfigError, load_config

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_API_ERROR = 2
EXIT_NETWORK_ERROR = 3

# How long to wait for the first routing map before using the defaults
ROUTES_WAIT_TIMEOUT = 10.0  # seconds

# command -> (client method, takes an ID argument)
COMMANDS = {
    "live": ("get_all_broadcasts", False),
    "scheduled": ("get_scheduled_broadcasts", False),
    "summary": ("get_broadcast_summary", True),
    "activities": ("get_broadcast_activities", True),
    "restreams": ("get_broadcast_restreams", True),
    "comments": ("get_broadcast_comments", True),
    "likes": ("get_broadcast_likes", True),
    "watchers": ("get_broadcast_watchers", True),
    "user": ("get_user_details", True),
}


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="meerkat-client",
        description="Query the Meerkat broadcast API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  meerkat-client routes
  meerkat-client --token SECRET live
  meerkat-client summary 5a1b2c3d --json
  meerkat-client watch

Environment Variables:
  MEERKAT_API_TOKEN, MEERKAT_TIMEOUT, MEERKAT_WRITE_TO_LOG, MEERKAT_LOG_LEVEL
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )
    parser.add_argument(
        "--token",
        metavar="TEXT",
        help="Meerkat API token",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable client event logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print raw JSON",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
    subparsers.add_parser("routes", help="Fetch and print the routing map")
    subparsers.add_parser("watch", help="Keep the routing map refreshed until interrupted")
    subparsers.add_parser("live", help="List live broadcasts")
    subparsers.add_parser("scheduled", help="List scheduled broadcasts")
    for name, what in (
        ("summary", "Broadcast summary"),
        ("activities", "Broadcast activities"),
        ("restreams", "Broadcast restreams"),
        ("comments", "Broadcast comments"),
        ("likes", "Broadcast likes"),
        ("watchers", "Broadcast watchers"),
    ):
        sub = subparsers.add_parser(name, help=what)
        sub.add_argument("id", metavar="BROADCAST_ID")
    user = subparsers.add_parser("user", help="User profile")
    user.add_argument("id", metavar="USER_ID")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    mappings = {
        "token": ("api", "token"),
        "timeout": ("api", "timeout"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        _set_nested(result, path, value)

    # Only set if explicitly requested
    if getattr(args, "quiet", False):
        _set_nested(result, ("api", "write_to_log"), False)

    return result


def print_result(data: Any, json_output: bool) -> None:
    """Print an API result."""
    if json_output or not isinstance(data, dict):
        print(json.dumps(data, indent=2))
        return

    width = max((len(str(k)) for k in data), default=0)
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            value = json.dumps(value)
        print(f"  {str(key).ljust(width)}  {value}")


async def run_command(config: Config, args: argparse.Namespace) -> int:
    """
    Run a single CLI command against the API.

    Returns:
        Exit code
    """
    async with MeerkatClient(
        config.api.token,
        write_to_log=config.api.write_to_log,
        timeout=config.api.timeout,
    ) as client:
        if not await client.wait_for_routes(timeout=ROUTES_WAIT_TIMEOUT):
            logger.warning("Routing map not available yet, using defaults")

        if args.command == "routes":
            print_result(client.routing_map.as_dict(), args.json_output)
            return EXIT_SUCCESS

        if args.command == "watch":
            return await run_watch(client)

        method_name, takes_id = COMMANDS[args.command]
        method = getattr(client, method_name)
        data = await (method(args.id) if takes_id else method())
        print_result(data, args.json_output)

    return EXIT_SUCCESS


async def run_watch(client: MeerkatClient) -> int:
    """Keep the client alive so the routing map keeps refreshing."""
    scheduler = client.scheduler
    logger.info(f"Watching routing map (next refresh in {scheduler.next_interval_ms} ms)")
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        pass
    return EXIT_SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=API error, 3=network error
    """
    args = parse_args(argv)
    setup_logging("info")

    try:
        config = load_config(args.config, args_to_dict(args))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    setup_logging(config.logging.level)

    try:
        return asyncio.run(run_command(config, args))

    except HttpStatusError as e:
        logger.error(f"API error: {e}")
        return EXIT_API_ERROR

    except TransportError as e:
        logger.error(f"Network error: {e}")
        return EXIT_NETWORK_ERROR

    except MeerkatAPIError as e:
        logger.error(f"API error: {e}")
        return EXIT_API_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""My Fortum usage data fetcher.

This is the command line entry point: authenticate to My Fortum to get an
access token, or fetch consumption data and print it through a template.
"""

import sys
import argparse
import logging
from typing import List, Optional

from fortum_fetch.exceptions import ConfigError, FortumFetchError, RequestStatusError
from fortum_fetch.utils.config import Config
from fortum_fetch.utils.date_parser import parse_date_string
from fortum_fetch.utils.logger import setup_logging


logger = logging.getLogger(__name__)


def _date_arg(value: str):
    parsed = parse_date_string(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r} (use YYYY-MM-DD)")
    return parsed


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="fortum-fetch",
        description="Utility to fetch usage data from My Fortum"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging (overrides FORTUM_DEBUG)"
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run browser in headless mode (overrides FORTUM_HEADLESS, default: true)"
    )
    parser.add_argument(
        "-u", "--user",
        type=str,
        help="My Fortum user to authenticate as (overrides FORTUM_USER)"
    )
    parser.add_argument(
        "-p", "--password",
        type=str,
        help="Password for My Fortum user (overrides FORTUM_PASSWORD)"
    )
    parser.add_argument(
        "--url",
        type=str,
        help="My Fortum URL (overrides FORTUM_URL, default: https://web.fortum.fi)"
    )
    parser.add_argument(
        "--env-file",
        type=str,
        help="Configuration file (default: .env, ~/.config/fortum_fetch or ~/.fortum_fetch)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "authenticate",
        help="Authenticate to My Fortum and print the access token"
    )

    usage = subparsers.add_parser("usage", help="Get usage data")
    usage.add_argument(
        "-t", "--access-token",
        type=str,
        help="Access token (overrides FORTUM_ACCESS_TOKEN)"
    )
    usage.add_argument(
        "--metering-point-id",
        type=str,
        help="Only include data for this metering point ID"
    )
    usage.add_argument(
        "--time-zone",
        type=str,
        help="Time zone for output timestamps (overrides FORTUM_TZ, default: Europe/Helsinki)"
    )
    usage.add_argument(
        "--metering-format",
        type=str,
        help="Template for metering point output. Available fields: CustomerId, MeteringPointId, "
             "MeteringPointNo, MeteringPointAddress, Time, Energy, Cost"
    )
    usage.add_argument(
        "--from",
        dest="date_from",
        type=_date_arg,
        help="Load data from this date"
    )
    usage.add_argument(
        "--to",
        dest="date_to",
        type=_date_arg,
        help="Load data to this date"
    )

    return parser.parse_args(argv)


def do_authenticate(args: argparse.Namespace, config: Config) -> str:
    """Log in with the configured credentials and return the access token.

    Raises:
        ConfigError: If credentials are missing
        AuthError: If login fails
    """
    from fortum_fetch.auth.authenticator import Credentials, FortumAuthenticator

    credentials = Credentials.from_values(
        args.user or config.username,
        args.password or config.password,
        args.url or config.base_url,
    )
    authenticator = FortumAuthenticator(config.auth_settings(headless=args.headless))
    return authenticator.authenticate(credentials)


def do_usage(args: argparse.Namespace, config: Config) -> int:
    """Fetch consumption data and write formatted rows to stdout."""
    from fortum_fetch.api.client import FortumAPIClient
    from fortum_fetch.output.template import MeteringTemplate, build_rows

    # Validate local inputs before any network traffic
    template = MeteringTemplate(args.metering_format or config.metering_format)
    tz = config.zone_info(args.time_zone)
    metering_point_id = args.metering_point_id or config.metering_point_id

    def refresh_token() -> Optional[str]:
        """Callback to acquire a new access token when the current one is rejected."""
        logger.info("Authentication failure, attempting to acquire new access token")
        return do_authenticate(args, config)

    client = FortumAPIClient(
        access_token=args.access_token or config.access_token,
        base_url=args.url or config.base_url,
        timeout_seconds=config.request_timeout_seconds,
        max_retries=config.max_retries,
        on_session_expired=refresh_token,
    )

    customer_info = client.get_customer_info()

    logger.debug("Get metering points")
    metering_points = client.get_metering_points(customer_info.owner.customer_id)
    logger.debug(f"Metering points: {metering_points}")

    if metering_point_id:
        metering_points = [p for p in metering_points if p.metering_point_id == metering_point_id]
    if not metering_points:
        logger.info("No metering points found")
        return 0

    consumption_data = client.get_consumption_data(
        customer_info.owner.customer_id,
        metering_points,
        date_from=args.date_from,
        date_to=args.date_to,
    )
    if not consumption_data:
        logger.info("No consumption data found")
        return 0

    logger.debug(f"Metering output format: {template.source!r}")
    logger.debug(f"Processing {len(consumption_data)} consumption items")
    count = template.write(build_rows(customer_info, consumption_data, tz), sys.stdout)
    logger.info(f"Wrote {count} metering rows")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config(args.env_file)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    # Setup logging
    log_level = "DEBUG" if args.debug else config.log_level
    setup_logging(log_level=log_level, log_to_console=True, log_dir=config.log_dir)
    if config.loaded_file:
        logger.debug(f"Loaded configuration from {config.loaded_file}")

    try:
        if args.command == "authenticate":
            print(do_authenticate(args, config))
            return 0
        return do_usage(args, config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    except RequestStatusError as e:
        print(f"✗ API request failed: {e}", file=sys.stderr)
        return 1
    except FortumFetchError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

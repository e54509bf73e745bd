import argparse
import logging
import sys

from villa_availability import config, run

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def business_time(seconds=None):
    """Log record time converter: wall clock at the business UTC offset."""
    import time

    if seconds is None:
        seconds = time.time()
    return time.gmtime(seconds + config.BUSINESS_UTC_OFFSET_HOURS * 3600)


def setup_logging(verbose: bool):
    """Configures logging to stderr, timestamped in business time."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt=f"%(asctime)s UTC{config.BUSINESS_UTC_OFFSET_HOURS:+d} [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    formatter.converter = business_time
    handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[handler])
    return handler


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Find free stays for a villa and alternatives when it is booked.")
    parser.add_argument("property_id", help="Property ID to search.")
    window = parser.add_mutually_exclusive_group(required=True)
    window.add_argument("--month", type=str, help="Month to search in YYYY-MM format.")
    window.add_argument("--start-date", type=str, help="Period start (check-in) in YYYY-MM-DD format.")
    parser.add_argument("--end-date", type=str, help="Period end (check-out) in YYYY-MM-DD format.")
    parser.add_argument(
        "--nights", type=int, default=config.DEFAULT_NIGHTS, help=f"Nights per stay. Defaults to {config.DEFAULT_NIGHTS}."
    )
    parser.add_argument(
        "--limit", type=int, default=config.DEFAULT_SLOT_LIMIT, help="Maximum number of stays to list."
    )
    parser.add_argument("--with-prices", action="store_true", help="Ask the backend for a price of every stay found.")
    parser.add_argument(
        "--no-alternatives", action="store_true", help="Do not search other properties when the stay is unavailable."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main():
    args = parse_arguments()
    setup_logging(args.verbose)

    if args.start_date and not args.end_date:
        logger.error("Error: --end-date is required with --start-date.")
        sys.exit(1)

    try:
        run.build_window(args.month, args.start_date, args.end_date, args.nights, args.limit)
    except ValueError as e:
        logger.error(f"Invalid search: {e}")
        sys.exit(1)

    run.run(
        property_id=args.property_id,
        month=args.month,
        start_date=args.start_date,
        end_date=args.end_date,
        nights=args.nights,
        limit=args.limit,
        with_prices=args.with_prices,
        find_alternatives=not args.no_alternatives,
    )

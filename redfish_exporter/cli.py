import argparse
import logging
import sys
from typing import List, Optional, Tuple

from dotenv import load_dotenv
import uvicorn

from redfish_exporter import __commit__, __version__

logger = logging.getLogger(__name__)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a "host:port" listen address. IPv6 hosts are given in brackets
    ("[::1]:9290") and an empty host (":9290") listens on all interfaces.

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {address!r}, expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "0.0.0.0", int(port)


def build_parser(default_listen: str, default_path: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redfish-exporter",
        description="Prometheus exporter for BMC hardware health over Redfish",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Listen on the default address (localhost:9290)
  redfish-exporter

  # Listen on all interfaces with a custom metrics path
  redfish-exporter --web.listen-address :9290 --web.telemetry-path /redfish

Scrape URL:
  http://localhost:9290/metrics?target=bmc.example.com
        """
    )

    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=default_listen,
        help=f"Address to listen on for web interface and telemetry (default: {default_listen})"
    )

    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        default=default_path,
        help=f"Path under which to expose metrics (default: {default_path})"
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Exporter entry point. Returns the process exit code."""
    # Environment must be loaded before settings are imported
    load_dotenv()

    from redfish_exporter.config import settings

    parser = build_parser(settings.LISTEN_ADDRESS, settings.METRICS_PATH)
    args = parser.parse_args(argv)

    if args.version:
        print(f"redfish-exporter {__version__}-{__commit__}")
        return 0

    from redfish_exporter.logging_config import get_log_level, setup_logging
    from redfish_exporter.main import create_app

    setup_logging(settings.LOG_LEVEL)

    try:
        host, port = parse_listen_address(args.listen_address)
    except ValueError as e:
        logger.error(str(e))
        return 1

    if not args.metrics_path.startswith("/"):
        logger.error(f"Invalid telemetry path {args.metrics_path!r}, it must start with '/'")
        return 1

    logger.info(f"Starting Redfish exporter on {args.listen_address}")
    app = create_app(settings=settings, metrics_path=args.metrics_path)

    try:
        uvicorn.run(app, host=host, port=port, log_level=logging.getLevelName(get_log_level(settings.LOG_LEVEL)).lower())
    except Exception as e:
        logger.error(f"HTTP server failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command line entry point."""

import argparse
import sys
from collections.abc import Sequence
from typing import NoReturn

from marathon_exporter.config import Settings
from marathon_exporter.exceptions import ConfigurationError


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marathon-exporter",
        description="Prometheus exporter for Marathon metrics",
    )

    # Single-dash spellings are accepted too
    parser.add_argument(
        "--marathon.uri",
        "-marathon.uri",
        dest="marathon_uris",
        action="append",
        metavar="URI",
        help="URI of Marathon (repeat for several sources)",
    )
    parser.add_argument(
        "--web.listen-address",
        "-web.listen-address",
        dest="listen_address",
        help="Address to listen on for web interface and telemetry (default :9088)",
    )
    parser.add_argument(
        "--web.telemetry-path",
        "-web.telemetry-path",
        dest="telemetry_path",
        help="Path under which to expose metrics (default /metrics)",
    )
    parser.add_argument(
        "--log.level",
        "-log.level",
        dest="log_level",
        help="Logging level (default INFO)",
    )

    return parser


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Load settings from the environment, overridden by command line flags."""
    args = create_parser().parse_args(argv)
    return Settings.load(**vars(args))


def main(argv: Sequence[str] | None = None) -> NoReturn:
    settings = load_settings(argv)

    from marathon_exporter.core.runner import run

    try:
        run(settings)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()

"""
fldigi-bandmon command-line interface
"""
import argparse
import logging
import re
import sys
from pathlib import Path

from bandmon import DEFAULT_HOST, DEFAULT_PORT, BandmonError, __version__
from bandmon.bandplan import BandTable, default_band_table
from bandmon.command import CommandNotifier
from bandmon.fldigi import FldigiClient
from bandmon.models import MonitorConfig
from bandmon.monitor import BandMonitor

logger = logging.getLogger(__name__)

DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a polling interval into seconds

    Accepts plain seconds ("5", "2.5") or unit suffixed values
    like "500ms", "5s", "1m" and "1m30s".
    """
    text = text.strip()
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos == 0 or pos != len(text):
            raise argparse.ArgumentTypeError(f"invalid duration: {text!r}")

    if not seconds > 0:
        raise argparse.ArgumentTypeError(f"duration must be positive: {text!r}")
    return seconds


def setup_logging(verbose: bool = False):
    """Configure logging"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fldigi-bandmon",
        description="Run a command whenever fldigi's rig frequency moves to another amateur band",
        epilog="The command is called with the new band name as its only argument, e.g. 'mycmd 40m'.",
    )

    parser.add_argument(
        "-H", "--host",
        default=DEFAULT_HOST,
        help=f"fldigi host (default: {DEFAULT_HOST})",
    )

    parser.add_argument(
        "-p", "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"fldigi XML-RPC port (default: {DEFAULT_PORT})",
    )

    parser.add_argument(
        "-i", "--interval",
        type=parse_duration,
        default=5.0,
        help="Polling interval, e.g. 5, 5s, 500ms, 1m (default: 5s)",
    )

    parser.add_argument(
        "-c", "--command",
        help="External command to run on band change (required unless listing)",
    )

    parser.add_argument(
        "--command-timeout",
        type=parse_duration,
        default=None,
        help="Give up on the command after this long (default: wait forever)",
    )

    parser.add_argument(
        "-b", "--bands",
        type=Path,
        help="Band plan file with name:start_mhz:end_mhz lines (default: built-in plan)",
    )

    parser.add_argument(
        "--list-bands",
        action="store_true",
        help="Print the band plan and exit",
    )

    parser.add_argument(
        "--list-methods",
        action="store_true",
        help="Print the XML-RPC methods fldigi offers and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"fldigi-bandmon {__version__}",
    )

    return parser


def load_table(bands_file) -> BandTable:
    if bands_file is None:
        return default_band_table()
    return BandTable.from_file(bands_file)


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        table = load_table(args.bands)
        logger.debug(f"Loaded {len(table)} bands")

        if args.list_bands:
            for band in table:
                print(f"{band.name:>6}  {band.start:>10g} - {band.end:g} MHz")
            return 0

        if args.list_methods:
            client = FldigiClient(args.host, args.port)
            for method in client.list_methods():
                print(method)
            return 0

        if not args.command:
            parser.print_usage(sys.stderr)
            logger.error("--command/-c is required")
            return 1

        config = MonitorConfig(
            command=args.command,
            host=args.host,
            port=args.port,
            interval=args.interval,
            command_timeout=args.command_timeout,
        )
    except (BandmonError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    client = FldigiClient(config.host, config.port)
    monitor = BandMonitor(
        table,
        fetch_frequency=client.get_frequency,
        notify=CommandNotifier(config.command, timeout=config.command_timeout),
        interval=config.interval,
    )

    logger.info(f"fldigi-bandmon v{__version__}")
    logger.info(f"fldigi endpoint: {client.url}")
    logger.info(f"Band change command: {config.command}")

    try:
        monitor.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())

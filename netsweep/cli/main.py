"""Command line interface for netsweep."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler

from ..core.config import RuntimeConfig, load_config
from ..core.errors import EnvironmentCheckError, NetsweepError, UsageError
from ..core.models import Protocol, ScanEvent, ScanMode, Severity
from ..core.scanner import Scanner, plan_scan
from ..net.probes import ping_command
from ..reporting import DEFAULT_STYLE, PLAIN_STYLE, ConsoleStyle, format_event, format_message, format_summary

logger = logging.getLogger("netsweep")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netsweep",
        description="netsweep - host liveness and port reachability sweeps",
    )
    parser.add_argument(
        "target",
        help="Host, IP, dash range (10.0.0.1-10.0.0.9), CIDR block, or a comma separated mix",
    )
    parser.add_argument(
        "-p",
        "--ports",
        action="append",
        default=[],
        help="Ports to probe, e.g. 22,80,8000-8010 (repeatable)",
    )
    parser.add_argument("-u", "--udp", action="store_true", help="Probe ports over UDP")
    parser.add_argument("-t", "--timeout", type=float, default=None, help="Per-probe timeout in seconds")
    parser.add_argument("-w", "--workers", type=int, default=None, help="Concurrent probes")
    parser.add_argument(
        "--ordered",
        action="store_true",
        default=None,
        help="Report results in address/port order when using several workers",
    )
    parser.add_argument("--open-only", action="store_true", help="Only report alive hosts and open ports")
    parser.add_argument(
        "--keep-duplicates",
        action="store_true",
        help="Probe a port once per occurrence in the port list",
    )
    parser.add_argument("--no-color", action="store_true")
    parser.add_argument("--verbose", action="store_true", default=None)
    return parser


def _configure_logging(console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=False,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )


def check_environment(mode: ScanMode) -> None:
    """Fail early when a liveness sweep cannot find the ``ping`` binary."""

    if mode is ScanMode.LIVENESS and ping_command() is None:
        raise EnvironmentCheckError("The 'ping' command is required for host discovery but was not found")


def _should_print(event: ScanEvent, open_only: bool) -> bool:
    if not open_only or event.result is None:
        return True
    return event.result.is_positive


def _run(args: argparse.Namespace, config: RuntimeConfig, out: Console, style: ConsoleStyle) -> int:
    protocol = Protocol.UDP if args.udp else Protocol.TCP
    dedupe = not args.keep_duplicates
    plan = plan_scan(args.target, args.ports, protocol, dedupe=dedupe)
    check_environment(plan.mode)

    scanner = Scanner(config)
    for event in scanner.execute(plan):
        if _should_print(event, args.open_only):
            out.print(format_event(event, style), highlight=False)
    out.print(format_summary(scanner.summary, style), highlight=False)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    style = PLAIN_STYLE if args.no_color else DEFAULT_STYLE
    out = Console(no_color=args.no_color, soft_wrap=True)
    err = Console(stderr=True, no_color=args.no_color, soft_wrap=True)

    config = load_config(
        cli_timeout=args.timeout,
        cli_workers=args.workers,
        cli_ordered=args.ordered,
        cli_verbose=args.verbose,
    )
    _configure_logging(err, config.verbose)
    logger.debug("Runtime configuration: %s", config)

    try:
        return _run(args, config, out, style)
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        err.print(format_message(Severity.FATAL, str(exc), style), highlight=False)
        return EXIT_USAGE
    except (NetsweepError, OSError) as exc:
        err.print(format_message(Severity.FATAL, f"Error: {exc}", style), highlight=False)
        return EXIT_ERROR
    except KeyboardInterrupt:
        err.print(format_message(Severity.WARNING, "Scan interrupted by user", style), highlight=False)
        return EXIT_INTERRUPTED


def run() -> None:  # pragma: no cover
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

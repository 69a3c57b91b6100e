"""Command-line entry point for the GitHub exporter."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from typing import List, Optional

from . import __version__, config
from .adapters.exporters.prometheus.prometheus_exporter import MetricSink
from .adapters.github.github_client import GitHubClient
from .app.orchestrator import UpdateOrchestrator
from .app.scheduler import RefreshScheduler
from .errors import ConfigurationError, ExporterError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    return int(value) if value.isdigit() else default


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-exporter",
        description="Export GitHub repository, issue, notification and workflow metrics to Prometheus",
    )
    parser.add_argument(
        "-t", "--token",
        default=os.getenv("GITHUB_TOKEN", ""),
        metavar="TOKEN",
        help="GitHub token (env: GITHUB_TOKEN, GH_TOKEN or $CREDENTIALS_DIRECTORY)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=_env_flag("GITHUB_EXPORTER_VERBOSE"),
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-V", "--version",
        action="store_true",
        help="Print version information",
    )

    subparsers = parser.add_subparsers(dest="command")

    generate = subparsers.add_parser("generate", help="Collect once and write or push the metrics")
    generate.add_argument(
        "-o", "--output",
        default=os.getenv("GITHUB_EXPORTER_OUTPUT", ""),
        metavar="FILE",
        help="Write metrics to FILE, '-' for stdout (default when nothing else is set)",
    )
    generate.add_argument(
        "-p", "--pushgateway-url",
        default=os.getenv("GITHUB_EXPORTER_PUSHGATEWAY_URL", ""),
        metavar="URL",
        help="Push metrics to a Prometheus Pushgateway",
    )
    generate.add_argument(
        "-r", "--pushgateway-retries",
        type=int,
        default=_env_int("GITHUB_EXPORTER_PUSHGATEWAY_RETRIES", config.DEFAULT_PUSHGATEWAY_RETRIES),
        metavar="RETRIES",
        help="Attempts when pushing to the Pushgateway (default: %(default)s)",
    )

    serve = subparsers.add_parser("serve", help="Serve /metrics and refresh on an interval")
    serve.add_argument(
        "-l", "--listen",
        default=os.getenv("GITHUB_EXPORTER_LISTEN", config.DEFAULT_LISTEN),
        metavar="ADDRESS:PORT",
        help="Listen address (default: %(default)s)",
    )
    serve.add_argument(
        "-i", "--interval",
        default=os.getenv("GITHUB_EXPORTER_INTERVAL", config.DEFAULT_INTERVAL),
        metavar="INTERVAL",
        help="Refresh interval, e.g. 15m or 1h (default: %(default)s)",
    )

    return parser


def run_generate(args: argparse.Namespace, scheduler: RefreshScheduler, sink: MetricSink) -> int:
    try:
        scheduler.run_once()
    except ExporterError as exc:
        logger.critical("Error fetching metrics: %s", exc)
        return 1

    output = args.output
    if not output and not args.pushgateway_url:
        output = "-"

    try:
        if output == "-":
            sink.write_to_stream(sys.stdout)
        elif output:
            sink.write_to_textfile(output)
    except OSError as exc:
        logger.critical("Error writing metrics: %s", exc)
        return 1

    if args.pushgateway_url:
        try:
            sink.push(args.pushgateway_url, retries=args.pushgateway_retries)
        except ValueError as exc:
            logger.critical("Invalid Pushgateway URL %s: %s", args.pushgateway_url, exc)
            return 1
        except OSError as exc:
            logger.critical(
                "Error pushing metrics after %d attempts: %s", max(1, args.pushgateway_retries), exc
            )
            return 1

    return 0


def run_serve(
    args: argparse.Namespace,
    scheduler: RefreshScheduler,
    sink: MetricSink,
    stop: Optional[threading.Event] = None,
) -> int:
    try:
        interval = config.parse_duration(args.interval)
        host, port = config.parse_listen_address(args.listen)
    except ConfigurationError as exc:
        logger.critical("%s", exc)
        return 1

    try:
        sink.start(host=host, port=port)
    except OSError as exc:
        logger.critical("Error listening on %s: %s", args.listen, exc)
        return 1

    scheduler.start(interval)

    stop = stop or threading.Event()
    try:
        stop.wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        scheduler.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    configure_logging(verbose=args.verbose)

    token = (args.token or "").strip() or config.fetch_github_token()
    if not token:
        parser.print_usage(sys.stderr)
        print("error: --token is required (or environment variable GITHUB_TOKEN)", file=sys.stderr)
        return 1

    if args.command is None:
        parser.print_help(sys.stdout)
        return 1

    client = GitHubClient(token=token, verbose=args.verbose)
    sink = MetricSink()
    scheduler = RefreshScheduler(UpdateOrchestrator(client, sink))

    if args.command == "generate":
        return run_generate(args, scheduler, sink)
    return run_serve(args, scheduler, sink)


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point for the daily concert-group formation job.

Usage::

    python -m concert_groups.cli init-db
    python -m concert_groups.cli run
    python -m concert_groups.cli run --radius-miles 30 --artist-delay-ms 500
    python -m concert_groups.cli run --json-logs

``init-db`` creates every table the engine reads or writes.  ``run`` performs
one pass over all shared artists and prints a short summary to stdout.  The
external scheduler (cron, systemd timer, k8s CronJob) owns the cadence.

SIGINT / SIGTERM request a graceful drain: the artist in flight finishes and
no further artist is started.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import Any

from concert_groups.models.run import BatchRunReport
from concert_groups.pipeline.orchestrator import ConcertGroupFormationJob
from concert_groups.utils.errors import ConcertGroupsError


def _format_report(report: BatchRunReport) -> str:
    """Render the run report as a human-readable summary."""
    sep = "=" * 60
    elapsed = (report.finished_at - report.started_at).total_seconds()
    lines = [
        sep,
        "  Concert group formation: run summary",
        sep,
        f"  Run id:             {report.run_id or '-'}",
        f"  Shared artists:     {report.artists_total}",
        f"  Processed:          {report.artists_processed}",
        f"  Failed:             {report.artists_failed}",
        f"  Groups created:     {report.groups_created}",
        f"  Groups extended:    {report.groups_extended}",
        f"  Members added:      {report.members_added}",
        f"  Stopped early:      {'yes' if report.stopped_early else 'no'}",
        f"  Elapsed:            {elapsed:.1f}s",
    ]

    failed = [o for o in report.outcomes if o.error]
    if failed:
        lines.append("")
        lines.append("FAILED ARTISTS")
        lines.append("-" * 40)
        for outcome in failed:
            label = outcome.artist_name or outcome.artist_id
            lines.append(f"  {label}: {outcome.error}")

    lines.append(sep)
    return "\n".join(lines)


def _install_signal_handlers(job: ConcertGroupFormationJob) -> None:
    """Route SIGINT/SIGTERM to ``job.request_stop``."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, job.request_stop)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on Windows event loops.
            signal.signal(sig, lambda *_: job.request_stop())


async def _handle_init_db(args: argparse.Namespace) -> int:
    from concert_groups.config.loader import load_config
    from concert_groups.main import build_stores, initialize_stores

    config = load_config(args.config)
    stores = build_stores(config)
    await initialize_stores(stores)
    print(f"Initialized database: {config['storage']['database_path']}")
    return 0


async def _handle_run(args: argparse.Namespace) -> int:
    from concert_groups.main import run_daily_job

    overrides: dict[str, Any] = {}
    if args.radius_miles is not None:
        overrides["radius_miles"] = args.radius_miles
    if args.artist_delay_ms is not None:
        overrides["artist_delay_ms"] = args.artist_delay_ms
    if args.workers is not None:
        overrides["max_concurrent_artists"] = args.workers

    try:
        report = await run_daily_job(
            config_path=args.config,
            overrides=overrides,
            on_job_built=_install_signal_handlers,
            json_logs=args.json_logs,
        )
    except ConcertGroupsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(_format_report(report))
    return 0 if report.artists_failed == 0 else 2


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the formation job CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m concert_groups.cli",
        description="Form concert groups of nearby friends who share an artist.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML config (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Job commands")

    # -- init-db --
    subparsers.add_parser("init-db", help="Create all tables if they don't exist")

    # -- run --
    run_parser = subparsers.add_parser("run", help="Run one formation pass")
    run_parser.add_argument(
        "--radius-miles",
        type=float,
        default=None,
        help="Proximity radius around each venue (default: 50)",
    )
    run_parser.add_argument(
        "--artist-delay-ms",
        type=int,
        default=None,
        help="Minimum delay between artist starts (default: 1000)",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Artists processed concurrently (default: 1)",
    )
    run_parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON logs regardless of APP_ENV",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the formation job."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "init-db":
        exit_code = asyncio.run(_handle_init_db(args))
    elif args.command == "run":
        exit_code = asyncio.run(_handle_run(args))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

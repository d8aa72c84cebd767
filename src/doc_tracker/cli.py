"""Command-line interface for the DocTracker notifier.

This module provides the main entry point for the CLI application. The
``run`` command is what a system scheduler (cron, a Kubernetes CronJob)
invokes once a day.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date

import structlog

from doc_tracker import __version__
from doc_tracker.config import get_settings
from doc_tracker.exceptions import DocTrackerError
from doc_tracker.models import RunStatus
from doc_tracker.notifications import NotificationService
from doc_tracker.store import ensure_schema
from doc_tracker.utils import configure_logging

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNAUTHORIZED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="doctracker", description="DocTracker expiry reminders")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evaluate all documents and send due reminders")
    run_parser.add_argument(
        "--secret",
        default=None,
        help="Trigger secret (default: the configured cron secret)",
    )
    run_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference day as YYYY-MM-DD (default: today in the configured timezone)",
    )

    preview_parser = subparsers.add_parser("preview", help="Show upcoming reminders for one user")
    preview_parser.add_argument("user_id", help="User ID")
    preview_parser.add_argument("--date", type=date.fromisoformat, default=None, help="Reference day")

    subparsers.add_parser("verify", help="Check that the Gmail delivery channel is configured")

    test_parser = subparsers.add_parser("send-test", help="Send a one-off test reminder")
    test_parser.add_argument("email", help="Recipient address")

    subparsers.add_parser("init-db", help="Create the notifier tables if missing")

    serve_parser = subparsers.add_parser("serve", help="Serve the /notifications HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: DOCTRACKER_API_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: DOCTRACKER_API_PORT)")

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _cmd_run(service: NotificationService, args: argparse.Namespace) -> int:
    # Local invocations read the same configuration as the server.
    secret = args.secret or service.settings.cron_secret
    result = await service.run(credential=secret, today=args.date)

    if result.status is RunStatus.UNAUTHORIZED:
        _print_json({"error": result.error})
        return EXIT_UNAUTHORIZED
    if result.status is RunStatus.FAILED:
        _print_json({"error": result.error, "details": result.details})
        return EXIT_FAILED

    assert result.summary is not None
    _print_json(result.summary.model_dump(mode="json"))
    return EXIT_OK


def _cmd_preview(service: NotificationService, args: argparse.Namespace) -> int:
    preview = service.preview(args.user_id, today=args.date)
    _print_json(preview.model_dump(mode="json"))
    return EXIT_OK


async def _cmd_verify(service: NotificationService) -> int:
    _print_json(await service.verify_channel())
    return EXIT_OK


async def _cmd_send_test(service: NotificationService, args: argparse.Namespace) -> int:
    _print_json(await service.send_test(args.email))
    return EXIT_OK


def _cmd_serve(service: NotificationService, args: argparse.Namespace) -> int:
    import uvicorn

    from doc_tracker.api import create_app

    settings = service.settings
    uvicorn.run(
        create_app(settings, service),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return EXIT_OK


def main(args: list[str] | None = None, service: NotificationService | None = None) -> int:
    """Main entry point for the DocTracker notifier CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.
        service: Pre-built service. If None, one is built from settings.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = service.settings if service is not None else get_settings()
    configure_logging(settings)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    logger.info("doctracker_cli_started", version=__version__, command=parsed.command)

    try:
        service = service or NotificationService.from_settings(settings)

        if parsed.command == "init-db":
            ensure_schema(service.engine)
            _print_json({"status": "ok", "database_url": settings.database_url})
            return EXIT_OK
        if parsed.command == "run":
            return asyncio.run(_cmd_run(service, parsed))
        if parsed.command == "preview":
            return _cmd_preview(service, parsed)
        if parsed.command == "verify":
            return asyncio.run(_cmd_verify(service))
        if parsed.command == "send-test":
            return asyncio.run(_cmd_send_test(service, parsed))
        if parsed.command == "serve":
            return _cmd_serve(service, parsed)
    except DocTrackerError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        _print_json({"error": str(exc)})
        return EXIT_FAILED

    logger.error("unknown_command", command=parsed.command)
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())

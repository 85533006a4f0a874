"""FocusAI command line."""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from focusai.api.client import BackendClient
from focusai.config import Settings, load_settings
from focusai.errors import FocusError
from focusai.logger import configure_logging, logger
from focusai.model.models import Category, SessionSpec, Voice
from focusai.session.controller import SessionController
from focusai.session.identity import DeviceIdentityStore
from focusai.session.summary import SummaryRequester, format_summary
from focusai.ui.notifications import notify_blocked, notify_session_ended
from focusai.watchers.poller import collect_context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focusai", description="FocusAI focus session companion"
    )
    parser.add_argument("--api-url", help="バックエンドのベースURL")
    parser.add_argument("--interval", type=float, help="ポーリング間隔（秒）")
    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start", help="start a focus session and monitor it")
    start.add_argument("--goal", required=True, help="what you want to get done")
    start.add_argument("--minutes", type=int, default=45, help="15-180, step 15")
    start.add_argument(
        "--category",
        dest="categories",
        action="append",
        choices=[c.value for c in Category],
        help="distraction category to block (repeatable, default: social)",
    )
    start.add_argument(
        "--voice", choices=[v.value for v in Voice], default=Voice.CLUELY.value
    )

    commands.add_parser("summary", help="print focus statistics")
    commands.add_parser("device-id", help="print this device's id")
    return parser


def _merge_args(settings: Settings, args: argparse.Namespace) -> Settings:
    return Settings(
        backend_url=(args.api_url or settings.backend_url).rstrip("/"),
        poll_interval=args.interval or settings.poll_interval,
        request_timeout=settings.request_timeout,
        idle_threshold_ms=settings.idle_threshold_ms,
        state_file=settings.state_file,
        log_dir=settings.log_dir,
    )


async def run_session(settings: Settings, spec: SessionSpec) -> int:
    """Register, start, monitor until the session ends, then close it."""
    client = BackendClient(settings.backend_url, timeout=settings.request_timeout)
    controller = SessionController(
        client,
        DeviceIdentityStore(settings.state_file),
        poll_interval=settings.poll_interval,
        context_provider=lambda: collect_context(settings.idle_threshold_ms),
        alert=notify_blocked,
    )
    await controller.register()
    try:
        handle = await controller.start(spec)
    except FocusError as e:
        logger.error("Could not start session: %s", e)  # noqa: TRY400
        return 1

    logger.info("FOCUS MODE ON: %s (session %s)", spec.goal, handle.session_id)
    try:
        await controller.wait_until_idle()
    finally:
        # Ctrl+C で中断された場合もセッションを閉じる
        await controller.end()
        notify_session_ended(spec.goal)
    return 0


async def show_summary(settings: Settings) -> int:
    client = BackendClient(settings.backend_url, timeout=settings.request_timeout)
    controller = SessionController(client, DeviceIdentityStore(settings.state_file))
    user_id = await controller.register()
    summary = await SummaryRequester(client).fetch(user_id)
    print(format_summary(summary))  # noqa: T201
    return 0 if summary is not None else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _merge_args(load_settings(), args)
    configure_logging(settings.log_dir)

    if args.command == "device-id":
        device = DeviceIdentityStore(settings.state_file).get_or_create_device_id()
        print(device.id)  # noqa: T201
        return 0

    if args.command == "summary":
        return asyncio.run(show_summary(settings))

    try:
        spec = SessionSpec(
            goal=args.goal,
            duration_minutes=args.minutes,
            categories=frozenset(args.categories or [Category.SOCIAL.value]),
            voice=args.voice,
        )
    except ValidationError as e:
        logger.error("Invalid session: %s", e)  # noqa: TRY400
        return 2

    try:
        return asyncio.run(run_session(settings, spec))
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 130


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python
"""Run the order-frequency anomaly check once.

Meant to be invoked by cron (or any scheduler). Production runs it every two
hours from 08:00 to 22:00 plus 09:00 and 18:00, Asia/Taipei time:

    CRON_TZ=Asia/Taipei
    0 8-22/2 * * *  cd /srv/storeops && uv run python scripts/check_order_anomalies.py
    0 9,18 * * *    cd /srv/storeops && uv run python scripts/check_order_anomalies.py

Usage:
    uv run python scripts/check_order_anomalies.py
    uv run python scripts/check_order_anomalies.py --check-type manual --no-report
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from app.core.config import get_settings
from app.core.database import get_engine, get_session_maker
from app.core.logging import configure_logging, get_logger
from app.features.anomalies.service import AnomalyService
from app.features.notifications.telegram import TelegramNotifier

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Check products for order-frequency anomalies and send alerts.",
    )
    parser.add_argument(
        "--check-type",
        default="scheduled",
        help="Label stored with the run record (default: scheduled)",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not send the summary status report to Telegram",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the check and report the outcome.

    Returns:
        Process exit code.
    """
    settings = get_settings()
    notifier = TelegramNotifier(settings)
    try:
        result = await AnomalyService().run_scheduled_check(
            get_session_maker(), notifier, check_type=args.check_type
        )

        local_time = result.checked_at.astimezone(settings.tzinfo)
        print(f"Anomaly check at {local_time:%Y-%m-%d %H:%M:%S %Z}")
        print("-" * 40)
        if result.success:
            print(f"  Anomalies found: {result.anomalies_found}")
            for anomaly in result.anomalies:
                print(f"  - [{anomaly.type.value}] {anomaly.message}")
        else:
            print(f"  FAILED: {result.error}")

        if not args.no_report:
            lines = [f"Anomalies found: {result.anomalies_found}"]
            if result.error:
                lines.append(f"Error: {result.error}")
            await notifier.send_flight_report(
                "Order anomaly check",
                lines,
                status="success" if result.success else "failure",
                finished_at=local_time,
            )
        return 0 if result.success else 1
    finally:
        await notifier.close()
        await get_engine().dispose()


def main() -> None:
    configure_logging()
    args = create_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

"""Worker process for scheduled accrual refreshes.

Runs an asyncio loop that re-accrues every active employee of every company
once per ``accrual_interval_seconds``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING

from leave_engine.config import configure_logging, get_settings
from leave_engine.db import build_engine, build_session_factory
from leave_engine.services.balance import AccrualRunResult, refresh_all_accruals

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


async def run_accrual_once(
    session_factory: async_sessionmaker[AsyncSession],
    today: date | None = None,
) -> AccrualRunResult | None:
    """Run one refresh pass; failures are logged and reported as None."""
    today = today or date.today()
    logger.info("Running accrual refresh for %s", today)
    try:
        async with session_factory() as session:
            result = await refresh_all_accruals(session, today)
    except Exception:
        logger.exception("Accrual refresh failed for %s", today)
        return None
    logger.info(
        "Accrual refresh complete for %s: processed=%d accrued=%d skipped=%d errors=%d",
        today,
        result.processed,
        result.accrued,
        result.skipped,
        result.errors,
    )
    return result


async def run_accrual_loop() -> None:
    """Main worker loop."""
    settings = get_settings()
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    logger.info("Accrual worker started (interval=%ds)", settings.accrual_interval_seconds)

    try:
        while True:
            await run_accrual_once(session_factory)
            await asyncio.sleep(settings.accrual_interval_seconds)
    finally:
        await engine.dispose()


def main() -> None:
    """Entry point for the worker process."""
    configure_logging(get_settings())
    asyncio.run(run_accrual_loop())


if __name__ == "__main__":
    main()

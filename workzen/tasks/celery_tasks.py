"""
WorkZen - Celery Tasks

Celery entry points for the housekeeping jobs in scheduled_tasks.
"""

import asyncio
import logging
from typing import Any, Dict

from celery import shared_task

from workzen.database import async_session_maker
from workzen.tasks.scheduled_tasks import (
    cleanup_expired_otps,
    cleanup_expired_reset_tokens,
)

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _with_session(job) -> Dict[str, Any]:
    async with async_session_maker() as db:
        return await job(db)


@shared_task(name='workzen.tasks.celery_tasks.cleanup_expired_otps_task')
def cleanup_expired_otps_task() -> Dict[str, Any]:
    """Purge stale OTP records."""
    return run_async(_with_session(cleanup_expired_otps))


@shared_task(name='workzen.tasks.celery_tasks.cleanup_expired_reset_tokens_task')
def cleanup_expired_reset_tokens_task() -> Dict[str, Any]:
    """Clear expired password reset tokens."""
    return run_async(_with_session(cleanup_expired_reset_tokens))

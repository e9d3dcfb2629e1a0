from __future__ import annotations

import asyncio
import logging
from typing import List

from .sync_service import SyncService

logger = logging.getLogger(__name__)


async def sync_pull_loop(sync: SyncService, interval_seconds: int = 120) -> None:
    """
    Background loop that periodically pulls the remote snapshot.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await sync.pull()
        except Exception:
            logger.exception("Scheduled pull failed")


async def sync_push_loop(sync: SyncService, interval_seconds: int = 300) -> None:
    """
    Background loop that periodically runs a full sync so queued
    changes are retried.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await sync.sync()
        except Exception:
            logger.exception("Scheduled sync failed")


async def startup_sync(sync: SyncService) -> None:
    try:
        report = await sync.sync(force_pull=True)
        logger.info("Startup sync: %s", report)
    except Exception:
        logger.exception("Startup sync failed")


def start_sync_tasks(sync: SyncService, settings) -> List[asyncio.Task]:
    tasks = []
    if settings.sync_on_startup:
        tasks.append(asyncio.create_task(startup_sync(sync)))
    tasks.append(asyncio.create_task(sync_pull_loop(sync, settings.sync_pull_interval_sec)))
    tasks.append(asyncio.create_task(sync_push_loop(sync, settings.sync_push_interval_sec)))
    return tasks


async def stop_sync_tasks(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

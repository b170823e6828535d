# tasks/scheduled_tasks.py

import logging
from traffic_monitor.utils.command_utils import LogCollectionError

logger = logging.getLogger(__name__)

async def refresh_task(monitor):
    """
    Runs on the refresh interval. Collector failures are reported and the
    records from the last good fetch stay on screen.
    """
    try:
        records = await monitor.fetch_and_aggregate()
    except LogCollectionError as e:
        logger.error(str(e))
        return

    if records is None:
        logger.debug("Previous refresh still running, skipped")

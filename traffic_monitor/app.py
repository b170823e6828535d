# app.py

import asyncio
import logging
from functools import partial

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from traffic_monitor import config
from traffic_monitor.analysis.quota import QuotaTracker, UsageFile
from traffic_monitor.monitor import TrafficMonitor
from traffic_monitor.tasks.scheduled_tasks import refresh_task
from traffic_monitor.utils.api_utils import IpInfoClient, reverse_dns_lookup
from traffic_monitor.utils.command_utils import build_log_collector
from traffic_monitor.utils.logging_utils import setup_logging
from traffic_monitor.utils.report_utils import render_table

logger = logging.getLogger(__name__)

def build_monitor(ipinfo_client):
    quota = QuotaTracker(UsageFile(config.IPINFO_USAGE_PATH), config.IPINFO_DAILY_LIMIT)
    return TrafficMonitor(
        collector=build_log_collector(config.SCRIPT_PATH),
        reverse_dns_lookup=partial(reverse_dns_lookup, command=config.DNS_COMMAND),
        ipinfo_lookup=ipinfo_client,
        quota=quota,
        time_range=config.TIME_RANGE,
        stagger_seconds=config.IPINFO_STAGGER_SECONDS,
        cache_size=config.CACHE_MAX_ENTRIES,
    )

def print_table(monitor):
    print(render_table(
        monitor.records,
        config.SORT_COLUMN,
        config.SORT_DIRECTION,
        show_reverse_dns=config.SHOW_REVERSE_DNS_QUERIES,
        updated_at=monitor.last_updated,
    ), flush=True)

async def main():
    ipinfo_client = IpInfoClient(config.IPINFO_BASE_URL, config.IPINFO_TOKEN, config.IPINFO_TIMEOUT_SECONDS)
    monitor = build_monitor(ipinfo_client)
    monitor.add_listener(lambda: print_table(monitor))

    # Load ipinfo usage before the first fetch so the quota is right
    await monitor.quota.load()
    logger.info("ipinfo usage today: %d/%d", monitor.quota.count, monitor.quota.limit)

    await refresh_task(monitor)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        refresh_task,
        IntervalTrigger(seconds=config.REFRESH_INTERVAL_SECONDS),
        args=[monitor],
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        await monitor.drain()
        await ipinfo_client.close()

def run():
    setup_logging(config.LOG_LEVEL)
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Monitoring stopped by user.")

if __name__ == "__main__":
    run()

# monitor.py

import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from traffic_monitor.analysis.aggregation import aggregate_events
from traffic_monitor.analysis.enrichment import IpInfoEnricher, ReverseDnsEnricher
from traffic_monitor.analysis.log_parser import parse_output
from traffic_monitor.analysis.quota import QuotaTracker
from traffic_monitor.analysis.sorting import sort_records
from traffic_monitor.models.traffic_models import TrafficRecord

logger = logging.getLogger(__name__)

class TrafficMonitor:
    """
    Owns everything that lives for the whole session: the current record set,
    both enrichers with their caches, and the ipinfo quota.

    Each fetch replaces the record set wholesale; the enricher caches carry
    over so known hostnames and owners show up again without new lookups.
    """

    def __init__(self,
                 collector: Callable[[str], Awaitable[str]],
                 reverse_dns_lookup: Callable[[str], Awaitable[str]],
                 ipinfo_lookup: Callable[[str], Awaitable[dict]],
                 quota: QuotaTracker,
                 time_range: str = '24 hours ago',
                 stagger_seconds: float = 0.1,
                 cache_size: int = 10000):
        self.collector = collector
        self.time_range = time_range
        self.quota = quota
        self.records: List[TrafficRecord] = []
        self.is_fetching = False
        self.last_updated: Optional[datetime] = None
        self._listeners: List[Callable[[], None]] = []

        self.reverse_dns = ReverseDnsEnricher(
            reverse_dns_lookup,
            self.current_records,
            on_change=self.notify_change,
            cache_size=cache_size,
        )
        self.ip_info = IpInfoEnricher(
            ipinfo_lookup,
            self.current_records,
            quota,
            on_change=self.notify_change,
            stagger_seconds=stagger_seconds,
            cache_size=cache_size,
        )

    def current_records(self) -> List[TrafficRecord]:
        return self.records

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def notify_change(self) -> None:
        for callback in self._listeners:
            callback()

    def note_current_time(self) -> datetime:
        self.last_updated = datetime.now()
        return self.last_updated

    async def fetch_and_aggregate(self, time_range: Optional[str] = None) -> Optional[List[TrafficRecord]]:
        """
        Runs one collect -> parse -> merge cycle and kicks off enrichment.

        Returns the new record set, or None if a fetch was already running.
        Raises LogCollectionError when the collector fails; the previous
        records are kept in that case.
        """
        if self.is_fetching:
            logger.debug("Fetch already in progress, ignoring request")
            return None

        if time_range:
            self.time_range = time_range

        self.is_fetching = True
        try:
            output = await self.collector(self.time_range)
            events = parse_output(output)
            self.records = aggregate_events(events)
            self.note_current_time()
            logger.info("Aggregated %d events into %d records", len(events), len(self.records))

            self.notify_change()
            self.reverse_dns.enrich()
            self.ip_info.enrich()
            return self.records
        finally:
            self.is_fetching = False

    def sorted_view(self, column: str, direction: str) -> List[TrafficRecord]:
        return sort_records(self.records, column, direction)

    async def drain(self) -> None:
        """Waits for all outstanding enrichment lookups."""
        await self.reverse_dns.dispatcher.drain()
        await self.ip_info.dispatcher.drain()

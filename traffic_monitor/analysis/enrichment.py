# analysis/enrichment.py

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from cachetools import LRUCache

from traffic_monitor.models.traffic_models import IpInfoResult, TrafficRecord
from traffic_monitor.utils.api_utils import parse_host_output, parse_ipinfo_response

logger = logging.getLogger(__name__)

class StaggeredDispatcher:
    """
    Spawns lookup coroutines as tasks. Within one cycle the n-th dispatch
    waits n * interval seconds before it starts.
    """

    def __init__(self, interval: float = 0.0):
        self.interval = interval
        self._slot = 0
        self._tasks = set()

    def start_cycle(self):
        self._slot = 0

    def next_delay(self) -> float:
        delay = self._slot * self.interval
        self._slot += 1
        return delay

    def dispatch(self, coro_fn, *args) -> asyncio.Task:
        task = asyncio.ensure_future(self._run(self.next_delay(), coro_fn, *args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, delay, coro_fn, *args):
        if delay > 0:
            await asyncio.sleep(delay)
        await coro_fn(*args)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self):
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

class LookupEnricher:
    """
    Cache + in-flight bookkeeping around one external lookup.

    Results are applied by key to whatever records are current when they
    arrive, so a lookup started before a refresh still lands on the new set.
    A cached None means "looked up, nothing found" and is never retried.
    """

    name = 'lookup'

    def __init__(self,
                 lookup: Callable[[str], Any],
                 get_records: Callable[[], List[TrafficRecord]],
                 on_change: Optional[Callable[[], None]] = None,
                 dispatcher: Optional[StaggeredDispatcher] = None,
                 cache_size: int = 10000):
        self.lookup = lookup
        self.get_records = get_records
        self.on_change = on_change
        self.dispatcher = dispatcher or StaggeredDispatcher()
        self.cache = LRUCache(maxsize=cache_size)
        self.in_flight = set()

    # Subclasses fill these in

    def wants(self, record: TrafficRecord) -> bool:
        raise NotImplementedError

    def lookup_key(self, record: TrafficRecord) -> Optional[str]:
        raise NotImplementedError

    def match_keys(self, record: TrafficRecord) -> Set[str]:
        raise NotImplementedError

    def matches(self, record: TrafficRecord, key: str) -> bool:
        return key in self.match_keys(record)

    def parse(self, raw) -> Any:
        raise NotImplementedError

    def fill(self, record: TrafficRecord, value) -> bool:
        raise NotImplementedError

    def can_dispatch(self) -> bool:
        return True

    async def on_success(self, key: str) -> None:
        pass

    def apply(self, key: str, value) -> bool:
        changed = False
        for record in self.get_records():
            if self.matches(record, key):
                changed = self.fill(record, value) or changed
        return changed

    def index_records(self, records: List[TrafficRecord]) -> Dict[str, List[TrafficRecord]]:
        index = {}
        for record in records:
            for key in self.match_keys(record):
                index.setdefault(key, []).append(record)
        return index

    def notify(self):
        if self.on_change:
            self.on_change()

    def enrich(self) -> int:
        """
        One pass over the current records. Cached results are applied right
        away; unknown keys get a lookup task. Returns how many were dispatched.
        """
        self.dispatcher.start_cycle()
        dispatched = 0
        applied = False
        gate_closed = False
        seen_cached = set()

        records = list(self.get_records())
        # Cached hits go through the index; late results in _resolve rescan
        index = self.index_records(records)

        for record in records:
            if not self.wants(record):
                continue
            key = self.lookup_key(record)
            if not key:
                continue

            if key in self.cache:
                value = self.cache[key]
                if value is not None and key not in seen_cached:
                    seen_cached.add(key)
                    for match in index.get(key, ()):
                        applied = self.fill(match, value) or applied
                continue

            if key in self.in_flight or gate_closed:
                continue

            # Once closed the gate stays closed for this cycle; cached
            # results keep being applied
            if not self.can_dispatch():
                logger.info("%s: daily lookup limit reached, skipping new lookups", self.name)
                gate_closed = True
                continue

            self.in_flight.add(key)
            self.dispatcher.dispatch(self._resolve, key)
            dispatched += 1

        if applied:
            self.notify()
        if dispatched:
            logger.debug("%s: dispatched %d lookups", self.name, dispatched)
        return dispatched

    async def _resolve(self, key: str):
        try:
            raw = await self.lookup(key)
            value = self.parse(raw)
        except Exception as e:
            logger.debug("%s lookup failed for %s: %s", self.name, key, e)
            value = None

        if value is None:
            self.cache[key] = None
            self.in_flight.discard(key)
            return

        self.cache[key] = value
        self.apply(key, value)
        try:
            await self.on_success(key)
        except Exception as e:
            logger.warning("%s: bookkeeping failed after lookup of %s: %s", self.name, key, e)
        finally:
            self.in_flight.discard(key)
        self.notify()

class ReverseDnsEnricher(LookupEnricher):
    """Fills the url of IP-only records from PTR records."""

    name = 'reverse-dns'

    def wants(self, record):
        return bool(record.address) and not record.url

    def lookup_key(self, record):
        return record.address

    def match_keys(self, record):
        return {record.address} if record.address else set()

    def parse(self, raw):
        return parse_host_output(raw)

    def fill(self, record, hostname):
        if record.url:
            return False
        record.url = hostname
        return True

class IpInfoEnricher(LookupEnricher):
    """
    Fills owner and timezone (and a missing url/address) from ipinfo.
    New lookups are staggered and gated by the daily quota; in-flight
    lookups count against what is left.
    """

    name = 'ipinfo'

    def __init__(self, lookup, get_records, quota, on_change=None,
                 stagger_seconds: float = 0.1, cache_size: int = 10000):
        super().__init__(
            lookup,
            get_records,
            on_change=on_change,
            dispatcher=StaggeredDispatcher(stagger_seconds),
            cache_size=cache_size,
        )
        self.quota = quota

    def wants(self, record):
        return not record.owner

    def lookup_key(self, record):
        # Prefer the IP, fall back to the domain
        return record.address or record.url

    def match_keys(self, record):
        return {k for k in (record.address, record.url) if k}

    def parse(self, raw):
        return parse_ipinfo_response(raw)

    def fill(self, record, result: IpInfoResult):
        changed = False
        if not record.url and result.hostname:
            record.url = result.hostname
            changed = True
        if not record.address and result.ip:
            record.address = result.ip
            changed = True
        if not record.owner and result.org:
            record.owner = result.org
            changed = True
        if not record.timezone and result.timezone:
            record.timezone = result.timezone
            changed = True
        return changed

    def can_dispatch(self):
        return not self.quota.exhausted(reserved=len(self.in_flight))

    async def on_success(self, key):
        await self.quota.increment()

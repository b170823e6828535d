import asyncio

import pytest

from traffic_monitor.analysis.quota import QuotaTracker
from traffic_monitor.monitor import TrafficMonitor
from traffic_monitor.utils.command_utils import LogCollectionError

from conftest import MemoryStore

OUTPUT = "\n".join([
    "DNS|Feb 14 15:54:10|github.com|A",
    "DNS|Feb 14 15:55:01|github.com|A",
    "HTTPS|Feb 14 15:55:50|160.79.104.10",
    "GARBAGE|not-a-kind",
])


class Collector:
    def __init__(self, output=OUTPUT):
        self.output = output
        self.calls = []
        self.error = None

    async def __call__(self, time_range):
        self.calls.append(time_range)
        if self.error:
            raise self.error
        return self.output


class Lookup:
    def __init__(self, results):
        self.results = results
        self.calls = []

    async def __call__(self, key):
        self.calls.append(key)
        return self.results.get(key)


def _monitor(collector, dns=None, ipinfo=None):
    quota = QuotaTracker(MemoryStore(), limit=1000, today=lambda: "2024-01-02")
    return TrafficMonitor(
        collector,
        dns or Lookup({}),
        ipinfo or Lookup({}),
        quota,
        stagger_seconds=0,
    )


async def test_fetch_builds_records_and_enriches():
    dns = Lookup({"160.79.104.10": "10.104.79.160.in-addr.arpa domain name pointer cdn.example.com.\n"})
    ipinfo = Lookup({
        "160.79.104.10": {"ip": "160.79.104.10", "org": "AS399358 Anthropic", "timezone": "America/Los_Angeles"},
        "github.com": {"ip": "140.82.112.3", "org": "AS36459 GitHub", "timezone": "America/Los_Angeles"},
    })
    monitor = _monitor(Collector(), dns, ipinfo)
    changes = []
    monitor.add_listener(lambda: changes.append(1))

    records = await monitor.fetch_and_aggregate("1 week ago")
    assert monitor.collector.calls == ["1 week ago"]
    assert {r.key: r.frequency for r in records} == {"github.com": 2, "160.79.104.10": 1}
    assert monitor.last_updated is not None

    await monitor.drain()
    by_key = {r.key: r for r in monitor.records}
    assert by_key["160.79.104.10"].url == "cdn.example.com"
    assert by_key["160.79.104.10"].owner == "AS399358 Anthropic"
    assert by_key["github.com"].address == "140.82.112.3"
    assert monitor.quota.count == 2
    assert len(changes) >= 2


async def test_caches_survive_refresh():
    dns = Lookup({"160.79.104.10": "x domain name pointer cdn.example.com.\n"})
    ipinfo = Lookup({"160.79.104.10": {"org": "Org"}, "github.com": {"org": "GitHub"}})
    monitor = _monitor(Collector(), dns, ipinfo)

    await monitor.fetch_and_aggregate()
    await monitor.drain()
    first = monitor.records

    await monitor.fetch_and_aggregate()
    assert monitor.records is not first
    by_key = {r.key: r for r in monitor.records}
    # applied synchronously from cache, before any task ran
    assert by_key["160.79.104.10"].url == "cdn.example.com"
    assert by_key["github.com"].owner == "GitHub"
    await monitor.drain()
    assert len(dns.calls) == 1
    assert len(ipinfo.calls) == 2


async def test_collector_failure_keeps_previous_records():
    collector = Collector()
    monitor = _monitor(collector)
    await monitor.fetch_and_aggregate()
    before = monitor.records

    collector.error = LogCollectionError("Failed to fetch traffic data: permission denied")
    with pytest.raises(LogCollectionError, match="permission denied"):
        await monitor.fetch_and_aggregate()
    assert monitor.records is before
    assert monitor.is_fetching is False
    await monitor.drain()


async def test_overlapping_fetch_is_ignored():
    gate = asyncio.Event()

    async def slow_collector(time_range):
        await gate.wait()
        return OUTPUT

    monitor = _monitor(slow_collector)
    first = asyncio.ensure_future(monitor.fetch_and_aggregate())
    await asyncio.sleep(0)
    assert monitor.is_fetching

    assert await monitor.fetch_and_aggregate() is None
    gate.set()
    assert len(await first) == 2
    await monitor.drain()


async def test_empty_output_gives_empty_set():
    monitor = _monitor(Collector(""))
    assert await monitor.fetch_and_aggregate() == []


async def test_sorted_view():
    monitor = _monitor(Collector())
    await monitor.fetch_and_aggregate()
    await monitor.drain()
    view = monitor.sorted_view("frequency", "desc")
    assert [r.key for r in view] == ["github.com", "160.79.104.10"]


async def test_only_ipinfo_lookups_are_staggered(monkeypatch):
    real_sleep = asyncio.sleep
    delays = []

    async def recording_sleep(delay, *args, **kwargs):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", recording_sleep)
    output = "HTTPS|Feb 14 15:55:50|1.1.1.1\nHTTPS|Feb 14 15:55:51|2.2.2.2\n"
    quota = QuotaTracker(MemoryStore(), limit=1000, today=lambda: "2024-01-02")
    dns, ipinfo = Lookup({}), Lookup({})
    monitor = TrafficMonitor(Collector(output), dns, ipinfo, quota, stagger_seconds=0.5)

    await monitor.fetch_and_aggregate()
    await monitor.drain()

    assert monitor.reverse_dns.dispatcher.interval == 0
    assert sorted(dns.calls) == ["1.1.1.1", "2.2.2.2"]
    assert sorted(ipinfo.calls) == ["1.1.1.1", "2.2.2.2"]
    assert [d for d in delays if d] == [0.5]

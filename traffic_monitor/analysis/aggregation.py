# analysis/aggregation.py

from typing import Dict, Iterable, List
from traffic_monitor.models.traffic_models import LogEvent, TrafficRecord

def merge_event(record: TrafficRecord, event: LogEvent) -> None:
    """
    Folds one more occurrence into an existing record: widens the seen window,
    bumps the frequency and fills a missing url/address. Kind, owner and
    timezone are left alone.
    """
    if event.timestamp < record.first_seen:
        record.first_seen = event.timestamp
    if event.timestamp > record.last_seen:
        record.last_seen = event.timestamp

    record.frequency += 1

    if not record.url and event.domain:
        record.url = event.domain
    if not record.address and event.address:
        record.address = event.address

def aggregate_events(events: Iterable[LogEvent]) -> List[TrafficRecord]:
    """
    Collapses events into one TrafficRecord per destination, keyed by domain
    for DNS events and by IP for firewall events. Single pass, dict lookups.
    """
    records: Dict[str, TrafficRecord] = {}

    for event in events:
        key = event.key
        if not key:
            continue

        existing = records.get(key)
        if existing is None:
            records[key] = TrafficRecord.from_event(event)
        else:
            merge_event(existing, event)

    return list(records.values())

# analysis/log_parser.py

from datetime import datetime
from typing import Iterable, List, Optional
from traffic_monitor.models.traffic_models import (
    DNS, EPOCH, FIREWALL_KINDS, LogEvent
)

# journalctl short format without the year, e.g. "Feb 14 15:54:10"
TIMESTAMP_FORMAT = '%b %d %H:%M:%S %Y'

def parse_timestamp(timestamp_str: Optional[str], year: Optional[int] = None) -> datetime:
    """
    Turns a year-less journal timestamp into a local datetime by appending the
    current year. Anything empty or unparseable becomes EPOCH.

    A December entry read in January gets the current year; that is accepted.
    """
    if not timestamp_str or not timestamp_str.strip():
        return EPOCH

    if year is None:
        year = datetime.now().year

    # Collapse the double space journalctl uses to pad single-digit days
    text = ' '.join(timestamp_str.split())
    try:
        return datetime.strptime(f"{text} {year}", TIMESTAMP_FORMAT)
    except ValueError:
        return EPOCH

def parse_line(line: str, year: Optional[int] = None) -> Optional[LogEvent]:
    line = line.strip()
    if not line:
        return None

    parts = line.split('|')
    if len(parts) < 3:
        return None

    kind = parts[0]
    value = parts[2].strip()
    if not value:
        return None

    if kind == DNS:
        # DNS|timestamp|domain|query_type, the query type is dropped
        return LogEvent(kind=kind, timestamp=parse_timestamp(parts[1], year), domain=value)
    if kind in FIREWALL_KINDS:
        # TYPE|timestamp|dest_ip
        return LogEvent(kind=kind, timestamp=parse_timestamp(parts[1], year), address=value)
    return None

def parse_lines(lines: Iterable[str], year: Optional[int] = None) -> List[LogEvent]:
    events = []
    for line in lines:
        event = parse_line(line, year)
        if event:
            events.append(event)
    return events

def parse_output(output: Optional[str], year: Optional[int] = None) -> List[LogEvent]:
    """Parses the full text produced by the log collector."""
    if not output or not output.strip():
        return []
    return parse_lines(output.splitlines(), year)

# utils/report_utils.py

from datetime import datetime
from typing import List, Optional

from traffic_monitor.analysis.sorting import sort_records
from traffic_monitor.models.traffic_models import EPOCH, TrafficRecord
from traffic_monitor.utils.validation_utils import is_reverse_dns_query

DASH = '—'
EMPTY_MESSAGE = 'No traffic data available for the selected time range'

COLUMNS = [
    ('URL', 'url', 40),
    ('Address', 'address', 16),
    ('First Seen', 'first_seen', 22),
    ('Last Seen', 'last_seen', 22),
    ('Freq', 'frequency', 6),
    ('Owner', 'owner', 30),
    ('Timezone', 'timezone', 20),
]

def format_timestamp(value: Optional[datetime]) -> str:
    """'Feb 14, 3:54:10 PM'; unknown times render as a dash."""
    if not isinstance(value, datetime) or value == EPOCH:
        return DASH
    hour = value.hour % 12 or 12
    meridiem = 'AM' if value.hour < 12 else 'PM'
    return f"{value.strftime('%b')} {value.day}, {hour}:{value.minute:02d}:{value.second:02d} {meridiem}"

def format_cell(record: TrafficRecord, attr: str) -> str:
    value = getattr(record, attr)
    if attr in ('first_seen', 'last_seen'):
        return format_timestamp(value)
    if value is None or value == '':
        return DASH
    return str(value)

def visible_records(records: List[TrafficRecord], show_reverse_dns: bool = False) -> List[TrafficRecord]:
    if show_reverse_dns:
        return list(records)
    return [r for r in records if not is_reverse_dns_query(r.url)]

def status_line(total: int, displayed: int, updated_at: Optional[datetime] = None) -> str:
    if displayed < total:
        text = f"{displayed} of {total} records (reverse-DNS hidden)"
    else:
        text = f"{total} record{'s' if total != 1 else ''}"
    if updated_at:
        text += f" | Last updated: {updated_at.strftime('%H:%M:%S')}"
    return text

def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text.ljust(width)
    return text[:width - 1] + '…'

def render_table(records: List[TrafficRecord], column: str, direction: str,
                 show_reverse_dns: bool = False, updated_at: Optional[datetime] = None) -> str:
    if not records:
        return EMPTY_MESSAGE

    rows = visible_records(sort_records(records, column, direction), show_reverse_dns)

    lines = [' '.join(_truncate(title, width) for title, _, width in COLUMNS)]
    lines.append(' '.join('-' * width for _, _, width in COLUMNS))
    for record in rows:
        lines.append(' '.join(_truncate(format_cell(record, attr), width) for _, attr, width in COLUMNS))
    lines.append(status_line(len(records), len(rows), updated_at))
    return '\n'.join(lines)

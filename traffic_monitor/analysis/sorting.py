# analysis/sorting.py

from typing import Iterable, List
from traffic_monitor.models.traffic_models import TrafficRecord

TIMESTAMP_COLUMNS = {'first_seen', 'last_seen'}
NUMERIC_COLUMNS = {'frequency'}
TEXT_COLUMNS = {'url', 'address', 'owner', 'timezone'}
SORT_COLUMNS = TIMESTAMP_COLUMNS | NUMERIC_COLUMNS | TEXT_COLUMNS

COLUMN_ALIASES = {
    'firstSeen': 'first_seen',
    'lastSeen': 'last_seen',
}

DIRECTIONS = {
    'asc': False,
    'ascending': False,
    'desc': True,
    'descending': True,
}

def _is_empty(value) -> bool:
    return value is None or value == ''

def _sort_key(column: str):
    if column in TEXT_COLUMNS:
        return lambda record: str(getattr(record, column)).lower()
    return lambda record: getattr(record, column)

def sort_records(records: Iterable[TrafficRecord], column: str, direction: str = 'asc') -> List[TrafficRecord]:
    """
    Returns a new list ordered by one column. Records with no value for that
    column always come last, whichever way the rest is ordered.
    """
    column = COLUMN_ALIASES.get(column, column)
    if column not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort column: {column}")
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")

    filled = []
    empty = []
    for record in records:
        if _is_empty(getattr(record, column)):
            empty.append(record)
        else:
            filled.append(record)

    filled.sort(key=_sort_key(column), reverse=DIRECTIONS[direction])
    return filled + empty

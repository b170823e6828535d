# models/traffic_models.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Event kinds emitted by the log collector
DNS = 'DNS'
HTTPS = 'HTTPS'
HTTP = 'HTTP'
PING = 'PING'

FIREWALL_KINDS = (HTTPS, HTTP, PING)
EVENT_KINDS = (DNS,) + FIREWALL_KINDS

# Stand-in for "unknown time"; sorts before every real timestamp
EPOCH = datetime(1970, 1, 1)

@dataclass
class LogEvent:
    kind: str
    timestamp: datetime
    domain: Optional[str] = None
    address: Optional[str] = None

    def __post_init__(self):
        if not self.domain and not self.address:
            raise ValueError("LogEvent needs a domain or an address")

    @property
    def key(self) -> str:
        return self.domain or self.address

@dataclass
class TrafficRecord:
    key: str
    kind: str
    first_seen: datetime
    last_seen: datetime
    frequency: int = 1
    url: Optional[str] = None
    address: Optional[str] = None
    owner: Optional[str] = None
    timezone: Optional[str] = None

    @classmethod
    def from_event(cls, event: LogEvent) -> 'TrafficRecord':
        return cls(
            key=event.key,
            kind=event.kind,
            first_seen=event.timestamp,
            last_seen=event.timestamp,
            url=event.domain,
            address=event.address,
        )

@dataclass
class IpInfoResult:
    ip: Optional[str] = None
    hostname: Optional[str] = None
    org: Optional[str] = None
    timezone: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.ip or self.hostname or self.org or self.timezone)

# utils/api_utils.py

import asyncio
import json
import re
import socket
from typing import Optional

import aiohttp

from traffic_monitor.models.traffic_models import IpInfoResult
from traffic_monitor.utils.command_utils import run_command
from traffic_monitor.utils.validation_utils import is_valid_ip, is_valid_domain

# "10.104.79.160.in-addr.arpa domain name pointer cdn.github.com."
PTR_PATTERN = re.compile(r'domain name pointer\s+(.+)\.$', re.MULTILINE)

class LookupFailed(Exception):
    pass

def parse_host_output(output: Optional[str]) -> Optional[str]:
    """Pulls the first PTR hostname out of `host` output, or None."""
    if not output:
        return None
    match = PTR_PATTERN.search(output)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None

async def reverse_dns_lookup(ip, runner=run_command, command='host'):
    return await runner([command, ip])

def parse_ipinfo_response(data) -> Optional[IpInfoResult]:
    if not isinstance(data, dict):
        return None
    result = IpInfoResult(
        ip=data.get('ip') or None,
        hostname=data.get('hostname') or None,
        org=data.get('org') or None,
        timezone=data.get('timezone') or None,
    )
    return None if result.is_empty() else result

async def resolve_address(key: str) -> str:
    """ipinfo only takes addresses, so domain keys are resolved first."""
    if is_valid_ip(key):
        return key
    if not is_valid_domain(key):
        raise LookupFailed(f"Not an IP or domain: {key}")
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(key, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise LookupFailed(f"Could not resolve {key}: {e}") from e
    if not infos:
        raise LookupFailed(f"Could not resolve {key}")
    return infos[0][4][0]

async def query_ipinfo(session, key, base_url='https://ipinfo.io', token=None):
    address = await resolve_address(key)
    url = f"{base_url.rstrip('/')}/{address}/json"
    headers = {'Accept': 'application/json'}
    if token:
        headers['Authorization'] = f"Bearer {token}"

    async with session.get(url, headers=headers) as response:
        text = await response.text()
        if response.status != 200:
            raise LookupFailed(f"Error {response.status}: {text}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise LookupFailed(f"Bad JSON from ipinfo for {key}") from e

class IpInfoClient:
    """Holds one aiohttp session for all ipinfo lookups in a session."""

    def __init__(self, base_url='https://ipinfo.io', token=None, timeout_seconds=10):
        self.base_url = base_url
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = None

    async def __call__(self, key):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return await query_ipinfo(self._session, key, self.base_url, self.token)

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None

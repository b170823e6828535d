import json

import pytest

from traffic_monitor.models.traffic_models import IpInfoResult
from traffic_monitor.utils.api_utils import (
    LookupFailed, parse_host_output, parse_ipinfo_response, query_ipinfo, resolve_address
)


def test_parse_host_output():
    out = "10.104.79.160.in-addr.arpa domain name pointer cdn.github.com.\n"
    assert parse_host_output(out) == "cdn.github.com"
    multi = ("4.4.8.8.in-addr.arpa domain name pointer dns.google.\n"
             "4.4.8.8.in-addr.arpa domain name pointer other.google.\n")
    assert parse_host_output(multi) == "dns.google"
    assert parse_host_output("Host 10.0.0.9.in-addr.arpa not found: 3(NXDOMAIN)") is None
    assert parse_host_output("") is None
    assert parse_host_output(None) is None


def test_parse_ipinfo_response():
    data = {"ip": "8.8.8.8", "hostname": "dns.google", "org": "AS15169 Google LLC", "timezone": "America/Los_Angeles"}
    assert parse_ipinfo_response(data) == IpInfoResult("8.8.8.8", "dns.google", "AS15169 Google LLC", "America/Los_Angeles")
    partial = parse_ipinfo_response({"ip": "10.0.0.1", "bogon": True})
    assert partial.ip == "10.0.0.1" and partial.org is None and partial.timezone is None
    assert parse_ipinfo_response({}) is None
    assert parse_ipinfo_response("garbage") is None
    assert parse_ipinfo_response(None) is None


async def test_resolve_address_passes_ips_through():
    assert await resolve_address("160.79.104.10") == "160.79.104.10"
    assert await resolve_address("2001:4860:4860::8888") == "2001:4860:4860::8888"
    with pytest.raises(LookupFailed):
        await resolve_address("not a host!")


class FakeResponse:
    def __init__(self, status, text):
        self.status = status
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body
        self.requests = []

    def get(self, url, headers=None):
        self.requests.append((url, headers))
        return FakeResponse(self.status, self.body)


async def test_query_ipinfo():
    session = FakeSession(body=json.dumps({"ip": "1.1.1.1", "org": "AS13335 Cloudflare"}))
    data = await query_ipinfo(session, "1.1.1.1", token="secret")
    assert data["org"] == "AS13335 Cloudflare"
    url, headers = session.requests[0]
    assert url == "https://ipinfo.io/1.1.1.1/json"
    assert headers["Authorization"] == "Bearer secret"


async def test_query_ipinfo_errors():
    with pytest.raises(LookupFailed):
        await query_ipinfo(FakeSession(status=429, body="Too Many Requests"), "1.1.1.1")
    with pytest.raises(LookupFailed):
        await query_ipinfo(FakeSession(body="<html>"), "1.1.1.1")

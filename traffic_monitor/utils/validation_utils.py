# utils/validation_utils.py

import ipaddress
import re

REVERSE_DNS_SUFFIXES = ('.in-addr.arpa', '.ip6.arpa')

def is_valid_ip(address):
    if not address:
        return False
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False

def is_valid_domain(domain):
    # Remove any trailing dot
    domain = domain.rstrip('.')
    if not domain or len(domain) > 253:
        return False
    labels = domain.split('.')
    allowed = re.compile(r'^[a-zA-Z0-9_-]{1,63}$')
    for label in labels:
        if not allowed.match(label):
            return False
    return True

def is_reverse_dns_query(url):
    """True for PTR lookups that show up as queried names (x.x.x.x.in-addr.arpa)."""
    if not url:
        return False
    lower = url.lower()
    return any(suffix in lower for suffix in REVERSE_DNS_SUFFIXES)

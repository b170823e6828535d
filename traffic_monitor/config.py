# config.py

import os
from configparser import ConfigParser

config = ConfigParser()
config.read(os.environ.get('TRAFFIC_MONITOR_CONFIG', 'config.ini'))

DATA_DIR = os.path.expanduser('~/.local/share/traffic-monitor')

# Log collector
SCRIPT_PATH = os.path.expanduser(config.get('collector', 'script_path', fallback=os.path.join(DATA_DIR, 'fetch-logs.sh')))
TIME_RANGE = config.get('collector', 'time_range', fallback='24 hours ago')

# Auto refresh
REFRESH_INTERVAL_SECONDS = config.getint('refresh', 'interval_seconds', fallback=15)

# ipinfo enrichment (free tier allows 1,000 requests/day)
IPINFO_TOKEN = config.get('ipinfo', 'token', fallback='') or None
IPINFO_BASE_URL = config.get('ipinfo', 'base_url', fallback='https://ipinfo.io')
IPINFO_DAILY_LIMIT = config.getint('ipinfo', 'daily_limit', fallback=1000)
IPINFO_STAGGER_SECONDS = config.getfloat('ipinfo', 'stagger_seconds', fallback=0.1)
IPINFO_USAGE_PATH = os.path.expanduser(config.get('ipinfo', 'usage_path', fallback=os.path.join(DATA_DIR, 'ipinfo_usage.txt')))
IPINFO_TIMEOUT_SECONDS = config.getfloat('ipinfo', 'timeout_seconds', fallback=10)

# Reverse DNS
DNS_COMMAND = config.get('dns', 'command', fallback='host')

# Per-enricher cache bound
CACHE_MAX_ENTRIES = config.getint('cache', 'max_entries', fallback=10000)

# Display
SORT_COLUMN = config.get('display', 'sort_column', fallback='last_seen')
SORT_DIRECTION = config.get('display', 'sort_direction', fallback='desc')
SHOW_REVERSE_DNS_QUERIES = config.getboolean('display', 'show_reverse_dns_queries', fallback=False)

LOG_LEVEL = config.get('logging', 'level', fallback='INFO')

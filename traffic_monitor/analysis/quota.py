# analysis/quota.py

import logging
import os
from datetime import datetime, timezone
from typing import Callable

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

def utc_today() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%d')

class UsageFile:
    """Reads and replaces the single-line usage file."""

    def __init__(self, path: str):
        self.path = path

    async def read(self) -> str:
        try:
            async with aiofiles.open(self.path, 'r') as f:
                return await f.read()
        except FileNotFoundError:
            return ''

    async def write(self, content: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # The usage file is only ever replaced whole, never truncated in place
        tmp_path = f"{self.path}.tmp"
        async with aiofiles.open(tmp_path, 'w') as f:
            await f.write(content)
        await aiofiles.os.replace(tmp_path, self.path)

class QuotaTracker:
    """
    Daily request counter persisted as "YYYY-MM-DD|COUNT".

    The count only holds for the day it is stamped with; whenever the stamp
    differs from today the count starts over at zero.
    """

    def __init__(self, store, limit: int, today: Callable[[], str] = utc_today):
        self.store = store
        self.limit = limit
        self._today = today
        self.day = today()
        self.count = 0

    def _roll_over(self) -> None:
        today = self._today()
        if today != self.day:
            logger.info("New day %s, resetting lookup count (was %d on %s)", today, self.count, self.day)
            self.day = today
            self.count = 0

    async def load(self) -> None:
        self.day = self._today()
        self.count = 0
        try:
            content = await self.store.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read usage file: %s", e)
            return

        parts = (content or '').strip().split('|')
        if len(parts) != 2 or parts[0] != self.day:
            return
        try:
            self.count = max(int(parts[1]), 0)
        except ValueError:
            self.count = 0

    async def save(self) -> None:
        try:
            await self.store.write(f"{self.day}|{self.count}")
        except OSError as e:
            logger.warning("Could not save usage file: %s", e)

    async def increment(self) -> None:
        self._roll_over()
        self.count += 1
        await self.save()

    def remaining(self, reserved: int = 0) -> int:
        self._roll_over()
        return max(self.limit - self.count - reserved, 0)

    def exhausted(self, reserved: int = 0) -> bool:
        return self.remaining(reserved) == 0

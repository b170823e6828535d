# utils/command_utils.py

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

class CommandError(Exception):
    pass

class LogCollectionError(Exception):
    pass

async def run_command(args: Sequence[str]) -> str:
    """
    Runs a command and returns its stdout. Raises CommandError if the
    executable is missing or exits non-zero.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(f"{args[0]}: {e}") from e

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        message = stderr.decode('utf-8', errors='replace').strip()
        raise CommandError(message or f"{args[0]} exited with status {process.returncode}")
    return stdout.decode('utf-8', errors='replace')

def build_log_collector(script_path: str, runner: Callable[[Sequence[str]], Awaitable[str]] = run_command):
    """
    Returns an async callable taking a time range ("24 hours ago") and
    returning the collector's pipe-delimited output.
    """
    async def collect(time_range: str) -> str:
        logger.debug("Collecting logs since %s", time_range)
        try:
            return await runner(['/bin/bash', script_path, time_range])
        except (CommandError, OSError) as e:
            raise LogCollectionError(f"Failed to fetch traffic data: {e}") from e

    return collect

"""
Reverse DNS lookup for discovered hosts.
"""

from __future__ import annotations

import asyncio
import logging
import socket

logger = logging.getLogger(__name__)


def _lookup(ip: str) -> str:
    """Blocking PTR lookup. Returns the primary name."""
    hostname, _, _ = socket.gethostbyaddr(ip)
    return hostname


class HostnameResolver:
    """
    Best-effort reverse lookup.

    Never fails: no PTR record, resolver errors and timeouts all give an
    empty string.
    """

    def __init__(self, timeout: float | None = None):
        """
        Args:
            timeout: Give up after this many seconds (None = resolver default)
        """
        self.timeout = timeout

    async def resolve(self, ip: str) -> str:
        loop = asyncio.get_running_loop()

        try:
            # gethostbyaddr is blocking, run it on the default executor
            future = loop.run_in_executor(None, _lookup, ip)
            if self.timeout is not None:
                name = await asyncio.wait_for(future, timeout=self.timeout)
            else:
                name = await future
        except (socket.herror, socket.gaierror) as e:
            logger.debug(f"No PTR record for {ip}: {e}")
            return ""
        except asyncio.TimeoutError:
            logger.debug(f"Reverse lookup for {ip} timed out")
            return ""
        except OSError as e:
            logger.debug(f"Reverse lookup for {ip} failed: {e}")
            return ""

        if not name or name == ip:
            return ""
        return name.removesuffix(".")

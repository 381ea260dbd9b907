"""
HTTP client for the inventory service.

Provides:
- Endpoint check-in (host facts)
- Network scan result upload
"""

import logging
from typing import Any, Dict, Optional

import aiohttp

from . import __version__
from ._types import ScanResult, SystemInfo
from .config import AgentConfig
from .errors import UploadError

logger = logging.getLogger(__name__)


class InventoryClient:
    """
    HTTP client for inventory service communication.

    One attempt per call: a failed upload raises UploadError and the
    agent tries again on its next cycle.
    """

    def __init__(self, config: AgentConfig):
        """
        Initialize inventory client.

        Args:
            config: Agent configuration
        """
        self.config = config
        self.timeout = aiohttp.ClientTimeout(total=config.request_timeout)

        # Session will be created when needed
        self._session: Optional[aiohttp.ClientSession] = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': f'inventory-agent/{__version__}',
        }
        if self.config.tenant_id:
            headers['X-Tenant-ID'] = self.config.tenant_id
        if self.config.api_key:
            headers['Authorization'] = f'Bearer {self.config.api_key}'
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        """
        Get or create aiohttp session.

        Returns:
            Active client session
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers=self._headers(),
            )
            logger.debug("Created new aiohttp session")

        return self._session

    async def close(self):
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")

    async def _post(self, url: str, payload: Dict[str, Any]) -> None:
        """
        POST a JSON payload.

        Raises:
            UploadError: On transport failure or a non-2xx status
        """
        session = await self._get_session()

        try:
            async with session.post(url, json=payload) as response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    raise UploadError(
                        f"Server returned {response.status}: {body[:200]}",
                        status=response.status,
                    )
                logger.debug(f"POST {url} returned {response.status}")

        except aiohttp.ClientError as e:
            raise UploadError(f"Request to {url} failed: {e}") from e
        except TimeoutError as e:
            raise UploadError(f"Request to {url} timed out") from e

    async def check_in(self, info: SystemInfo) -> None:
        """
        Send host facts to the inventory service.

        Raises:
            UploadError: If delivery fails
        """
        await self._post(self.config.checkin_url, info.to_dict())
        logger.info(f"Checked in as {info.hostname}")

    async def send_scan_results(self, result: ScanResult) -> None:
        """
        Upload a network scan result.

        Raises:
            UploadError: If delivery fails
        """
        await self._post(self.config.scan_url, result.to_dict())
        logger.info(f"Uploaded {len(result.devices)} devices from {result.range}")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

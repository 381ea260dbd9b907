"""
Tests for the inventory service client.
"""

import pytest
import pytest_asyncio
from aiohttp import web

from inventory_agent import __version__
from inventory_agent._types import Device, ScanResult, Software, SystemInfo
from inventory_agent.api_client import InventoryClient
from inventory_agent.config import AgentConfig
from inventory_agent.errors import UploadError


class MockInventoryServer:
    """Mock inventory service for testing."""

    def __init__(self):
        self.app = web.Application()
        self.runner = None
        self.port = None

        # Test data
        self.checkins = []
        self.scans = []
        self.headers = []
        self.status = 200

        # Setup routes
        self.app.router.add_post('/api/v1/agent/checkin', self.checkin)
        self.app.router.add_post('/api/v1/agent/scan', self.scan)

    async def checkin(self, request):
        """Check-in endpoint."""
        self.headers.append(dict(request.headers))
        if self.status >= 300:
            return web.json_response({'error': 'rejected'}, status=self.status)
        self.checkins.append(await request.json())
        return web.json_response({'status': 'ok'})

    async def scan(self, request):
        """Scan upload endpoint."""
        self.headers.append(dict(request.headers))
        if self.status >= 300:
            return web.json_response({'error': 'rejected'}, status=self.status)
        self.scans.append(await request.json())
        return web.json_response({'status': 'ok'}, status=201)

    async def start(self):
        """Start mock server on a free port."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, '127.0.0.1', 0)
        await site.start()
        self.port = self.runner.addresses[0][1]

    async def stop(self):
        """Stop mock server."""
        if self.runner:
            await self.runner.cleanup()

    @property
    def url(self):
        return f"http://127.0.0.1:{self.port}/api/v1"


@pytest_asyncio.fixture
async def mock_server():
    """Create and start mock inventory server."""
    server = MockInventoryServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def scan_result():
    return ScanResult(
        range="10.0.0.0/30",
        devices=(Device(ip="10.0.0.1", ports=(80,)), Device(ip="10.0.0.2")),
    )


class TestSendScanResults:
    """Tests for scan upload."""

    @pytest.mark.asyncio
    async def test_upload(self, mock_server, scan_result):
        """Should POST the scan result as JSON."""
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme", api_key="secret")

        async with InventoryClient(config) as client:
            await client.send_scan_results(scan_result)

        assert mock_server.scans == [{
            "range": "10.0.0.0/30",
            "devices": [
                {"ip": "10.0.0.1", "hostname": "", "mac": "", "open_ports": [80],
                 "vendor": "", "status": "online"},
                {"ip": "10.0.0.2", "hostname": "", "mac": "", "open_ports": [],
                 "vendor": "", "status": "online"},
            ],
        }]

    @pytest.mark.asyncio
    async def test_headers(self, mock_server, scan_result):
        """Should send tenant, bearer token and user agent headers."""
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme", api_key="secret")

        async with InventoryClient(config) as client:
            await client.send_scan_results(scan_result)

        headers = mock_server.headers[0]
        assert headers["X-Tenant-ID"] == "acme"
        assert headers["Authorization"] == "Bearer secret"
        assert headers["User-Agent"] == f"inventory-agent/{__version__}"
        assert headers["Content-Type"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self, mock_server, scan_result):
        """Should leave out Authorization when no key is configured."""
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme")

        async with InventoryClient(config) as client:
            await client.send_scan_results(scan_result)

        assert "Authorization" not in mock_server.headers[0]

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self, mock_server, scan_result):
        """Should raise UploadError carrying the status."""
        mock_server.status = 401
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme")

        async with InventoryClient(config) as client:
            with pytest.raises(UploadError) as exc_info:
                await client.send_scan_results(scan_result)

        assert exc_info.value.status == 401
        assert mock_server.scans == []

    @pytest.mark.asyncio
    async def test_server_unreachable(self, scan_result):
        """Should raise UploadError when the server is down."""
        config = AgentConfig(api_url="http://127.0.0.1:1/api/v1", request_timeout=2)

        async with InventoryClient(config) as client:
            with pytest.raises(UploadError) as exc_info:
                await client.send_scan_results(scan_result)

        assert exc_info.value.status is None


class TestCheckIn:
    """Tests for endpoint check-in."""

    @pytest.mark.asyncio
    async def test_check_in(self, mock_server):
        """Should POST system info as JSON."""
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme")
        info = SystemInfo(
            hostname="ws-01",
            platform="linux",
            installed_software=[Software(name="curl", version="7.81.0")],
        )

        async with InventoryClient(config) as client:
            await client.check_in(info)

        assert len(mock_server.checkins) == 1
        assert mock_server.checkins[0]["hostname"] == "ws-01"
        assert mock_server.checkins[0]["installed_software"] == [
            {"name": "curl", "version": "7.81.0"}
        ]

    @pytest.mark.asyncio
    async def test_check_in_rejected(self, mock_server):
        """Should raise UploadError on a server error."""
        mock_server.status = 500
        config = AgentConfig(api_url=mock_server.url, tenant_id="acme")

        async with InventoryClient(config) as client:
            with pytest.raises(UploadError) as exc_info:
                await client.check_in(SystemInfo(hostname="ws-01"))

        assert exc_info.value.status == 500


class TestSession:
    """Tests for session lifecycle."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Closing twice, or before use, should be harmless."""
        client = InventoryClient(AgentConfig())

        await client.close()
        await client._get_session()
        await client.close()
        await client.close()

        assert client._session.closed

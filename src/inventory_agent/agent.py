"""
Inventory agent main loop.

Two modes:
- Scanner: sweep the configured CIDR range once, upload the result, exit
- Endpoint: check in with this host's facts now and every ``interval``
  seconds until SIGINT/SIGTERM
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from ._types import ScanResult
from .api_client import InventoryClient
from .collector import Collector, get_collector
from .config import AgentConfig, load_config
from .errors import CollectionError, ConfigError, InventoryAgentError, UploadError
from .scanner import NetworkScanner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class InventoryAgent:
    """
    Inventory agent.

    Components are built from the config unless passed in.
    """

    def __init__(
        self,
        config: AgentConfig,
        collector: Optional[Collector] = None,
        client: Optional[InventoryClient] = None,
        scanner: Optional[NetworkScanner] = None,
    ):
        """
        Initialize inventory agent.

        Args:
            config: Agent configuration
            collector: Host-fact collector (default: for this platform)
            client: Inventory service client
            scanner: Network scanner
        """
        self.config = config
        self._collector = collector
        self.client = client or InventoryClient(config)
        self.scanner = scanner or NetworkScanner.from_config(config)

        self.running = False
        self.shutdown_event = asyncio.Event()

        self.stats = {
            "checkins_sent": 0,
            "checkins_failed": 0,
        }

    @property
    def collector(self) -> Collector:
        # Scanner mode never needs one, so it is built on first use
        if self._collector is None:
            self._collector = get_collector()
        return self._collector

    async def start(self):
        """Run the agent in the mode selected by the config."""
        if self.running:
            logger.warning("Agent already running")
            return

        self.running = True
        logger.info(f"Inventory agent {__version__} starting...")
        logger.info(f"Tenant: {self.config.tenant_id}")
        logger.info(f"API URL: {self.config.api_url}")

        try:
            async with self.client:
                if self.config.is_scanner_mode:
                    await self.run_scan_mode()
                else:
                    await self.run_endpoint_mode()
        finally:
            self.running = False

    async def run_scan_mode(self) -> ScanResult:
        """
        Sweep the configured range and upload the result.

        Raises:
            InvalidRange: If the range is not a valid CIDR
            ScanTimeout: If the sweep overruns scan_timeout
            UploadError: If the upload fails
        """
        logger.info("Mode: network scanner")
        logger.info(f"Target range: {self.config.scan_range}")

        result = await self.scanner.scan(self.config.scan_range)
        logger.info(f"Scan complete. Found {len(result.devices)} devices.")

        await self.client.send_scan_results(result)
        logger.info("Results uploaded successfully.")
        return result

    async def check_in(self):
        """
        Collect host facts and send them to the service.

        Raises:
            CollectionError: If facts cannot be collected
            UploadError: If the check-in cannot be delivered
        """
        try:
            info = await self.collector.collect()
        except CollectionError as e:
            raise CollectionError(f"collection failed: {e}") from e

        try:
            await self.client.check_in(info)
        except UploadError as e:
            raise UploadError(f"api check-in failed: {e}", status=e.status) from e

    async def run_endpoint_mode(self):
        """Check in now, then every interval until stopped."""
        logger.info("Mode: endpoint agent")
        logger.info(f"Check-in interval: {self.config.interval} seconds")

        self._setup_signal_handlers()

        await self._try_check_in("initial check-in")

        while not self.shutdown_event.is_set():
            try:
                await asyncio.wait_for(
                    self.shutdown_event.wait(),
                    timeout=self.config.interval
                )
                # If we get here, shutdown was signaled
                break
            except asyncio.TimeoutError:
                pass

            await self._try_check_in("check-in")

        logger.info(f"Agent stopping... ({self.stats})")

    async def stop(self):
        """Stop the endpoint loop."""
        logger.info("Stopping inventory agent...")
        self.shutdown_event.set()

    async def _try_check_in(self, label: str) -> bool:
        try:
            await self.check_in()
        except (CollectionError, UploadError) as e:
            self.stats["checkins_failed"] += 1
            logger.error(f"Error during {label}: {e}")
            return False

        self.stats["checkins_sent"] += 1
        logger.info(f"{label.capitalize()} successful")
        return True

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            logger.info(f"Received signal {signum}, initiating shutdown...")
            self.shutdown_event.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except (NotImplementedError, RuntimeError):
                # No loop signal support (Windows, or not the main thread)
                signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(signal_handler, signum),
                )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inventory-agent",
        description="Asset inventory agent: endpoint check-in or network scanner",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file (uses env vars if not specified)"
    )
    parser.add_argument("--url", dest="api_url", help="Inventory service API URL")
    parser.add_argument("--key", dest="api_key", help="Agent API key")
    parser.add_argument("--tenant", dest="tenant_id", help="Tenant ID/slug")
    parser.add_argument(
        "--interval",
        type=int,
        help="Check-in interval in seconds (default: 3600)"
    )
    parser.add_argument(
        "--scan",
        dest="scan_range",
        metavar="CIDR",
        help="Network range to scan (e.g. 192.168.1.0/24); runs in scanner mode"
    )
    parser.add_argument(
        "--max-probes",
        dest="max_concurrent_probes",
        type=int,
        help="Maximum hosts probed at once (default: 50)"
    )
    parser.add_argument(
        "--scan-timeout",
        dest="scan_timeout",
        type=float,
        help="Abandon a scan after this many seconds (default: no limit)"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    overrides = {
        "api_url": args.api_url,
        "api_key": args.api_key,
        "tenant_id": args.tenant_id,
        "interval": args.interval,
        "scan_range": args.scan_range,
        "max_concurrent_probes": args.max_concurrent_probes,
        "scan_timeout": args.scan_timeout,
        "log_level": args.log_level,
    }

    try:
        config = load_config(args.config, overrides)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT
    )

    if not config.tenant_id:
        logger.error(
            "Tenant ID is required. Provide it with --tenant or the "
            "INVENTORY_TENANT (or ASSETRONICS_TENANT) environment variable."
        )
        return 1

    agent = InventoryAgent(config)

    try:
        asyncio.run(agent.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except InventoryAgentError as e:
        logger.error(f"Fatal error: {e}")
        return 1

    return 0


def run():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()

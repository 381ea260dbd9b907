"""
Network sweep engine.

Expands a CIDR range and runs one probe pipeline per candidate address:

    reachability -> hostname -> port fingerprint -> Device

Pipelines run as asyncio tasks. A semaphore caps how many are in flight
and blocks the launch of new ones when the cap is reached, so a /16 never
turns into tens of thousands of simultaneous sockets and ping processes.
Candidate addresses are generated as pipelines are launched, inside the
scan deadline. Each device is pushed onto a queue as soon as its pipeline
finishes, and an aggregator drains the queue until every pipeline is done.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Optional

from ._types import (
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_MAX_CONCURRENT_PROBES,
    Device,
    ScanResult,
)
from .config import AgentConfig
from .discovery import (
    HostnameResolver,
    PortScanner,
    ReachabilityDetector,
    candidate_count,
    iter_candidates,
    parse_cidr,
)
from .errors import ScanTimeout

logger = logging.getLogger(__name__)

# Queue sentinel: all pipelines have finished
_DONE = None


class NetworkScanner:
    """
    Bounded-concurrency network sweep.

    A scan either returns a complete ScanResult or raises; partial
    results are never exposed.
    """

    def __init__(
        self,
        detector: Optional[ReachabilityDetector] = None,
        resolver: Optional[HostnameResolver] = None,
        port_scanner: Optional[PortScanner] = None,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT_PROBES,
        host_timeout: Optional[float] = None,
        scan_timeout: Optional[float] = None,
    ):
        """
        Initialize scanner.

        Args:
            detector: Reachability detector (default: ping + TCP fallback)
            resolver: Reverse DNS resolver
            port_scanner: Fingerprint port scanner
            max_concurrent: Maximum host pipelines in flight
            host_timeout: Per-host pipeline deadline in seconds (None = none)
            scan_timeout: Whole-sweep deadline in seconds (None = none)
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.detector = detector or ReachabilityDetector.default()
        self.resolver = resolver or HostnameResolver(timeout=DEFAULT_DNS_TIMEOUT)
        self.port_scanner = port_scanner or PortScanner()
        self.max_concurrent = max_concurrent
        self.host_timeout = host_timeout
        self.scan_timeout = scan_timeout

    @classmethod
    def from_config(cls, config: AgentConfig) -> "NetworkScanner":
        """Build a scanner from agent configuration."""
        return cls(
            detector=ReachabilityDetector.default(
                ping_timeout=config.ping_timeout,
                connect_timeout=config.connect_timeout,
                use_ping=config.use_ping,
            ),
            resolver=HostnameResolver(timeout=config.dns_timeout),
            port_scanner=PortScanner(timeout=config.connect_timeout),
            max_concurrent=config.max_concurrent_probes,
            host_timeout=config.host_timeout,
            scan_timeout=config.scan_timeout,
        )

    async def scan(self, cidr: str) -> ScanResult:
        """
        Sweep a CIDR range.

        Args:
            cidr: Range to scan (e.g. "192.168.1.0/24")

        Returns:
            ScanResult with one Device per reachable host

        Raises:
            InvalidRange: If cidr is not a valid CIDR
            ScanTimeout: If scan_timeout is set and the sweep overruns it
        """
        network = parse_cidr(cidr)

        logger.info(
            f"Scanning {cidr}: {candidate_count(network)} candidate addresses, "
            f"max {self.max_concurrent} concurrent probes"
        )
        started = time.monotonic()
        candidates = iter_candidates(network)

        if self.scan_timeout is None:
            result = await self._sweep(cidr, candidates)
        else:
            try:
                result = await asyncio.wait_for(
                    self._sweep(cidr, candidates),
                    timeout=self.scan_timeout,
                )
            except asyncio.TimeoutError:
                logger.error(f"Scan of {cidr} exceeded {self.scan_timeout:g}s, abandoned")
                raise ScanTimeout(cidr, self.scan_timeout) from None

        logger.info(
            f"Scan of {cidr} complete: {len(result.devices)} devices online "
            f"({time.monotonic() - started:.1f}s)"
        )
        return result

    async def probe_host(self, ip: str, deadline: Optional[float] = None) -> Optional[Device]:
        """
        Run the probe pipeline for one address.

        Args:
            ip: Address to probe
            deadline: Event loop time the pipeline must finish by (None = none)

        Returns:
            A Device if the host is reachable, None otherwise. A reachable
            host always gets a Device: if the deadline passes during the
            hostname or port stage, it carries what was found up to then.
        """
        try:
            async with asyncio.timeout_at(deadline):
                reachable = await self.detector.is_reachable(ip)
        except asyncio.TimeoutError:
            logger.warning(f"Reachability check of {ip} overran its deadline, treating as absent")
            return None

        if not reachable:
            return None

        hostname = ""
        ports: list[int] = []
        try:
            async with asyncio.timeout_at(deadline):
                hostname = await self.resolver.resolve(ip)
                await self.port_scanner.scan(ip, found=ports)
        except asyncio.TimeoutError:
            logger.warning(
                f"Probe of {ip} overran its deadline, reporting "
                f"{len(ports)} open ports found so far"
            )

        logger.debug(f"Found {ip} ({hostname or 'no name'}), ports {ports}")
        return Device(ip=ip, hostname=hostname, ports=tuple(ports))

    async def _sweep(self, cidr: str, candidates: Iterable[str]) -> ScanResult:
        queue: asyncio.Queue = asyncio.Queue()
        aggregator = asyncio.create_task(self._aggregate(queue))

        try:
            await self._probe_all(candidates, queue)
            queue.put_nowait(_DONE)
            devices = await aggregator
        finally:
            if not aggregator.done():
                aggregator.cancel()

        return ScanResult(range=cidr, devices=tuple(devices))

    async def _probe_all(self, candidates: Iterable[str], queue: asyncio.Queue) -> None:
        """Launch one pipeline per address and wait for all of them."""
        semaphore = asyncio.Semaphore(self.max_concurrent)
        pending: set[asyncio.Task] = set()

        try:
            for ip in candidates:
                # Blocks here once max_concurrent pipelines are running
                await semaphore.acquire()
                task = asyncio.create_task(self._run_pipeline(ip, queue, semaphore))
                pending.add(task)
                task.add_done_callback(pending.discard)

            if pending:
                await asyncio.gather(*pending)
        finally:
            if pending:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

    async def _run_pipeline(
        self,
        ip: str,
        queue: asyncio.Queue,
        semaphore: asyncio.Semaphore,
    ) -> None:
        try:
            device = await self._probe_safely(ip)
            if device is not None:
                queue.put_nowait(device)
        finally:
            semaphore.release()

    async def _probe_safely(self, ip: str) -> Optional[Device]:
        deadline = None
        if self.host_timeout is not None:
            deadline = asyncio.get_running_loop().time() + self.host_timeout

        try:
            return await self.probe_host(ip, deadline=deadline)
        except Exception as e:
            logger.error(f"Probe of {ip} failed: {e}")
            return None

    async def _aggregate(self, queue: asyncio.Queue) -> list[Device]:
        """Drain devices from the queue until the done sentinel arrives."""
        by_ip: dict[str, Device] = {}

        while True:
            device = await queue.get()
            if device is _DONE:
                break
            if device.ip in by_ip:
                logger.warning(f"Duplicate result for {device.ip}, keeping first")
                continue
            by_ip[device.ip] = device

        return list(by_ip.values())


def scan_network(cidr: str, config: Optional[AgentConfig] = None) -> ScanResult:
    """
    Synchronous convenience wrapper around NetworkScanner.scan().

    Raises:
        InvalidRange: If cidr is not a valid CIDR
        ScanTimeout: If the configured scan deadline is exceeded
    """
    scanner = NetworkScanner.from_config(config or AgentConfig())
    return asyncio.run(scanner.scan(cidr))

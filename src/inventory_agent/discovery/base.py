"""
Base classes for reachability probes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ReachabilityProbe(ABC):
    """
    One way of asking "is there a host at this address?".

    Probes never raise for network conditions: a host that cannot be
    reached, a refused connection or a missing ping binary all answer
    False.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this probe."""
        pass

    @abstractmethod
    async def probe(self, ip: str) -> bool:
        """
        Probe a single address.

        Returns True if the host answered.
        """
        pass

    async def is_available(self) -> bool:
        """Check if this probe can run on this machine."""
        return True

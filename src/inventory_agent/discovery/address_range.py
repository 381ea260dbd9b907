"""
CIDR expansion into candidate host addresses.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Iterator

from ..errors import InvalidRange

logger = logging.getLogger(__name__)


def parse_cidr(cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """
    Parse a CIDR string.

    Host bits are allowed and masked off ("192.168.1.7/24" is the
    192.168.1.0/24 network). A prefix length is required.

    Raises:
        InvalidRange: If the string is not a valid CIDR
    """
    if not isinstance(cidr, str) or "/" not in cidr:
        raise InvalidRange(str(cidr), "missing prefix length")

    address, _, prefix = cidr.strip().partition("/")
    if not prefix.isdigit():
        raise InvalidRange(cidr, f"bad prefix length {prefix!r}")

    try:
        return ipaddress.ip_network(f"{address}/{prefix}", strict=False)
    except ValueError as e:
        raise InvalidRange(cidr, str(e)) from e


def candidate_count(network: ipaddress.IPv4Network | ipaddress.IPv6Network) -> int:
    """Number of addresses iter_candidates() yields for a network."""
    total = network.num_addresses
    return total - 2 if total > 2 else total


def iter_candidates(
    network: ipaddress.IPv4Network | ipaddress.IPv6Network,
) -> Iterator[str]:
    """
    Yield the addresses to probe in a network, in ascending order.

    Every address from the network address through the broadcast address
    is a candidate. When there are more than two, the first and last are
    dropped as network/broadcast. This applies to every prefix length, so
    a /30 yields two candidates and a /31 or /32 keeps all of its
    addresses.

    Addresses are produced on demand, so an IPv6 /64 costs nothing until
    it is consumed.
    """
    total = network.num_addresses
    if total <= 2:
        for ip in network:
            yield str(ip)
        return

    for index in range(1, total - 1):
        yield str(network[index])


def expand_range(cidr: str) -> list[str]:
    """
    Expand a CIDR range into the addresses to probe.

    Args:
        cidr: Range in CIDR notation (e.g. "192.168.1.0/24")

    Returns:
        Candidate addresses as strings, see iter_candidates()

    Raises:
        InvalidRange: If the string is not a valid CIDR
    """
    network = parse_cidr(cidr)
    addresses = list(iter_candidates(network))

    logger.debug(f"Expanded {cidr} to {len(addresses)} candidate addresses")
    return addresses

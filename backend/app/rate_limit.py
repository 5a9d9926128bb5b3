"""Rate limiting for the EZ Clear API.

Requests are keyed by client IP. ``X-Forwarded-For`` is only honoured when the
direct peer is a trusted proxy, so clients cannot spoof their key.
"""

import ipaddress
import logging
import os
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings

logger = logging.getLogger("ezclear.api.rate_limit")

# Override with TRUSTED_PROXY_CIDRS (comma-separated)
DEFAULT_TRUSTED_PROXY_CIDRS = (
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "127.0.0.0/8",
    "::1/128",
)


@lru_cache
def trusted_proxy_networks() -> tuple:
    """Parse the trusted proxy CIDRs once per process."""
    raw = os.environ.get("TRUSTED_PROXY_CIDRS", "")
    cidrs = [s.strip() for s in raw.split(",") if s.strip()] or list(DEFAULT_TRUSTED_PROXY_CIDRS)
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr}")
    return tuple(networks)


def is_trusted_proxy(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in network for network in trusted_proxy_networks())


def get_client_ip(request) -> str:
    """Rate-limit key: the leftmost forwarded IP behind a trusted proxy, else the peer IP."""
    peer_ip = get_remote_address(request)
    if is_trusted_proxy(peer_ip):
        forwarded = request.headers.get("x-forwarded-for", "")
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip
    return peer_ip


limiter = Limiter(key_func=get_client_ip, enabled=get_settings().rate_limit_enabled)

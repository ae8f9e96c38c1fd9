"""
HTTP helpers (httpx).

One place builds the client so every request gets the same timeout,
redirect policy and User-Agent, and tests can inject an
httpx.MockTransport.
"""

from typing import Optional

import httpx

from siteup.config import PUBLIC_ADDRESS_URL
from siteup.logging import get_siteup_logger

logger = get_siteup_logger(__name__)

USER_AGENT = "siteup"

# IPv4 or IPv6 literal
ADDRESS_CHARS = set("0123456789abcdefABCDEF.:")


def build_client(
    timeout: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an httpx.Client that follows redirects and gives up after `timeout`."""
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


def discover_public_address(client: httpx.Client, url: str = PUBLIC_ADDRESS_URL) -> Optional[str]:
    """Ask an echo service for this machine's public address; None on any failure."""
    try:
        response = client.get(url)
    except httpx.HTTPError as e:
        logger.debug(f"Public address lookup failed: {e}")
        return None

    address = response.text.strip()
    if response.status_code != 200 or not address or not set(address) <= ADDRESS_CHARS:
        logger.debug(f"Public address lookup answered HTTP {response.status_code}")
        return None
    return address

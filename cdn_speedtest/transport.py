"""SOCKS proxy transport construction"""

import logging
import os
from typing import Optional
from urllib.parse import urlsplit

import requests

logger = logging.getLogger(__name__)

PROXY_ENV_VAR = 'SOCKS_PROXY'

# urllib3's SOCKSProxyManager understands these schemes
SOCKS_SCHEMES = ('socks4', 'socks4a', 'socks5', 'socks5h')


def proxy_from_env() -> Optional[str]:
    """Return the proxy URL from ``SOCKS_PROXY``, or None if unset/empty."""
    return os.environ.get(PROXY_ENV_VAR) or None


def normalize_proxy_url(proxy_url: str) -> str:
    """
    Validate a ``socksN://host:port`` proxy URL.

    A bare ``socks://`` scheme is taken to mean SOCKS5.

    Raises:
        ValueError: if the scheme is not a SOCKS scheme or the host is missing
    """
    parts = urlsplit(proxy_url.strip())
    scheme = parts.scheme.lower()
    if scheme == 'socks':
        scheme = 'socks5'
    if scheme not in SOCKS_SCHEMES:
        raise ValueError(f"Unsupported proxy scheme in {proxy_url!r} (expected one of: socks, {', '.join(SOCKS_SCHEMES)})")
    if not parts.hostname:
        raise ValueError(f"Proxy URL {proxy_url!r} has no host")
    return parts._replace(scheme=scheme).geturl()


def build_transport(proxy_url: Optional[str] = None) -> Optional[requests.Session]:
    """
    Build the transport handle used for every request of a run.

    Args:
        proxy_url: SOCKS proxy URL, or None for a direct connection

    Returns:
        None for direct connections, otherwise a requests.Session routing
        http and https traffic through the proxy
    """
    if not proxy_url:
        return None
    url = normalize_proxy_url(proxy_url)
    session = requests.Session()
    session.proxies = {'http': url, 'https': url}
    # Ignore HTTP(S)_PROXY from the environment so the SOCKS proxy always wins
    session.trust_env = False
    logger.debug("Routing requests through proxy %s", url)
    return session

"""Static catalog of download targets and latency endpoints"""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class TestTarget:
    """One server endpoint plus the nominal payload size (MB) it serves."""

    __test__ = False  # not a pytest class

    name: str
    url: str
    size: int


@dataclass(frozen=True)
class PingEndpoint:
    name: str
    url: str


# Display names must stay unique across all providers: statistics attribute
# results to a provider by name.
TEST_SERVERS: Dict[str, List[TestTarget]] = {
    'cloudflare': [
        TestTarget('Cloudflare 10MB', 'https://speed.cloudflare.com/__down?bytes=10485760', 10),
        TestTarget('Cloudflare 100MB', 'https://speed.cloudflare.com/__down?bytes=104857600', 100),
    ],
    'cachefly': [
        TestTarget('CacheFly 10MB', 'http://cachefly.cachefly.net/10mb.test', 10),
        TestTarget('CacheFly 100MB', 'http://cachefly.cachefly.net/100mb.test', 100),
    ],
    'linode': [
        TestTarget('Linode London', 'http://speedtest.london.linode.com/100MB-london.bin', 100),
        TestTarget('Linode Newark', 'http://speedtest.newark.linode.com/100MB-newark.bin', 100),
        TestTarget('Linode Frankfurt', 'http://speedtest.frankfurt.linode.com/100MB-frankfurt.bin', 100),
        TestTarget('Linode Singapore', 'http://speedtest.singapore.linode.com/100MB-singapore.bin', 100),
    ],
    'vultr': [
        TestTarget('Vultr Amsterdam', 'https://ams-nl-ping.vultr.com/vultr.com.100MB.bin', 100),
        TestTarget('Vultr Frankfurt', 'https://fra-de-ping.vultr.com/vultr.com.100MB.bin', 100),
        TestTarget('Vultr London', 'https://lon-gb-ping.vultr.com/vultr.com.100MB.bin', 100),
        TestTarget('Vultr Tokyo', 'https://hnd-jp-ping.vultr.com/vultr.com.100MB.bin', 100),
    ],
    'bunny': [
        TestTarget('Bunny CDN 10MB', 'https://test.b-cdn.net/10mb.bin', 10),
        TestTarget('Bunny CDN 100MB', 'https://test.b-cdn.net/100mb.bin', 100),
    ],
    'scaleway': [
        TestTarget('Scaleway Paris 10MB', 'https://scaleway.testdebit.info/10M/10M.iso', 10),
        TestTarget('Scaleway Paris 100MB', 'https://scaleway.testdebit.info/100M/100M.iso', 100),
    ],
    'ovh': [
        TestTarget('OVH 10MB', 'https://proof.ovh.net/files/10Mb.dat', 10),
        TestTarget('OVH 100MB', 'https://proof.ovh.net/files/100Mb.dat', 100),
    ],
}

PING_ENDPOINTS: List[PingEndpoint] = [
    PingEndpoint('Google CDN', 'https://www.gstatic.com/generate_204'),
    PingEndpoint('Facebook CDN', 'https://www.facebook.com/favicon.ico'),
    PingEndpoint('Cloudflare Check', 'https://cp.cloudflare.com/'),
    PingEndpoint('Firefox Portal', 'https://detectportal.firefox.com/success.txt'),
]

DEFAULT_SERVERS = ['cachefly']


def provider_for(name: str, catalog: Optional[Dict[str, List[TestTarget]]] = None) -> Optional[str]:
    """Return the provider key whose catalog list holds a target named ``name``."""
    if catalog is None:
        catalog = TEST_SERVERS
    for provider, targets in catalog.items():
        if any(target.name == name for target in targets):
            return provider
    return None

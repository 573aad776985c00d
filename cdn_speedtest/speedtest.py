"""Download speed and latency measurement against public CDN endpoints"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import urljoin

import requests
import urllib3
from urllib3.exceptions import ReadTimeoutError

from .servers import DEFAULT_SERVERS, PING_ENDPOINTS, TEST_SERVERS, PingEndpoint, TestTarget
from .stats import aggregate
from .transport import build_transport
from .utils import parse_size, to_mbps, to_MBps

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 SpeedTest/1.0'
DEFAULT_TIMEOUT = 30  # seconds, per download
LATENCY_TIMEOUT = 5  # seconds, per latency probe
CHUNK_SIZE = 65536
REDIRECT_CODES = (301, 302, 307, 308)
OK_CODES = (200, 204)
# Same bound requests applies when it follows redirects itself
MAX_REDIRECTS = requests.models.DEFAULT_REDIRECT_LIMIT
PING_FAILED = 'Failed'

Transport = Optional[requests.Session]


class FetchErrorKind(enum.Enum):
    HTTP_STATUS = 'http_status'
    TIMEOUT = 'timeout'
    TRANSPORT = 'transport'


class FetchError(Exception):
    """Raised when a single download fails"""
    def __init__(self, kind: FetchErrorKind, status_code: Optional[int] = None, message: str = ""):
        self.kind = kind
        self.status_code = status_code
        if not message:
            if kind is FetchErrorKind.HTTP_STATUS:
                message = f"HTTP {status_code}"
            elif kind is FetchErrorKind.TIMEOUT:
                message = "Timeout"
            else:
                message = "Transport error"
        super().__init__(message)


@dataclass(frozen=True)
class FetchOutcome:
    """Byte count and wall-clock duration of one completed download."""

    total_bytes: int
    elapsed: float  # seconds

    @property
    def speed_mbps(self) -> float:
        return to_mbps(self.total_bytes, self.elapsed)

    @property
    def speed_MBps(self) -> float:
        return to_MBps(self.total_bytes, self.elapsed)


@dataclass(frozen=True)
class TestResult:
    """Outcome of testing one target. Speed fields stay 0 when ``error`` is set."""

    __test__ = False  # not a pytest class

    name: str
    url: str
    size: int
    ping: Optional[float] = None  # ms
    speed_mbps: float = 0.0
    speed_MBps: float = 0.0
    duration: float = 0.0  # seconds
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'url': self.url,
            'size': self.size,
            'ping': self.ping,
            'speedMbps': self.speed_mbps,
            'speedMBps': self.speed_MBps,
            'duration': self.duration,
            'error': self.error,
        }


@dataclass(frozen=True)
class PingResult:
    name: str
    url: str
    ping: Optional[float] = None  # ms
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'url': self.url, 'ping': self.ping, 'error': self.error}


def _translate(exc: Exception) -> FetchError:
    """Map a requests/urllib3 exception onto the FetchError taxonomy."""
    if isinstance(exc, (requests.Timeout, ReadTimeoutError)):
        return FetchError(FetchErrorKind.TIMEOUT)
    return FetchError(FetchErrorKind.TRANSPORT, message=str(exc) or type(exc).__name__)


def fetch(url: str, transport: Transport = None, timeout: float = DEFAULT_TIMEOUT, _redirects: int = 0) -> FetchOutcome:
    """
    Download ``url`` and report how many bytes arrived and how long it took.

    Redirects (301/302/307/308 with a Location header) are followed by
    fetching the new location with the same transport and timeout; the
    outcome of the last hop is returned as is.

    Args:
        url: http or https URL to download
        transport: requests.Session routing through a proxy, or None for a direct connection
        timeout: seconds allowed for connecting, for each read, and for the whole body to arrive

    Returns:
        FetchOutcome with the number of bytes received on the wire and the elapsed
        time, measured from before the connection is opened until the body is fully read

    Raises:
        FetchError: HTTP_STATUS for status codes other than 200/204,
                    TIMEOUT when the deadline passes, TRANSPORT for connection failures
                    and unusable URLs
    """
    start = time.perf_counter()
    deadline = start + timeout
    get = transport.get if transport is not None else requests.get

    try:
        response = get(
            url,
            headers={'User-Agent': USER_AGENT, 'Accept-Encoding': 'identity'},
            timeout=timeout,
            stream=True,
            allow_redirects=False,
        )
    except (requests.RequestException, ValueError) as e:
        raise _translate(e) from e

    location = response.headers.get('Location')
    if response.status_code in REDIRECT_CODES and location:
        response.close()
        if _redirects >= MAX_REDIRECTS:
            raise FetchError(FetchErrorKind.TRANSPORT, message=f"Exceeded {MAX_REDIRECTS} redirects")
        try:
            next_url = urljoin(url, location)
        except ValueError as e:
            raise FetchError(FetchErrorKind.TRANSPORT, message=f"Invalid redirect location {location!r}: {e}") from e
        logger.debug("Redirect %d from %s to %s", response.status_code, url, next_url)
        return fetch(next_url, transport, timeout, _redirects + 1)

    if response.status_code not in OK_CODES:
        response.close()
        raise FetchError(FetchErrorKind.HTTP_STATUS, status_code=response.status_code)

    total_bytes = 0
    try:
        # read1 returns whatever one socket read delivers, so the deadline is
        # checked as bytes trickle in. Content is neither decoded nor kept.
        while True:
            chunk = response.raw.read1(CHUNK_SIZE, decode_content=False)
            if not chunk:
                break
            total_bytes += len(chunk)
            if time.perf_counter() > deadline:
                raise FetchError(FetchErrorKind.TIMEOUT)
    except (urllib3.exceptions.HTTPError, requests.RequestException, OSError) as e:
        raise _translate(e) from e
    finally:
        response.close()

    elapsed = max(time.perf_counter() - start, 1e-6)
    return FetchOutcome(total_bytes=total_bytes, elapsed=elapsed)


def probe_latency(url: str, transport: Transport = None) -> Optional[float]:
    """
    Measure the time to fully download ``url`` with a short timeout.

    Returns:
        Latency in milliseconds, or None if the request failed for any reason
    """
    start = time.perf_counter()
    try:
        fetch(url, transport, timeout=LATENCY_TIMEOUT)
    except FetchError as e:
        logger.debug("Latency probe failed for %s: %s", url, e)
        return None
    return (time.perf_counter() - start) * 1000


def select_targets(
    providers: Iterable[str],
    sizes: Optional[Iterable[Union[int, str]]] = None,
    catalog: Optional[Dict[str, List[TestTarget]]] = None,
) -> List[TestTarget]:
    """
    Pick the catalog targets matching the provider and size filters.

    Provider keys are case-insensitive and ``all`` selects every provider.
    Unknown keys are ignored. Targets come back in catalog order, each at most once.
    """
    if catalog is None:
        catalog = TEST_SERVERS
    requested = {p.strip().lower() for p in providers if p.strip()}
    if 'all' in requested:
        requested = set(catalog)
    for key in sorted(requested - set(catalog)):
        logger.debug("Ignoring unknown provider %r", key)
    wanted_sizes = {parse_size(s) for s in sizes} if sizes else None

    return [
        target
        for key, targets in catalog.items() if key in requested
        for target in targets
        if wanted_sizes is None or target.size in wanted_sizes
    ]


def test_server(target: TestTarget, transport: Transport = None, timeout: float = DEFAULT_TIMEOUT) -> TestResult:
    """
    Ping then download one target.

    Failures are recorded in the result's ``error`` field instead of raised.
    """
    ping = probe_latency(target.url, transport)
    try:
        outcome = fetch(target.url, transport, timeout=timeout)
    except FetchError as e:
        logger.warning("%s failed: %s", target.name, e)
        return TestResult(name=target.name, url=target.url, size=target.size, ping=ping, error=str(e))

    logger.info("%s: %.2f Mbps in %.2fs", target.name, outcome.speed_mbps, outcome.elapsed)
    return TestResult(
        name=target.name,
        url=target.url,
        size=target.size,
        ping=ping,
        speed_mbps=outcome.speed_mbps,
        speed_MBps=outcome.speed_MBps,
        duration=outcome.elapsed,
    )


def run_all(
    targets: Sequence[TestTarget],
    transport: Transport = None,
    timeout: float = DEFAULT_TIMEOUT,
    callback: Optional[Callable[[TestTarget, TestResult], None]] = None,
    before: Optional[Callable[[TestTarget], None]] = None,
) -> List[TestResult]:
    """
    Test every target, one at a time, in order.

    A failed target never stops the run. ``before`` is invoked with each
    target before it is pinged, ``callback`` after it finished with the
    target and its result.
    """
    results = []
    for target in targets:
        logger.debug("Testing %s (%s)", target.name, target.url)
        if before is not None:
            before(target)
        result = test_server(target, transport, timeout)
        results.append(result)
        if callback is not None:
            callback(target, result)
    return results


def ping_all(endpoints: Sequence[PingEndpoint] = PING_ENDPOINTS, transport: Transport = None) -> List[PingResult]:
    """Probe each latency endpoint in turn."""
    results = []
    for endpoint in endpoints:
        ping = probe_latency(endpoint.url, transport)
        results.append(PingResult(
            name=endpoint.name,
            url=endpoint.url,
            ping=ping,
            error=PING_FAILED if ping is None else None,
        ))
    return results


class SpeedTest:
    """
    Programmatic entry point.

    Example:
        >>> from cdn_speedtest import SpeedTest
        >>> report = SpeedTest(servers=['cloudflare'], sizes=['10MB']).run()
        >>> report['statistics'].get('averageSpeed')
    """

    def __init__(
        self,
        servers: Optional[List[str]] = None,
        sizes: Optional[List[Union[int, str]]] = None,
        proxy: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.servers = [s.lower() for s in (servers or DEFAULT_SERVERS)]
        if 'all' in self.servers:
            self.servers = list(TEST_SERVERS)
        self.sizes = [parse_size(s) for s in sizes] if sizes else None
        self.proxy = proxy
        self.timeout = timeout

    def targets(self) -> List[TestTarget]:
        return select_targets(self.servers, self.sizes)

    def run(
        self,
        callback: Optional[Callable[[TestTarget, TestResult], None]] = None,
        before: Optional[Callable[[TestTarget], None]] = None,
    ) -> Dict[str, Any]:
        """
        Run the download tests.

        Returns:
            ``{'results': [...], 'statistics': {...}}``; statistics is empty
            when no target succeeded

        Raises:
            ValueError: if no target matches the server/size filters or the proxy URL is invalid
        """
        targets = self.targets()
        if not targets:
            raise ValueError("No valid servers or sizes specified")

        transport = build_transport(self.proxy)
        try:
            results = run_all(targets, transport, self.timeout, callback, before)
        finally:
            if transport is not None:
                transport.close()

        return {
            'results': [r.to_dict() for r in results],
            'statistics': aggregate(results).to_dict(),
        }

    def ping(self) -> List[Dict[str, Any]]:
        """Probe the latency endpoints only."""
        transport = build_transport(self.proxy)
        try:
            return [r.to_dict() for r in ping_all(PING_ENDPOINTS, transport)]
        finally:
            if transport is not None:
                transport.close()

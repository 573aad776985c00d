"""CDN Speedtest - download throughput and latency against public CDN servers"""

__version__ = "1.0.0"

import logging

from .servers import PING_ENDPOINTS, TEST_SERVERS, PingEndpoint, TestTarget
from .speedtest import (
    FetchError,
    FetchErrorKind,
    FetchOutcome,
    PingResult,
    SpeedTest,
    TestResult,
    fetch,
    ping_all,
    probe_latency,
    run_all,
    select_targets,
)
from .stats import AggregateStats, aggregate

# Library use stays silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())


def set_log_level(level: int = logging.WARNING) -> None:
    """
    Set the logging level for the cdn_speedtest package.

    Examples:
        >>> import logging
        >>> from cdn_speedtest import set_log_level
        >>> set_log_level(logging.DEBUG)  # Show redirects and probe failures
    """
    logging.getLogger(__name__).setLevel(level)


def silence_warnings() -> None:
    """Silence all log output from the package, including per-server failures."""
    logging.getLogger(__name__).setLevel(logging.CRITICAL + 1)


__all__ = [
    'AggregateStats', 'FetchError', 'FetchErrorKind', 'FetchOutcome', 'PING_ENDPOINTS',
    'PingEndpoint', 'PingResult', 'SpeedTest', 'TEST_SERVERS', 'TestResult', 'TestTarget',
    'aggregate', 'fetch', 'ping_all', 'probe_latency', 'run_all', 'select_targets',
    'set_log_level', 'silence_warnings',
]

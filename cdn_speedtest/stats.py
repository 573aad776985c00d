"""Aggregate statistics over per-server test results"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .servers import TEST_SERVERS, TestTarget, provider_for
from .utils import mean

if TYPE_CHECKING:
    from .speedtest import TestResult

UNKNOWN_PROVIDER = 'unknown'


@dataclass(frozen=True)
class ProviderStats:
    average_speed: float  # Mbps
    average_ping: Optional[float]  # ms, None when no latency was measured


@dataclass(frozen=True)
class OverallStats:
    average_speed: float
    max_speed: float
    min_speed: float
    best_server: str
    worst_server: str


@dataclass(frozen=True)
class AggregateStats:
    """Summary of a run. ``overall`` is None when no result succeeded."""

    providers: Dict[str, ProviderStats] = field(default_factory=dict)
    sizes: Dict[str, float] = field(default_factory=dict)
    overall: Optional[OverallStats] = None

    @property
    def has_data(self) -> bool:
        return self.overall is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.overall is None:
            return {}
        return {
            'averageSpeed': self.overall.average_speed,
            'maxSpeed': self.overall.max_speed,
            'minSpeed': self.overall.min_speed,
            'bestServer': self.overall.best_server,
            'worstServer': self.overall.worst_server,
            'byProvider': {
                key: {'averageSpeed': p.average_speed, 'averagePing': p.average_ping}
                for key, p in self.providers.items()
            },
            'bySize': dict(self.sizes),
        }


def aggregate(
    results: Sequence['TestResult'],
    catalog: Optional[Dict[str, List[TestTarget]]] = None,
) -> AggregateStats:
    """
    Summarize test results by provider, by nominal size and overall.

    Failed results are ignored. Results are attributed to a provider by
    looking their display name up in the catalog. Best and worst servers are
    the first results holding the maximum and minimum speed.

    Args:
        results: per-server results in test order (not modified)
        catalog: provider -> targets mapping used for attribution

    Returns:
        AggregateStats; has_data is False when nothing succeeded
    """
    if catalog is None:
        catalog = TEST_SERVERS
    valid = [r for r in results if r.error is None]
    if not valid:
        return AggregateStats()

    provider_speeds: Dict[str, List[float]] = {}
    provider_pings: Dict[str, List[float]] = {}
    size_speeds: Dict[str, List[float]] = {}
    best = worst = 0

    for i, result in enumerate(valid):
        provider = provider_for(result.name, catalog) or UNKNOWN_PROVIDER
        provider_speeds.setdefault(provider, []).append(result.speed_mbps)
        pings = provider_pings.setdefault(provider, [])
        if result.ping is not None:
            pings.append(result.ping)
        size_speeds.setdefault(f"{result.size}MB", []).append(result.speed_mbps)

        if result.speed_mbps > valid[best].speed_mbps:
            best = i
        if result.speed_mbps < valid[worst].speed_mbps:
            worst = i

    providers = {
        key: ProviderStats(average_speed=mean(speeds), average_ping=mean(provider_pings[key]))
        for key, speeds in provider_speeds.items()
    }
    sizes = {label: mean(speeds) for label, speeds in size_speeds.items()}
    overall = OverallStats(
        average_speed=mean(r.speed_mbps for r in valid),
        max_speed=valid[best].speed_mbps,
        min_speed=valid[worst].speed_mbps,
        best_server=valid[best].name,
        worst_server=valid[worst].name,
    )
    return AggregateStats(providers=providers, sizes=sizes, overall=overall)

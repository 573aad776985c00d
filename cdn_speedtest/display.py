"""Terminal rendering of speedtest results"""

from typing import Callable, Optional, Sequence

from .servers import TestTarget
from .speedtest import PingResult, TestResult
from .stats import AggregateStats

ANSI = {
    'reset': '\x1b[0m',
    'bright': '\x1b[1m',
    'dim': '\x1b[2m',
    'red': '\x1b[31m',
    'green': '\x1b[32m',
    'yellow': '\x1b[33m',
    'blue': '\x1b[34m',
    'magenta': '\x1b[35m',
    'cyan': '\x1b[36m',
    'white': '\x1b[37m',
    'bright_red': '\x1b[91m',
    'bright_green': '\x1b[92m',
    'bright_blue': '\x1b[94m',
    'bright_magenta': '\x1b[95m',
    'bright_cyan': '\x1b[96m',
}

PROVIDER_COLORS = {
    'cloudflare': 'yellow',
    'cachefly': 'magenta',
    'linode': 'blue',
    'vultr': 'cyan',
    'bunny': 'bright_magenta',
    'scaleway': 'bright_blue',
    'ovh': 'bright_cyan',
}


def speed_style(mbps: float) -> str:
    """Map a speed in Mbps to a style tag."""
    if mbps < 10:
        return 'bright_red'
    if mbps < 50:
        return 'yellow'
    if mbps < 100:
        return 'green'
    if mbps < 500:
        return 'bright_green'
    return 'bright_cyan'


def ping_style(ms: Optional[float]) -> str:
    """Map a latency in ms to a style tag."""
    if ms is None:
        return 'yellow'
    if ms < 50:
        return 'bright_green'
    if ms < 100:
        return 'green'
    if ms < 200:
        return 'yellow'
    return 'red'


class Renderer:
    """Writes colored (or plain) report lines through ``write``."""

    def __init__(self, color: bool = True, write: Callable[[str], None] = print):
        self.color = color
        self.write = write

    def paint(self, text: str, style: str) -> str:
        if not self.color:
            return text
        return f"{ANSI[style]}{text}{ANSI['reset']}"

    def format_speed(self, mbps: float) -> str:
        return self.paint(f"{mbps:.2f} Mbps", speed_style(mbps))

    def format_ping(self, ms: Optional[float]) -> str:
        return self.paint('N/A' if ms is None else f"{ms:.0f}ms", ping_style(ms))

    def banner(self, proxy: Optional[str] = None) -> None:
        self.write(self.paint('═' * 60, 'bright'))
        self.write(self.paint('Speed Test', 'bright_cyan'))
        if proxy:
            self.write(self.paint(f"Using proxy: {proxy}", 'yellow'))
        self.write(self.paint('═' * 60, 'bright'))

    def target_header(self, target: TestTarget) -> None:
        self.write('')
        self.write(self.paint(f"Testing: {target.name}", 'bright_blue'))
        self.write(self.paint(f"   URL: {target.url}", 'dim'))
        self.write(self.paint(f"   Size: {target.size}.0 MB", 'dim'))

    def target_result(self, result: TestResult) -> None:
        self.write(f"   Ping: {self.format_ping(result.ping)}")
        if result.error:
            self.write(self.paint(f"   Error: {result.error}", 'red'))
        else:
            self.write(f"   Completed in {result.duration:.2f}s")
            self.write(f"   Average: {self.format_speed(result.speed_mbps)} ({result.speed_MBps:.2f} MB/s)")

    def results_table(self, results: Sequence[TestResult]) -> None:
        self.write('')
        self.write(self.paint('═' * 66, 'bright'))
        self.write(self.paint('TEST RESULTS', 'bright_cyan'))
        self.write(self.paint('═' * 66, 'bright'))
        self.write(f"{'Server':<30} {'Speed(Mbps)':>12} {'MB/s':>10} {'Time':>10}")
        self.write('─' * 66)
        for r in results:
            if r.error:
                self.write(self.paint(f"{r.name:<30} {'Error':>12} {r.error}", 'red'))
            else:
                speed = self.paint(f"{r.speed_mbps:>12.2f}", speed_style(r.speed_mbps))
                self.write(f"{r.name:<30} {speed} {r.speed_MBps:>10.2f} {r.duration:>9.2f}s")
        self.write('─' * 66)

    def statistics(self, stats: AggregateStats) -> None:
        if not stats.has_data:
            self.write(self.paint('No successful tests', 'red'))
            return

        self.write('')
        self.write(self.paint('═' * 66, 'bright'))
        self.write(self.paint('STATISTICS', 'bright_magenta'))
        self.write(self.paint('═' * 66, 'bright'))

        self.write(self.paint('Average by Provider:', 'bright'))
        for provider, p in stats.providers.items():
            name = self.paint(f"{provider:<12}", PROVIDER_COLORS.get(provider, 'white'))
            line = f"  {name}: {self.format_speed(p.average_speed)} ({p.average_speed / 8:.2f} MB/s)"
            if p.average_ping is not None:
                line += f" | Ping: {p.average_ping:.0f}ms"
            self.write(line)

        self.write('')
        self.write(self.paint('Average by File Size:', 'bright'))
        for label, speed in stats.sizes.items():
            self.write(f"  {self.paint(f'{label:<6}', 'cyan')}: {self.format_speed(speed)} ({speed / 8:.2f} MB/s)")

        overall = stats.overall
        self.write('')
        self.write(self.paint('Overall:', 'bright'))
        self.write(f"  Average Speed: {self.format_speed(overall.average_speed)} ({overall.average_speed / 8:.2f} MB/s)")
        self.write(f"  Best: {overall.best_server} - {self.format_speed(overall.max_speed)}")
        self.write(f"  Worst: {overall.worst_server} - {self.format_speed(overall.min_speed)}")

    def ping_table(self, results: Sequence[PingResult]) -> None:
        self.write('')
        self.write(self.paint('LATENCY', 'bright_cyan'))
        self.write('─' * 48)
        for r in results:
            self.write(f"{r.name:<20} {self.format_ping(r.ping):>10}  {r.url}")
        self.write('─' * 48)

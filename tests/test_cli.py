"""Tests for rendering and the command line entry point."""
import json

import pytest

from cdn_speedtest import cli
from cdn_speedtest.display import Renderer, ping_style, speed_style
from cdn_speedtest.speedtest import FetchError, FetchErrorKind, FetchOutcome, PingResult, TestResult
from cdn_speedtest.stats import aggregate


@pytest.mark.parametrize('mbps,style', [
    (5, 'bright_red'), (10, 'yellow'), (49.9, 'yellow'), (50, 'green'),
    (100, 'bright_green'), (499, 'bright_green'), (500, 'bright_cyan'),
])
def test_speed_style(mbps, style):
    assert speed_style(mbps) == style


@pytest.mark.parametrize('ms,style', [(None, 'yellow'), (10, 'bright_green'), (75, 'green'), (150, 'yellow'), (900, 'red')])
def test_ping_style(ms, style):
    assert ping_style(ms) == style


def render(fn, *args):
    lines = []
    fn(Renderer(color=False, write=lines.append), *args)
    return '\n'.join(lines)


def test_render_results_and_statistics():
    results = [
        TestResult('CacheFly 10MB', 'http://a', 10, ping=12.0, speed_mbps=80.0, speed_MBps=9.54, duration=1.05),
        TestResult('CacheFly 100MB', 'http://b', 100, error='HTTP 404'),
    ]
    table = render(Renderer.results_table, results)
    assert 'CacheFly 10MB' in table and '80.00' in table
    assert 'HTTP 404' in table

    stats = render(Renderer.statistics, aggregate(results))
    assert 'cachefly' in stats
    assert 'Ping: 12ms' in stats
    assert 'Best: CacheFly 10MB - 80.00 Mbps' in stats
    assert '\x1b[' not in stats


def test_render_no_data():
    assert render(Renderer.statistics, aggregate([])) == 'No successful tests'


def test_render_colors():
    assert Renderer(color=True).format_speed(600) == '\x1b[96m600.00 Mbps\x1b[0m'


def test_render_ping_table():
    out = render(Renderer.ping_table, [PingResult('Google CDN', 'https://g', 21.4), PingResult('Down', 'https://d', None, 'Failed')])
    assert '21ms' in out and 'N/A' in out


@pytest.fixture
def scripted(monkeypatch):
    outcomes = {}

    def fake_fetch(url, transport=None, timeout=30):
        outcome = outcomes.get(url, FetchError(FetchErrorKind.TRANSPORT, message='Connection refused'))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr('cdn_speedtest.speedtest.fetch', fake_fetch)
    monkeypatch.delenv('SOCKS_PROXY', raising=False)
    return outcomes


def test_cli_json(scripted, capsys):
    scripted['http://cachefly.cachefly.net/10mb.test'] = FetchOutcome(10_485_760, 1.0)

    assert cli.main(['--json', '--sizes=10']) == 0

    report = json.loads(capsys.readouterr().out)
    assert [r['name'] for r in report['results']] == ['CacheFly 10MB']
    assert report['results'][0]['speedMbps'] == pytest.approx(83.88608)
    assert report['statistics']['bestServer'] == 'CacheFly 10MB'


def test_cli_partial_failure_still_succeeds(scripted, capsys):
    scripted['http://cachefly.cachefly.net/10mb.test'] = FetchOutcome(1_000_000, 1.0)

    assert cli.main(['--no-color']) == 0

    out = capsys.readouterr().out
    assert 'TEST RESULTS' in out
    assert 'Connection refused' in out
    assert 'Worst: CacheFly 10MB' in out


def test_cli_empty_selection_exits_1(scripted, capsys):
    assert cli.main(['--servers=nope']) == 1
    assert 'No valid servers' in capsys.readouterr().err


def test_cli_size_mismatch_exits_1(scripted):
    assert cli.main(['--servers=linode', '--sizes=10']) == 1


def test_cli_bad_proxy_exits_1(scripted, capsys):
    assert cli.main(['--proxy=http://127.0.0.1:8080']) == 1
    assert 'Unsupported proxy scheme' in capsys.readouterr().err


def test_cli_rejects_stray_positional(scripted):
    with pytest.raises(SystemExit):
        cli.main(['cachefly'])


def test_cli_ping_json(scripted, capsys):
    assert cli.main(['--ping', '--json']) == 0
    pings = json.loads(capsys.readouterr().out)
    assert len(pings) == 4
    assert all(p['ping'] is None and p['error'] == 'Failed' for p in pings)


def test_cli_prints_target_header_before_download(monkeypatch, capsys):
    monkeypatch.delenv('SOCKS_PROXY', raising=False)
    seen_before_fetch = []

    def fake_fetch(url, transport=None, timeout=30):
        seen_before_fetch.append(capsys.readouterr().out)
        return FetchOutcome(1_000_000, 1.0)

    monkeypatch.setattr('cdn_speedtest.speedtest.fetch', fake_fetch)

    assert cli.main(['--sizes=10', '--no-color']) == 0

    assert 'Testing: CacheFly 10MB' in seen_before_fetch[0]
    assert 'Size: 10.0 MB' in seen_before_fetch[0]
    assert 'Completed in' in capsys.readouterr().out

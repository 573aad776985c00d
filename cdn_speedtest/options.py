"""Argument parser options for speedtest"""

import argparse
from typing import List

from .speedtest import DEFAULT_TIMEOUT
from .utils import parse_size

SOCKS_PREFIXES = ('socks://', 'socks4://', 'socks5://')


def parse_servers(value: str) -> List[str]:
    """Split a comma-separated provider list; ``all`` is passed through."""
    return [s.strip() for s in value.lower().split(',') if s.strip()]


def parse_sizes(value: str) -> List[int]:
    """Parse ``10,100`` or ``10MB,100MB`` into a list of sizes in MB."""
    try:
        return [parse_size(s) for s in value.split(',') if s.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def add_run_options(parser):
    """
    Add speedtest-specific command line options to an argument parser.

    Args:
        parser: argparse.ArgumentParser instance

    Returns:
        The parser with added options
    """
    parser.add_argument(
        '--servers',
        type=parse_servers,
        default=['cachefly'],
        help="Providers to test, comma-separated, or 'all' "
             "(cloudflare,cachefly,linode,vultr,bunny,scaleway,ovh; default: cachefly)"
    )
    parser.add_argument(
        '--sizes',
        type=parse_sizes,
        default=None,
        help='File sizes to test, e.g. 10,100 or 10MB,100MB (default: all sizes)'
    )
    parser.add_argument(
        '--proxy',
        default=None,
        help='SOCKS proxy URL, e.g. socks5://127.0.0.1:1080 (default: $SOCKS_PROXY)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f'Download timeout in seconds (default: {DEFAULT_TIMEOUT})'
    )
    parser.add_argument(
        '--json', '-j',
        action='store_true',
        help='Output results as JSON'
    )
    parser.add_argument(
        '--ping',
        action='store_true',
        help='Only measure latency against the CDN ping endpoints'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        'proxy_url',
        nargs='?',
        default=None,
        metavar='SOCKS_URL',
        help='SOCKS proxy URL given positionally (socks://, socks4:// or socks5://)'
    )
    return parser

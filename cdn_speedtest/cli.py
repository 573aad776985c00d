"""Command line entry point"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .display import Renderer
from .options import SOCKS_PREFIXES, add_run_options
from .speedtest import PING_ENDPOINTS, ping_all, run_all, select_targets
from .stats import aggregate
from .transport import build_transport, proxy_from_env

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cdn-speedtest',
        description='Measure download speed and latency against public CDN servers.',
        epilog="Examples:\n"
               "  cdn-speedtest                                  # Test CacheFly only\n"
               "  cdn-speedtest --servers=all                    # Test all servers\n"
               "  cdn-speedtest --servers=cloudflare,vultr       # Test specific servers\n"
               "  cdn-speedtest --sizes=100                      # Test only 100MB files\n"
               "  cdn-speedtest --proxy=socks5://127.0.0.1:1080  # Use SOCKS proxy\n"
               "  cdn-speedtest --json                           # JSON output\n"
               "  cdn-speedtest --ping                           # Latency only",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    return add_run_options(parser)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.proxy_url and not args.proxy_url.startswith(SOCKS_PREFIXES):
        parser.error(f"unrecognized argument: {args.proxy_url}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )

    proxy = args.proxy or args.proxy_url or proxy_from_env()
    renderer = Renderer(color=not args.no_color and not args.json and sys.stdout.isatty())

    try:
        transport = build_transport(proxy)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.ping:
            ping_results = ping_all(PING_ENDPOINTS, transport)
            if args.json:
                print(json.dumps([r.to_dict() for r in ping_results], indent=2))
            else:
                renderer.ping_table(ping_results)
            return 0

        targets = select_targets(args.servers, args.sizes)
        if not targets:
            print("Error: No valid servers or sizes specified", file=sys.stderr)
            return 1

        if not args.json:
            renderer.banner(proxy)
        before = None if args.json else renderer.target_header
        callback = None if args.json else (lambda target, result: renderer.target_result(result))
        results = run_all(targets, transport, args.timeout, callback, before)
        stats = aggregate(results)

        if args.json:
            print(json.dumps({
                'results': [r.to_dict() for r in results],
                'statistics': stats.to_dict(),
            }, indent=2))
        else:
            renderer.results_table(results)
            renderer.statistics(stats)
        return 0
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if transport is not None:
            transport.close()


if __name__ == '__main__':
    sys.exit(main())

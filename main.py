import sys
import argparse
import asyncio
from pathlib import Path


def build_parser(settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.app_name,
        description="Three panel command-line interface relaying commands to a single peer",
    )
    bind = parser.add_mutually_exclusive_group()
    bind.add_argument("--tcp", metavar="HOST:PORT",
                      help=f"ip:tcp-port on which to listen for the peer (default: {settings.tcp_bind})")
    bind.add_argument("--unix", metavar="PATH",
                      help="Path to unix socket on which to listen for the peer")
    parser.add_argument("--order", default=settings.panel_order,
                        help="Three letters representing panel stack order (o, h, e and c)")
    parser.add_argument("--debug", metavar="PATH", type=Path, default=settings.debug_log_file,
                        help="Path to debug log file if debugging is desired")
    parser.add_argument("--history-size", type=int, default=settings.history_max_entries,
                        help="Maximum number of remembered commands")
    return parser


def parse_args(argv=None):
    from tpcli.core.config import settings
    from tpcli.peer.broker import parse_tcp_address
    from tpcli.ui.panels import PanelOrderError, parse_panel_order

    parser = build_parser(settings)
    args = parser.parse_args(argv)

    try:
        args.panel_order = parse_panel_order(args.order)
    except PanelOrderError as e:
        parser.error(f"--order: {e}")

    if args.history_size <= 0:
        parser.error("--history-size must be a positive integer")

    if not args.unix:
        try:
            args.tcp_address = parse_tcp_address(args.tcp or settings.tcp_bind)
        except ValueError as e:
            parser.error(str(e))

    return args


async def main_async(args):
    from tpcli.core.runtime import RuntimeContext
    from tpcli.peer.broker import PeerCommunicationBroker

    if args.unix:
        broker = PeerCommunicationBroker.using_unix_socket(args.unix)
    else:
        broker = PeerCommunicationBroker.using_tcp(*args.tcp_address)

    ctx = RuntimeContext(
        interactive=True,
        panel_order=args.panel_order,
        history_max_entries=args.history_size,
        broker=broker,
    )

    from tpcli.cli.main import run_cli
    return await run_cli(ctx)


def main(argv=None):
    args = parse_args(argv)

    if args.debug:
        from tpcli.core.logger import enable_debug_log
        enable_debug_log(args.debug)

    return asyncio.run(main_async(args))


def run():
    try:
        sys.exit(main())

    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)

    except Exception:
        import logging
        logging.exception("Fatal unhandled error")
        sys.exit(2)


if __name__ == "__main__":
    run()

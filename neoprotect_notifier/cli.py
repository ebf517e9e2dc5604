"""
Command Line Interface
Runs the monitor or performs ad-hoc NeoProtect API queries.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

import structlog
from dotenv import load_dotenv

from neoprotect_notifier.app import NotifierApp
from neoprotect_notifier.config.settings import Settings, load_settings
from neoprotect_notifier.errors import ConfigError, RequestFailed
from neoprotect_notifier.infrastructure.neoprotect.client import NeoProtectClient
from neoprotect_notifier.log_config import configure_logging

logger = structlog.get_logger(__name__)

MODES = ["monitor", "ips", "history", "stats", "sample"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neoprotect-notifier",
        description="NeoProtect Attack Notifier - DDoS attack notifications for NeoProtect",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                   # Run the monitor
  python main.py --config config.json              # Run with a JSON config file
  python main.py --mode ips                        # List protected addresses
  python main.py --mode history --ip 192.0.2.10    # Attack history for an address
  python main.py --mode stats --attack-id <id>     # Statistics of one attack
  python main.py --mode sample --attack-id <id>    # Traffic sample URL of one attack
        """,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON configuration file (overrides environment variables)",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="monitor",
        help="What to run (default: monitor)",
    )
    parser.add_argument("--ip", help="Target address for --mode history")
    parser.add_argument("--attack-id", dest="attack_id", help="Attack id for --mode stats/sample")
    parser.add_argument(
        "--page",
        type=int,
        default=None,
        help="Single history page to fetch (default: all pages)",
    )
    return parser


async def run_query(args: argparse.Namespace, settings: Settings) -> object:
    """Run one ad-hoc API query and return a JSON-serializable result."""
    async with NeoProtectClient(
        api_key=settings.api.api_key,
        base_url=settings.api.api_endpoint,
        timeout=settings.api.request_timeout,
    ) as client:
        if args.mode == "ips":
            return [ip.to_dict() for ip in await client.fetch_ip_addresses()]

        if args.mode == "history":
            if not args.ip:
                raise ConfigError("--ip is required for --mode history")
            if args.page is not None:
                attacks = await client.fetch_attack_history(args.ip, args.page)
            else:
                attacks = await client.fetch_all_attacks_for_address(args.ip)
            return [a.to_dict() for a in attacks]

        if not args.attack_id:
            raise ConfigError(f"--attack-id is required for --mode {args.mode}")
        if args.mode == "stats":
            return (await client.fetch_attack_stats(args.attack_id)).to_dict()
        return {"attack_id": args.attack_id, "sample_url": await client.fetch_attack_sample(args.attack_id)}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        configure_logging()
        logger.error("configuration_invalid", error=str(e))
        return 1

    configure_logging(settings.logging.log_level, settings.logging.log_format)

    try:
        if args.mode == "monitor":
            asyncio.run(NotifierApp(settings).run())
        else:
            result = asyncio.run(run_query(args, settings))
            print(json.dumps(result, indent=2))
    except ConfigError as e:
        logger.error("configuration_invalid", error=str(e))
        return 1
    except RequestFailed as e:
        logger.error("api_request_failed", status_code=e.status_code, error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())

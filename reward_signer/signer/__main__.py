"""
Reward Signer: Main Entry Point

Command-line interface for the automated reward epoch signer.
Runs headless and unattended until SIGINT/SIGTERM.
"""
import sys
import asyncio
import argparse
from pydantic import ValidationError
from ..core.config import SignerSettings
from ..core.errors import ConfigError
from ..core.logger import configure_logging, get_logger
from .service import AutoSigner

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Reward epoch uptime vote and rewards auto-signer"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single check (with retries) and exit"
    )
    parser.add_argument(
        "--state-file",
        help="Path to the checkpoint file (file backend)"
    )
    parser.add_argument(
        "--state-backend",
        choices=["file", "redis", "memory"],
        help="Where the last completed epoch is kept"
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between checks"
    )
    parser.add_argument(
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of plain text"
    )
    parser.add_argument(
        "--allow-overlap",
        action="store_true",
        help="Start a scheduled run even if the previous one is still going"
    )
    return parser.parse_args(argv)

def load_settings(args) -> SignerSettings:
    overrides = {}
    if args.state_file:
        overrides["STATE_FILE"] = args.state_file
    if args.state_backend:
        overrides["STATE_BACKEND"] = args.state_backend
    if args.interval is not None:
        overrides["CHECK_INTERVAL_S"] = args.interval
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level
    if args.json_logs:
        overrides["LOG_JSON"] = True
    if args.allow_overlap:
        overrides["ALLOW_OVERLAP"] = True
    return SignerSettings(**overrides)

async def run(signer: AutoSigner, once: bool):
    if once:
        await signer.run_once()
        return
    signer.install_signal_handlers()
    await signer.run()

def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger = get_logger("SignerMain")

    try:
        signer = AutoSigner.from_settings(settings)
    except (ConfigError, ValueError) as e:
        logger.error("invalid_configuration", error=str(e))
        return 2

    logger.info("starting", state_backend=settings.STATE_BACKEND, network=settings.NETWORK,
                contract=settings.FLARE_SYSTEMS_MANAGER_ADDRESS)
    try:
        asyncio.run(run(signer, args.once))
    except KeyboardInterrupt:
        pass
    return 0

if __name__ == "__main__":
    sys.exit(main())

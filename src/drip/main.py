#!/usr/bin/env python3
"""DRIP - gas faucet for the Fusion network.

Entry point for the DRIP service.
"""

import asyncio
import logging
import os
import signal
import sys
import tempfile
from datetime import timedelta
from pathlib import Path

from eth_account import Account

from drip.api import ApiServer
from drip.blockchain import ConnectionKeeper, FusionClient, resolve_network
from drip.cli import create_parser, run_cli
from drip.config import DripConfig
from drip.core.wallet import FaucetWallet, WalletNotConfiguredError
from drip.faucet import (
    ClaimStore,
    EligibilityChecker,
    FaucetService,
    GasDistributor,
    RateLimiter,
)
from drip.observability.health import ClaimStoreCheck, GatewayCheck, HealthServer
from drip.observability.logging import configure_logging


def generate_wallet(output_path: str) -> None:
    """Generate a new faucet wallet and save the private key to a file.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.
    """
    account = Account.create()

    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory so the rename is atomic
    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".drip-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)
        os.write(fd, account.key.hex().encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    print(f"""
Faucet wallet generated successfully!

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Next steps:

  1. Fund this address with FSN on the network the faucet will serve

  2. Launch DRIP with this wallet:

     export DRIP_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
     drip run

IMPORTANT: Keep this private key secure. Anyone with access can control the wallet.
""")


def parse_args():
    """Parse command line arguments."""
    return create_parser().parse_args()


async def run_service() -> None:
    """Run the DRIP service (long-running mode).

    Wires up and starts all service components:
    - HealthServer for probes and metrics
    - Faucet wallet and the gateway ConnectionKeeper
    - ClaimStore and RateLimiter (Redis, or memory without REDIS_URL)
    - FaucetService with eligibility checker and gas distributor
    - ApiServer serving POST /api/v1/retrieve
    """
    config = DripConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    network = resolve_network(config.network, config.gateway_url, config.block_explorer_url)
    logger.info("DRIP starting")
    logger.info("Network: %s (chain ID %d)", network.name.value, network.chain_id)
    logger.info("Payout: %d gwei", config.payout_gwei)

    try:
        wallet = FaucetWallet.from_config(config)
    except (WalletNotConfiguredError, FileNotFoundError) as e:
        logger.error("%s", e)
        sys.exit(1)
    logger.info("Faucet wallet loaded: %s", wallet.address)

    # Create shutdown event
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    # Keep the gateway connection alive in the background
    keeper = ConnectionKeeper(
        network.gateway,
        reconnect_delay=config.reconnect_delay_ms / 1000,
        probe_interval=config.probe_interval_seconds,
    )
    await keeper.start()

    client = FusionClient(keeper, wallet, network)

    claims = ClaimStore(
        redis_url=config.redis_url,
        claim_window_hours=config.claim_window_hours,
    )
    rate_limiter = RateLimiter(
        max_requests=config.rate_limit_max,
        window_minutes=config.rate_limit_window_minutes,
        redis_url=config.redis_url,
    )
    logger.info("Claim store backend: %s", claims.backend)

    faucet = FaucetService(
        claims=claims,
        checker=EligibilityChecker(
            client,
            claims,
            claim_window=timedelta(hours=config.claim_window_hours),
        ),
        distributor=GasDistributor(client, amount_gwei=config.payout_gwei),
    )

    health_server = HealthServer(port=config.metrics_port)
    health_server.add_check(GatewayCheck(keeper))
    health_server.add_check(ClaimStoreCheck(claims))
    await health_server.start()

    api_server = ApiServer(faucet, rate_limiter, host=config.host, port=config.port)
    await api_server.start()
    logger.info("API Server listening on port %d", config.port)

    # Wait for shutdown signal
    await shutdown_event.wait()

    logger.info("DRIP shutting down...")
    await api_server.stop()
    await health_server.stop()
    await keeper.stop()
    logger.info("DRIP shutdown complete")


async def main() -> None:
    """Main entry point for DRIP."""
    args = parse_args()

    if args.generate_wallet:
        generate_wallet(args.generate_wallet)
        return

    # Handle CLI subcommands
    if args.command and args.command != "run":
        exit_code = await run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    # No subcommand or "run" - start service
    await run_service()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

"""CLI subcommands for DRIP operations.

Provides command-line interface for:
- Wallet operations (address, balance)
- Eligibility dry-run for an address (check)
"""

import argparse
import json
import sys
from datetime import timedelta
from decimal import Decimal

from drip.blockchain import ConnectionKeeper, FusionClient, Network, resolve_network
from drip.config import DripConfig
from drip.core.wallet import FaucetWallet
from drip.faucet.claims import ClaimStore
from drip.faucet.eligibility import EligibilityChecker, normalize_address

# Seconds to wait for the gateway before a command gives up
CONNECT_TIMEOUT = 15.0

# IP used by `check` when none is given; matches no real claim
DEFAULT_CHECK_IP = "0.0.0.0"  # noqa: S104


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="drip",
        description="DRIP - gas faucet for the Fusion network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Generate a new faucet wallet and save private key to FILE, then exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Faucet wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    wallet_sub.add_parser("address", help="Show faucet wallet address")
    wallet_sub.add_parser("balance", help="Show faucet wallet FSN balance")

    # Check subcommand
    check_parser = subparsers.add_parser(
        "check", help="Run the eligibility checks for an address without paying out"
    )
    check_parser.add_argument("address", type=str, help="Wallet address to check")
    check_parser.add_argument(
        "--ip",
        type=str,
        default=DEFAULT_CHECK_IP,
        help="Requester IP to check the cooldown for",
    )

    # Run subcommand (start service)
    subparsers.add_parser("run", help="Start the DRIP service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: DripConfig, json_output: bool = False):
        self.config = config
        self.json_output = json_output
        self._wallet: FaucetWallet | None = None
        self._keeper: ConnectionKeeper | None = None
        self._client: FusionClient | None = None

    @property
    def network(self) -> Network:
        """Network selected by config."""
        return resolve_network(
            self.config.network,
            self.config.gateway_url,
            self.config.block_explorer_url,
        )

    @property
    def wallet(self) -> FaucetWallet:
        """Get wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = FaucetWallet.from_config(self.config)
        return self._wallet

    async def connect(self) -> FusionClient:
        """Connect to the gateway and return a client.

        Raises
        ------
        ConnectionError
            If the gateway does not come up within CONNECT_TIMEOUT.
        """
        if self._client is None:
            network = self.network
            self._keeper = ConnectionKeeper(
                network.gateway,
                reconnect_delay=self.config.reconnect_delay_ms / 1000,
                probe_interval=self.config.probe_interval_seconds,
            )
            await self._keeper.start()
            if not await self._keeper.wait_until_live(CONNECT_TIMEOUT):
                await self._keeper.stop()
                self._keeper = None
                raise ConnectionError(f"Could not connect to gateway {network.gateway}")
            self._client = FusionClient(self._keeper, self.wallet, network)
        return self._client

    async def close(self) -> None:
        """Close the gateway connection if one was opened."""
        if self._keeper is not None:
            await self._keeper.stop()
            self._keeper = None
            self._client = None

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:
            # Convert Decimal to string for JSON serialization
            def decimal_default(obj):
                if isinstance(obj, Decimal):
                    return str(obj)
                raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

            print(json.dumps(data, default=decimal_default, indent=2))
        else:
            for key, value in data.items():
                print(f"{key}: {value}")


# Wallet commands


async def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show wallet address."""
    try:
        ctx.output({"address": ctx.wallet.address})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


async def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show wallet balance."""
    try:
        client = await ctx.connect()
        balance = await client.get_faucet_balance()
        ctx.output(
            {
                "address": ctx.wallet.address,
                "fsn": balance,
                "network": ctx.config.network.value,
                "chain_id": client.chain_id,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1
    finally:
        await ctx.close()


# Check command


async def cmd_check(ctx: CLIContext, address: str, ip: str) -> int:
    """Run the eligibility checks for an address."""
    try:
        client = await ctx.connect()
        claims = ClaimStore(
            redis_url=ctx.config.redis_url,
            claim_window_hours=ctx.config.claim_window_hours,
        )
        checker = EligibilityChecker(
            client,
            claims,
            claim_window=timedelta(hours=ctx.config.claim_window_hours),
        )
        wallet = normalize_address(address)
        result = await checker.check(wallet, ip)
        ctx.output(
            {
                "address": wallet,
                "ip": ip,
                "eligible": result.eligible,
                "status": result.status.value,
                "message": result.message,
            }
        )
        return 0 if result.eligible else 2
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1
    finally:
        await ctx.close()


async def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    # Load config
    try:
        config = DripConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, json_output=args.json)

    # Route to appropriate command
    if args.command == "wallet":
        if args.wallet_command == "address":
            return await cmd_wallet_address(ctx)
        elif args.wallet_command == "balance":
            return await cmd_wallet_balance(ctx)
        else:
            print("Usage: drip wallet [address|balance]", file=sys.stderr)
            return 1

    elif args.command == "check":
        return await cmd_check(ctx, args.address, args.ip)

    else:
        return -1

"""Fusion client wrapper for DRIP operations."""

import logging
from decimal import Decimal

from web3 import Web3

from drip.blockchain.keeper import ConnectionKeeper
from drip.blockchain.networks import Network
from drip.core.wallet import FaucetWallet

logger = logging.getLogger(__name__)


class FusionClient:
    """Thin async wrapper around web3.py for faucet operations.

    All calls go through the keeper's shared handle, so they fail with
    ``GatewayUnavailableError`` while the gateway is down.

    Parameters
    ----------
    keeper : ConnectionKeeper
        Owner of the live gateway connection.
    wallet : FaucetWallet
        The faucet wallet used to sign payouts.
    network : Network
        The network payouts are signed for.
    """

    def __init__(self, keeper: ConnectionKeeper, wallet: FaucetWallet, network: Network):
        self._keeper = keeper
        self._wallet = wallet
        self._network = network

    @property
    def connected(self) -> bool:
        """Check if the gateway connection is live."""
        return self._keeper.is_live

    @property
    def chain_id(self) -> int:
        """Chain ID payouts are signed for."""
        return self._network.chain_id

    @property
    def wallet_address(self) -> str:
        """The checksummed faucet address."""
        return self._wallet.address

    @staticmethod
    def is_address(address: str) -> bool:
        """Check whether a string is a well-formed account address.

        All-lowercase and all-uppercase addresses are accepted; mixed case
        must carry a valid checksum.
        """
        return Web3.is_address(address)

    async def get_balance(self, address: str) -> Decimal:
        """Get the native balance of an address.

        Parameters
        ----------
        address : str
            The address to query.

        Returns
        -------
        Decimal
            Balance in FSN (ether units).
        """
        wei = await self._keeper.web3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(str(Web3.from_wei(wei, "ether")))

    async def get_transaction_count(self, address: str) -> int:
        """Get the number of transactions sent from an address."""
        return await self._keeper.web3.eth.get_transaction_count(
            Web3.to_checksum_address(address)
        )

    async def transfer_native(self, to: str, amount_wei: int) -> str:
        """Send native FSN from the faucet wallet.

        Parameters
        ----------
        to : str
            The recipient address.
        amount_wei : int
            Amount to transfer in wei.

        Returns
        -------
        str
            The 0x-prefixed transaction hash.
        """
        w3 = self._keeper.web3
        checksum_to = Web3.to_checksum_address(to)

        tx = {
            "from": self._wallet.address,
            "to": checksum_to,
            "value": amount_wei,
            "chainId": self._network.chain_id,
            "nonce": await w3.eth.get_transaction_count(self._wallet.address, "pending"),
        }
        tx["gas"] = await w3.eth.estimate_gas(tx)
        tx["gasPrice"] = await w3.eth.gas_price

        raw_tx = self._wallet.sign_transaction(tx)
        tx_hash = Web3.to_hex(await w3.eth.send_raw_transaction(raw_tx))

        logger.info(
            "Native transfer submitted",
            extra={
                "tx_hash": tx_hash,
                "to": checksum_to,
                "amount_wei": amount_wei,
                "explorer_url": self._network.get_tx_url(tx_hash),
            },
        )

        return tx_hash

    async def get_faucet_balance(self) -> Decimal:
        """Get the faucet wallet balance in FSN."""
        return await self.get_balance(self._wallet.address)

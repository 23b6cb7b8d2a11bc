"""Tests for Fusion client module."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account
from pydantic import SecretStr

from drip.blockchain.client import FusionClient
from drip.blockchain.keeper import ConnectionKeeper, GatewayUnavailableError
from drip.blockchain.networks import FSN_TESTNET
from drip.core.wallet import FaucetWallet

# Test private key (DO NOT USE IN PRODUCTION - this is a well-known test key)
TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_ADDRESS = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
TEST_RECIPIENT = "0x742d35cc6634c0532925a3b844bc9e7595f8fe00"
TEST_RECIPIENT_CHECKSUM = "0x742d35Cc6634C0532925a3b844Bc9e7595f8fE00"


async def _value(value):
    return value


@pytest.fixture
def wallet():
    """Create a real wallet for testing."""
    return FaucetWallet(private_key=SecretStr(TEST_PRIVATE_KEY))


@pytest.fixture
def mock_web3():
    """Create a mock AsyncWeb3 instance."""
    w3 = MagicMock()
    w3.eth.get_balance = AsyncMock(return_value=0)
    w3.eth.get_transaction_count = AsyncMock(return_value=0)
    w3.eth.estimate_gas = AsyncMock(return_value=21000)
    w3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("abcd1234" * 8))
    return w3


@pytest.fixture
def keeper(mock_web3):
    """Create a live keeper handing out the mock web3."""
    keeper = MagicMock()
    keeper.is_live = True
    keeper.web3 = mock_web3
    return keeper


class TestFusionClient:
    """Tests for FusionClient."""

    def test_properties(self, keeper, wallet):
        """Client exposes connection state, chain ID and faucet address."""
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        assert client.connected is True
        assert client.chain_id == 46688
        assert client.wallet_address == TEST_ADDRESS

    def test_is_address(self):
        """Lowercase and checksummed addresses are valid; junk is not."""
        assert FusionClient.is_address(TEST_RECIPIENT) is True
        assert FusionClient.is_address(TEST_RECIPIENT_CHECKSUM) is True
        assert FusionClient.is_address("0x123") is False
        assert FusionClient.is_address("not-an-address") is False

    def test_is_address_rejects_bad_checksum(self):
        """Mixed case with a wrong checksum is rejected."""
        bad = "0x742D35cc6634C0532925a3b844Bc9e7595f8fE00"
        assert FusionClient.is_address(bad) is False

    @pytest.mark.asyncio
    async def test_get_balance(self, keeper, wallet, mock_web3):
        """Balance is converted from wei to FSN."""
        mock_web3.eth.get_balance.return_value = 5 * 10**18
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        balance = await client.get_balance(TEST_RECIPIENT)

        assert balance == Decimal("5")
        mock_web3.eth.get_balance.assert_awaited_once_with(TEST_RECIPIENT_CHECKSUM)

    @pytest.mark.asyncio
    async def test_get_balance_small(self, keeper, wallet, mock_web3):
        """Sub-unit balances stay exact."""
        mock_web3.eth.get_balance.return_value = 2_000_000_000
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        balance = await client.get_balance(TEST_RECIPIENT)

        assert balance == Decimal("0.000000002")

    @pytest.mark.asyncio
    async def test_get_transaction_count(self, keeper, wallet, mock_web3):
        """Transaction count is fetched for the checksummed address."""
        mock_web3.eth.get_transaction_count.return_value = 3
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        assert await client.get_transaction_count(TEST_RECIPIENT) == 3
        mock_web3.eth.get_transaction_count.assert_awaited_once_with(TEST_RECIPIENT_CHECKSUM)

    @pytest.mark.asyncio
    async def test_transfer_native(self, keeper, wallet, mock_web3):
        """Transfer builds, signs and broadcasts a native transfer."""
        mock_web3.eth.get_transaction_count.return_value = 7
        mock_web3.eth.gas_price = _value(1_000_000_000)
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        tx_hash = await client.transfer_native(TEST_RECIPIENT, 2_000_000_000)

        assert tx_hash == "0x" + "abcd1234" * 8
        mock_web3.eth.get_transaction_count.assert_awaited_once_with(TEST_ADDRESS, "pending")

        estimated = mock_web3.eth.estimate_gas.await_args.args[0]
        assert estimated["to"] == TEST_RECIPIENT_CHECKSUM
        assert estimated["value"] == 2_000_000_000
        assert estimated["chainId"] == 46688
        assert estimated["nonce"] == 7

        raw_tx = mock_web3.eth.send_raw_transaction.await_args.args[0]
        assert Account.recover_transaction(raw_tx) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_transfer_native_propagates_rpc_error(self, keeper, wallet, mock_web3):
        """RPC failures propagate to the caller."""
        mock_web3.eth.estimate_gas.side_effect = ValueError("insufficient funds for gas")
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        with pytest.raises(ValueError, match="insufficient funds"):
            await client.transfer_native(TEST_RECIPIENT, 2_000_000_000)

        mock_web3.eth.send_raw_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calls_fail_while_disconnected(self, wallet):
        """Calls fail at the client layer while the gateway is down."""
        keeper = ConnectionKeeper(FSN_TESTNET.gateway)
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        assert client.connected is False
        with pytest.raises(GatewayUnavailableError):
            await client.get_balance(TEST_RECIPIENT)

    @pytest.mark.asyncio
    async def test_get_faucet_balance(self, keeper, wallet, mock_web3):
        """Faucet balance queries the faucet's own address."""
        mock_web3.eth.get_balance.return_value = 100 * 10**18
        client = FusionClient(keeper, wallet, FSN_TESTNET)

        assert await client.get_faucet_balance() == Decimal("100")
        mock_web3.eth.get_balance.assert_awaited_once_with(TEST_ADDRESS)

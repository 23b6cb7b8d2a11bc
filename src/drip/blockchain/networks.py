"""Fusion network presets for DRIP.

The gateway URL of a preset can be overridden from the environment;
the chain ID always comes from the preset.
"""

from dataclasses import dataclass, replace

from drip.config import NetworkName


@dataclass(frozen=True)
class Network:
    """A Fusion network the faucet can pay out on.

    Attributes
    ----------
    name : NetworkName
        Preset name.
    gateway : str
        WebSocket RPC gateway URL.
    chain_id : int
        Chain ID used when signing transactions.
    block_explorer_url : str | None
        Optional block explorer URL for transaction links.
    """

    name: NetworkName
    gateway: str
    chain_id: int
    block_explorer_url: str | None = None

    def get_tx_url(self, tx_hash: str) -> str | None:
        """Get the block explorer URL for a transaction, if an explorer is set."""
        if self.block_explorer_url:
            return f"{self.block_explorer_url.rstrip('/')}/tx/{tx_hash}"
        return None


FSN_MAINNET = Network(
    name=NetworkName.MAINNET,
    gateway="wss://mainnetpublicgateway1.fusionnetwork.io:10001",
    chain_id=32659,
)

FSN_TESTNET = Network(
    name=NetworkName.TESTNET,
    gateway="wss://testnetpublicgateway1.fusionnetwork.io:10001",
    chain_id=46688,
)

NETWORKS = {
    NetworkName.MAINNET: FSN_MAINNET,
    NetworkName.TESTNET: FSN_TESTNET,
}


def resolve_network(
    name: NetworkName,
    gateway_url: str | None = None,
    block_explorer_url: str | None = None,
) -> Network:
    """Look up a network preset and apply any overrides.

    Parameters
    ----------
    name : NetworkName
        Preset to start from.
    gateway_url : str | None
        Replaces the preset gateway when given.
    block_explorer_url : str | None
        Explorer base URL for transaction links.

    Returns
    -------
    Network
        The resolved network.
    """
    network = NETWORKS[NetworkName(name)]
    overrides = {}
    if gateway_url:
        overrides["gateway"] = gateway_url
    if block_explorer_url:
        overrides["block_explorer_url"] = block_explorer_url
    return replace(network, **overrides) if overrides else network

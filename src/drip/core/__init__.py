"""Core components for DRIP."""

from .wallet import FaucetWallet, WalletNotConfiguredError

__all__ = ["FaucetWallet", "WalletNotConfiguredError"]

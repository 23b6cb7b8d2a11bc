"""Faucet wallet: loads the signing key for payouts."""

from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

from drip.config import DripConfig


class WalletNotConfiguredError(ValueError):
    """Raised when neither a private key nor a key file is configured."""


class FaucetWallet:
    """The faucet-controlled account that signs payouts.

    Parameters
    ----------
    private_key : SecretStr, optional
        The private key as a SecretStr (from env var).
    private_key_file : str, optional
        Path to a file containing the private key.

    Raises
    ------
    WalletNotConfiguredError
        If neither private_key nor private_key_file is provided.
    FileNotFoundError
        If private_key_file does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            self._account = Account.from_key(private_key.get_secret_value())
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            self._account = Account.from_key(key_path.read_text().strip())
        else:
            raise WalletNotConfiguredError(
                "No wallet configured. "
                "Set DRIP_WALLET_PRIVATE_KEY or DRIP_WALLET_PRIVATE_KEY_FILE"
            )

    @classmethod
    def from_config(cls, config: DripConfig) -> "FaucetWallet":
        """Build the wallet from config; an inline key wins over a key file."""
        if config.wallet_private_key:
            return cls(private_key=config.wallet_private_key)
        return cls(private_key_file=config.wallet_private_key_file)

    @property
    def account(self) -> LocalAccount:
        """The account used for transaction signing."""
        return self._account

    @property
    def address(self) -> str:
        """The checksummed faucet address."""
        return self._account.address

    def sign_transaction(self, tx: dict) -> bytes:
        """Sign a transaction dict and return the raw signed bytes."""
        return self._account.sign_transaction(tx).raw_transaction

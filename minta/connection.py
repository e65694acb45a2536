"""
connection.py — Credentials and wallet bootstrap for the regtest node.

connect() builds a node-level client and a client scoped to the fixed
"regtest" wallet, then makes sure that wallet is loaded, creating it on
first use.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .bitcoin_rpc import RpcClient
from .errors import CredentialMissingError, RpcError

logger = logging.getLogger(__name__)

WALLET_NAME = "regtest"

# settxfee, in sat/kvB (0.0001 BTC/kvB)
TX_FEE_RATE = 10_000

# bitcoind RPC error codes
RPC_WALLET_NOT_FOUND = -18
RPC_WALLET_ALREADY_LOADED = -35


# ─── Auth methods ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Cookie:
    """Authenticate with the ``user:password`` line of bitcoind's cookie file."""

    cookie_path: str

    def credentials(self) -> tuple[str, str]:
        try:
            content = Path(self.cookie_path).expanduser().read_text().strip()
        except OSError as e:
            raise RpcError(None, f"cannot read cookie file {self.cookie_path}: {e}") from e
        user, sep, password = content.partition(":")
        if not sep:
            raise RpcError(None, f"malformed cookie file {self.cookie_path}")
        return user, password


@dataclass(frozen=True)
class RpcAuth:
    user: str
    password: str

    def credentials(self) -> tuple[str, str]:
        return self.user, self.password


AuthMethod = Cookie | RpcAuth


# ─── Clients ──────────────────────────────────────────────────────────────────
def wallet_url(address: str, wallet: str = WALLET_NAME) -> str:
    return f"{address.rstrip('/')}/wallet/{wallet}"


def node_client(address: str | None, auth: AuthMethod | None, client_factory=RpcClient):
    """Build a node-level client without touching any wallet."""
    if not address or auth is None:
        raise CredentialMissingError()
    return client_factory(address, auth.credentials())


def connect(address: str | None, auth: AuthMethod | None, client_factory=RpcClient):
    """Return ``(node_client, wallet_client)`` with the regtest wallet loaded.

    Raises:
        CredentialMissingError: address or auth not set
        RpcError: any other wallet bootstrap failure
    """
    if not address or auth is None:
        raise CredentialMissingError()

    credentials = auth.credentials()
    client = client_factory(address, credentials)
    logger.info("Client created!")
    wallet_client = client_factory(wallet_url(address), credentials)

    try:
        client.load_wallet(WALLET_NAME)
        logger.info("Wallet '%s' loaded", WALLET_NAME)
    except RpcError as e:
        logger.info("Fail to load wallet: %s", e)
        if e.code == RPC_WALLET_NOT_FOUND:
            logger.info("Wallet does not exist, creating it...")
            client.create_wallet(WALLET_NAME)
        elif e.code == RPC_WALLET_ALREADY_LOADED:
            logger.info("Wallet already loaded!")
        else:
            raise

    logger.info("Wallet client settxfee...")
    wallet_client.set_tx_fee(TX_FEE_RATE)
    return client, wallet_client

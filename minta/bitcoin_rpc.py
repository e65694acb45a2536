"""
bitcoin_rpc.py — Thin JSON-RPC client for bitcoind, over HTTP with requests.

One client owns one HTTP session. The actor and the auto-block worker each
build their own client so their requests never share a connection.
"""

import logging
from decimal import Decimal

import requests

from .errors import RpcError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
COIN = 100_000_000


# ─── Amount helpers ───────────────────────────────────────────────────────────
def btc(sats: int) -> str:
    """Satoshis as the 8-decimal BTC string bitcoind accepts for amounts."""
    return f"{Decimal(sats) / COIN:.8f}"


def to_sats(amount) -> int:
    """BTC amount (Decimal, str or float) to integer satoshis."""
    return int((Decimal(str(amount)) * COIN).to_integral_value())


# ─── Client ───────────────────────────────────────────────────────────────────
class RpcClient:
    """Synchronous JSON-RPC 1.0 client.

    ``url`` may omit the scheme (``127.0.0.1:18443``) and may carry a wallet
    path (``127.0.0.1:18443/wallet/regtest``). ``auth`` is a
    ``(user, password)`` tuple.
    """

    def __init__(self, url: str, auth: tuple[str, str] | None = None, timeout: float = DEFAULT_TIMEOUT):
        if "://" not in url:
            url = f"http://{url}"
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        if auth:
            self.session.auth = auth

    def __repr__(self):
        return f"RpcClient({self.url!r})"

    def call(self, method: str, *params):
        """Call ``method`` and return its ``result``, raising RpcError on failure."""
        payload = {
            "jsonrpc": "1.0",
            "id": "minta",
            "method": method,
            "params": list(params),
        }
        logger.debug("RPC %s %s%s", self.url, method, list(params))

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(None, f"{method}: {e}") from e

        # bitcoind answers RPC errors with a 4xx/5xx status *and* a JSON body,
        # so the body is read before the status.
        try:
            result = response.json(parse_float=Decimal)
        except ValueError:
            raise RpcError(None, f"{method}: HTTP {response.status_code} {response.reason}") from None

        if not isinstance(result, dict):
            raise RpcError(None, f"{method}: unexpected reply {result!r}")
        error = result.get("error")
        if error:
            raise RpcError(error.get("code"), error.get("message", ""))
        if not response.ok:
            raise RpcError(None, f"{method}: HTTP {response.status_code} {response.reason}")
        return result.get("result")

    def close(self):
        self.session.close()

    # ─── Wallet bootstrap ────────────────────────────────────────────────────
    def load_wallet(self, name: str):
        return self.call("loadwallet", name)

    def create_wallet(self, name: str):
        return self.call("createwallet", name)

    def set_tx_fee(self, fee_rate: int) -> bool:
        """Set the wallet fee rate, given in satoshis per kvB."""
        return self.call("settxfee", btc(fee_rate))

    # ─── Chain ───────────────────────────────────────────────────────────────
    def get_blockchain_info(self) -> dict:
        return self.call("getblockchaininfo")

    def generate_to_address(self, blocks: int, address: str) -> list:
        """Mine ``blocks`` blocks paying ``address``; returns the block hashes."""
        return self.call("generatetoaddress", blocks, address)

    # ─── Wallet ──────────────────────────────────────────────────────────────
    def get_new_address(self) -> str:
        return self.call("getnewaddress")

    def get_balance(self) -> int:
        """Wallet balance in satoshis."""
        return to_sats(self.call("getbalance"))

    def send_to_address(self, address: str, amount: int) -> str:
        """Send ``amount`` satoshis to ``address``; returns the txid."""
        return self.call("sendtoaddress", address, btc(amount))

"""Fake bitcoind backend and actor fixtures shared by the tests."""

import queue
import sys
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from minta.bitcoind import BitcoinD
from minta.connection import RpcAuth
from minta.errors import RpcError
from minta.messages import Connect, SetCredentials

# BIP48 testnet key (48'/1'/0'/2')
TPUB = (
    "[9c32dc88/48'/1'/0'/2']tpubDEUUVSJyh6t12FbNhmmYa1M39AiD2VKGBaGT54aPz2xVF5Kg1dx3XS"
    "b5T4nKBakEz8ypy35fYVAZgBc7MVwQ2qEZEZRqDbvDu8w5AZVu4q2"
)
WPKH_MULTIPATH = f"wpkh({TPUB}/<0;1>/*)"
WPKH_RECEIVE = f"wpkh({TPUB}/0/*)"
WPKH_CHANGE = f"wpkh({TPUB}/1/*)"
MINISCRIPT = (
    f"wsh(or_d(pk({TPUB}/<0;1>/*),and_v(v:pkh({TPUB}/<2;3>/*),older(65535))))#686a8fmh"
)

WALLET_ADDRESS = "bcrt1qwalletaddress"


class FakeClient:
    """Stands in for RpcClient; every call is journaled on the backend."""

    def __init__(self, backend, url, auth):
        self.backend = backend
        self.url = url
        self.auth = auth
        self.closed = False

    def _call(self, method, *params):
        self.backend.calls.append(method)
        self.backend.journal.append((self.url, method, params))
        error = self.backend.errors.get(method)
        if error is not None:
            raise error

    def load_wallet(self, name):
        self._call("load_wallet", name)
        return {"name": name}

    def create_wallet(self, name):
        self._call("create_wallet", name)
        return {"name": name}

    def set_tx_fee(self, fee_rate):
        self._call("settxfee", fee_rate)
        return True

    def get_blockchain_info(self):
        self._call("get_blockchain_info")
        return {"chain": "regtest", "blocks": self.backend.height}

    def generate_to_address(self, blocks, address):
        self._call("generate_to_address", blocks, address)
        self.backend.height += blocks
        self.backend.mined.extend([address] * blocks)
        return ["00" * 32] * blocks

    def get_new_address(self):
        self._call("get_new_address")
        return WALLET_ADDRESS

    def get_balance(self):
        self._call("get_balance")
        return self.backend.balance

    def send_to_address(self, address, amount):
        self._call("send_to_address", address, amount)
        self.backend.sent.append((address, amount))
        return "ab" * 32

    def close(self):
        self.closed = True


class FakeBackend:
    """Client factory: ``BitcoinD(..., client_factory=backend)``."""

    def __init__(self):
        self.clients = []
        self.calls = []
        self.journal = []
        self.errors = {}
        self.height = 101
        self.balance = 50 * 100_000_000
        self.mined = []
        self.sent = []

    def __call__(self, url, auth):
        client = FakeClient(self, url, auth)
        self.clients.append(client)
        return client

    def fail(self, method, code, message="boom"):
        self.errors[method] = RpcError(code, message)


def drain(q: queue.Queue) -> list:
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items


def pump_until(actor, predicate, timeout=5.0) -> list:
    """Run the actor's mailbox until ``predicate(events)`` holds; return the events."""
    events = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        actor.poll(timeout=0.01)
        events.extend(drain(actor.sender))
        if predicate(events):
            return events
    raise AssertionError(f"condition not reached, events: {events}")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def actor(backend):
    bitcoind = BitcoinD(queue.Queue(), queue.Queue(), client_factory=backend, miner_poll_interval=0.001)
    yield bitcoind
    bitcoind.stop_auto_block()


@pytest.fixture
def connected(actor, backend):
    """Actor connected with rpcauth; backend journal and events cleared."""
    actor.handle_message(SetCredentials("127.0.0.1:18443", RpcAuth("user", "password")))
    actor.handle_message(Connect())
    assert actor.is_connected()
    drain(actor.sender)
    backend.calls.clear()
    backend.journal.clear()
    return actor

"""
bitcoind.py — The BitcoinD actor.

BitcoinD consumes one mailbox holding both controller commands and loopback
messages from its auto-block worker. It owns the connection (node and
wallet clients), the mining gate, the auto-block stop queue and the
send-every-block settings; only the mailbox thread touches them.

Every failure raised by a handler ends up as events, never as an exception
out of the mailbox loop:
    SendMessage(<text>)  +  GenerateResponse(False) / SendResponse(False)
"""

import logging
from dataclasses import replace

from . import miner
from .bitcoin_rpc import RpcClient
from .connection import connect, node_client
from .descriptor import address_from_descriptor, parse_descriptor, random_address
from .errors import MintaError, NotConnectedError, describe
from .messages import (
    BatchSent,
    BlockMined,
    Connect,
    Connected,
    Disconnect,
    DisableSendEveryBlock,
    EnableSendEveryBlock,
    FailMineBlock,
    Generate,
    GenerateResponse,
    GenerateToAddress,
    GenerateToDescriptor,
    GenerateToSelf,
    GetNewAddress,
    IncrementGenerateDescriptorIndex,
    IncrementSendDescriptorIndex,
    MinerStopped,
    NewAddress,
    SendMessage,
    SendResponse,
    SendToAddress,
    SendToDescriptor,
    SetCredentials,
    StartAutoBlock,
    StopAutoBlock,
    UpdateBalance,
    UpdateBlockchainTip,
)
from .pacing import get_random_tx_count, random_amount
from .service import Service

logger = logging.getLogger(__name__)


class BitcoinD(Service):
    def __init__(self, sender, receiver, client_factory=RpcClient, miner_poll_interval: float = miner.POLL_INTERVAL):
        super().__init__(sender, receiver)
        self.client_factory = client_factory
        self.miner_poll_interval = miner_poll_interval
        self.client = None
        self.wallet_client = None
        self.address: str | None = None
        self.auth = None
        self.mining_busy = False
        self.auto_block_sender = None
        self.send_every_block = None

        self._handlers = {
            SetCredentials: self._on_set_credentials,
            Connect: self._on_connect,
            Disconnect: self._on_disconnect,
            GetNewAddress: self._on_get_new_address,
            Generate: self.handle_generate,
            GenerateToSelf: self.handle_generate,
            GenerateToAddress: self.handle_generate,
            GenerateToDescriptor: self.handle_generate,
            SendToAddress: self.handle_send,
            SendToDescriptor: self.handle_send,
            EnableSendEveryBlock: self._on_enable_send_every_block,
            DisableSendEveryBlock: self._on_disable_send_every_block,
            StartAutoBlock: self._on_start_auto_block,
            StopAutoBlock: self._on_stop_auto_block,
            BlockMined: self._on_block_mined,
            FailMineBlock: self._on_fail_mine_block,
            MinerStopped: self._on_miner_stopped,
            BatchSent: self._on_batch_sent,
        }

    # ─── Connection ──────────────────────────────────────────────────────────
    def connect(self):
        return connect(self.address, self.auth, self.client_factory)

    def is_connected(self) -> bool:
        return self.client is not None

    def disconnect(self):
        for client in (self.client, self.wallet_client):
            if client is not None:
                client.close()
        self.client = None
        self.wallet_client = None
        self.address = None
        self.auth = None
        self.send_to_gui(Connected(False))

    def handle_connect(self):
        if self.is_connected():
            logger.error("Already connected!")
            self.send_to_gui(SendMessage("Already connected!"))
            self.send_to_gui(Connected(True))
            return
        try:
            self.client, self.wallet_client = self.connect()
        except MintaError as e:
            logger.error("Fail to connect: %s", e)
            self.send_to_gui(SendMessage(f"Fail to connect: {describe(e)}"))
            self.send_to_gui(Connected(False))
        else:
            logger.info("Connected!")
            self.send_to_gui(Connected(True))

    # ─── Queries ─────────────────────────────────────────────────────────────
    def get_block_height(self) -> int:
        if self.client is None:
            raise NotConnectedError()
        return self.client.get_blockchain_info()["blocks"]

    def get_balance(self) -> int:
        if self.wallet_client is None:
            raise NotConnectedError()
        return self.wallet_client.get_balance()

    def get_new_address(self) -> str:
        if self.wallet_client is None:
            raise NotConnectedError()
        return self.wallet_client.get_new_address()

    def update_data(self):
        """Push the chain tip and the wallet balance to the controller."""
        try:
            self.send_to_gui(UpdateBlockchainTip(self.get_block_height()))
        except MintaError as e:
            logger.debug("update_data(): no tip: %s", e)
        try:
            self.send_to_gui(UpdateBalance(self.get_balance()))
        except MintaError as e:
            logger.debug("update_data(): no balance: %s", e)

    # ─── Mining ──────────────────────────────────────────────────────────────
    def generate(self, blocks: int):
        self.generate_to_address(blocks, random_address())

    def generate_to_address(self, blocks: int, address: str):
        if self.client is None:
            raise NotConnectedError()
        self.client.generate_to_address(blocks, address)

    def generate_to_self(self, blocks: int):
        self.generate_to_address(blocks, self.get_new_address())

    def generate_to_descriptor(self, blocks: int, descriptor: str, start_index: int):
        descriptor = parse_descriptor(descriptor)
        for index in range(start_index, start_index + blocks):
            address = address_from_descriptor(descriptor, index)
            self.generate_to_address(1, address)
            self.send_to_gui(IncrementGenerateDescriptorIndex())

    def is_mining(self) -> bool:
        """The mining gate: a one-shot generate is running or a worker is registered."""
        return self.mining_busy or self.auto_block_sender is not None

    def start_auto_block(self, delay: float):
        logger.info("BitcoinD.start_auto_block(%s)", delay)
        if not self.is_connected():
            raise NotConnectedError()
        if self.auto_block_sender is not None:
            logger.warning("An auto-block worker is already registered, the old one is orphaned")
        client = node_client(self.address, self.auth, self.client_factory)
        worker = miner.AutoBlockMiner(client, delay, self.loopback, poll_interval=self.miner_poll_interval)
        self.auto_block_sender = worker.stop_queue
        worker.start()

    def stop_auto_block(self):
        if self.auto_block_sender is not None:
            self.auto_block_sender.put(miner.STOP)

    # ─── Payments ────────────────────────────────────────────────────────────
    def send_to_address(self, amount: int, address: str):
        if self.wallet_client is None:
            raise NotConnectedError()
        self.wallet_client.send_to_address(address, amount)

    def send_to_descriptor(self, count, amount_min, amount_max, descriptor, start_index):
        descriptor = parse_descriptor(descriptor)
        for index in range(start_index, start_index + count):
            amount = random_amount(amount_min, amount_max)
            address = address_from_descriptor(descriptor, index)
            self.send_to_address(amount, address)
            self.send_to_gui(IncrementSendDescriptorIndex())

    def maybe_send_every_block(self):
        params = self.send_every_block
        if params is None:
            return
        tx_count = get_random_tx_count(params.count, params.blocks)
        indexes = params.next_batch(tx_count)
        if not indexes:
            return
        descriptor = parse_descriptor(params.descriptor)
        for index in indexes:
            amount = random_amount(params.amount_min, params.amount_max)
            address = address_from_descriptor(descriptor, index)
            self.send_to_address(amount, address)
        logger.info("Sent %d tx (indexes %d..%d)", tx_count, indexes.start, indexes.stop - 1)

    # ─── Dispatch ────────────────────────────────────────────────────────────
    def handle_message(self, msg):
        handler = self._handlers.get(type(msg))
        if handler is None:
            logger.info("Bitcoind: unhandled message %r", msg)
            return
        handler(msg)

    def handle_generate(self, msg):
        if self.is_mining():
            logger.warning("Mining busy, dropping %r", msg)
            return
        self.mining_busy = True
        try:
            if isinstance(msg, Generate):
                self.generate(msg.blocks)
            elif isinstance(msg, GenerateToSelf):
                self.generate_to_self(msg.blocks)
            elif isinstance(msg, GenerateToAddress):
                self.generate_to_address(msg.blocks, msg.address)
            else:
                self.generate_to_descriptor(msg.blocks, msg.descriptor, msg.start_index)
        except MintaError as e:
            logger.error("%r failed: %s", msg, e)
            self.send_to_gui(SendMessage(describe(e)))
            self.send_to_gui(GenerateResponse(False))
        else:
            self.send_to_gui(GenerateResponse(True))
        finally:
            self.mining_busy = False
        self.update_data()

    def handle_send(self, msg):
        try:
            if isinstance(msg, SendToAddress):
                self.send_to_address(msg.amount, msg.address)
            else:
                self.send_to_descriptor(msg.count, msg.amount_min, msg.amount_max, msg.descriptor, msg.start_index)
        except MintaError as e:
            logger.error("%r failed: %s", msg, e)
            self.send_to_gui(SendMessage(describe(e)))
            self.send_to_gui(SendResponse(False))
        else:
            self.send_to_gui(SendResponse(True))

    def _on_set_credentials(self, msg):
        self.address = msg.address
        self.auth = msg.auth

    def _on_connect(self, msg):
        self.handle_connect()
        self.update_data()

    def _on_disconnect(self, msg):
        self.disconnect()

    def _on_get_new_address(self, msg):
        try:
            self.send_to_gui(NewAddress(self.get_new_address()))
        except MintaError as e:
            self.send_to_gui(SendMessage(f"Fail to get new address: {describe(e)}"))

    def _on_enable_send_every_block(self, msg):
        # private copy: the cursor must not leak back into the caller's object
        self.send_every_block = replace(msg.params)

    def _on_disable_send_every_block(self, msg):
        self.send_every_block = None

    def _on_start_auto_block(self, msg):
        try:
            self.start_auto_block(msg.delay)
        except MintaError as e:
            self.send_to_gui(MinerStopped())
            self.send_to_gui(SendMessage(f"Fail to start autoblock: {describe(e)}"))

    def _on_stop_auto_block(self, msg):
        self.stop_auto_block()

    def _on_block_mined(self, msg):
        try:
            self.maybe_send_every_block()
        except MintaError as e:
            self.send_to_gui(SendMessage(f"maybe_send_every_block(): {describe(e)}"))
        self.update_data()

    def _on_fail_mine_block(self, msg):
        logger.warning("Auto-block: %s", msg.reason)
        self.send_to_gui(SendMessage(f"Fail to mine block: {msg.reason}"))

    def _on_miner_stopped(self, msg):
        self.auto_block_sender = None
        self.send_to_gui(MinerStopped())

    def _on_batch_sent(self, msg):
        self.update_data()

"""
miner.py — Background worker that mines one regtest block every ``delay`` seconds.

The worker owns its RPC client and never touches actor state: it only reads
its stop queue and posts loopback messages (BlockMined, FailMineBlock,
MinerStopped) into the actor's mailbox.
"""

import logging
import queue
import threading
import time

from .descriptor import random_address
from .errors import RpcError
from .messages import BlockMined, FailMineBlock, MinerStopped

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.02  # seconds

STOP = "stop"


class AutoBlockMiner(threading.Thread):
    def __init__(self, client, delay: float, loopback: queue.Queue, poll_interval: float = POLL_INTERVAL):
        super().__init__(name="AutoBlockMiner", daemon=True)
        self.client = client
        self.delay = delay
        self.loopback = loopback
        self.poll_interval = poll_interval
        self.stop_queue: queue.Queue = queue.Queue()

    def stop(self):
        """Ask the worker to exit; it confirms with MinerStopped."""
        self.stop_queue.put(STOP)

    def _stop_requested(self) -> bool:
        try:
            msg = self.stop_queue.get_nowait()
        except queue.Empty:
            return False
        logger.info("Miner rcv msg: %s", msg)
        return msg == STOP

    def mine_one(self):
        address = random_address()
        try:
            self.client.generate_to_address(1, address)
        except RpcError as e:
            logger.warning("Miner: fail to mine a block: %s", e)
            self.loopback.put(FailMineBlock(str(e)))
        else:
            self.loopback.put(BlockMined())

    def run(self):
        logger.info("Spawn miner thread (one block every %.3fs)", self.delay)
        last_block = time.monotonic()
        try:
            while not self._stop_requested():
                now = time.monotonic()
                if now - last_block >= self.delay:
                    logger.debug("Miner: mine a block")
                    last_block = now
                    self.mine_one()
                time.sleep(self.poll_interval)
        finally:
            logger.info("Miner stopped")
            self.client.close()
            self.loopback.put(MinerStopped())

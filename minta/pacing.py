"""
pacing.py — How many payments to send for each mined block, and how much.

The per-block count is a cheap approximation of "count transactions every
blocks blocks": a Bernoulli draw below one tx/block, a scaled uniform draw
above it. It is not a calibrated Poisson process.
"""

import random
from dataclasses import dataclass

MULTIPLIER = 10_000
MAX_TX_PER_BLOCK = 10_000


def get_random_tx_count(count: int, blocks: int, rng=random) -> int:
    """Number of transactions to send for one mined block."""
    if blocks <= 0:
        rate = MAX_TX_PER_BLOCK
    else:
        rate = min(count / blocks, MAX_TX_PER_BLOCK)
    send_per_block = round(rate * MULTIPLIER)

    if send_per_block <= MULTIPLIER:
        # at most one tx/block
        return 1 if rng.randrange(MULTIPLIER) < send_per_block else 0

    # more than one tx/block
    r = rng.randrange(send_per_block)
    return r // MULTIPLIER if r > MULTIPLIER else 0


def random_amount(amount_min: int, amount_max: int, rng=random) -> int:
    """Uniform satoshi amount in [amount_min, amount_max)."""
    if amount_max <= amount_min:
        return amount_min
    return rng.randrange(amount_min, amount_max)


@dataclass
class SendEveryBlock:
    """Send-every-block settings plus the derivation cursor they own."""

    count: int
    amount_min: int
    amount_max: int
    descriptor: str
    start_index: int
    blocks: int
    actual_index: int | None = None

    @property
    def cursor(self) -> int:
        return self.start_index if self.actual_index is None else self.actual_index

    def next_batch(self, tx_count: int) -> range:
        """Reserve the next ``tx_count`` indexes and advance the cursor past them."""
        start = self.cursor
        end = start + tx_count
        self.actual_index = end
        return range(start, end)

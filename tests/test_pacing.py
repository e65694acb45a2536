"""Tests for per-block transaction count, amounts and the send cursor."""

import random

import pytest

from minta.pacing import MAX_TX_PER_BLOCK, SendEveryBlock, get_random_tx_count, random_amount


def mean_count(count, blocks, trials=100_000, seed=42):
    rng = random.Random(seed)
    return sum(get_random_tx_count(count, blocks, rng) for _ in range(trials)) / trials


def test_01_one_tx_every_ten_blocks():
    assert 0.08 <= mean_count(1, 10) <= 0.12


def test_02_one_tx_every_block_always_sends():
    rng = random.Random(1)
    assert all(get_random_tx_count(1, 1, rng) == 1 for _ in range(1000))


def test_03_zero_count_never_sends():
    rng = random.Random(1)
    assert all(get_random_tx_count(0, 10, rng) == 0 for _ in range(1000))


def test_04_above_one_tx_per_block():
    # 5 tx/block: r uniform in [0, 50000), r // 10000 -> mean close to 2
    assert 1.9 <= mean_count(5, 1) <= 2.1


@pytest.mark.parametrize("count,blocks", [(1, 10), (3, 2), (10**9, 1), (7, 0), (0, 0), (10_000, 1)])
def test_05_bounded_non_negative(count, blocks):
    rng = random.Random(7)
    for _ in range(2000):
        k = get_random_tx_count(count, blocks, rng)
        assert isinstance(k, int)
        assert 0 <= k <= MAX_TX_PER_BLOCK


def test_06_random_amount_range():
    rng = random.Random(3)
    amounts = [random_amount(1_000, 1_010, rng) for _ in range(2000)]
    assert min(amounts) == 1_000
    assert max(amounts) == 1_009


def test_07_random_amount_degenerate_range():
    assert random_amount(5_000, 5_000) == 5_000
    assert random_amount(5_000, 10) == 5_000


def test_08_cursor_starts_at_start_index():
    params = SendEveryBlock(1, 1_000, 2_000, "desc", start_index=5, blocks=10)
    assert params.cursor == 5
    assert list(params.next_batch(3)) == [5, 6, 7]
    assert list(params.next_batch(0)) == []
    assert list(params.next_batch(2)) == [8, 9]
    assert params.actual_index == 10

"""
messages.py — Everything that travels through the actor's queues.

Commands flow controller → BitcoinD, events flow BitcoinD → controller, and
loopback messages flow from the auto-block worker back into BitcoinD's own
mailbox. Amounts are satoshis.
"""

from dataclasses import dataclass

from .connection import AuthMethod
from .pacing import SendEveryBlock


# ─── Control ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SetCredentials:
    address: str
    auth: AuthMethod


@dataclass(frozen=True)
class Connect:
    pass


@dataclass(frozen=True)
class Disconnect:
    pass


@dataclass(frozen=True)
class GetNewAddress:
    """Ask the regtest wallet for a fresh receiving address."""


# ─── Mining ───────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Generate:
    """Mine blocks to a throwaway address."""

    blocks: int


@dataclass(frozen=True)
class GenerateToSelf:
    """Mine blocks to a new address of the regtest wallet."""

    blocks: int


@dataclass(frozen=True)
class GenerateToAddress:
    blocks: int
    address: str


@dataclass(frozen=True)
class GenerateToDescriptor:
    """Mine one block to each of ``blocks`` addresses derived from ``start_index`` on."""

    blocks: int
    descriptor: str
    start_index: int


@dataclass(frozen=True)
class StartAutoBlock:
    delay: float  # seconds between two blocks


@dataclass(frozen=True)
class StopAutoBlock:
    pass


# ─── Payment ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SendToAddress:
    amount: int
    address: str


@dataclass(frozen=True)
class SendToDescriptor:
    count: int
    amount_min: int
    amount_max: int
    descriptor: str
    start_index: int


@dataclass(frozen=True)
class EnableSendEveryBlock:
    params: SendEveryBlock


@dataclass(frozen=True)
class DisableSendEveryBlock:
    pass


# ─── Events ───────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class UpdateBlockchainTip:
    height: int


@dataclass(frozen=True)
class UpdateBalance:
    balance: int


@dataclass(frozen=True)
class GenerateResponse:
    success: bool


@dataclass(frozen=True)
class SendResponse:
    success: bool


@dataclass(frozen=True)
class SendMessage:
    text: str


@dataclass(frozen=True)
class Connected:
    connected: bool


@dataclass(frozen=True)
class NewAddress:
    address: str


@dataclass(frozen=True)
class IncrementSendDescriptorIndex:
    pass


@dataclass(frozen=True)
class IncrementGenerateDescriptorIndex:
    pass


# ─── Loopback (auto-block worker → BitcoinD) ──────────────────────────────────
@dataclass(frozen=True)
class BlockMined:
    pass


@dataclass(frozen=True)
class FailMineBlock:
    reason: str


@dataclass(frozen=True)
class MinerStopped:
    pass


@dataclass(frozen=True)
class BatchSent:
    pass

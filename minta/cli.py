#!/usr/bin/env python3
"""
cli.py
======
Console controller for the BitcoinD actor: connects to a regtest bitcoind,
issues one command and prints the events that come back.

Usage:
    minta status
    minta address
    minta generate 101 --to-self
    minta generate 10 --descriptor "wpkh(tpub.../<0;1>/*)" --index 0
    minta send --to bcrt1q... --amount 0.5
    minta send --descriptor "wpkh(tpub.../<0;1>/*)" --count 20 --min 0.001 --max 0.01
    minta auto --blocks 6 --per minute
    minta auto --blocks 1 --per second --descriptor "..." --tx 3 --every 10 --min 0.001 --max 0.01

Connection settings come from ~/.minta/minta.conf and can be overridden
with --address / --cookie / --user + --password (--save-config stores them).
"""

import argparse
import queue
import sys
import threading
import time
from decimal import Decimal, InvalidOperation

from . import log
from .bitcoin_rpc import btc, to_sats
from .bitcoind import BitcoinD
from .config import Config
from .log import hdr, info, ok, warn
from .messages import (
    Connect,
    Connected,
    Disconnect,
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
    StartAutoBlock,
    StopAutoBlock,
    UpdateBalance,
    UpdateBlockchainTip,
)
from .pacing import SendEveryBlock
from .service import EventListener

TIMEOUT = 120  # seconds to wait for a reply from the actor
SETTLE = 0.3   # seconds of silence after which trailing status events are done
TIMEFRAMES = {"second": 1.0, "minute": 60.0}


# ─── Argument types ───────────────────────────────────────────────────────────
def amount(value: str) -> int:
    """BTC amount on the command line → satoshis."""
    try:
        sats = to_sats(Decimal(value))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid BTC amount: {value!r}") from None
    if sats <= 0:
        raise argparse.ArgumentTypeError(f"amount must be positive: {value!r}")
    return sats


def positive(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0: {value!r}")
    return n


# ─── Events ───────────────────────────────────────────────────────────────────
def print_event(event):
    if isinstance(event, Connected):
        (ok if event.connected else warn)("Connected" if event.connected else "Disconnected")
    elif isinstance(event, UpdateBlockchainTip):
        info(f"Tip: {event.height}")
    elif isinstance(event, UpdateBalance):
        info(f"Balance: {btc(event.balance)} BTC")
    elif isinstance(event, GenerateResponse):
        (ok if event.success else warn)("Blocks generated" if event.success else "Generate failed")
    elif isinstance(event, SendResponse):
        (ok if event.success else warn)("Sent" if event.success else "Send failed")
    elif isinstance(event, SendMessage):
        warn(event.text)
    elif isinstance(event, NewAddress):
        ok(f"New address: {event.address}")
    elif isinstance(event, IncrementGenerateDescriptorIndex):
        print(f"  {log.DIM}│ block mined to next descriptor index{log.RST}")
    elif isinstance(event, IncrementSendDescriptorIndex):
        print(f"  {log.DIM}│ payment sent to next descriptor index{log.RST}")
    elif isinstance(event, MinerStopped):
        info("Auto-block miner stopped")
    elif isinstance(event, FailMineBlock):
        warn(f"Fail to mine block: {event.reason}")
    else:
        info(repr(event))


class Controller:
    """Owns the actor thread and both of its queues."""

    def __init__(self, client_factory=None):
        self.commands: queue.Queue = queue.Queue()
        self.events: queue.Queue = queue.Queue()
        kwargs = {"client_factory": client_factory} if client_factory else {}
        self.bitcoind = BitcoinD(self.events, self.commands, **kwargs)
        self.bitcoind.start()

    def send(self, msg):
        self.commands.put(msg)

    def wait_for(self, *types, timeout: float = TIMEOUT):
        """Print events until one of ``types`` arrives; return it (None on timeout)."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            try:
                event = self.events.get(timeout=0.1)
            except queue.Empty:
                continue
            print_event(event)
            if isinstance(event, types):
                return event
        warn(f"No answer from bitcoind after {timeout}s")
        return None

    def drain(self, settle: float = SETTLE):
        """Print trailing events until the queue stays quiet for ``settle`` seconds."""
        while True:
            try:
                event = self.events.get(timeout=settle)
            except queue.Empty:
                return
            print_event(event)

    def close(self):
        self.bitcoind.shutdown(timeout=5)


# ─── Commands ─────────────────────────────────────────────────────────────────
def connect(ctl: Controller, config: Config) -> bool:
    hdr(f"Connecting to {config.address} ({config.auth_type})")
    ctl.send(config.set_credentials())
    ctl.send(Connect())
    event = ctl.wait_for(Connected)
    ctl.drain()
    return bool(event and event.connected)


def cmd_status(ctl, args) -> int:
    # tip and balance were already printed by connect()
    return 0


def cmd_address(ctl, args) -> int:
    ctl.send(GetNewAddress())
    event = ctl.wait_for(NewAddress, SendMessage)
    return 0 if isinstance(event, NewAddress) else 1


def cmd_generate(ctl, args) -> int:
    if args.descriptor:
        msg = GenerateToDescriptor(args.blocks, args.descriptor, args.index)
    elif args.to_address:
        msg = GenerateToAddress(args.blocks, args.to_address)
    elif args.to_self:
        msg = GenerateToSelf(args.blocks)
    else:
        msg = Generate(args.blocks)
    hdr(f"Generate {args.blocks} block(s)")
    ctl.send(msg)
    event = ctl.wait_for(GenerateResponse)
    ctl.drain()
    return 0 if event and event.success else 1


def cmd_send(ctl, args) -> int:
    if args.descriptor:
        if args.max <= args.min:
            warn("--max must be greater than --min")
            return 2
        msg = SendToDescriptor(args.count, args.min, args.max, args.descriptor, args.index)
        hdr(f"Send {args.count} payment(s) to descriptor")
    elif args.to and args.amount:
        msg = SendToAddress(args.amount, args.to)
        hdr(f"Send {btc(args.amount)} BTC to {args.to}")
    else:
        warn("either --descriptor or --to with --amount is required")
        return 2
    ctl.send(msg)
    event = ctl.wait_for(SendResponse)
    ctl.drain()
    return 0 if event and event.success else 1


def cmd_auto(ctl, args) -> int:
    delay = TIMEFRAMES[args.per] / args.blocks
    if args.descriptor:
        if args.max <= args.min:
            warn("--max must be greater than --min")
            return 2
        ctl.send(EnableSendEveryBlock(SendEveryBlock(
            count=args.tx,
            amount_min=args.min,
            amount_max=args.max,
            descriptor=args.descriptor,
            start_index=args.index,
            blocks=args.every,
        )))
        info(f"Sending ~{args.tx} tx every {args.every} block(s) from index {args.index}")

    stopped = threading.Event()

    def on_event(event):
        print_event(event)
        if isinstance(event, MinerStopped):
            stopped.set()

    listener = EventListener(ctl.events, on_event).start()
    hdr(f"Auto-block: {args.blocks} block(s) per {args.per} (Ctrl-C to stop)")
    ctl.send(StartAutoBlock(delay))
    try:
        while not stopped.wait(0.5):
            pass
    except KeyboardInterrupt:
        info("Stopping miner...")
        ctl.send(StopAutoBlock())
        stopped.wait(TIMEOUT)
    finally:
        listener.stop(timeout=1)
    return 0


# ─── Parser ───────────────────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="minta", description="Drive a regtest bitcoind")
    parser.add_argument("--config", help="config file (default ~/.minta/minta.conf)")
    parser.add_argument("--address", help="bitcoind RPC address, e.g. 127.0.0.1:18443")
    parser.add_argument("--cookie", help="cookie file (selects cookie auth)")
    parser.add_argument("--user", help="RPC user (selects rpcauth)")
    parser.add_argument("--password", help="RPC password (selects rpcauth)")
    parser.add_argument("--save-config", action="store_true", help="store the connection settings")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("status", help="connect and show tip and balance")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("address", help="new address of the regtest wallet")
    p.set_defaults(func=cmd_address)

    p = sub.add_parser("generate", help="mine blocks (to a throwaway address by default)")
    p.add_argument("blocks", type=positive)
    target = p.add_mutually_exclusive_group()
    target.add_argument("--to-self", action="store_true", help="mine to the regtest wallet")
    target.add_argument("--to-address", help="mine to this address")
    target.add_argument("--descriptor", help="mine one block per derived address")
    p.add_argument("--index", type=int, default=0, help="first derivation index")
    p.set_defaults(func=cmd_generate)

    p = sub.add_parser("send", help="send from the regtest wallet")
    p.add_argument("--to", help="destination address")
    p.add_argument("--amount", type=amount, help="BTC")
    p.add_argument("--descriptor", help="send to sequential derived addresses")
    p.add_argument("--count", type=positive, default=1)
    p.add_argument("--min", type=amount, default=amount("0.001"), help="BTC")
    p.add_argument("--max", type=amount, default=amount("0.01"), help="BTC")
    p.add_argument("--index", type=int, default=0, help="first derivation index")
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("auto", help="mine blocks on a cadence until interrupted")
    p.add_argument("--blocks", type=positive, default=1)
    p.add_argument("--per", choices=sorted(TIMEFRAMES), default="minute")
    p.add_argument("--descriptor", help="also pay derived addresses on every mined block")
    p.add_argument("--tx", type=positive, default=1, help="transactions ...")
    p.add_argument("--every", type=positive, default=1, help="... per this many blocks")
    p.add_argument("--min", type=amount, default=amount("0.001"), help="BTC")
    p.add_argument("--max", type=amount, default=amount("0.01"), help="BTC")
    p.add_argument("--index", type=int, default=0, help="first derivation index")
    p.set_defaults(func=cmd_auto)
    return parser


def apply_overrides(config: Config, args) -> Config:
    if args.address:
        config.address = args.address
    if args.cookie:
        config.auth_type = "cookie"
        config.cookie_path = args.cookie
    if args.user or args.password:
        config.auth_type = "rpcauth"
        config.user = args.user or config.user
        config.password = args.password or config.password
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log.setup_logging(args.verbose)

    config = apply_overrides(Config.load(args.config), args)
    if not config.credentials_valid():
        warn("Incomplete credentials: check address and auth settings")
        return 2
    if args.save_config:
        ok(f"Config saved to {config.save(args.config)}")

    ctl = Controller()
    try:
        if not connect(ctl, config):
            return 1
        code = args.func(ctl, args)
        ctl.send(Disconnect())
        ctl.wait_for(Connected, timeout=5)
        return code
    finally:
        ctl.close()


if __name__ == "__main__":
    sys.exit(main())

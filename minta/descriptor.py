"""
descriptor.py — Output descriptor → regtest address, with embit.

Multipath descriptors (``.../<0;1>/*``) always resolve through their first
path, the receive path. Nothing is cached: every call parses and derives
again, so the same (descriptor, index) always gives the same address.
"""

import logging
import secrets

from embit.descriptor import Descriptor
from embit.descriptor.checksum import checksum
from embit.ec import PrivateKey
from embit.networks import NETWORKS
from embit.script import p2pkh

from .errors import DeriveDescriptorError, ParseDescriptorError

logger = logging.getLogger(__name__)

NETWORK = NETWORKS["regtest"]
RECEIVE_BRANCH = 0
HARDENED_INDEX = 2**31


def parse_descriptor(text: str) -> Descriptor:
    """Parse descriptor text, checking the ``#checksum`` suffix when present."""
    text = text.strip()
    body, sep, given = text.partition("#")
    try:
        if sep and checksum(body) != given:
            raise ParseDescriptorError(f"bad checksum #{given}")
        return Descriptor.from_string(body)
    except ParseDescriptorError:
        raise
    except Exception as e:
        logger.debug("Descriptor parse failure: %s", e)
        raise ParseDescriptorError(str(e)) from e


def address_from_descriptor(descriptor: str | Descriptor, index: int) -> str:
    """Regtest address of the receive path of ``descriptor`` at ``index``."""
    if isinstance(descriptor, str):
        descriptor = parse_descriptor(descriptor)
    if not 0 <= index < HARDENED_INDEX:
        raise DeriveDescriptorError(f"index {index} out of range")
    try:
        derived = descriptor.derive(index, branch_index=RECEIVE_BRANCH)
        return derived.address(NETWORK)
    except Exception as e:
        raise DeriveDescriptorError(str(e)) from e


def random_address() -> str:
    """P2PKH address of a throwaway key. Coins sent there are gone for good."""
    key = PrivateKey(secrets.token_bytes(32))
    return p2pkh(key.get_public_key()).address(NETWORK)

"""
minta — drives a regtest bitcoind to generate chain activity.

Mines blocks on demand or on a cadence, and sends payments to
descriptor-derived addresses at a target rate.
"""

__version__ = "0.1.0"

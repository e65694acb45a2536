"""
errors.py — Failures raised by minta and the text shown for each of them.
"""


class MintaError(Exception):
    """Base class for every failure the actor turns into an event."""


class CredentialMissingError(MintaError):
    pass


class NotConnectedError(MintaError):
    pass


class ParseDescriptorError(MintaError):
    pass


class DeriveDescriptorError(MintaError):
    pass


class RpcError(MintaError):
    """A JSON-RPC error object returned by bitcoind, or a transport failure.

    Transport failures (refused connection, HTTP error without a JSON body,
    unreadable cookie file) carry ``code=None``.
    """

    def __init__(self, code: int | None, message: str = ""):
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self):
        if self.code is None:
            return f"RPC transport error: {self.message}"
        return f"RPC error {self.code}: {self.message}"


# Operator-facing wording.
MESSAGES = {
    CredentialMissingError: "Credentials missing: set an address and an auth method first",
    NotConnectedError: "Not connected to bitcoind",
    ParseDescriptorError: "Fail to parse descriptor",
    DeriveDescriptorError: "Fail to derive address from descriptor",
}


def describe(err: Exception) -> str:
    """Return the operator-facing text for ``err``."""
    if isinstance(err, RpcError):
        return str(err)
    for cls in type(err).__mro__:
        if cls in MESSAGES:
            detail = str(err)
            return f"{MESSAGES[cls]} ({detail})" if detail else MESSAGES[cls]
    return f"{type(err).__name__}: {err}"

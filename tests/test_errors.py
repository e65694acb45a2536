from minta.errors import (
    CredentialMissingError,
    DeriveDescriptorError,
    NotConnectedError,
    ParseDescriptorError,
    RpcError,
    describe,
)


def test_01_rpc_error_text():
    assert str(RpcError(-18, "Requested wallet does not exist")) == "RPC error -18: Requested wallet does not exist"
    assert str(RpcError(None, "refused")) == "RPC transport error: refused"
    assert describe(RpcError(-6, "Insufficient funds")) == "RPC error -6: Insufficient funds"


def test_02_operator_messages():
    assert describe(NotConnectedError()) == "Not connected to bitcoind"
    assert describe(CredentialMissingError()).startswith("Credentials missing")
    assert describe(ParseDescriptorError("bad key")) == "Fail to parse descriptor (bad key)"
    assert describe(DeriveDescriptorError()) == "Fail to derive address from descriptor"


def test_03_unknown_error():
    assert describe(ValueError("x")) == "ValueError: x"

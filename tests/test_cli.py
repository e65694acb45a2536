"""Tests for the console controller."""

import argparse

import pytest

import minta.cli
from conftest import FakeBackend
from minta.cli import amount, apply_overrides, build_parser, main
from minta.config import Config


def test_01_amount_to_sats():
    assert amount("0.5") == 50_000_000
    assert amount("0.00000001") == 1
    for bad in ("0", "-1", "abc"):
        with pytest.raises(argparse.ArgumentTypeError):
            amount(bad)


def test_02_parser():
    args = build_parser().parse_args(["generate", "10", "--descriptor", "wpkh(x)", "--index", "3"])
    assert (args.blocks, args.descriptor, args.index) == (10, "wpkh(x)", 3)
    assert args.func is minta.cli.cmd_generate

    args = build_parser().parse_args(["auto", "--blocks", "6", "--per", "second"])
    assert args.per == "second"
    assert args.min == 100_000 and args.max == 1_000_000

    with pytest.raises(SystemExit):
        build_parser().parse_args(["generate", "1", "--to-self", "--to-address", "x"])


def test_03_overrides():
    args = build_parser().parse_args(["--address", "10.0.0.1:18443", "--user", "bob", "status"])
    config = apply_overrides(Config(), args)
    assert config.address == "10.0.0.1:18443"
    assert config.auth_type == "rpcauth"
    assert config.user == "bob"
    assert config.password == "password"

    args = build_parser().parse_args(["--cookie", "/tmp/.cookie", "status"])
    config = apply_overrides(Config(auth_type="rpcauth"), args)
    assert config.auth_type == "cookie"
    assert config.cookie_path == "/tmp/.cookie"


@pytest.fixture
def backend(monkeypatch):
    backend = FakeBackend()
    controller = minta.cli.Controller
    monkeypatch.setattr(minta.cli, "Controller", lambda: controller(client_factory=backend))
    return backend


def run(tmp_path, *argv):
    return main(["--config", str(tmp_path / "minta.conf"), "--user", "u", "--password", "p", *argv])


def test_04_generate_end_to_end(tmp_path, backend, capsys):
    assert run(tmp_path, "generate", "2", "--to-self") == 0
    assert backend.height == 103
    assert backend.calls[:2] == ["load_wallet", "settxfee"]
    assert all(c.closed for c in backend.clients)
    out = capsys.readouterr().out
    assert "Connected" in out
    assert "Blocks generated" in out


def test_05_failed_connect_exits_1(tmp_path, backend, capsys):
    backend.fail("load_wallet", -4, "Wallet file verification failed")
    assert run(tmp_path, "status") == 1
    assert "RPC error -4" in capsys.readouterr().out


def test_06_send_rejects_inverted_range(tmp_path, backend, capsys):
    assert run(tmp_path, "send", "--descriptor", "wpkh(x)", "--min", "0.1", "--max", "0.01") == 2
    assert backend.sent == []


def test_07_save_config(tmp_path, backend):
    assert run(tmp_path, "--save-config", "status") == 0
    saved = Config.load(tmp_path / "minta.conf")
    assert saved.auth_type == "rpcauth"
    assert saved.user == "u"

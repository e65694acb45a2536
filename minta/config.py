"""
config.py — Connection settings, stored as an INI file.

    [bitcoind]
    ; auth_type: cookie or rpcauth
    auth_type = cookie
    user = user
    password = password
    cookie_path = ~/.bitcoin/regtest/.cookie
    address = 127.0.0.1:18443
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .connection import Cookie, RpcAuth
from .messages import SetCredentials

logger = logging.getLogger(__name__)

SECTION = "bitcoind"
AUTH_TYPES = ("cookie", "rpcauth")


def config_path() -> Path:
    return Path.home() / ".minta" / "minta.conf"


def default_cookie_path() -> str:
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home())) / "Bitcoin"
    else:
        base = Path.home() / ".bitcoin"
    return str(base / "regtest" / ".cookie")


@dataclass
class Config:
    auth_type: str = "cookie"
    user: str = "user"
    password: str = "password"
    cookie_path: str = field(default_factory=default_cookie_path)
    address: str = "127.0.0.1:18443"

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Config":
        """Read ``path`` (default ~/.minta/minta.conf); missing keys keep their defaults."""
        path = Path(path) if path else config_path()
        cfg = configparser.ConfigParser(interpolation=None)
        if not cfg.read(path):
            logger.info("No config at %s, using defaults", path)
            return cls()
        section = cfg[SECTION] if SECTION in cfg else {}
        config = cls()
        for key in ("auth_type", "user", "password", "cookie_path", "address"):
            value = section.get(key, "").strip()
            if value:
                setattr(config, key, value)
        config.auth_type = config.auth_type.lower()
        if config.auth_type not in AUTH_TYPES:
            logger.warning("Unknown auth_type %r in %s, falling back to cookie", config.auth_type, path)
            config.auth_type = "cookie"
        return config

    def save(self, path: str | Path | None = None) -> Path:
        path = Path(path) if path else config_path()
        logger.info("save(%s)", path)
        path.parent.mkdir(parents=True, exist_ok=True)
        cfg = configparser.ConfigParser(interpolation=None)
        cfg[SECTION] = {
            "auth_type": self.auth_type,
            "user": self.user,
            "password": self.password,
            "cookie_path": self.cookie_path,
            "address": self.address,
        }
        with open(path, "w", encoding="utf-8") as f:
            cfg.write(f)
        return path

    def credentials_valid(self) -> bool:
        if not self.address:
            return False
        if self.auth_type == "rpcauth":
            return bool(self.user and self.password)
        return bool(self.cookie_path)

    def auth(self):
        if self.auth_type == "rpcauth":
            return RpcAuth(self.user, self.password)
        return Cookie(os.path.expanduser(self.cookie_path))

    def set_credentials(self) -> SetCredentials:
        return SetCredentials(address=self.address, auth=self.auth())

"""
TOML-based configuration for the Nocostcoin wallet.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from nocostcoin_wallet.config import load_config, build_facade
    cfg = load_config("wallet.toml")
    wallet = build_facade(cfg)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from nocostcoin_wallet.secret_box import CURRENT_VERSION, DEFAULT_KDF_ITERATIONS


@dataclass
class KeystoreConfig:
    """Where and how the encrypted wallet record is stored.

    ``record_version`` selects the format of newly written records:
    ``"2.0"`` (PBKDF2 + AES-GCM) or ``"1.0"`` (the original browser
    wallet's password-as-key format, for storage compatibility).
    """
    backend: str = "sqlite"             # "sqlite" or "memory"
    path: str = "data/wallet.db"
    record_version: str = CURRENT_VERSION
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS


@dataclass
class SessionConfig:
    """Unlock session window and auto-lock polling."""
    duration_seconds: int = 30 * 60
    check_interval_seconds: float = 60.0
    # When True the session (plaintext key) lives in the keystore database
    # and survives a restart; otherwise it is held in memory only.
    persist: bool = False


@dataclass
class NodeConfig:
    """Remote node endpoint."""
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 10.0


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class WalletAppConfig:
    """Top-level configuration container."""
    keystore: KeystoreConfig = field(default_factory=KeystoreConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    node: NodeConfig = field(default_factory=NodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> WalletAppConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        NOCOSTCOIN_KEYSTORE_PATH     -> keystore.path
        NOCOSTCOIN_KEYSTORE_BACKEND  -> keystore.backend
        NOCOSTCOIN_KDF_ITERATIONS    -> keystore.kdf_iterations
        NOCOSTCOIN_SESSION_SECONDS   -> session.duration_seconds
        NOCOSTCOIN_NODE_URL          -> node.base_url
        NOCOSTCOIN_LOG_LEVEL         -> logging.level
        NOCOSTCOIN_LOG_FMT           -> logging.format
    """
    cfg = WalletAppConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("keystore", cfg.keystore),
                ("session", cfg.session),
                ("node", cfg.node),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("NOCOSTCOIN_KEYSTORE_PATH"):
        cfg.keystore.path = v
    if v := os.environ.get("NOCOSTCOIN_KEYSTORE_BACKEND"):
        cfg.keystore.backend = v.lower()
    if v := os.environ.get("NOCOSTCOIN_KDF_ITERATIONS"):
        cfg.keystore.kdf_iterations = int(v)
    if v := os.environ.get("NOCOSTCOIN_SESSION_SECONDS"):
        cfg.session.duration_seconds = int(v)
    if v := os.environ.get("NOCOSTCOIN_NODE_URL"):
        cfg.node.base_url = v
    if v := os.environ.get("NOCOSTCOIN_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("NOCOSTCOIN_LOG_FMT"):
        cfg.logging.format = v

    return cfg


def build_facade(cfg: WalletAppConfig, clock=None):
    """Wire a ``WalletFacade`` from *cfg*."""
    from nocostcoin_wallet.facade import WalletFacade
    from nocostcoin_wallet.kv_store import MemoryStore, SQLiteStore

    if cfg.keystore.backend == "sqlite":
        store = SQLiteStore(cfg.keystore.path)
    elif cfg.keystore.backend == "memory":
        store = MemoryStore()
    else:
        raise ValueError(f"Unknown keystore backend: {cfg.keystore.backend}")

    return WalletFacade(
        store,
        session_store=store if cfg.session.persist else MemoryStore(),
        clock=clock,
        session_duration=cfg.session.duration_seconds,
        record_version=cfg.keystore.record_version,
        kdf_iterations=cfg.keystore.kdf_iterations,
    )


def build_ticker(cfg: WalletAppConfig):
    """Auto-lock ticker polling every ``session.check_interval_seconds``."""
    from nocostcoin_wallet.session import AsyncioTicker

    return AsyncioTicker(cfg.session.check_interval_seconds)

"""
Tests for nocostcoin_wallet.config — TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - TOML parsing and section merging
  - Environment variable overrides (precedence over TOML)
  - _merge helper edge cases
  - Wiring a facade from configuration
"""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from nocostcoin_wallet.config import (
    KeystoreConfig,
    LoggingConfig,
    NodeConfig,
    SessionConfig,
    WalletAppConfig,
    _merge,
    build_facade,
    build_ticker,
    load_config,
)
from nocostcoin_wallet.facade import WalletFacade
from nocostcoin_wallet.kv_store import MemoryStore, SQLiteStore
from nocostcoin_wallet.secret_box import CURRENT_VERSION, DEFAULT_KDF_ITERATIONS

_ENV_KEYS = (
    "NOCOSTCOIN_KEYSTORE_PATH",
    "NOCOSTCOIN_KEYSTORE_BACKEND",
    "NOCOSTCOIN_KDF_ITERATIONS",
    "NOCOSTCOIN_SESSION_SECONDS",
    "NOCOSTCOIN_NODE_URL",
    "NOCOSTCOIN_LOG_LEVEL",
    "NOCOSTCOIN_LOG_FMT",
)


def _clean_env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_keystore_defaults(self):
        k = KeystoreConfig()
        self.assertEqual(k.backend, "sqlite")
        self.assertEqual(k.path, "data/wallet.db")
        self.assertEqual(k.record_version, CURRENT_VERSION)
        self.assertEqual(k.kdf_iterations, DEFAULT_KDF_ITERATIONS)

    def test_session_defaults(self):
        s = SessionConfig()
        self.assertEqual(s.duration_seconds, 1800)
        self.assertEqual(s.check_interval_seconds, 60.0)
        self.assertFalse(s.persist)

    def test_node_defaults(self):
        n = NodeConfig()
        self.assertEqual(n.base_url, "http://localhost:8000")
        self.assertEqual(n.timeout_seconds, 10.0)

    def test_logging_defaults(self):
        log_cfg = LoggingConfig()
        self.assertEqual(log_cfg.level, "INFO")
        self.assertEqual(log_cfg.format, "human")
        self.assertIsNone(log_cfg.file)

    def test_app_config_defaults(self):
        cfg = WalletAppConfig()
        self.assertIsInstance(cfg.keystore, KeystoreConfig)
        self.assertIsInstance(cfg.session, SessionConfig)
        self.assertIsInstance(cfg.node, NodeConfig)
        self.assertIsInstance(cfg.logging, LoggingConfig)


# ═══════════════════════════════════════════════════════════════════
#  _merge helper
# ═══════════════════════════════════════════════════════════════════

class TestMerge(unittest.TestCase):

    def test_merge_updates_fields(self):
        n = NodeConfig()
        _merge(n, {"base_url": "http://node:9000", "timeout_seconds": 3})
        self.assertEqual(n.base_url, "http://node:9000")
        self.assertEqual(n.timeout_seconds, 3)

    def test_merge_ignores_unknown_keys(self):
        n = NodeConfig()
        _merge(n, {"unknown_field": 42})
        self.assertFalse(hasattr(n, "unknown_field"))

    def test_merge_hyphenated_keys(self):
        s = SessionConfig()
        _merge(s, {"duration-seconds": 90})
        self.assertEqual(s.duration_seconds, 90)


# ═══════════════════════════════════════════════════════════════════
#  TOML loading
# ═══════════════════════════════════════════════════════════════════

class TestLoadConfig(unittest.TestCase):

    def _write(self, text: str) -> str:
        f = tempfile.NamedTemporaryFile("w", suffix=".toml", delete=False)
        f.write(textwrap.dedent(text))
        f.close()
        self.addCleanup(os.unlink, f.name)
        return f.name

    @patch.dict(os.environ, _clean_env(), clear=True)
    def test_load_no_file(self):
        cfg = load_config(None)
        self.assertEqual(cfg.node.base_url, "http://localhost:8000")

    @patch.dict(os.environ, _clean_env(), clear=True)
    def test_load_missing_file(self):
        cfg = load_config("/tmp/__nonexistent_wallet_config__.toml")
        self.assertEqual(cfg.keystore.backend, "sqlite")

    @patch.dict(os.environ, _clean_env(), clear=True)
    def test_sections_merged(self):
        path = self._write("""
            [keystore]
            backend = "memory"
            record-version = "1.0"
            kdf_iterations = 5000

            [session]
            duration_seconds = 600
            persist = true

            [node]
            base_url = "http://10.0.0.5:8000"

            [logging]
            level = "DEBUG"
            format = "json"
        """)
        cfg = load_config(path)
        self.assertEqual(cfg.keystore.backend, "memory")
        self.assertEqual(cfg.keystore.record_version, "1.0")
        self.assertEqual(cfg.keystore.kdf_iterations, 5000)
        self.assertEqual(cfg.session.duration_seconds, 600)
        self.assertTrue(cfg.session.persist)
        self.assertEqual(cfg.node.base_url, "http://10.0.0.5:8000")
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.logging.format, "json")

    def test_env_overrides_file(self):
        path = self._write("""
            [node]
            base_url = "http://from-file:8000"
        """)
        env = _clean_env()
        env.update({
            "NOCOSTCOIN_NODE_URL": "http://from-env:8000",
            "NOCOSTCOIN_KEYSTORE_BACKEND": "MEMORY",
            "NOCOSTCOIN_KEYSTORE_PATH": "/tmp/w.db",
            "NOCOSTCOIN_KDF_ITERATIONS": "2000",
            "NOCOSTCOIN_SESSION_SECONDS": "120",
            "NOCOSTCOIN_LOG_LEVEL": "warning",
            "NOCOSTCOIN_LOG_FMT": "json",
        })
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(path)
        self.assertEqual(cfg.node.base_url, "http://from-env:8000")
        self.assertEqual(cfg.keystore.backend, "memory")
        self.assertEqual(cfg.keystore.path, "/tmp/w.db")
        self.assertEqual(cfg.keystore.kdf_iterations, 2000)
        self.assertEqual(cfg.session.duration_seconds, 120)
        self.assertEqual(cfg.logging.level, "WARNING")
        self.assertEqual(cfg.logging.format, "json")


# ═══════════════════════════════════════════════════════════════════
#  build_facade
# ═══════════════════════════════════════════════════════════════════

class TestBuildFacade(unittest.TestCase):

    def test_memory_backend(self):
        cfg = WalletAppConfig()
        cfg.keystore.backend = "memory"
        wallet = build_facade(cfg)
        self.assertIsInstance(wallet, WalletFacade)
        self.assertIsInstance(wallet.keystore.store, MemoryStore)
        self.assertIsNot(wallet.sessions.store, wallet.keystore.store)

    def test_sqlite_backend(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = WalletAppConfig()
            cfg.keystore.path = os.path.join(tmp, "sub", "wallet.db")
            wallet = build_facade(cfg)
            try:
                self.assertIsInstance(wallet.keystore.store, SQLiteStore)
                self.assertTrue(os.path.isfile(cfg.keystore.path))
            finally:
                wallet.keystore.store.close()

    def test_persisted_session_shares_store(self):
        cfg = WalletAppConfig()
        cfg.keystore.backend = "memory"
        cfg.session.persist = True
        wallet = build_facade(cfg)
        self.assertIs(wallet.sessions.store, wallet.keystore.store)

    def test_settings_applied(self):
        cfg = WalletAppConfig()
        cfg.keystore.backend = "memory"
        cfg.keystore.record_version = "1.0"
        cfg.keystore.kdf_iterations = 1234
        cfg.session.duration_seconds = 77
        wallet = build_facade(cfg)
        self.assertEqual(wallet.keystore.record_version, "1.0")
        self.assertEqual(wallet.keystore.kdf_iterations, 1234)
        self.assertEqual(wallet.sessions.duration, 77)

    def test_ticker_interval(self):
        cfg = WalletAppConfig()
        cfg.session.check_interval_seconds = 15
        ticker = build_ticker(cfg)
        self.assertEqual(ticker.interval, 15)
        self.assertFalse(ticker.running)

    def test_unknown_backend(self):
        cfg = WalletAppConfig()
        cfg.keystore.backend = "redis"
        with self.assertRaises(ValueError):
            build_facade(cfg)

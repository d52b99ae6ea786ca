"""
Shared pytest fixtures for the Nocostcoin wallet test suite.
"""

import pytest

from nocostcoin_wallet.facade import WalletFacade
from nocostcoin_wallet.keystore import EncryptedKeyStore
from nocostcoin_wallet.kv_store import MemoryStore
from nocostcoin_wallet.session import ManualClock, SessionManager

# PBKDF2 at the production iteration count makes every unlock slow;
# tests exercise the same code path with a small count.
TEST_KDF_ITERATIONS = 1_000
T0 = 1_700_000_000.0


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def clock():
    """Manual clock parked at T0."""
    return ManualClock(T0)


@pytest.fixture
def sessions(clock):
    """Session manager on its own memory store, driven by the manual clock."""
    return SessionManager(MemoryStore(), clock=clock)


@pytest.fixture
def keystore(store, sessions):
    """Encrypted keystore writing v2.0 records with a cheap KDF."""
    return EncryptedKeyStore(store, sessions=sessions, kdf_iterations=TEST_KDF_ITERATIONS)


@pytest.fixture
def facade(store, clock):
    """Wallet facade with no wallet stored yet."""
    return WalletFacade(store, clock=clock, kdf_iterations=TEST_KDF_ITERATIONS)

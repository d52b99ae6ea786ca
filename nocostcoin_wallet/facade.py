"""
Single entry point for UIs and the network layer.

``WalletFacade`` coordinates key derivation, the encrypted record, the
unlock session, transaction encoding and signing.  Exactly one wallet is
resident; creating or importing another overwrites it.

The wallet's observable state is one of three variants:

  - ``NoWallet``        nothing stored
  - ``LockedWallet``    record stored, no live session
  - ``UnlockedWallet``  record stored, session live, private key available
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Union

from nocostcoin_wallet import mnemonic_keys, password_policy
from nocostcoin_wallet.codec import Transaction, TransactionCodec
from nocostcoin_wallet.errors import (
    NoWalletFound,
    SigningError,
    WalletLocked,
    WeakPassword,
)
from nocostcoin_wallet.keystore import EncryptedKeyStore, StoredWalletRecord
from nocostcoin_wallet.kv_store import KeyValueStore, MemoryStore
from nocostcoin_wallet.mnemonic_keys import KeyPair
from nocostcoin_wallet.session import Clock, SessionManager, Ticker
from nocostcoin_wallet.signing import SigningService

if TYPE_CHECKING:
    from nocostcoin_wallet.node_client import NodeClient

logger = logging.getLogger("nocostcoin_facade")


# ===================================================================
#  Wallet state variants
# ===================================================================

@dataclass(frozen=True)
class NoWallet:
    pass


@dataclass(frozen=True)
class LockedWallet:
    address: str
    public_key: str


@dataclass(frozen=True)
class UnlockedWallet:
    address: str
    public_key: str
    private_key: str = field(repr=False)

    def locked(self) -> LockedWallet:
        return LockedWallet(self.address, self.public_key)


WalletState = Union[NoWallet, LockedWallet, UnlockedWallet]


# ===================================================================
#  Facade
# ===================================================================

class WalletFacade:
    """Create / import / unlock / sign for the one resident wallet."""

    def __init__(
        self,
        store: KeyValueStore,
        session_store: KeyValueStore | None = None,
        clock: Clock | None = None,
        session_duration: float | None = None,
        record_version: str | None = None,
        kdf_iterations: int | None = None,
    ):
        session_kwargs = {}
        if session_duration is not None:
            session_kwargs["duration"] = session_duration
        self.sessions = SessionManager(
            session_store if session_store is not None else MemoryStore(),
            clock=clock,
            **session_kwargs,
        )
        keystore_kwargs = {}
        if record_version is not None:
            keystore_kwargs["record_version"] = record_version
        if kdf_iterations is not None:
            keystore_kwargs["kdf_iterations"] = kdf_iterations
        self.keystore = EncryptedKeyStore(store, sessions=self.sessions, **keystore_kwargs)
        self._ticker: Ticker | None = None
        self._on_lock: Callable[[], None] | None = None
        self._was_unlocked = False

    # ---- state ----

    @property
    def state(self) -> WalletState:
        record = self.keystore.load()
        if record is None:
            return NoWallet()
        secret = self.sessions.get_unlocked_secret()
        if secret is None:
            return LockedWallet(record.address, record.public_key)
        return UnlockedWallet(record.address, record.public_key, secret)

    def has_wallet(self) -> bool:
        return self.keystore.exists()

    @property
    def address(self) -> str | None:
        """Address of the stored wallet; available while locked."""
        record = self.keystore.load()
        return record.address if record else None

    def is_unlocked(self) -> bool:
        return self.keystore.exists() and self.sessions.is_unlocked()

    def _require_record(self) -> StoredWalletRecord:
        record = self.keystore.load()
        if record is None:
            raise NoWalletFound("No wallet found")
        return record

    # ---- lifecycle ----

    def create_wallet(self, password: str) -> tuple[UnlockedWallet, str]:
        """
        Generate a new wallet protected by *password*.

        The password must pass the strength policy.  Any existing wallet is
        overwritten.  Returns the unlocked wallet and its recovery phrase,
        which the user must back up.
        """
        strength = password_policy.score(password)
        if not strength.is_strong:
            raise WeakPassword(strength.feedback)
        mnemonic, keypair = mnemonic_keys.generate()
        wallet = self._store_new(keypair, mnemonic, password)
        logger.info("Wallet created", extra={"address": wallet.address})
        return wallet, mnemonic

    def import_wallet(self, mnemonic: str, password: str) -> UnlockedWallet:
        """Restore a wallet from its recovery phrase, overwriting any existing one."""
        phrase = mnemonic_keys.normalize_mnemonic(mnemonic)
        keypair = mnemonic_keys.derive(phrase)
        wallet = self._store_new(keypair, phrase, password)
        logger.info("Wallet imported", extra={"address": wallet.address})
        return wallet

    def _store_new(self, keypair: KeyPair, mnemonic: str, password: str) -> UnlockedWallet:
        if self.keystore.exists():
            logger.warning("Overwriting the existing wallet record")
        self.sessions.end()
        self.keystore.save(self.keystore.seal(keypair, mnemonic, password))
        self.sessions.start(keypair.private_key)
        self._was_unlocked = True
        return UnlockedWallet(keypair.address, keypair.public_key, keypair.private_key)

    def unlock(self, password: str) -> UnlockedWallet:
        record = self._require_record()
        private_key = self.keystore.open_private_key(record, password)
        self.sessions.start(private_key)
        self._was_unlocked = True
        logger.info("Wallet unlocked", extra={"address": record.address})
        return UnlockedWallet(record.address, record.public_key, private_key)

    def lock(self) -> None:
        self.sessions.end()
        self._was_unlocked = False

    def delete_wallet(self) -> None:
        """Permanently remove the stored wallet and its session."""
        self.keystore.delete()
        self._was_unlocked = False

    def refresh_activity(self) -> bool:
        """Extend the session after user activity."""
        return self.sessions.refresh()

    def change_password(self, old_password: str, new_password: str) -> None:
        """
        Re-encrypt the wallet under *new_password*.

        The old password is checked by decrypting first; on failure
        ``InvalidPassword`` is raised and nothing changes.  The record is
        replaced in a single write and the session restarted.
        """
        record = self._require_record()
        new_record, private_key = self.keystore.reseal(record, old_password, new_password)
        self.keystore.save(new_record)
        self.sessions.start(private_key)
        self._was_unlocked = True
        logger.info("Wallet password changed", extra={"address": record.address})

    # ---- export ----

    def export_mnemonic(self, password: str) -> str:
        record = self._require_record()
        return self.keystore.open_mnemonic(record, password)

    def export_private_key(self) -> str:
        """Hex private key of the unlocked wallet."""
        self._require_record()
        secret = self.sessions.get_unlocked_secret()
        if secret is None:
            raise WalletLocked("Wallet is locked")
        return secret

    def export_record(self) -> str | None:
        """The encrypted record as JSON, for offline backup."""
        record = self.keystore.load()
        return record.to_json() if record else None

    # ---- signing ----

    def build_and_sign_transaction(self, receiver: str | bytes, amount: int,
                                   nonce: int) -> Transaction:
        """Build a native transfer from this wallet and sign it."""
        record = self._require_record()
        secret = self.sessions.get_unlocked_secret()
        if secret is None:
            raise WalletLocked("Wallet is locked or private key unavailable")
        tx = Transaction.create(record.public_key, receiver, nonce, amount)
        digest = TransactionCodec.encode(tx)
        signature = SigningService.sign(digest, secret)
        if not SigningService.verify(digest, signature, record.public_key):
            raise SigningError("Session key does not match the stored public key")
        tx.apply_signature(signature)
        logger.debug(f"Signed transfer nonce={nonce} amount={amount}")
        return tx

    async def send_transfer(self, client: NodeClient, receiver: str | bytes,
                            amount: int) -> dict:
        """
        Fetch a fresh nonce, sign and submit a transfer.

        Node errors propagate unchanged; nothing is retried.
        """
        if not self.sessions.is_unlocked():
            raise WalletLocked("Wallet is locked")
        record = self._require_record()
        account = await client.get_account(record.address)
        tx = self.build_and_sign_transaction(receiver, amount, account.nonce)
        return await client.submit_transaction(tx)

    # ---- auto-lock ----

    def start_auto_lock(self, ticker: Ticker,
                        on_lock: Callable[[], None] | None = None) -> None:
        """Poll the session on every tick; call *on_lock* once when it expires."""
        self.stop_auto_lock()
        self._ticker = ticker
        self._on_lock = on_lock
        self._was_unlocked = self.sessions.is_unlocked()
        ticker.start(self._check_session)

    def stop_auto_lock(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
        self._ticker = None
        self._on_lock = None

    def _check_session(self) -> None:
        unlocked = self.sessions.is_unlocked()
        if self._was_unlocked and not unlocked:
            logger.info("Wallet auto-locked after inactivity")
            if self._on_lock is not None:
                self._on_lock()
        self._was_unlocked = unlocked

"""
Encrypted persistence of the single wallet record.

Exactly one record lives in the key-value store, under ``WALLET_KEY``.
The address and public key are stored in the clear; the private key and
the recovery phrase are encrypted under the user password (see
``secret_box``).  Saving always replaces the previous record outright.

Usage:
    keystore = EncryptedKeyStore(SQLiteStore("data/wallet.db"))
    record = keystore.seal(keypair, mnemonic, password)
    keystore.save(record)
    private_key = keystore.open_private_key(keystore.load(), password)
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nocostcoin_wallet.errors import (
    InvalidPassword,
    MnemonicUnavailable,
    SigningError,
    WalletError,
)
from nocostcoin_wallet.kv_store import KeyValueStore
from nocostcoin_wallet.mnemonic_keys import KeyPair
from nocostcoin_wallet.secret_box import (
    CURRENT_VERSION,
    DEFAULT_KDF_ITERATIONS,
    SUPPORTED_VERSIONS,
    SecretBox,
    new_box,
    open_box,
)
from nocostcoin_wallet.signing import SigningService

if TYPE_CHECKING:
    from nocostcoin_wallet.session import SessionManager

logger = logging.getLogger("nocostcoin_keystore")

WALLET_KEY = "nocostcoin_wallet"


@dataclass
class StoredWalletRecord:
    """The persisted wallet.  Field names are camelCase on disk."""
    version: str
    address: str
    public_key: str
    encrypted_private_key: str
    created_at: int
    encrypted_mnemonic: str | None = None
    kdf: dict | None = None

    def to_dict(self) -> dict:
        d = {
            "version": self.version,
            "address": self.address,
            "publicKey": self.public_key,
            "encryptedPrivateKey": self.encrypted_private_key,
            "createdAt": self.created_at,
        }
        if self.encrypted_mnemonic is not None:
            d["encryptedMnemonic"] = self.encrypted_mnemonic
        if self.kdf is not None:
            d["kdf"] = dict(self.kdf)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> StoredWalletRecord:
        if not isinstance(data, dict):
            raise ValueError("Wallet record must be a JSON object")
        for key in ("address", "publicKey", "encryptedPrivateKey"):
            if not isinstance(data[key], str):
                raise ValueError(f"Wallet record field {key} must be a string")
        return cls(
            version=str(data.get("version", "1.0")),
            address=data["address"],
            public_key=data["publicKey"],
            encrypted_private_key=data["encryptedPrivateKey"],
            created_at=int(data.get("createdAt", 0)),
            encrypted_mnemonic=data.get("encryptedMnemonic"),
            kdf=data.get("kdf"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> StoredWalletRecord:
        return cls.from_dict(json.loads(text))

    def __repr__(self) -> str:
        return f"StoredWalletRecord(version={self.version!r}, address={self.address!r})"


class EncryptedKeyStore:
    """Reads, writes and (de)crypts the single wallet record."""

    def __init__(
        self,
        store: KeyValueStore,
        sessions: SessionManager | None = None,
        record_version: str = CURRENT_VERSION,
        kdf_iterations: int = DEFAULT_KDF_ITERATIONS,
    ):
        if record_version not in SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported wallet record version: {record_version}")
        self.store = store
        self.sessions = sessions
        self.record_version = record_version
        self.kdf_iterations = kdf_iterations

    # ── persistence ──────────────────────────────────────────────

    def save(self, record: StoredWalletRecord) -> None:
        """Replace whatever record is stored with *record*."""
        self.store.set(WALLET_KEY, record.to_json())
        logger.info("Wallet record saved",
                    extra={"address": record.address, "version": record.version})

    def load(self) -> StoredWalletRecord | None:
        raw = self.store.get(WALLET_KEY)
        if raw is None:
            return None
        try:
            return StoredWalletRecord.from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Stored wallet record is corrupted")
            raise WalletError("Stored wallet record is corrupted") from exc

    def exists(self) -> bool:
        return self.store.get(WALLET_KEY) is not None

    def delete(self) -> None:
        """Remove the record and end any live session."""
        self.store.delete(WALLET_KEY)
        if self.sessions is not None:
            self.sessions.end()
        logger.info("Wallet record deleted")

    # ── encryption ───────────────────────────────────────────────

    def seal(self, keypair: KeyPair, mnemonic: str | None, password: str,
             created_at: int | None = None) -> StoredWalletRecord:
        """Encrypt *keypair* (and *mnemonic*) into a new record."""
        box = new_box(self.record_version, password, self.kdf_iterations)
        return StoredWalletRecord(
            version=box.version,
            address=keypair.address,
            public_key=keypair.public_key,
            encrypted_private_key=box.encrypt(keypair.private_key),
            created_at=created_at if created_at is not None else int(time.time() * 1000),
            encrypted_mnemonic=box.encrypt(mnemonic) if mnemonic is not None else None,
            kdf=box.kdf_params(),
        )

    def open_private_key(self, record: StoredWalletRecord, password: str) -> str:
        """
        Decrypt the private key of *record*.

        Empty output, or a key whose public half does not match the
        record, means the password was wrong.
        """
        return self._private_key(record, self._open(record, password))

    def open_mnemonic(self, record: StoredWalletRecord, password: str) -> str:
        """Decrypt the recovery phrase, checking the password against the key first."""
        if not record.encrypted_mnemonic:
            raise MnemonicUnavailable("Mnemonic not available for this wallet")
        _, mnemonic = self.open_secrets(record, password)
        return mnemonic

    def open_secrets(self, record: StoredWalletRecord,
                     password: str) -> tuple[str, str | None]:
        """Private key and (if stored) mnemonic, deriving the key only once."""
        box = self._open(record, password)
        private_key = self._private_key(record, box)
        mnemonic = None
        if record.encrypted_mnemonic:
            mnemonic = box.decrypt(record.encrypted_mnemonic)
            if not mnemonic:
                raise InvalidPassword("Invalid password")
        return private_key, mnemonic

    def reseal(self, record: StoredWalletRecord, old_password: str,
               new_password: str) -> tuple[StoredWalletRecord, str]:
        """
        Re-encrypt *record* under *new_password*.

        Everything is decrypted with *old_password* before anything is
        built, so a wrong password raises without side effects.  Returns
        the new record and the decrypted private key.
        """
        private_key, mnemonic = self.open_secrets(record, old_password)
        keypair = KeyPair(private_key=private_key, public_key=record.public_key.lower())
        new_record = self.seal(keypair, mnemonic, new_password, created_at=record.created_at)
        return new_record, private_key

    @staticmethod
    def _private_key(record: StoredWalletRecord, box: SecretBox) -> str:
        private_key = box.decrypt(record.encrypted_private_key)
        if not private_key:
            raise InvalidPassword("Invalid password")
        try:
            public_key = SigningService.public_key_for(private_key)
        except SigningError as exc:
            raise InvalidPassword("Invalid password") from exc
        if public_key != record.public_key.lower():
            raise InvalidPassword("Invalid password")
        return private_key

    @staticmethod
    def _open(record: StoredWalletRecord, password: str) -> SecretBox:
        try:
            return open_box(record.version, password, record.kdf)
        except (ValueError, KeyError, TypeError) as exc:
            raise WalletError(f"Unreadable wallet record: {exc}") from exc

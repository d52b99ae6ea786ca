"""
Password-based encryption of wallet secrets.

Two record formats are supported:

``"1.0"``  legacy format written by the original browser wallet.  The
           password is used directly as the cipher secret: OpenSSL
           ``EVP_BytesToKey`` (MD5, one round, 8-byte salt) feeds
           AES-256-CBC with PKCS#7 padding.  Output is base64 of
           ``b"Salted__" + salt + ciphertext``.  Kept so existing records
           stay readable.

``"2.0"``  PBKDF2-HMAC-SHA256 with a random 16-byte salt stored in the
           record, then AES-256-GCM with a fresh 12-byte nonce for every
           field.  Output is base64 of ``nonce + ciphertext + tag``.

Decryption never raises on a wrong password: it returns ``""``, which
callers treat as the password-mismatch signal.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

LEGACY_VERSION = "1.0"
CURRENT_VERSION = "2.0"
SUPPORTED_VERSIONS = (LEGACY_VERSION, CURRENT_VERSION)

# v1 (OpenSSL-compatible)
_SALTED_MAGIC = b"Salted__"
_LEGACY_SALT_BYTES = 8
_LEGACY_KEY_BYTES = 32
_LEGACY_IV_BYTES = 16

# v2
KDF_ALGORITHM = "pbkdf2-hmac-sha256"
DEFAULT_KDF_ITERATIONS = 600_000
KDF_SALT_BYTES = 16
AES_KEY_BYTES = 32
GCM_NONCE_BYTES = 12
GCM_TAG_BYTES = 16


def evp_bytes_to_key(password: bytes, salt: bytes,
                     key_len: int = _LEGACY_KEY_BYTES,
                     iv_len: int = _LEGACY_IV_BYTES) -> tuple[bytes, bytes]:
    """OpenSSL's MD5-based ``EVP_BytesToKey`` with a single round."""
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + password + salt).digest()
        derived += block
    return derived[:key_len], derived[key_len:key_len + iv_len]


def derive_key(password: str, salt: bytes, iterations: int = DEFAULT_KDF_ITERATIONS) -> bytes:
    """Derive a 256-bit AES key from *password* and *salt* with PBKDF2."""
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, iterations, dklen=AES_KEY_BYTES,
    )


class SecretBox:
    """Encrypts and decrypts text fields of one wallet record."""

    version: str = ""

    def encrypt(self, plaintext: str) -> str:
        raise NotImplementedError

    def decrypt(self, blob: str) -> str:
        raise NotImplementedError

    def kdf_params(self) -> dict | None:
        """KDF parameters to persist alongside the ciphertexts."""
        return None


class LegacySecretBox(SecretBox):
    """Format ``"1.0"``: password used directly as the AES secret."""

    version = LEGACY_VERSION

    def __init__(self, password: str):
        self._password = password.encode("utf-8")

    def encrypt(self, plaintext: str) -> str:
        salt = os.urandom(_LEGACY_SALT_BYTES)
        key, iv = evp_bytes_to_key(self._password, salt)
        cipher = AES.new(key, AES.MODE_CBC, iv=iv)
        ciphertext = cipher.encrypt(pad(plaintext.encode("utf-8"), AES.block_size))
        return base64.b64encode(_SALTED_MAGIC + salt + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError):
            return ""
        header = len(_SALTED_MAGIC) + _LEGACY_SALT_BYTES
        if not raw.startswith(_SALTED_MAGIC) or len(raw) <= header:
            return ""
        ciphertext = raw[header:]
        if len(ciphertext) % AES.block_size:
            return ""
        key, iv = evp_bytes_to_key(self._password, raw[len(_SALTED_MAGIC):header])
        cipher = AES.new(key, AES.MODE_CBC, iv=iv)
        try:
            return unpad(cipher.decrypt(ciphertext), AES.block_size).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return ""


class AESGCMSecretBox(SecretBox):
    """Format ``"2.0"``: PBKDF2-derived key, AES-256-GCM per field."""

    version = CURRENT_VERSION

    def __init__(self, password: str, salt: bytes | None = None,
                 iterations: int = DEFAULT_KDF_ITERATIONS):
        if iterations < 1:
            raise ValueError("KDF iterations must be positive")
        self.salt = salt if salt is not None else os.urandom(KDF_SALT_BYTES)
        self.iterations = iterations
        self._key = derive_key(password, self.salt, iterations)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(GCM_NONCE_BYTES)
        cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext.encode("utf-8"))
        return base64.b64encode(nonce + ciphertext + tag).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError):
            return ""
        if len(raw) < GCM_NONCE_BYTES + GCM_TAG_BYTES:
            return ""
        nonce = raw[:GCM_NONCE_BYTES]
        ciphertext = raw[GCM_NONCE_BYTES:-GCM_TAG_BYTES]
        tag = raw[-GCM_TAG_BYTES:]
        cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce)
        try:
            return cipher.decrypt_and_verify(ciphertext, tag).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return ""

    def kdf_params(self) -> dict:
        return {
            "algorithm": KDF_ALGORITHM,
            "salt": self.salt.hex(),
            "iterations": self.iterations,
        }


def new_box(version: str, password: str,
            iterations: int = DEFAULT_KDF_ITERATIONS) -> SecretBox:
    """A box for writing a fresh record in *version* format."""
    if version == LEGACY_VERSION:
        return LegacySecretBox(password)
    if version == CURRENT_VERSION:
        return AESGCMSecretBox(password, iterations=iterations)
    raise ValueError(f"Unsupported wallet record version: {version}")


def open_box(version: str, password: str, kdf: dict | None = None) -> SecretBox:
    """A box able to decrypt an existing record written in *version* format."""
    if version == LEGACY_VERSION:
        return LegacySecretBox(password)
    if version == CURRENT_VERSION:
        if not isinstance(kdf, dict) or kdf.get("algorithm") != KDF_ALGORITHM:
            raise ValueError("Wallet record is missing its KDF parameters")
        return AESGCMSecretBox(
            password,
            salt=bytes.fromhex(kdf["salt"]),
            iterations=int(kdf.get("iterations", DEFAULT_KDF_ITERATIONS)),
        )
    raise ValueError(f"Unsupported wallet record version: {version}")

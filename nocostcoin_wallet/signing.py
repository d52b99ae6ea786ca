"""
Ed25519 signing over transaction digests.

Ed25519 signatures are deterministic: signing the same digest with the
same key always yields the same 64 bytes.
"""

from __future__ import annotations

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from nocostcoin_wallet.errors import SigningError

PRIVATE_KEY_BYTES = 32
PUBLIC_KEY_BYTES = 32
SIGNATURE_BYTES = 64


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value)
    raise TypeError(f"expected hex string or bytes, got {type(value).__name__}")


class SigningService:
    """Ed25519 sign / verify.  Keys may be given as hex strings or raw bytes."""

    @staticmethod
    def _signing_key(private_key: str | bytes) -> SigningKey:
        try:
            raw = _as_bytes(private_key)
        except (ValueError, TypeError) as exc:
            raise SigningError(f"Malformed private key: {exc}") from exc
        if len(raw) != PRIVATE_KEY_BYTES:
            raise SigningError(
                f"Private key must be {PRIVATE_KEY_BYTES} bytes, got {len(raw)}"
            )
        return SigningKey(raw)

    @classmethod
    def public_key_for(cls, private_key: str | bytes) -> str:
        """Hex public key matching *private_key*."""
        return bytes(cls._signing_key(private_key).verify_key).hex()

    @classmethod
    def sign(cls, digest: bytes, private_key: str | bytes) -> bytes:
        """Sign *digest*; returns the 64-byte signature."""
        sk = cls._signing_key(private_key)
        return bytes(sk.sign(bytes(digest)).signature)

    @staticmethod
    def verify(digest: bytes, signature: bytes, public_key: str | bytes) -> bool:
        """True only for a valid signature; malformed input yields False."""
        try:
            sig = _as_bytes(signature)
            pub = _as_bytes(public_key)
            if len(sig) != SIGNATURE_BYTES or len(pub) != PUBLIC_KEY_BYTES:
                return False
            VerifyKey(pub).verify(bytes(digest), sig)
            return True
        except (CryptoError, ValueError, TypeError):
            return False

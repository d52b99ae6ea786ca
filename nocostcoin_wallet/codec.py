"""
Canonical transaction encoding for Nocostcoin.

The node verifies a transaction by rebuilding this exact byte layout and
hashing it, so every byte here is wire-critical::

    sender     32 bytes   Ed25519 public key
    receiver   32 bytes   Ed25519 public key
    nonce       8 bytes   u64 little-endian
    tag        ASCII      b"NativeTransfer" (no length prefix)
    amount      8 bytes   u64 little-endian

The signing digest is SHA-256 of that payload.  Tags are not
length-prefixed, so the tag vocabulary is fixed and shared with the node;
a new transaction kind needs its own distinct tag at the same position.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass

from nocostcoin_wallet.errors import InvalidFieldLength

KEY_BYTES = 32
SIGNATURE_BYTES = 64
U64_MAX = 2**64 - 1

NATIVE_TRANSFER = "NativeTransfer"
TRANSACTION_TAGS: dict[str, bytes] = {
    NATIVE_TRANSFER: NATIVE_TRANSFER.encode("ascii"),
}


def _fixed_bytes(name: str, value: str | bytes, size: int) -> bytes:
    if isinstance(value, str):
        try:
            value = bytes.fromhex(value)
        except ValueError as exc:
            raise InvalidFieldLength(f"{name} is not valid hex") from exc
    elif isinstance(value, (bytes, bytearray)):
        value = bytes(value)
    else:
        raise InvalidFieldLength(f"{name} must be hex or bytes")
    if len(value) != size:
        raise InvalidFieldLength(f"{name} must be {size} bytes, got {len(value)}")
    return value


def _u64(name: str, value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldLength(f"{name} must be an integer")
    if not 0 <= value <= U64_MAX:
        raise InvalidFieldLength(f"{name} out of u64 range: {value}")
    return struct.pack("<Q", value)


@dataclass
class Transaction:
    """A native transfer.  ``signature`` is empty until signed."""
    sender: bytes
    receiver: bytes
    nonce: int
    amount: int
    signature: bytes = b""
    kind: str = NATIVE_TRANSFER

    @classmethod
    def create(cls, sender: str | bytes, receiver: str | bytes,
               nonce: int, amount: int) -> Transaction:
        """Build a validated, unsigned native transfer."""
        tx = cls(
            sender=_fixed_bytes("sender", sender, KEY_BYTES),
            receiver=_fixed_bytes("receiver", receiver, KEY_BYTES),
            nonce=nonce,
            amount=amount,
        )
        _u64("nonce", nonce)
        _u64("amount", amount)
        return tx

    @property
    def is_signed(self) -> bool:
        return len(self.signature) == SIGNATURE_BYTES

    def apply_signature(self, signature: bytes) -> None:
        self.signature = _fixed_bytes("signature", signature, SIGNATURE_BYTES)

    def to_dict(self) -> dict:
        """Hex form, as shown to users and posted by browser clients."""
        return {
            "sender": self.sender.hex(),
            "receiver": self.receiver.hex(),
            "nonce": self.nonce,
            "amount": self.amount,
            "signature": self.signature.hex(),
        }

    def to_submission(self) -> dict:
        """Node wire form: byte fields become arrays of integers."""
        if not self.is_signed:
            raise InvalidFieldLength("Transaction is not signed")
        return {
            "sender": list(self.sender),
            "receiver": list(self.receiver),
            "nonce": self.nonce,
            "data": {self.kind: {"amount": self.amount}},
            "signature": list(self.signature),
        }


class TransactionCodec:
    """Builds the canonical signing payload and its SHA-256 digest."""

    @staticmethod
    def signing_payload(tx: Transaction) -> bytes:
        tag = TRANSACTION_TAGS.get(tx.kind)
        if tag is None:
            raise ValueError(f"Unknown transaction kind: {tx.kind}")
        return b"".join((
            _fixed_bytes("sender", tx.sender, KEY_BYTES),
            _fixed_bytes("receiver", tx.receiver, KEY_BYTES),
            _u64("nonce", tx.nonce),
            tag,
            _u64("amount", tx.amount),
        ))

    @classmethod
    def encode(cls, tx: Transaction) -> bytes:
        """SHA-256 digest that gets signed."""
        return hashlib.sha256(cls.signing_payload(tx)).digest()

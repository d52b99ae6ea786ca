"""
Recovery-phrase key derivation for Nocostcoin.

A wallet identity is fully determined by its BIP-39 phrase:

  - the phrase is turned into the standard 64-byte BIP-39 seed
    (PBKDF2-HMAC-SHA512, 2048 rounds, empty passphrase)
  - the first 32 bytes of that seed are the Ed25519 signing seed
  - the address is the hex encoding of the 32-byte Ed25519 public key

No extra salt or passphrase is ever mixed in, so the same phrase always
regenerates the same keypair on any implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mnemonic import Mnemonic
from nacl.signing import SigningKey

from nocostcoin_wallet.errors import InvalidMnemonic

ED25519_SEED_BYTES = 32
VALID_STRENGTHS = (128, 160, 192, 224, 256)

_MNEMO = Mnemonic("english")


@dataclass(frozen=True)
class KeyPair:
    """Ed25519 keypair, hex encoded."""
    private_key: str = field(repr=False)
    public_key: str

    @property
    def address(self) -> str:
        return self.public_key

    @classmethod
    def from_seed(cls, seed: bytes) -> KeyPair:
        """Build a keypair from a 32-byte Ed25519 signing seed."""
        sk = SigningKey(seed)
        return cls(private_key=bytes(sk).hex(), public_key=bytes(sk.verify_key).hex())


def normalize_mnemonic(mnemonic: str) -> str:
    """Trim the phrase and collapse runs of whitespace to single spaces."""
    return " ".join(mnemonic.split())


def validate_mnemonic(mnemonic: str) -> bool:
    """True when *mnemonic* is a word-list and checksum consistent phrase."""
    if not isinstance(mnemonic, str):
        return False
    return _MNEMO.check(normalize_mnemonic(mnemonic))


def mnemonic_to_seed(mnemonic: str) -> bytes:
    """Standard 64-byte BIP-39 seed (empty passphrase)."""
    return Mnemonic.to_seed(normalize_mnemonic(mnemonic), passphrase="")


def derive(mnemonic: str) -> KeyPair:
    """
    Derive the wallet keypair from a recovery phrase.

    Raises InvalidMnemonic when the phrase does not parse.
    """
    if not validate_mnemonic(mnemonic):
        raise InvalidMnemonic("Invalid mnemonic: unknown words or bad checksum")
    seed = mnemonic_to_seed(mnemonic)
    return KeyPair.from_seed(seed[:ED25519_SEED_BYTES])


def generate(strength: int = 128) -> tuple[str, KeyPair]:
    """Generate a fresh phrase (12 words by default) and its keypair."""
    if strength not in VALID_STRENGTHS:
        raise ValueError("Strength must be 128/160/192/224/256")
    phrase = _MNEMO.generate(strength=strength)
    return phrase, derive(phrase)

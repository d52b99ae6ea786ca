"""
Exception taxonomy for the Nocostcoin wallet.

Every error raised by the wallet derives from :class:`WalletError` so
callers can catch the whole family at once.  Errors caused by malformed
caller input additionally derive from :class:`ValueError`.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for all wallet errors."""


class InvalidMnemonic(WalletError, ValueError):
    """The recovery phrase is not a valid, checksum-consistent BIP-39 phrase."""


class InvalidPassword(WalletError):
    """Decryption with the supplied password failed."""


class NoWalletFound(WalletError):
    """The operation needs a stored wallet record and none exists."""


class WalletLocked(WalletError):
    """The operation needs a live session and the wallet is locked."""


class MnemonicUnavailable(WalletError):
    """The stored record predates mnemonic storage."""


class WeakPassword(WalletError, ValueError):
    """The password does not satisfy the creation policy."""

    def __init__(self, feedback: list[str]):
        self.feedback = list(feedback)
        super().__init__("Password is too weak: " + "; ".join(self.feedback))


class InvalidFieldLength(WalletError, ValueError):
    """A fixed-width transaction field has the wrong size or range."""


class SigningError(WalletError, ValueError):
    """The private key handed to the signer is malformed."""

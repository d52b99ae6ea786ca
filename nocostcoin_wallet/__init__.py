"""
Nocostcoin Wallet - non-custodial key management and transaction signing.

Key features:
- BIP-39 recovery phrases mapped deterministically to Ed25519 keys
- Password-encrypted storage of a single wallet record
- Time-bounded unlock sessions with lazy auto-lock
- Byte-exact NativeTransfer signing payloads for the Nocostcoin node
"""

__version__ = "1.0.0"
__all__ = [
    "codec",
    "config",
    "errors",
    "facade",
    "keystore",
    "kv_store",
    "logging_config",
    "mnemonic_keys",
    "node_client",
    "password_policy",
    "secret_box",
    "session",
    "signing",
]

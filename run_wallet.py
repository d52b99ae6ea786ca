#!/usr/bin/env python3
"""
Nocostcoin Wallet CLI — manage the local wallet and send transfers.

Usage:
    python run_wallet.py create
    python run_wallet.py import
    python run_wallet.py show
    python run_wallet.py export-mnemonic
    python run_wallet.py change-password
    python run_wallet.py delete --yes
    python run_wallet.py strength
    python run_wallet.py balance [ADDRESS]
    python run_wallet.py send RECEIVER AMOUNT

Every command accepts ``--config wallet.toml``.  Environment variables
(NOCOSTCOIN_KEYSTORE_PATH, NOCOSTCOIN_NODE_URL, ...) override the file.
Passwords are always read from the terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys

from nocostcoin_wallet import password_policy
from nocostcoin_wallet.config import build_facade, load_config
from nocostcoin_wallet.errors import WalletError
from nocostcoin_wallet.facade import LockedWallet, NoWallet, WalletFacade
from nocostcoin_wallet.logging_config import setup_from_config
from nocostcoin_wallet.node_client import NodeClient

logger = logging.getLogger("nocostcoin_cli")


def _read_new_password(prompt: str = "New password: ") -> str:
    password = getpass.getpass(prompt)
    if getpass.getpass("Repeat password: ") != password:
        raise WalletError("Passwords do not match")
    return password


# ===================================================================
#  Commands
# ===================================================================

def cmd_create(wallet: WalletFacade, args, cfg) -> int:
    if wallet.has_wallet() and not args.yes:
        print("A wallet already exists; creating a new one overwrites it. "
              "Re-run with --yes once its recovery phrase is backed up.")
        return 1
    password = _read_new_password()
    strength = password_policy.score(password)
    if not strength.is_strong:
        print(f"Password strength: {strength.label}")
        for line in strength.feedback:
            print(f"  - {line}")
    created, mnemonic = wallet.create_wallet(password)
    print(f"Address: {created.address}")
    print("Recovery phrase (write it down, it is shown only once):")
    print(f"  {mnemonic}")
    return 0


def cmd_import(wallet: WalletFacade, args, cfg) -> int:
    if wallet.has_wallet() and not args.yes:
        print("A wallet already exists; importing overwrites it. Re-run with --yes.")
        return 1
    mnemonic = getpass.getpass("Recovery phrase: ")
    password = _read_new_password()
    imported = wallet.import_wallet(mnemonic, password)
    print(f"Address: {imported.address}")
    return 0


def cmd_show(wallet: WalletFacade, args, cfg) -> int:
    state = wallet.state
    if isinstance(state, NoWallet):
        print("No wallet found")
        return 1
    status = "locked" if isinstance(state, LockedWallet) else "unlocked"
    print(f"Address:    {state.address}")
    print(f"Public key: {state.public_key}")
    print(f"Status:     {status}")
    return 0


def cmd_export_mnemonic(wallet: WalletFacade, args, cfg) -> int:
    password = getpass.getpass("Password: ")
    print(wallet.export_mnemonic(password))
    return 0


def cmd_change_password(wallet: WalletFacade, args, cfg) -> int:
    old = getpass.getpass("Current password: ")
    new = _read_new_password()
    wallet.change_password(old, new)
    print("Password changed")
    return 0


def cmd_delete(wallet: WalletFacade, args, cfg) -> int:
    if not args.yes:
        print("This permanently removes the wallet. Re-run with --yes to confirm.")
        return 1
    wallet.delete_wallet()
    print("Wallet deleted")
    return 0


def cmd_strength(wallet: WalletFacade, args, cfg) -> int:
    result = password_policy.score(getpass.getpass("Password to check: "))
    print(f"Score: {result.score}/4 ({result.label})")
    for line in result.feedback:
        print(f"  - {line}")
    return 0 if result.is_strong else 1


async def _balance(cfg, address: str):
    async with NodeClient(cfg.node.base_url, cfg.node.timeout_seconds) as client:
        return await client.get_account(address)


def cmd_balance(wallet: WalletFacade, args, cfg) -> int:
    address = args.address or wallet.address
    if not address:
        print("No wallet found; pass an address")
        return 1
    info = asyncio.run(_balance(cfg, address))
    print(f"Balance: {info.balance}")
    print(f"Nonce:   {info.nonce}")
    return 0


async def _send(wallet: WalletFacade, cfg, receiver: str, amount: int) -> dict:
    async with NodeClient(cfg.node.base_url, cfg.node.timeout_seconds) as client:
        return await wallet.send_transfer(client, receiver, amount)


def cmd_send(wallet: WalletFacade, args, cfg) -> int:
    if not wallet.is_unlocked():
        wallet.unlock(getpass.getpass("Password: "))
    try:
        result = asyncio.run(_send(wallet, cfg, args.receiver, args.amount))
    finally:
        wallet.lock()
    print(f"Submitted: {result}")
    return 0


COMMANDS = {
    "create": cmd_create,
    "import": cmd_import,
    "show": cmd_show,
    "export-mnemonic": cmd_export_mnemonic,
    "change-password": cmd_change_password,
    "delete": cmd_delete,
    "strength": cmd_strength,
    "balance": cmd_balance,
    "send": cmd_send,
}


# ===================================================================
#  Main entry point
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Nocostcoin Wallet")
    p.add_argument("--config", default=None, help="Path to wallet.toml config file")
    sub = p.add_subparsers(dest="command", required=True)

    for name in ("create", "import"):
        sp = sub.add_parser(name, help=f"{name} a wallet (overwrites any existing one)")
        sp.add_argument("--yes", action="store_true", help="Overwrite an existing wallet")
    sub.add_parser("show", help="Show address and lock status")
    sub.add_parser("export-mnemonic", help="Print the recovery phrase")
    sub.add_parser("change-password", help="Re-encrypt under a new password")
    sp = sub.add_parser("delete", help="Permanently delete the wallet")
    sp.add_argument("--yes", action="store_true", help="Confirm deletion")
    sub.add_parser("strength", help="Score a password")
    sp = sub.add_parser("balance", help="Query balance and nonce")
    sp.add_argument("address", nargs="?", default=None)
    sp = sub.add_parser("send", help="Sign and submit a transfer")
    sp.add_argument("receiver", help="Receiver address (64 hex chars)")
    sp.add_argument("amount", type=int, help="Amount in base units")
    return p


def run(argv: list[str] | None = None, wallet: WalletFacade | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    setup_from_config(cfg.logging)
    if wallet is None:
        wallet = build_facade(cfg)
    try:
        return COMMANDS[args.command](wallet, args, cfg)
    except WalletError as e:
        logger.debug(f"{args.command} failed: {type(e).__name__}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        wallet.keystore.store.close()


def main() -> None:
    """Entry point for console_scripts."""
    try:
        raise SystemExit(run())
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    main()

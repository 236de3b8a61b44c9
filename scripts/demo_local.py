#!/usr/bin/env python3
"""Demo: 2-of-3 multisig approving and executing actions on an in-memory chain.

Usage:
    python scripts/demo_local.py
"""

from __future__ import annotations

import logging

from multisig import (
    Action,
    Chain,
    Identity,
    InvalidNonce,
    MultisigWallet,
    SignerRegistry,
)

WALLET = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TARGET = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"
DEPOSITOR = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

ONE_ETHER = 10**18


def counter(ctx, data: bytes) -> bytes:
    count = ctx.sload("count", 0) + 1
    ctx.sstore("count", count)
    return count.to_bytes(32, "big")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")

    chain = Chain()
    chain.deploy(TARGET, counter)
    chain.fund(DEPOSITOR, 5 * ONE_ETHER)

    signers = [Identity.generate() for _ in range(3)]
    registry = SignerRegistry([s.address for s in signers], quorum=2)
    wallet = MultisigWallet(chain, WALLET, registry)

    print(f"Wallet           = {wallet.address}")
    for i, s in enumerate(signers):
        print(f"Signer {i}         = {s.address}")
    print(f"Quorum           = {wallet.quorum}")
    print()

    # 1) direct call forwarding value
    print("--- direct call ---")
    action = Action(target=TARGET, data=b"inc", value=ONE_ETHER)
    sigs = [s.sign_authorization(action, n, WALLET) for n, s in enumerate(signers[:2], 1)]
    result = wallet.verify_and_execute(action, sigs, value=ONE_ETHER, sender=DEPOSITOR)
    print(f"  result: 0x{bytes(result).hex()}")
    print(f"  target balance: {chain.balance_of(TARGET)}")
    print()

    # 2) replay is rejected
    print("--- replay ---")
    try:
        wallet.verify_and_execute(action, sigs, value=ONE_ETHER, sender=DEPOSITOR)
    except InvalidNonce as e:
        print(f"  rejected: {e}")
    print()

    # 3) delegated call runs counter against the wallet's own storage
    print("--- delegated call ---")
    action = Action(target=TARGET, data=b"inc", delegate=True)
    sigs = [s.sign_authorization(action, n, WALLET) for n, s in enumerate(signers[1:], 3)]
    wallet.verify_and_execute(action, sigs)
    print(f"  wallet count: {chain.sload(WALLET, 'count')}")
    print(f"  target count: {chain.sload(TARGET, 'count')}")


if __name__ == "__main__":
    main()

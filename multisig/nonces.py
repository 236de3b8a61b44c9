"""Append-only set of consumed replay nonces."""

from __future__ import annotations

from .errors import NonceAlreadyConsumed


class NonceLedger:
    """Global nonce namespace shared by every signer of a wallet.

    Nonces only ever enter the ledger. ``snapshot``/``restore`` exist so an
    enclosing unit of work can discard consumption that never committed.
    """

    def __init__(self, used=()):
        self._used: set[int] = set(used)

    def is_used(self, nonce: int) -> bool:
        return nonce in self._used

    def consume(self, nonce: int) -> None:
        """Mark *nonce* used.

        Raises:
            NonceAlreadyConsumed: If *nonce* was consumed before. Callers
                must check ``is_used`` first.
        """
        if nonce in self._used:
            raise NonceAlreadyConsumed(f"Nonce already consumed: {nonce}")
        self._used.add(nonce)

    def snapshot(self) -> frozenset[int]:
        return frozenset(self._used)

    def restore(self, snap: frozenset[int]) -> None:
        self._used = set(snap)

    def __contains__(self, nonce: int) -> bool:
        return self.is_used(nonce)

    def __len__(self) -> int:
        return len(self._used)

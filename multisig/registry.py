"""Authorized signer set and quorum threshold."""

from __future__ import annotations

from typing import Iterable

from eth_utils import is_address, to_checksum_address

from .errors import RegistryError


class SignerRegistry:
    """Immutable set of signer addresses plus the number required to act."""

    def __init__(self, signers: Iterable[str], quorum: int):
        normalized = set()
        for signer in signers:
            if not isinstance(signer, str) or not is_address(signer):
                raise RegistryError(f"Invalid signer address: {signer!r}")
            normalized.add(to_checksum_address(signer))
        if not normalized:
            raise RegistryError("At least one signer is required")
        if isinstance(quorum, bool) or not isinstance(quorum, int):
            raise RegistryError("quorum must be an integer")
        if quorum < 1:
            raise RegistryError(f"quorum must be at least 1, got {quorum}")
        if quorum > len(normalized):
            raise RegistryError(
                f"quorum {quorum} exceeds signer count {len(normalized)}"
            )
        self._signers = frozenset(normalized)
        self._quorum = quorum

    @property
    def signers(self) -> frozenset[str]:
        return self._signers

    @property
    def quorum(self) -> int:
        return self._quorum

    def is_authorized(self, identity: str) -> bool:
        if not isinstance(identity, str) or not is_address(identity):
            return False
        return to_checksum_address(identity) in self._signers

    def __len__(self) -> int:
        return len(self._signers)

    def __repr__(self) -> str:
        return f"SignerRegistry(signers={len(self._signers)}, quorum={self._quorum})"

"""Tests for the signer registry and nonce ledger."""

import pytest

from multisig.errors import NonceAlreadyConsumed, RegistryError
from multisig.nonces import NonceLedger
from multisig.registry import SignerRegistry

A = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
B = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
C = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


class TestSignerRegistry:
    def test_authorized_members(self):
        reg = SignerRegistry([A, B, C], quorum=2)
        assert reg.is_authorized(A)
        assert reg.is_authorized(C)
        assert reg.quorum == 2
        assert len(reg) == 3

    def test_lowercase_input_normalized(self):
        reg = SignerRegistry([A.lower()], quorum=1)
        assert A in reg.signers
        assert reg.is_authorized(A)
        assert reg.is_authorized(A.lower())

    def test_duplicates_collapse(self):
        reg = SignerRegistry([A, A.lower(), B], quorum=2)
        assert reg.signers == frozenset({A, B})

    def test_non_member_not_authorized(self):
        reg = SignerRegistry([A, B], quorum=1)
        assert not reg.is_authorized(C)

    def test_garbage_identity_not_authorized(self):
        reg = SignerRegistry([A], quorum=1)
        assert not reg.is_authorized("not-an-address")
        assert not reg.is_authorized(None)

    def test_empty_signers_rejected(self):
        with pytest.raises(RegistryError, match="At least one signer"):
            SignerRegistry([], quorum=1)

    def test_zero_quorum_rejected(self):
        with pytest.raises(RegistryError, match="at least 1"):
            SignerRegistry([A, B], quorum=0)

    def test_quorum_above_signer_count_rejected(self):
        with pytest.raises(RegistryError, match="exceeds signer count"):
            SignerRegistry([A, B], quorum=3)

    def test_quorum_counts_unique_signers(self):
        with pytest.raises(RegistryError, match="exceeds signer count"):
            SignerRegistry([A, A], quorum=2)

    def test_invalid_address_rejected(self):
        with pytest.raises(RegistryError, match="Invalid signer address"):
            SignerRegistry([A, "0x1234"], quorum=1)


class TestNonceLedger:
    def test_fresh_nonce_unused(self):
        ledger = NonceLedger()
        assert not ledger.is_used(1)
        assert len(ledger) == 0

    def test_consume_marks_used(self):
        ledger = NonceLedger()
        ledger.consume(1)
        assert ledger.is_used(1)
        assert 1 in ledger
        assert not ledger.is_used(2)

    def test_double_consume_is_contract_violation(self):
        ledger = NonceLedger()
        ledger.consume(42)
        with pytest.raises(NonceAlreadyConsumed, match="42"):
            ledger.consume(42)
        assert len(ledger) == 1

    def test_restore_discards_later_consumption(self):
        ledger = NonceLedger([1])
        snap = ledger.snapshot()
        ledger.consume(2)
        ledger.restore(snap)
        assert ledger.is_used(1)
        assert not ledger.is_used(2)

    def test_snapshot_is_independent_of_ledger(self):
        ledger = NonceLedger()
        snap = ledger.snapshot()
        ledger.consume(9)
        assert 9 not in snap

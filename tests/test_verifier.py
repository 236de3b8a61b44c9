"""Tests for authorization hashing and canonical signer recovery."""

import pytest
from eth_utils import keccak
from web3 import Web3

from multisig.errors import SignatureError
from multisig.identity import Identity
from multisig.types import Action
from multisig.verifier import (
    SECP256K1_N,
    authorization_hash,
    encode_authorization,
    recover_signer,
    split_signature,
)

WALLET = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OTHER_WALLET = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
TARGET = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def _high_s(sig: bytes) -> bytes:
    """Return the malleable twin of a canonical signature."""
    s = int.from_bytes(sig[32:64], "big")
    v = 55 - sig[64]
    return sig[:32] + (SECP256K1_N - s).to_bytes(32, "big") + bytes([v])


class TestAuthorizationHash:
    def test_matches_solidity_packed_keccak(self):
        action = Action(target=TARGET, data=b"\xde\xad\xbe\xef", value=3, delegate=True)
        expected = Web3.solidity_keccak(
            ["address", "bytes", "uint256", "bool", "uint256", "address"],
            [TARGET, b"\xde\xad\xbe\xef", 3, True, 11, WALLET],
        )
        assert authorization_hash(action, 11, WALLET) == bytes(expected)

    def test_packed_layout(self):
        action = Action(target=TARGET, data=b"\xff", value=1)
        packed = encode_authorization(action, 2, WALLET)
        # 20 target + 1 data + 32 value + 1 delegate + 32 nonce + 20 context
        assert len(packed) == 106
        assert packed[21:53] == (1).to_bytes(32, "big")
        assert packed[53] == 0
        assert keccak(packed) == authorization_hash(action, 2, WALLET)

    def test_every_field_is_bound(self):
        base = Action(target=TARGET, data=b"\x01", value=1, delegate=False)
        h = authorization_hash(base, 1, WALLET)
        assert h != authorization_hash(Action(TARGET, b"\x02", 1, False), 1, WALLET)
        assert h != authorization_hash(Action(TARGET, b"\x01", 2, False), 1, WALLET)
        assert h != authorization_hash(Action(TARGET, b"\x01", 1, True), 1, WALLET)
        assert h != authorization_hash(Action(WALLET, b"\x01", 1, False), 1, WALLET)
        assert h != authorization_hash(base, 2, WALLET)
        assert h != authorization_hash(base, 1, OTHER_WALLET)

    def test_invalid_context_rejected(self):
        with pytest.raises(SignatureError, match="verification context"):
            authorization_hash(Action(target=TARGET), 1, "wallet")

    @pytest.mark.parametrize("nonce", [-1, 2**256, 1.5, True])
    def test_nonce_outside_uint256_rejected(self, nonce):
        with pytest.raises(SignatureError, match="nonce"):
            authorization_hash(Action(target=TARGET), nonce, WALLET)


class TestSplitSignature:
    def test_wrong_length_rejected(self):
        with pytest.raises(SignatureError, match="65 bytes"):
            split_signature(b"\x01" * 64)

    def test_bad_v_rejected(self):
        sig = Identity.generate().sign_hash(b"\x22" * 32)
        with pytest.raises(SignatureError, match="'v'"):
            split_signature(sig[:64] + b"\x01")

    def test_zero_r_rejected(self):
        sig = Identity.generate().sign_hash(b"\x22" * 32)
        with pytest.raises(SignatureError, match="'r'"):
            split_signature(b"\x00" * 32 + sig[32:])

    def test_high_s_rejected(self):
        sig = Identity.generate().sign_hash(b"\x22" * 32)
        with pytest.raises(SignatureError, match="'s'"):
            split_signature(_high_s(sig))

    def test_non_bytes_rejected(self):
        with pytest.raises(SignatureError, match="must be bytes"):
            split_signature("0x" + "11" * 65)


class TestRecoverSigner:
    def test_recovers_signer(self):
        ident = Identity.generate()
        action = Action(target=TARGET, data=b"call", value=0)
        sig = ident.sign_authorization(action, 5, WALLET)
        assert recover_signer(action, 5, WALLET, sig.data) == ident.address

    def test_tampered_action_recovers_someone_else(self):
        ident = Identity.generate()
        action = Action(target=TARGET, data=b"call", value=0)
        sig = ident.sign_authorization(action, 5, WALLET)
        tampered = Action(target=TARGET, data=b"call", value=1)
        assert recover_signer(tampered, 5, WALLET, sig.data) != ident.address

    def test_other_wallet_context_recovers_someone_else(self):
        ident = Identity.generate()
        action = Action(target=TARGET)
        sig = ident.sign_authorization(action, 5, WALLET)
        assert recover_signer(action, 5, OTHER_WALLET, sig.data) != ident.address

    def test_malleable_twin_rejected(self):
        ident = Identity.generate()
        action = Action(target=TARGET)
        sig = ident.sign_authorization(action, 5, WALLET)
        with pytest.raises(SignatureError):
            recover_signer(action, 5, WALLET, _high_s(sig.data))

    def test_truncated_signature_rejected(self):
        ident = Identity.generate()
        action = Action(target=TARGET)
        sig = ident.sign_authorization(action, 5, WALLET)
        with pytest.raises(SignatureError, match="65 bytes"):
            recover_signer(action, 5, WALLET, sig.data[:-1])

"""Authorization hashing and ECDSA signer recovery.

An authorization is bound to the action, a per-signature nonce and the
address of the verifying wallet:

    keccak256(abi.encodePacked(target, data, value, delegate, nonce, context))

The hash is signed as an EIP-191 personal message, matching what
ECDSAMultisigWallet recovers on chain. Only canonical signatures are
accepted: 65 bytes, ``v`` in {27, 28} and a low ``s`` value.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, keccak, to_canonical_address

from .errors import SignatureError
from .types import UINT256_MAX, Action

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2
SIGNATURE_LENGTH = 65


def encode_authorization(action: Action, nonce: int, context: str) -> bytes:
    """Return the packed preimage of an authorization."""
    if not isinstance(context, str) or not is_address(context):
        raise SignatureError(f"Invalid verification context: {context!r}")
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        raise SignatureError("nonce must be an integer")
    if nonce < 0 or nonce > UINT256_MAX:
        raise SignatureError(f"nonce out of uint256 range: {nonce}")
    return b"".join(
        (
            to_canonical_address(action.target),
            action.data,
            action.value.to_bytes(32, "big"),
            b"\x01" if action.delegate else b"\x00",
            nonce.to_bytes(32, "big"),
            to_canonical_address(context),
        )
    )


def authorization_hash(action: Action, nonce: int, context: str) -> bytes:
    """Return the 32-byte keccak-256 digest signers approve."""
    return keccak(encode_authorization(action, nonce, context))


def split_signature(signature: bytes) -> tuple[int, int, int]:
    """Split a 65-byte ``r || s || v`` signature, enforcing canonical form.

    Raises:
        SignatureError: On wrong length, bad ``v`` or out-of-range ``r``/``s``.
    """
    if not isinstance(signature, (bytes, bytearray)):
        raise SignatureError("signature must be bytes")
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureError(
            f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v not in (27, 28):
        raise SignatureError(f"Invalid signature 'v' value: {v}")
    if not 0 < r < SECP256K1_N:
        raise SignatureError("Invalid signature 'r' value")
    if not 0 < s <= SECP256K1_HALF_N:
        raise SignatureError("Invalid signature 's' value")
    return r, s, v


def recover_signer(
    action: Action, nonce: int, context: str, signature: bytes
) -> str:
    """Recover the checksum address that signed an authorization.

    Raises:
        SignatureError: If the signature is malformed or recovery fails.
    """
    split_signature(signature)
    digest = authorization_hash(action, nonce, context)
    try:
        return Account.recover_message(
            encode_defunct(primitive=digest), signature=bytes(signature)
        )
    except Exception as e:
        raise SignatureError(f"Signer recovery failed: {e}") from e

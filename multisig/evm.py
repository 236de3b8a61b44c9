"""Client for a deployed ECDSAMultisigWallet contract.

Talks to the wallet over JSON-RPC via web3.py. Authorizations signed here
use the deployed wallet address as verification context, so the same
signatures verify both on chain and against a local ``MultisigWallet``
at that address.

Environment variables (all overridable via constructor args):
    MSW_EVM_RPC_URL       – JSON-RPC endpoint  (default http://localhost:8545)
    MSW_EVM_PRIVATE_KEY   – hex-encoded key of the submitting account
    MSW_WALLET_ADDRESS    – deployed ECDSAMultisigWallet address
    MSW_EVM_CHAIN_ID      – chain id (default 31337 for Anvil)
    MSW_TX_TIMEOUT        – tx wait timeout in seconds (default 30)
    MSW_TX_POLL           – poll latency in seconds (default 2)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable

from eth_abi import decode as abi_decode
from eth_account import Account
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from .errors import (
    InvalidNonce,
    MessageValueMismatch,
    MultisigError,
    QuorumNotReached,
    RecoveredSignerNotAuthorized,
    SignatureError,
    SignerAlreadySigned,
    WalletRevert,
    WalletTimeout,
)
from .identity import Identity
from .types import Action, Signature

_LOG = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ABI loading
# ---------------------------------------------------------------------------
_ABI_PATH = Path(__file__).parent / "abi" / "ECDSAMultisigWallet.json"


def _load_abi() -> list[dict[str, Any]]:
    with open(_ABI_PATH) as f:
        raw = json.load(f)

    # Accept either a plain ABI list or a foundry artifact with an `abi` field.
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("abi"), list):
        return raw["abi"]
    raise ValueError(f"Unsupported ABI JSON shape in {_ABI_PATH}")


# ---------------------------------------------------------------------------
# Revert decoding
# ---------------------------------------------------------------------------
def error_selector(signature: str) -> bytes:
    """Return the 4-byte selector of a Solidity error signature."""
    return keccak(text=signature)[:4]


_ERROR_STRING_SELECTOR = error_selector("Error(string)")

WALLET_ERRORS: dict[bytes, type[MultisigError]] = {
    error_selector("ECDSAMultisigWallet__QuorumNotReached()"): QuorumNotReached,
    error_selector("ECDSAMultisigWallet__InvalidNonce()"): InvalidNonce,
    error_selector(
        "ECDSAMultisigWallet__RecoveredSignerNotAuthorized()"
    ): RecoveredSignerNotAuthorized,
    error_selector("ECDSAMultisigWallet__SignerAlreadySigned()"): SignerAlreadySigned,
    error_selector("ECDSAMultisigWallet__MessageValueMismatch()"): MessageValueMismatch,
    error_selector("ECDSA__InvalidSignature()"): SignatureError,
    error_selector("ECDSA__InvalidSignatureLength()"): SignatureError,
    error_selector("ECDSA__InvalidS()"): SignatureError,
    error_selector("ECDSA__InvalidV()"): SignatureError,
}


def decode_wallet_error(data: bytes | str | None) -> MultisigError:
    """Map raw revert data from the wallet to a local exception instance.

    Known custom errors map to the matching local class, ``Error(string)``
    becomes a ``WalletRevert`` carrying the reason, anything else a
    ``WalletRevert`` carrying the raw hex.
    """
    if data is None:
        return WalletRevert("execution reverted without data")
    raw = HexBytes(data)
    selector = bytes(raw[:4])
    cls = WALLET_ERRORS.get(selector)
    if cls is not None:
        return cls(f"wallet reverted with {cls.__name__}")
    if selector == _ERROR_STRING_SELECTOR:
        try:
            (reason,) = abi_decode(["string"], bytes(raw[4:]))
        except Exception as e:
            return WalletRevert(f"undecodable revert reason: {e}")
        return WalletRevert(reason)
    return WalletRevert(f"execution reverted: 0x{bytes(raw).hex()}")


def _encode_call_args(
    action: Action, signatures: Iterable[Signature]
) -> tuple[tuple, list[tuple]]:
    parameters = (action.target, action.data, action.value, action.delegate)
    sigs = [(s.data, s.nonce) for s in signatures]
    return parameters, sigs


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class EvmMultisigClient:
    """Thin wrapper around a deployed ECDSAMultisigWallet contract."""

    def __init__(
        self,
        rpc_url: str | None = None,
        private_key: str | None = None,
        wallet_address: str | None = None,
        chain_id: int | None = None,
        timeout: int | None = None,
        poll_latency: int | None = None,
    ):
        self.rpc_url = rpc_url or os.environ.get(
            "MSW_EVM_RPC_URL", "http://localhost:8545"
        )
        pk = private_key or os.environ["MSW_EVM_PRIVATE_KEY"]
        self.wallet_address = Web3.to_checksum_address(
            wallet_address or os.environ["MSW_WALLET_ADDRESS"]
        )
        self.chain_id = chain_id or int(os.environ.get("MSW_EVM_CHAIN_ID", "31337"))
        self.timeout = timeout or int(os.environ.get("MSW_TX_TIMEOUT", "30"))
        self.poll_latency = poll_latency or int(os.environ.get("MSW_TX_POLL", "2"))

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url))
        self.account = Account.from_key(pk)
        self.address = self.account.address

        self.contract = self.w3.eth.contract(
            address=self.wallet_address, abi=_load_abi()
        )

    @classmethod
    def from_env(cls) -> "EvmMultisigClient":
        """Build client from environment variables."""
        return cls()

    # -- signing --------------------------------------------------------------

    def sign(self, identity: Identity, action: Action, nonce: int) -> Signature:
        """Authorize *action* for this wallet with *identity*'s key."""
        return identity.sign_authorization(action, nonce, self.wallet_address)

    # -- internal tx helpers ------------------------------------------------

    def _send(self, fn, value: int = 0) -> HexBytes:
        """Build, sign and send a contract function call.  Returns tx hash."""
        tx = fn.build_transaction(
            {
                "from": self.address,
                "value": value,
                "nonce": self.w3.eth.get_transaction_count(self.address),
                "gas": 1_000_000,
                "gasPrice": self.w3.eth.gas_price,
                "chainId": self.chain_id,
            }
        )
        signed = self.account.sign_transaction(tx)
        return HexBytes(self.w3.eth.send_raw_transaction(signed.raw_transaction))

    # -- public API ---------------------------------------------------------

    def call_verify_and_execute(
        self, action: Action, signatures: Iterable[Signature], value: int = 0
    ) -> HexBytes:
        """Simulate verifyAndExecute with eth_call and return its result bytes.

        Raises:
            MultisigError: The matching local error when the wallet reverts.
        """
        parameters, sigs = _encode_call_args(action, signatures)
        fn = self.contract.functions.verifyAndExecute(parameters, sigs)
        try:
            return HexBytes(fn.call({"from": self.address, "value": value}))
        except ContractLogicError as e:
            raise decode_wallet_error(e.data) from e

    def verify_and_execute(
        self, action: Action, signatures: Iterable[Signature], value: int = 0
    ) -> HexBytes:
        """Send verifyAndExecute with *value* attached.  Returns tx hash."""
        parameters, sigs = _encode_call_args(action, signatures)
        fn = self.contract.functions.verifyAndExecute(parameters, sigs)
        try:
            return self._send(fn, value=value)
        except ContractLogicError as e:
            # gas estimation surfaces reverts before the tx is broadcast
            raise decode_wallet_error(e.data) from e

    def execute_and_confirm(
        self, action: Action, signatures: Iterable[Signature], value: int = 0
    ) -> str:
        """Send verifyAndExecute and wait for a successful receipt.

        Raises:
            WalletRevert: If the mined transaction reverted.
            WalletTimeout: If the receipt did not arrive in time.
        """
        tx_hash = self.verify_and_execute(action, signatures, value)
        tx_hex = "0x" + bytes(tx_hash).hex()
        receipt = self.wait_receipt(tx_hash)
        status = int(receipt.get("status", 0))
        _LOG.info("wallet tx=%s status=%s", tx_hex, status)
        if status == 0:
            raise WalletRevert(f"transaction reverted: tx={tx_hex}")
        return tx_hex

    def get_balance(self) -> int:
        return self.w3.eth.get_balance(self.wallet_address)

    def wait_receipt(self, tx_hash: bytes | str) -> dict:
        """Block until tx is mined and return the receipt.

        Raises:
            WalletTimeout: If transaction is not confirmed within timeout period.
        """
        tx_hash = self._normalize_tx_hash(tx_hash)
        try:
            return self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.timeout, poll_latency=self.poll_latency
            )
        except TimeExhausted:
            tx_hex = "0x" + bytes(tx_hash).hex()
            raise WalletTimeout(
                f"Transaction {tx_hex} not confirmed after {self.timeout}s; "
                f"it may still succeed. Increase MSW_TX_TIMEOUT to wait longer."
            ) from None

    @staticmethod
    def _normalize_tx_hash(tx_hash: bytes | str) -> HexBytes:
        """Normalize bytes/hex-string tx hash into HexBytes."""
        if isinstance(tx_hash, (bytes, bytearray)):
            return HexBytes(tx_hash)
        if isinstance(tx_hash, str):
            s = tx_hash.strip()
            if not s.startswith("0x"):
                s = "0x" + s
            return HexBytes(s)
        raise TypeError(f"unsupported tx_hash type: {type(tx_hash)!r}")

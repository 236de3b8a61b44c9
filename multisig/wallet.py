"""Quorum-authorized action dispatch (verify-and-execute).

``verify_and_execute`` runs in three phases:

1. validate: quorum count, then per signature nonce freshness, signer
   recovery, authorization and uniqueness, then the attached value;
2. commit: consume every nonce;
3. dispatch: execute the action.

Commit precedes dispatch so a callee reentering the wallet sees the
nonces as used. Phases 2 and 3 share one atomic unit of work: if the
callee fails, nonce consumption is rolled back with everything else.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from eth_utils import to_checksum_address
from hexbytes import HexBytes

from .chain import CallContext, Chain
from .errors import (
    InvalidNonce,
    MessageValueMismatch,
    QuorumNotReached,
    RecoveredSignerNotAuthorized,
    SignerAlreadySigned,
)
from .executor import ActionExecutor
from .nonces import NonceLedger
from .registry import SignerRegistry
from .types import ZERO_ADDRESS, Action, Signature
from .verifier import recover_signer

_LOG = logging.getLogger(__name__)


class MultisigWallet:
    """ECDSA multisig wallet living at *address* on *chain*.

    The nonce ledger is attached to the chain so it takes part in every
    atomic unit of work the chain runs.
    """

    def __init__(
        self,
        chain: Chain,
        address: str,
        registry: SignerRegistry,
        nonces: Optional[NonceLedger] = None,
    ):
        self._chain = chain
        self.address = to_checksum_address(address)
        self._registry = registry
        self._nonces = nonces if nonces is not None else NonceLedger()
        self._executor = ActionExecutor(chain)
        chain.attach(self._nonces)

    @property
    def quorum(self) -> int:
        return self._registry.quorum

    @property
    def signers(self) -> frozenset[str]:
        return self._registry.signers

    @property
    def balance(self) -> int:
        return self._chain.balance_of(self.address)

    def is_signer(self, address: str) -> bool:
        return self._registry.is_authorized(address)

    def is_nonce_used(self, nonce: int) -> bool:
        return self._nonces.is_used(nonce)

    def receive(self, sender: str, value: int) -> None:
        """Accept a plain native-value deposit."""
        with self._chain.atomic():
            self._chain.transfer(sender, self.address, value)

    def verify_and_execute(
        self,
        action: Action,
        signatures: Iterable[Signature],
        value: int = 0,
        sender: str = ZERO_ADDRESS,
    ) -> HexBytes:
        """Verify a quorum of signatures over *action*, then dispatch it once.

        Args:
            action: The authorized action.
            signatures: Signatures in the order they are checked.
            value: Native value attached to this call; must equal
                ``action.value``.
            sender: Account the attached value is drawn from.

        Returns:
            The callee's result bytes.

        Raises:
            QuorumNotReached: Fewer signatures than the quorum.
            InvalidNonce: A nonce was already consumed or repeats in the call.
            SignatureError: A signature is malformed or non-canonical.
            RecoveredSignerNotAuthorized: A signer is not registered.
            SignerAlreadySigned: A signer appears twice.
            MessageValueMismatch: *value* differs from ``action.value``.
            Revert: The dispatched call failed; raised unchanged.
        """
        signatures = list(signatures)
        if len(signatures) < self._registry.quorum:
            raise QuorumNotReached(
                f"{len(signatures)} signatures supplied, quorum is "
                f"{self._registry.quorum}"
            )

        pending = self._verify_signatures(action, signatures)

        if isinstance(value, bool) or not isinstance(value, int):
            raise MessageValueMismatch(
                f"attached value must be an integer, got {type(value).__name__}"
            )
        if value != action.value:
            raise MessageValueMismatch(
                f"attached value {value} does not match action value {action.value}"
            )

        with self._chain.atomic():
            self._chain.transfer(sender, self.address, value)
            for nonce in pending:
                self._nonces.consume(nonce)

            context = CallContext(
                chain=self._chain,
                address=self.address,
                caller=to_checksum_address(sender),
                value=value,
                code_address=self.address,
            )
            result = self._executor.execute(action, context)

        _LOG.info(
            "executed wallet=%s target=%s delegate=%s nonces=%d",
            self.address,
            action.target,
            action.delegate,
            len(pending),
        )
        return result

    # -- internal helpers --

    def _verify_signatures(
        self, action: Action, signatures: list[Signature]
    ) -> list[int]:
        """Validate every signature and return the nonces to consume."""
        seen: set[str] = set()
        pending: list[int] = []
        for signature in signatures:
            if self._nonces.is_used(signature.nonce) or signature.nonce in pending:
                raise InvalidNonce(f"Nonce already used: {signature.nonce}")

            signer = recover_signer(
                action, signature.nonce, self.address, signature.data
            )
            if not self._registry.is_authorized(signer):
                raise RecoveredSignerNotAuthorized(
                    f"Recovered signer not authorized: {signer}"
                )
            if signer in seen:
                raise SignerAlreadySigned(f"Signer already signed: {signer}")

            _LOG.debug("accepted signer=%s nonce=%s", signer, signature.nonce)
            seen.add(signer)
            pending.append(signature.nonce)
        return pending

"""Error categories for multisig authorization and dispatch failures."""


class MultisigError(Exception):
    """Base exception for all multisig errors."""


class QuorumNotReached(MultisigError):
    """Fewer signatures were supplied than the registry quorum."""


class InvalidNonce(MultisigError):
    """A supplied nonce has already been consumed."""


class RecoveredSignerNotAuthorized(MultisigError):
    """A signature recovered to an identity outside the signer set."""


class SignerAlreadySigned(MultisigError):
    """The same signer was recovered twice within one call."""


class MessageValueMismatch(MultisigError):
    """Attached value does not equal the action value."""


class SignatureError(MultisigError):
    """Signature is malformed, non-canonical or cannot be recovered."""


class ActionError(MultisigError):
    """Action fields are malformed."""


class RegistryError(MultisigError):
    """Signer registry construction failed."""


class NonceAlreadyConsumed(MultisigError):
    """Nonce ledger was asked to consume a nonce twice."""


class IdentityError(MultisigError):
    """Identity key loading or generation error."""


class Revert(MultisigError):
    """A dispatched call failed. Carries the callee's reason and raw data."""

    def __init__(self, reason: str = "", data: bytes = b""):
        super().__init__(reason)
        self.reason = reason
        self.data = bytes(data)


class InsufficientBalance(Revert):
    """Native value transfer exceeds the sender's balance."""


class WalletRevert(MultisigError):
    """On-chain wallet transaction reverted."""


class WalletTimeout(MultisigError):
    """Raised when transaction confirmation times out.

    This doesn't necessarily mean the transaction failed - it may still
    be pending or already confirmed on the blockchain.
    """

"""ECDSA multisig wallet: quorum signature verification and action dispatch."""

from .chain import CallContext, Chain
from .executor import ActionExecutor
from .identity import Identity
from .nonces import NonceLedger
from .registry import SignerRegistry
from .types import Action, Delegated, Direct, ExecutionMode, Signature
from .verifier import authorization_hash, recover_signer
from .wallet import MultisigWallet
from .errors import (
    MultisigError,
    QuorumNotReached,
    InvalidNonce,
    RecoveredSignerNotAuthorized,
    SignerAlreadySigned,
    MessageValueMismatch,
    SignatureError,
    ActionError,
    RegistryError,
    NonceAlreadyConsumed,
    IdentityError,
    Revert,
    InsufficientBalance,
)

__all__ = [
    "Action",
    "ActionExecutor",
    "CallContext",
    "Chain",
    "Delegated",
    "Direct",
    "ExecutionMode",
    "Identity",
    "MultisigWallet",
    "NonceLedger",
    "Signature",
    "SignerRegistry",
    "authorization_hash",
    "recover_signer",
    "MultisigError",
    "QuorumNotReached",
    "InvalidNonce",
    "RecoveredSignerNotAuthorized",
    "SignerAlreadySigned",
    "MessageValueMismatch",
    "SignatureError",
    "ActionError",
    "RegistryError",
    "NonceAlreadyConsumed",
    "IdentityError",
    "Revert",
    "InsufficientBalance",
]

"""Value objects presented to the multisig wallet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from eth_utils import is_address, to_checksum_address

from .errors import ActionError, SignatureError

UINT256_MAX = 2**256 - 1
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class Direct:
    """Call in a new context, forwarding *value* to the target."""

    value: int


@dataclass(frozen=True)
class Delegated:
    """Run target code in the caller's context; no value moves."""


ExecutionMode = Union[Direct, Delegated]


@dataclass(frozen=True)
class Action:
    target: str
    data: bytes = b""
    value: int = 0
    delegate: bool = False

    def __post_init__(self):
        if not isinstance(self.target, str) or not is_address(self.target):
            raise ActionError(f"Invalid target address: {self.target!r}")
        if not isinstance(self.data, (bytes, bytearray)):
            raise ActionError("data must be bytes")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ActionError("value must be an integer")
        if self.value < 0 or self.value > UINT256_MAX:
            raise ActionError(f"value out of uint256 range: {self.value}")
        if not isinstance(self.delegate, bool):
            raise ActionError("delegate must be a bool")
        object.__setattr__(self, "target", to_checksum_address(self.target))
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def mode(self) -> ExecutionMode:
        if self.delegate:
            return Delegated()
        return Direct(value=self.value)


@dataclass(frozen=True)
class Signature:
    data: bytes = field(repr=False)
    nonce: int

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise SignatureError("signature data must be bytes")
        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int):
            raise SignatureError("nonce must be an integer")
        if self.nonce < 0 or self.nonce > UINT256_MAX:
            raise SignatureError(f"nonce out of uint256 range: {self.nonce}")
        object.__setattr__(self, "data", bytes(self.data))

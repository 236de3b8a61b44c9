"""In-memory execution substrate for wallet dispatch.

Models the primitives the wallet consumes from its host:

- accounts with native balances and per-account key/value storage,
- code installed at an address, as a callable ``code(ctx, data) -> bytes``,
- ``call`` (new context, forwards value) and ``delegatecall`` (runs the
  target's code inside the caller's context, no value moves),
- ``atomic()`` units of work that restore every piece of state, including
  attached participants such as a NonceLedger, when an exception escapes.

An address without code behaves like an externally owned account: calls
to it succeed and return empty bytes.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Optional

from eth_utils import to_checksum_address
from hexbytes import HexBytes

from .errors import InsufficientBalance

_LOG = logging.getLogger(__name__)

Code = Callable[["CallContext", bytes], Optional[bytes]]


@dataclass(frozen=True)
class CallContext:
    """Execution context seen by running code.

    ``address`` owns the storage and balance in play; ``code_address`` is
    where the running code lives. They differ only under delegatecall.
    """

    chain: "Chain"
    address: str
    caller: str
    value: int
    code_address: str

    @property
    def balance(self) -> int:
        return self.chain.balance_of(self.address)

    def sload(self, key: Any, default: Any = None) -> Any:
        return self.chain.sload(self.address, key, default)

    def sstore(self, key: Any, value: Any) -> None:
        self.chain.sstore(self.address, key, value)

    def call(self, target: str, data: bytes = b"", value: int = 0) -> HexBytes:
        return self.chain.call(self.address, target, data, value)

    def delegatecall(self, target: str, data: bytes = b"") -> HexBytes:
        return self.chain.delegatecall(self, target, data)


class Chain:
    def __init__(self):
        self._balances: dict[str, int] = {}
        self._storage: dict[str, dict[Any, Any]] = {}
        self._code: dict[str, Code] = {}
        self._participants: dict[int, tuple[Any, Any]] = {}

    # -- accounts -----------------------------------------------------------

    def deploy(self, address: str, code: Code) -> str:
        """Install *code* at *address* and return the checksum address."""
        address = to_checksum_address(address)
        self._code[address] = code
        return address

    def code_at(self, address: str) -> Optional[Code]:
        return self._code.get(to_checksum_address(address))

    def fund(self, address: str, amount: int) -> None:
        """Credit *amount* of native value to *address* out of thin air."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        address = to_checksum_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_checksum_address(address), 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if amount == 0:
            return
        sender = to_checksum_address(sender)
        recipient = to_checksum_address(recipient)
        available = self._balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalance(
                f"insufficient balance: {sender} has {available}, needs {amount}"
            )
        self._balances[sender] = available - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    def sload(self, address: str, key: Any, default: Any = None) -> Any:
        return self._storage.get(to_checksum_address(address), {}).get(key, default)

    def sstore(self, address: str, key: Any, value: Any) -> None:
        address = to_checksum_address(address)
        self._storage.setdefault(address, {})[key] = value

    # -- units of work --------------------------------------------------------

    def attach(self, participant) -> None:
        """Enroll an object with ``snapshot``/``restore`` in every unit of work.

        Units of work opened before the attach restore the participant to
        its state at attach time.
        """
        if id(participant) not in self._participants:
            self._participants[id(participant)] = (participant, participant.snapshot())

    def snapshot(self) -> tuple:
        return (
            dict(self._balances),
            copy.deepcopy(self._storage),
            {key: p.snapshot() for key, (p, _) in self._participants.items()},
        )

    def restore(self, snap: tuple) -> None:
        balances, storage, participants = snap
        self._balances = dict(balances)
        self._storage = copy.deepcopy(storage)
        for key, (participant, attached) in self._participants.items():
            participant.restore(participants.get(key, attached))

    @contextmanager
    def atomic(self):
        """Run the enclosed block as one all-or-nothing unit of work.

        The original exception is re-raised unchanged after rollback.
        """
        snap = self.snapshot()
        try:
            yield self
        except Exception:
            self.restore(snap)
            raise

    # -- call primitives ----------------------------------------------------

    def call(
        self, sender: str, target: str, data: bytes = b"", value: int = 0
    ) -> HexBytes:
        """Invoke *target* in its own context, moving *value* from *sender*."""
        sender = to_checksum_address(sender)
        target = to_checksum_address(target)
        with self.atomic():
            self.transfer(sender, target, value)
            code = self._code.get(target)
            if code is None:
                return HexBytes(b"")
            ctx = CallContext(
                chain=self,
                address=target,
                caller=sender,
                value=value,
                code_address=target,
            )
            _LOG.debug("call %s -> %s value=%s", sender, target, value)
            return HexBytes(code(ctx, bytes(data)) or b"")

    def delegatecall(
        self, context: CallContext, target: str, data: bytes = b""
    ) -> HexBytes:
        """Run *target*'s code with *context*'s storage, identity and value."""
        target = to_checksum_address(target)
        with self.atomic():
            code = self._code.get(target)
            if code is None:
                return HexBytes(b"")
            ctx = CallContext(
                chain=self,
                address=context.address,
                caller=context.caller,
                value=context.value,
                code_address=target,
            )
            _LOG.debug("delegatecall %s -> %s", context.address, target)
            return HexBytes(code(ctx, bytes(data)) or b"")

"""Dispatch of approved actions by execution mode."""

from __future__ import annotations

from hexbytes import HexBytes

from .chain import CallContext, Chain
from .types import Action, Delegated, Direct


class ActionExecutor:
    """Performs exactly one dispatch per approved action.

    Callee failures propagate unmodified. Reentrancy safety is the
    orchestrator's concern, not this class's.
    """

    def __init__(self, chain: Chain):
        self._chain = chain

    def execute(self, action: Action, context: CallContext) -> HexBytes:
        mode = action.mode
        if isinstance(mode, Direct):
            return self._chain.call(
                context.address, action.target, action.data, mode.value
            )
        if isinstance(mode, Delegated):
            return self._chain.delegatecall(context, action.target, action.data)
        raise TypeError(f"unsupported execution mode: {mode!r}")

"""
Forwarder — Contract Base

Contracts are plain Python objects whose persistent data lives in the
owning ``Chain`` (``chain.contract_state[address]``), never on the
object itself.  That keeps every write inside the chain's journal, so a
reverted call rolls contract storage back together with balances and
logs.

Entry points are marked with decorators:

  - ``@external``  state-changing; runs inside ``chain.atomic()``
  - ``@payable``   like ``@external`` but may receive native value
  - ``@view``      read-only; no ``Msg`` argument

State-changing entry points take a ``Msg`` (``msg.sender``,
``msg.value``) as their first argument.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from eth_utils import keccak

from .address import ZERO_ADDRESS
from .events import EventLog

if TYPE_CHECKING:
    from .chain import Chain


@dataclass(frozen=True)
class Msg:
    """Call context: the direct caller and the native value attached."""
    sender: str
    value: int = 0


@dataclass(frozen=True)
class CallData:
    """A function call on a contract: name plus arguments."""
    function: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        parts = [repr(a) for a in self.args]
        parts += [f"{k}={v!r}" for k, v in self.kwargs.items()]
        return f"{self.function}({', '.join(parts)})"


def encode_call(function: str, *args: Any, **kwargs: Any) -> CallData:
    return CallData(function=function, args=tuple(args), kwargs=dict(kwargs))


def external(fn: Callable) -> Callable:
    @functools.wraps(fn)
    def wrapper(self: "Contract", *args: Any, **kwargs: Any) -> Any:
        with self.chain.atomic():
            return fn(self, *args, **kwargs)

    wrapper._external = True  # type: ignore[attr-defined]
    wrapper._payable = False  # type: ignore[attr-defined]
    return wrapper


def payable(fn: Callable) -> Callable:
    wrapper = external(fn)
    wrapper._payable = True  # type: ignore[attr-defined]
    return wrapper


def view(fn: Callable) -> Callable:
    fn._external = True  # type: ignore[attr-defined]
    fn._view = True  # type: ignore[attr-defined]
    return fn


class Contract:
    """Base class for everything deployed on a ``Chain``."""

    code_name = "Contract"

    def __init__(self) -> None:
        self.address: str = ZERO_ADDRESS
        self.chain: Optional["Chain"] = None

    def bind(self, chain: "Chain", address: str) -> None:
        self.chain = chain
        self.address = address

    def runtime_code(self) -> bytes:
        """Deterministic stand-in bytecode for this contract type."""
        return keccak(text=self.code_name)

    def on_deploy(self, deployer: str) -> None:
        """Constructor hook; runs inside the deploying transaction."""

    @property
    def storage(self) -> Dict[str, Any]:
        return self.chain.storage_of(self.address)

    @property
    def native_balance(self) -> int:
        return self.chain.balance_of(self.address)

    def emit(self, event: str, **args: Any) -> EventLog:
        return self.chain.record_log(self.address, event, args)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self.address}>"

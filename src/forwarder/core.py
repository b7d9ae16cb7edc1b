"""
Forwarder — Instance State Machine

A forwarder is a minimal clone bound to exactly one destination-chain
recipient.  It holds whatever arrives at its address until someone asks
it to forward, and then hands the assets to its chain adapter, which
relays them across the bridge to the recipient.

Lifecycle
---------
::

    Uninitialized ──initialize(recipient)──► Initialized   (terminal)

Entry points
------------
*   ``initialize``           bind the recipient, once.
*   ``forward_token`` /      relay a token / the native asset; the amount
    ``forward_native``       defaults to the full balance.  Anyone may
                             call these: funds can only go to the
                             recipient.
*   ``batch_forward_tokens`` forward several tokens, each in isolation;
                             one token failing does not undo the others.
*   ``arbitrary_call``       execute a call funded by the forwarder, for
                             the recipient (directly, or through an
                             authenticated bridge message).
*   ``emergency_recover``    recipient-only escape hatch that bypasses the
                             bridge.

Chain-specific behaviour lives in the ``ChainAdapter`` held by the
forwarder's implementation contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .adapters.base import ChainAdapter
from .address import ZERO_ADDRESS, clone_runtime_code, is_zero_address, to_address
from .chain import Chain
from .contract import CallData, Contract, Msg, encode_call, external, payable, view
from .errors import ConfigurationError, StateError, UnauthorizedSender, ValidationError
from . import events

logger = logging.getLogger("forwarder.core")


@dataclass
class ForwardResult:
    """Outcome of forwarding one asset inside a batch or sweep.

    ``token`` is ``None`` for the native asset.  ``skipped`` marks an
    asset with nothing to forward.
    """
    token: Optional[str]
    amount: int = 0
    success: bool = True
    error: str = ""
    skipped: bool = False


class ForwarderImplementation(Contract):
    """Template every forwarder clone delegates to.

    Holds the chain adapter; carries no per-recipient state of its own.
    """

    code_name = "ForwarderImplementation"

    def __init__(self, adapter: ChainAdapter):
        super().__init__()
        self.adapter = adapter

    @view
    def adapter_name(self) -> str:
        return self.adapter.name

    @view
    def required_chain_id(self) -> int:
        return self.adapter.required_chain_id


class Forwarder(Contract):
    """A recipient's deposit address on this chain."""

    code_name = "ForwarderClone"

    def __init__(self, implementation: ForwarderImplementation):
        super().__init__()
        self.implementation = implementation

    def runtime_code(self) -> bytes:
        return clone_runtime_code(self.implementation.address)

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({"recipient": ZERO_ADDRESS, "initialized": False})

    @property
    def adapter(self) -> ChainAdapter:
        return self.implementation.adapter

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @view
    def recipient(self) -> str:
        return self.storage["recipient"]

    @view
    def is_initialized(self) -> bool:
        return self.storage["initialized"]

    @view
    def get_balance(self, token: Optional[str] = None) -> int:
        """Balance held by this forwarder; ``None`` or zero address is native."""
        if is_zero_address(token):
            return self.native_balance
        return self.chain.static_call(token, "balance_of", self.address).unwrap()

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    @external
    def initialize(self, msg: Msg, recipient: str) -> None:
        if self.storage["initialized"]:
            raise StateError(f"Forwarder {self.address} is already initialized")
        recipient = to_address(recipient)
        if recipient == ZERO_ADDRESS:
            raise ConfigurationError("Recipient is the zero address")
        if self.chain.chain_id != self.adapter.required_chain_id:
            raise ConfigurationError(
                f"Wrong network: running on chain {self.chain.chain_id}, "
                f"{self.adapter.name} adapter requires {self.adapter.required_chain_id}"
            )

        self.storage["recipient"] = recipient
        self.storage["initialized"] = True
        self.emit(events.INITIALIZED, recipient=recipient)
        logger.info("Forwarder %s initialized for %s", self.address, recipient)

    def _require_initialized(self) -> None:
        if not self.storage["initialized"]:
            raise StateError(f"Forwarder {self.address} is not initialized")

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    @external
    def forward_token(self, msg: Msg, token: str, amount: Optional[int] = None) -> int:
        """Relay *amount* (default: all) of *token* to the recipient."""
        self._require_initialized()
        token = to_address(token)
        if token == ZERO_ADDRESS:
            raise ValidationError("Native asset goes through forward_native")
        if amount is None:
            amount = self.get_balance(token)
        if amount <= 0:
            raise ValidationError(f"Nothing to forward for {token}")

        recipient = self.recipient()
        self.adapter.bridge_token(self, token, amount, recipient)
        self.emit(events.TOKENS_FORWARDED, token=token, amount=amount, recipient=recipient)
        logger.info("Forwarded %d of %s from %s to %s", amount, token, self.address, recipient)
        return amount

    @external
    def forward_native(self, msg: Msg, amount: Optional[int] = None) -> int:
        """Relay *amount* (default: all) of the native asset to the recipient."""
        self._require_initialized()
        if amount is None:
            amount = self.native_balance
        if amount <= 0:
            raise ValidationError("Nothing to forward for the native asset")

        recipient = self.recipient()
        self.adapter.bridge_native(self, amount, recipient)
        self.emit(events.NATIVE_FORWARDED, amount=amount, recipient=recipient)
        logger.info("Forwarded %d native from %s to %s", amount, self.address, recipient)
        return amount

    @external
    def batch_forward_tokens(self, msg: Msg, tokens: List[Optional[str]]) -> List[ForwardResult]:
        """Forward each asset's full balance; failures are returned, not raised.

        An empty balance is reported as skipped.  ``None`` or the zero
        address stands for the native asset.
        """
        self._require_initialized()
        return [forward_asset(self.chain, self.address, self.address, token) for token in tokens]

    # ------------------------------------------------------------------
    # Authorised actions
    # ------------------------------------------------------------------

    def _require_authorized(self, msg: Msg) -> None:
        sender = to_address(msg.sender)
        recipient = self.recipient()
        if sender == recipient:
            return
        if self.adapter.authenticated_sender(self.chain, sender) == recipient:
            return
        raise UnauthorizedSender(sender)

    @external
    def arbitrary_call(self, msg: Msg, target: str, value: int = 0,
                       payload: Optional[CallData] = None) -> Any:
        """Call *target* from this forwarder, sending *value* of its own balance."""
        self._require_initialized()
        self._require_authorized(msg)
        target = to_address(target)
        logger.info("Forwarder %s calling %s (value=%d, %s)", self.address, target, value,
                    payload.describe() if payload else "no data")
        return self.chain.call(self.address, target, value, payload)

    @external
    def emergency_recover(self, msg: Msg, token: Optional[str], to: str) -> int:
        """Sweep the whole balance of *token* to *to* without touching the bridge."""
        self._require_initialized()
        self._require_authorized(msg)
        amount = self.adapter.recover(self, token, to)
        if amount:
            asset = ZERO_ADDRESS if is_zero_address(token) else to_address(token)
            self.emit(events.EMERGENCY_RECOVERED, token=asset, amount=amount, to=to_address(to))
            logger.warning("Forwarder %s recovered %d of %s to %s", self.address, amount, asset, to)
        return amount

    @payable
    def receive(self, msg: Msg) -> None:
        """Accept native value."""


def forward_asset(chain: Chain, caller: str, forwarder: str,
                  token: Optional[str]) -> ForwardResult:
    """Forward the full balance of one asset held by *forwarder* in its own sub-call.

    Shared by the batch and sweep paths: nothing raises, an empty balance
    is ``skipped`` and a failure is rolled back alone and reported.
    """
    native = token is None or str(token).lower() == ZERO_ADDRESS
    asset = None if native else token

    balance = chain.static_call(forwarder, "get_balance", asset)
    if not balance.success:
        logger.warning("Balance query for %s on %s failed: %s",
                       token, forwarder, balance.reason)
        return ForwardResult(token=asset, success=False, error=balance.reason)
    if not balance.return_value:
        return ForwardResult(token=asset, skipped=True)

    call = encode_call("forward_native") if native else encode_call("forward_token", token)
    outcome = chain.try_call(caller, forwarder, call)
    if not outcome.success:
        logger.warning("Forwarding %s from %s failed: %s", token, forwarder, outcome.reason)
        return ForwardResult(token=asset, success=False, error=outcome.reason)
    return ForwardResult(token=asset, amount=outcome.return_value)

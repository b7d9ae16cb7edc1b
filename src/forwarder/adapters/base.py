"""
Chain adapter interface.

A forwarder's chain-specific behaviour is supplied by an adapter object
held by its implementation contract.  The forwarder calls these hooks;
it never subclasses them.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Optional

from ..address import ZERO_ADDRESS, to_address
from ..chain import Chain
from ..config import NetworkConfig

if TYPE_CHECKING:
    from ..core import Forwarder

logger = logging.getLogger("forwarder.adapters")


class ChainAdapter(abc.ABC):
    """Bridging hooks, token eligibility and recovery for one chain."""

    name = ""

    def __init__(self, network: NetworkConfig):
        self.network = network.validate()

    @property
    def required_chain_id(self) -> int:
        return self.network.chain_id

    @property
    def destination_chain_id(self) -> int:
        return self.network.destination_chain_id

    @property
    def messenger(self) -> str:
        return self.network.message_bridge

    @abc.abstractmethod
    def validate_token(self, chain: Chain, token: str) -> bool:
        """Whether *token* can currently cross the bridge."""

    @abc.abstractmethod
    def bridge_token(self, forwarder: "Forwarder", token: str,
                     amount: int, recipient: str) -> None:
        """Relay *amount* of *token* held by *forwarder* to *recipient*."""

    @abc.abstractmethod
    def bridge_native(self, forwarder: "Forwarder", amount: int, recipient: str) -> None:
        """Relay *amount* of the forwarder's native balance to *recipient*."""

    @abc.abstractmethod
    def recover(self, forwarder: "Forwarder", token: Optional[str], to: str) -> int:
        """Move the forwarder's whole balance of *token* to *to*, bypassing the bridge."""

    def authenticated_sender(self, chain: Chain, caller: str) -> Optional[str]:
        """Origin sender of the relayed message *caller* is executing, if trusted.

        Only the configured message bridge is trusted, and only for
        messages that originate on the destination chain.
        """
        if to_address(caller) != self.messenger:
            return None
        source = chain.static_call(self.messenger, "message_source_chain_id")
        if not source.success or source.return_value != self.destination_chain_id:
            logger.debug("Relayed call from untrusted chain: %s", source.return_value)
            return None
        sender = chain.static_call(self.messenger, "message_sender")
        if not sender.success or sender.return_value == ZERO_ADDRESS:
            return None
        return to_address(sender.return_value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.network.name} chain={self.required_chain_id}>"

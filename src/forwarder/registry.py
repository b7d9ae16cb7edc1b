"""
Read-only query surface over a bridge's token registry.

Each query is a static call whose outcome comes back as a
``CallResult``: a token that does not implement a query simply yields
``success=False`` instead of unwinding the caller.
"""

from __future__ import annotations

import logging

from .address import ZERO_ADDRESS, to_address
from .chain import Chain, CallResult

logger = logging.getLogger("forwarder.registry")


class BridgeRegistryClient:
    """Queries against one mediator and the tokens it bridges."""

    def __init__(self, chain: Chain, mediator: str):
        self.chain = chain
        self.mediator = to_address(mediator)

    def bridge_contract(self, token: str) -> CallResult:
        """The bridge the token claims to belong to."""
        return self.chain.static_call(token, "bridge_contract")

    def is_bridge(self, token: str, bridge: str) -> CallResult:
        """Whether the token recognises *bridge* as its minter."""
        return self.chain.static_call(token, "is_bridge", to_address(bridge))

    def foreign_asset(self, token: str) -> CallResult:
        """Reverse mapping: the foreign-chain asset behind *token*."""
        return self.chain.static_call(self.mediator, "foreign_token_address", to_address(token))

    def has_foreign_asset(self, token: str) -> bool:
        result = self.foreign_asset(token)
        if not result.success:
            logger.debug("Registry lookup for %s failed: %s", token, result.reason)
            return False
        return bool(result.return_value) and result.return_value != ZERO_ADDRESS

"""
Gnosis Chain adapter.

Tokens leave through the OmniBridge home mediator, the native asset
through the xDai bridge, and return messages arrive over the Arbitrary
Message Bridge from Ethereum mainnet.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..address import is_zero_address, to_address
from ..chain import Chain
from ..contract import encode_call
from ..errors import ConfigurationError, InsufficientBalanceError, InvalidToken, ValidationError
from ..registry import BridgeRegistryClient
from .base import ChainAdapter

if TYPE_CHECKING:
    from ..core import Forwarder

logger = logging.getLogger("forwarder.adapters.gnosis")


class GnosisAdapter(ChainAdapter):
    name = "gnosis"

    @property
    def mediator(self) -> str:
        return self.network.omnibridge

    def validate_token(self, chain: Chain, token: str) -> bool:
        token = to_address(token)
        registry = BridgeRegistryClient(chain, self.mediator)

        # Tokens minted by the mediator describe themselves.
        reported = registry.bridge_contract(token)
        if reported.success and self._same_address(reported.return_value, self.mediator):
            recognised = registry.is_bridge(token, self.mediator)
            if recognised.success and recognised.return_value:
                return True
        elif not reported.success:
            logger.debug("%s has no bridge metadata (%s)", token, reported.reason)

        # Otherwise the mediator's reverse mapping decides.
        return registry.has_foreign_asset(token)

    @staticmethod
    def _same_address(value, expected: str) -> bool:
        try:
            return to_address(value) == expected
        except ValidationError:
            return False

    def bridge_token(self, forwarder: "Forwarder", token: str,
                     amount: int, recipient: str) -> None:
        chain = forwarder.chain
        token = to_address(token)
        if not self.validate_token(chain, token):
            raise InvalidToken(token)
        held = forwarder.get_balance(token)
        if held < amount:
            raise InsufficientBalanceError(forwarder.address, token, held, amount)

        chain.call(forwarder.address, token,
                   data=encode_call("approve", self.mediator, amount))
        chain.call(forwarder.address, self.mediator,
                   data=encode_call("relay_tokens", token, recipient, amount))
        logger.debug("Relayed %d of %s via %s", amount, token, self.mediator)

    def bridge_native(self, forwarder: "Forwarder", amount: int, recipient: str) -> None:
        held = forwarder.native_balance
        if held < amount:
            raise InsufficientBalanceError(forwarder.address, "native", held, amount)
        forwarder.chain.call(forwarder.address, self.network.native_bridge, value=amount,
                             data=encode_call("relay_tokens", recipient))

    def recover(self, forwarder: "Forwarder", token: Optional[str], to: str) -> int:
        to = to_address(to)
        if is_zero_address(to):
            raise ConfigurationError("Recovery destination is the zero address")
        chain = forwarder.chain

        if is_zero_address(token):
            amount = forwarder.native_balance
            if amount:
                chain.call(forwarder.address, to, value=amount)
            return amount

        amount = forwarder.get_balance(token)
        if amount:
            chain.call(forwarder.address, token, data=encode_call("transfer", to, amount))
        return amount

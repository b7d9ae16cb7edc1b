"""
Forwarder — Error Taxonomy

Every failure raised by the forwarder contracts derives from
``ForwarderError``.  The categories mirror how a caller is expected to
react:

  - ``ConfigurationError``       zero address, wrong network.  Fatal.
  - ``StateError``               re-initialisation, use before init.
  - ``AuthorizationError``       caller / message origin not allowed.
  - ``ValidationError``          ineligible token, mismatched arrays,
                                 malformed input.  Retry once the
                                 condition changes.
  - ``InsufficientBalanceError`` held balance below the requested amount.
  - ``DeploymentError``          clone creation failed or collided.
  - ``ExternalCallError``        a called contract reverted.  ``Revert``
                                 is what simulated contracts raise; the
                                 original instance always reaches the
                                 caller unchanged.
"""

from __future__ import annotations

from typing import Optional


class ForwarderError(Exception):
    """Base class for all forwarder errors."""


class ConfigurationError(ForwarderError):
    pass


class StateError(ForwarderError):
    pass


class AuthorizationError(ForwarderError):
    pass


class UnauthorizedSender(AuthorizationError):
    """Neither the recipient nor an authenticated message from it."""

    def __init__(self, sender: str, message: Optional[str] = None):
        self.sender = sender
        super().__init__(message or f"UnauthorizedSender: {sender}")


class ValidationError(ForwarderError):
    pass


class InvalidToken(ValidationError):
    """Token is not recognised by the bridge."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"InvalidToken: {token} is not bridge-eligible")


class InsufficientBalanceError(ForwarderError):

    def __init__(self, holder: str, asset: str, available: int, required: int):
        self.holder = holder
        self.asset = asset
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient balance of {asset} at {holder}: "
            f"have {available}, need {required}"
        )


class DeploymentError(ForwarderError):
    pass


class ExternalCallError(ForwarderError):
    pass


class Revert(ExternalCallError):
    """A contract call reverted with *reason*."""

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(reason or "execution reverted")

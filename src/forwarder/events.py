"""
Forwarder — Event Logs

Structured event records emitted by contracts running on a ``Chain`` and
a composable filter for querying them.  Logs are part of the chain's
journalled state: a reverted call leaves no log behind.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Set

from eth_utils import keccak

# Forwarder lifecycle
INITIALIZED = "Initialized"
TOKENS_FORWARDED = "TokensForwarded"
NATIVE_FORWARDED = "NativeForwarded"
EMERGENCY_RECOVERED = "EmergencyRecovered"
FORWARDER_DEPLOYED = "ForwarderDeployed"

# Token standard
TRANSFER = "Transfer"
APPROVAL = "Approval"

# Bridges
TOKENS_BRIDGING_INITIATED = "TokensBridgingInitiated"
USER_REQUEST_FOR_SIGNATURE = "UserRequestForSignature"
RELAYED_MESSAGE = "RelayedMessage"


@dataclass
class EventLog:
    """A single event emitted by the contract at ``address``."""

    address: str = ""
    event: str = ""
    args: Dict[str, Any] = field(default_factory=dict)
    log_index: int = 0

    @property
    def topic(self) -> str:
        """Hash of the event name, in the role of topic[0]."""
        return "0x" + keccak(text=self.event).hex()

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LogFilter:
    """Query filter over a chain's logs.

    ``address`` may be a single address or a list; ``event`` restricts to
    one event name; ``args`` requires exact matches on event arguments.
    """

    address: Optional[Any] = None
    event: Optional[str] = None
    args: Dict[str, Any] = field(default_factory=dict)

    def address_set(self) -> Optional[Set[str]]:
        if self.address is None:
            return None
        if isinstance(self.address, str):
            return {self.address}
        return set(self.address)

    def matches(self, log: EventLog) -> bool:
        addr_set = self.address_set()
        if addr_set is not None and log.address not in addr_set:
            return False
        if self.event and log.event != self.event:
            return False
        for key, expected in self.args.items():
            if log.args.get(key) != expected:
                return False
        return True


def filter_logs(logs: List[EventLog], filt: LogFilter) -> List[EventLog]:
    return [log for log in logs if filt.matches(log)]

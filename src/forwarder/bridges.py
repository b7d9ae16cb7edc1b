"""
Forwarder — Simulated External Bridges

In-chain stand-ins for the three bridge services a Gnosis-side forwarder
talks to.  They honour the same call contract as the production
contracts and keep enough bookkeeping for tests and local simulation to
observe what crossed the bridge:

  1. **OmniMediator** — token bridge (home side of the OmniBridge).
     ``relay_tokens(token, receiver, amount)`` pulls the tokens through
     an allowance, burns bridged representations (locks native ones) and
     queues an outbound transfer.  ``foreign_token_address(token)`` is the
     registry's reverse mapping.

  2. **NativeBridge** — native-asset bridge (xDai home bridge).
     ``relay_tokens(receiver)`` is payable and queues a withdrawal of
     ``msg.value``.

  3. **MessageBridge** — Arbitrary Message Bridge.  Validators execute
     inbound ``CrossChainMessage`` packets; while a message executes,
     ``message_sender()`` and ``message_source_chain_id()`` describe its
     origin so the target can authenticate it.

Integration
-----------
::

    suite = deploy_simulated_bridges(chain, deployer, foreign_chain_id=1)
    token = suite.mediator.deploy_bridged_token(Msg(deployer), "Dai", "DAI", foreign_dai)
    suite.message_bridge.execute_message(Msg(deployer), message)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eth_utils import keccak

from .address import ZERO_ADDRESS, to_address
from .chain import Chain
from .contract import CallData, Contract, Msg, encode_call, external, payable, view
from .errors import Revert
from .tokens import BridgedToken
from . import events

logger = logging.getLogger("forwarder.bridges")

ZERO_MESSAGE_ID = "0x" + "0" * 64


# ---------------------------------------------------------------------------
# Token bridge
# ---------------------------------------------------------------------------

class OmniMediator(Contract):
    """Home-side token mediator with a home→foreign token registry."""

    code_name = "HomeOmnibridge"

    def __init__(self, foreign_chain_id: int = 1):
        super().__init__()
        self.foreign_chain_id = foreign_chain_id

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({
            "owner": deployer,
            "foreign_tokens": {},
            "outbox": [],
            "nonce": 0,
        })

    def _only_owner(self, msg: Msg) -> None:
        if to_address(msg.sender) != self.storage["owner"]:
            raise Revert("Omnibridge: caller is not the owner")

    @external
    def register_token_pair(self, msg: Msg, home_token: str, foreign_token: str) -> None:
        self._only_owner(msg)
        self.storage["foreign_tokens"][to_address(home_token)] = to_address(foreign_token)

    @external
    def deploy_bridged_token(self, msg: Msg, token_name: str, token_symbol: str,
                             foreign_token: str, token_decimals: int = 18) -> BridgedToken:
        """Create the home representation of *foreign_token*."""
        self._only_owner(msg)
        token = self.chain.deploy(
            BridgedToken(token_name, token_symbol, bridge=self.address,
                         token_decimals=token_decimals),
            deployer=self.address,
        )
        self.storage["foreign_tokens"][token.address] = to_address(foreign_token)
        logger.info("Omnibridge: bridged token %s -> %s", token.address, foreign_token)
        return token

    @external
    def handle_bridged_tokens(self, msg: Msg, token: str, recipient: str, amount: int) -> None:
        """Complete an inbound transfer by minting the home representation."""
        self._only_owner(msg)
        contract = self.chain.get_contract(token)
        if not isinstance(contract, BridgedToken) or not contract.is_bridge(self.address):
            raise Revert("Omnibridge: token is not bridged by this mediator")
        contract.mint(Msg(self.address), recipient, amount)

    @view
    def foreign_token_address(self, token: str) -> str:
        return self.storage["foreign_tokens"].get(to_address(token), ZERO_ADDRESS)

    @external
    def relay_tokens(self, msg: Msg, token: str, receiver: str, amount: int) -> str:
        """Send *amount* of *token* from the caller to *receiver* on the foreign chain."""
        if amount <= 0:
            raise Revert("Omnibridge: zero amount")
        receiver = to_address(receiver)
        if receiver == ZERO_ADDRESS:
            raise Revert("Omnibridge: receiver is the zero address")
        token = to_address(token)
        contract = self.chain.get_contract(token)
        if contract is None:
            raise Revert("Omnibridge: token is not a contract")

        sender = to_address(msg.sender)
        self.chain.call(self.address, token,
                        data=encode_call("transfer_from", sender, self.address, amount))
        if isinstance(contract, BridgedToken) and contract.is_bridge(self.address):
            contract.burn(Msg(self.address), amount)

        nonce = self.storage["nonce"]
        self.storage["nonce"] = nonce + 1
        message_id = "0x" + keccak(
            text=f"{self.chain.chain_id}:{self.address}:{nonce}"
        ).hex()
        self.storage["outbox"].append({
            "message_id": message_id,
            "token": token,
            "foreign_token": self.foreign_token_address(token),
            "sender": sender,
            "receiver": receiver,
            "amount": amount,
            "dest_chain_id": self.foreign_chain_id,
        })
        self.emit(events.TOKENS_BRIDGING_INITIATED, token=token, sender=sender,
                  value=amount, message_id=message_id)
        logger.info("Omnibridge: relay %d of %s from %s to %s (msg=%s)",
                    amount, token, sender, receiver, message_id[:10])
        return message_id

    @view
    def outbound_transfers(self) -> List[Dict[str, Any]]:
        return [dict(record) for record in self.storage["outbox"]]


# ---------------------------------------------------------------------------
# Native bridge
# ---------------------------------------------------------------------------

class NativeBridge(Contract):
    """Home-side native bridge: native value in, withdrawal request out."""

    code_name = "XDaiHomeBridge"

    def __init__(self, foreign_chain_id: int = 1, min_per_tx: int = 1):
        super().__init__()
        self.foreign_chain_id = foreign_chain_id
        self.min_per_tx = min_per_tx

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({"outbox": [], "total_relayed": 0})

    @payable
    def relay_tokens(self, msg: Msg, receiver: str) -> None:
        if msg.value < max(self.min_per_tx, 1):
            raise Revert("NativeBridge: value below minimum per transaction")
        receiver = to_address(receiver)
        if receiver == ZERO_ADDRESS:
            raise Revert("NativeBridge: receiver is the zero address")
        self.storage["outbox"].append({
            "sender": to_address(msg.sender),
            "receiver": receiver,
            "amount": msg.value,
            "dest_chain_id": self.foreign_chain_id,
        })
        self.storage["total_relayed"] += msg.value
        self.emit(events.USER_REQUEST_FOR_SIGNATURE, recipient=receiver, value=msg.value)
        logger.info("NativeBridge: relay %d from %s to %s", msg.value, msg.sender, receiver)

    @view
    def outbound_transfers(self) -> List[Dict[str, Any]]:
        return [dict(record) for record in self.storage["outbox"]]


# ---------------------------------------------------------------------------
# Arbitrary message bridge
# ---------------------------------------------------------------------------

@dataclass
class CrossChainMessage:
    """An inbound message relayed by the ``MessageBridge``.

    Fields
    ------
    nonce : int
        Per-sender sequence number on the source chain.
    source_chain_id : int
        Chain the message was sent from.
    dest_chain_id : int
        Chain the message must execute on.
    sender : str
        Address that sent the message on the source chain.
    target : str
        Contract to call on the destination chain.
    data : CallData
        The call to execute on ``target``.
    """

    nonce: int = 0
    source_chain_id: int = 0
    dest_chain_id: int = 0
    sender: str = ZERO_ADDRESS
    target: str = ZERO_ADDRESS
    data: Optional[CallData] = None
    msg_id: str = field(default="")

    def compute_hash(self) -> str:
        """Deterministic id over everything but ``msg_id``."""
        payload = json.dumps({
            "nonce": self.nonce,
            "source_chain_id": self.source_chain_id,
            "dest_chain_id": self.dest_chain_id,
            "sender": self.sender,
            "target": self.target,
            "call": self.data.describe() if self.data else "",
        }, sort_keys=True)
        return "0x" + keccak(text=payload).hex()

    def __post_init__(self) -> None:
        if not self.msg_id:
            self.msg_id = self.compute_hash()


class MessageBridge(Contract):
    """Home-side AMB: executes validator-relayed messages."""

    code_name = "HomeAMB"

    def __init__(self, validators: Optional[List[str]] = None):
        super().__init__()
        self._validators = [to_address(v) for v in (validators or [])]

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({
            "validators": list(self._validators) or [deployer],
            "current": self._empty_context(),
            "processed": {},
        })

    @staticmethod
    def _empty_context() -> Dict[str, Any]:
        return {"sender": ZERO_ADDRESS, "source_chain_id": 0, "message_id": ZERO_MESSAGE_ID}

    # ── Message context (valid only while a message executes) ─────

    @view
    def message_sender(self) -> str:
        return self.storage["current"]["sender"]

    @view
    def message_source_chain_id(self) -> int:
        return self.storage["current"]["source_chain_id"]

    @view
    def message_id(self) -> str:
        return self.storage["current"]["message_id"]

    @view
    def message_call_status(self, message_id: str) -> Optional[bool]:
        return self.storage["processed"].get(message_id)

    # ── Execution ─────────────────────────────────────────────────

    @external
    def execute_message(self, msg: Msg, message: CrossChainMessage) -> bool:
        """Execute *message* on its target; returns the call's success.

        A failing target call is recorded, not propagated, so the
        message is consumed either way.
        """
        if to_address(msg.sender) not in self.storage["validators"]:
            raise Revert("AMB: caller is not a validator")
        if message.dest_chain_id != self.chain.chain_id:
            raise Revert(f"AMB: message is for chain {message.dest_chain_id}")
        if message.msg_id in self.storage["processed"]:
            raise Revert("AMB: message already processed")

        self.storage["current"] = {
            "sender": to_address(message.sender),
            "source_chain_id": message.source_chain_id,
            "message_id": message.msg_id,
        }
        result = self.chain.try_call(self.address, message.target, message.data)
        self.storage["current"] = self._empty_context()
        self.storage["processed"][message.msg_id] = result.success

        self.emit(events.RELAYED_MESSAGE, sender=to_address(message.sender),
                  executor=to_address(message.target),
                  message_id=message.msg_id, status=result.success)
        if result.success:
            logger.info("AMB: executed message %s on %s", message.msg_id[:10], message.target)
        else:
            logger.warning("AMB: message %s failed on %s: %s",
                           message.msg_id[:10], message.target, result.reason)
        return result.success


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

@dataclass
class BridgeSuite:
    """The three simulated bridges deployed on one chain."""
    mediator: OmniMediator
    native_bridge: NativeBridge
    message_bridge: MessageBridge

    def addresses(self) -> Dict[str, str]:
        return {
            "omnibridge": self.mediator.address,
            "native_bridge": self.native_bridge.address,
            "message_bridge": self.message_bridge.address,
        }


def deploy_simulated_bridges(chain: Chain, deployer: str, foreign_chain_id: int = 1,
                             validators: Optional[List[str]] = None) -> BridgeSuite:
    """Deploy mediator, native bridge and AMB on *chain*, owned by *deployer*."""
    suite = BridgeSuite(
        mediator=chain.deploy(OmniMediator(foreign_chain_id), deployer=deployer),
        native_bridge=chain.deploy(NativeBridge(foreign_chain_id), deployer=deployer),
        message_bridge=chain.deploy(MessageBridge(validators), deployer=deployer),
    )
    logger.info("Deployed simulated bridges on %s: %s", chain.name, suite.addresses())
    return suite

"""
Token contracts for the forwarder's chains.

  - ``ERC20Token``   — plain fungible token.  Knows nothing about
                       bridges, so metadata queries against it revert.
  - ``BridgedToken`` — a bridge-minted representation that describes
                       itself: ``bridge_contract()`` and ``is_bridge()``,
                       in the style of the OmniBridge ``PermittableToken``.

All balances live in chain storage, so token movements are undone along
with any reverted call.

Usage::

    dai = chain.deploy(ERC20Token("Dai", "DAI", owner=alice), deployer=alice)
    dai.mint(Msg(alice), bob, 500)
    dai.transfer(Msg(bob), carol, 200)
"""

from __future__ import annotations

import logging
from typing import Dict

from .address import ZERO_ADDRESS, to_address
from .contract import Contract, Msg, external, view
from .errors import Revert
from . import events

logger = logging.getLogger("forwarder.tokens")


class ERC20Token(Contract):
    """Reference fungible token.  Amounts are in the smallest unit."""

    code_name = "ERC20Token"

    def __init__(self, token_name: str, token_symbol: str,
                 token_decimals: int = 18, owner: str = ""):
        super().__init__()
        self._name = token_name
        self._symbol = token_symbol
        self._decimals = token_decimals
        self._owner = to_address(owner) if owner else ""

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({
            "owner": self._owner or deployer,
            "total_supply": 0,
            "balances": {},
            "allowances": {},
        })

    # ── Views ─────────────────────────────────────────────────────

    @view
    def name(self) -> str:
        return self._name

    @view
    def symbol(self) -> str:
        return self._symbol

    @view
    def decimals(self) -> int:
        return self._decimals

    @view
    def total_supply(self) -> int:
        return self.storage["total_supply"]

    @view
    def balance_of(self, account: str) -> int:
        return self.storage["balances"].get(to_address(account), 0)

    @view
    def allowance(self, owner: str, spender: str) -> int:
        return self.storage["allowances"].get(to_address(owner), {}).get(to_address(spender), 0)

    # ── Transfers ─────────────────────────────────────────────────

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise Revert("ERC20: negative amount")
        if recipient == ZERO_ADDRESS:
            raise Revert("ERC20: transfer to the zero address")
        balances: Dict[str, int] = self.storage["balances"]
        if balances.get(sender, 0) < amount:
            raise Revert("ERC20: transfer amount exceeds balance")
        balances[sender] = balances.get(sender, 0) - amount
        balances[recipient] = balances.get(recipient, 0) + amount
        self.emit(events.TRANSFER, **{"from": sender, "to": recipient, "value": amount})

    @external
    def transfer(self, msg: Msg, recipient: str, amount: int) -> bool:
        self._move(to_address(msg.sender), to_address(recipient), amount)
        return True

    @external
    def approve(self, msg: Msg, spender: str, amount: int) -> bool:
        if amount < 0:
            raise Revert("ERC20: negative allowance")
        owner = to_address(msg.sender)
        spender = to_address(spender)
        self.storage["allowances"].setdefault(owner, {})[spender] = amount
        self.emit(events.APPROVAL, owner=owner, spender=spender, value=amount)
        return True

    @external
    def transfer_from(self, msg: Msg, from_addr: str, to_addr: str, amount: int) -> bool:
        spender = to_address(msg.sender)
        from_addr = to_address(from_addr)
        allowed = self.allowance(from_addr, spender)
        if allowed < amount:
            raise Revert("ERC20: insufficient allowance")
        self._move(from_addr, to_address(to_addr), amount)
        self.storage["allowances"].setdefault(from_addr, {})[spender] = allowed - amount
        return True

    # ── Supply ────────────────────────────────────────────────────

    def _mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise Revert("ERC20: negative amount")
        to = to_address(to)
        balances = self.storage["balances"]
        balances[to] = balances.get(to, 0) + amount
        self.storage["total_supply"] += amount
        self.emit(events.TRANSFER, **{"from": ZERO_ADDRESS, "to": to, "value": amount})

    def _burn(self, holder: str, amount: int) -> None:
        holder = to_address(holder)
        balances = self.storage["balances"]
        if balances.get(holder, 0) < amount:
            raise Revert("ERC20: burn amount exceeds balance")
        balances[holder] -= amount
        self.storage["total_supply"] -= amount
        self.emit(events.TRANSFER, **{"from": holder, "to": ZERO_ADDRESS, "value": amount})

    @external
    def mint(self, msg: Msg, to: str, amount: int) -> None:
        if to_address(msg.sender) != self.storage["owner"]:
            raise Revert("ERC20: caller is not the owner")
        self._mint(to, amount)

    @external
    def burn(self, msg: Msg, amount: int) -> None:
        self._burn(msg.sender, amount)


class BridgedToken(ERC20Token):
    """Token minted by a bridge mediator, reporting which bridge owns it."""

    code_name = "BridgedToken"

    def __init__(self, token_name: str, token_symbol: str,
                 bridge: str, token_decimals: int = 18):
        super().__init__(token_name, token_symbol, token_decimals, owner=bridge)
        self._bridge = to_address(bridge)

    @view
    def bridge_contract(self) -> str:
        return self._bridge

    @view
    def is_bridge(self, address: str) -> bool:
        return to_address(address) == self._bridge

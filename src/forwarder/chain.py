"""
Forwarder — Chain

An in-memory, EVM-shaped ledger: accounts with native balances, nonces
and code; per-contract storage; an event log; and CREATE / CREATE2
deployment.

Every state-changing entry point runs inside ``atomic()``, which opens
a journal frame.  The first time a frame touches an account or a
contract's storage, the prior value is copied into the frame; if the
block raises, those copies are put back, so a failed call leaves no
partial state behind and untouched state is never copied.  Nested
``atomic()`` blocks behave like nested EVM call frames: an inner
failure that the caller handles only undoes the inner frame.

Usage
-----
::

    chain = Chain(chain_id=100)
    chain.credit(alice, 10 ** 18)
    token = chain.deploy(ERC20Token("Dai", "DAI"), deployer=alice)
    chain.call(alice, token.address, data=encode_call("transfer", bob, 5))
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .address import (
    ZERO_ADDRESS,
    compute_create2_address,
    compute_create_address,
    to_address,
)
from .contract import CallData, Contract, Msg
from .errors import (
    DeploymentError,
    ExternalCallError,
    InsufficientBalanceError,
    Revert,
    ValidationError,
)
from .events import EventLog, LogFilter, filter_logs

logger = logging.getLogger("forwarder.chain")

_ABSENT = object()


class _Frame:
    """Pre-images of everything first touched inside one call frame."""

    __slots__ = ("accounts", "storage", "log_count", "deployed")

    def __init__(self, log_count: int):
        self.accounts: Dict[str, Any] = {}
        self.storage: Dict[str, Any] = {}
        self.log_count = log_count
        self.deployed: List[str] = []


@dataclass
class CallResult:
    """Outcome of a call whose failure is handled as a value."""
    success: bool = True
    return_value: Any = None
    error: Optional[Exception] = None

    @property
    def reason(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> Any:
        if not self.success:
            raise self.error
        return self.return_value


class Chain:
    """A single chain's world state."""

    def __init__(self, chain_id: int = 1, name: str = ""):
        self.chain_id = chain_id
        self.name = name or f"chain-{chain_id}"

        # address -> {"balance": int, "nonce": int, "code": bytes}
        self.accounts: Dict[str, Dict[str, Any]] = {}

        # address -> contract storage
        self.contract_state: Dict[str, Dict[str, Any]] = {}

        self.logs: List[EventLog] = []

        # address -> contract object (the "code" to dispatch into)
        self._contracts: Dict[str, Contract] = {}

        # open call frames, innermost last
        self._frames: List[_Frame] = []

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account(self, address: str) -> Dict[str, Any]:
        address = to_address(address)
        self._record("accounts", self.accounts, address)
        return self.accounts.setdefault(address, {"balance": 0, "nonce": 0, "code": b""})

    def balance_of(self, address: str) -> int:
        acct = self.accounts.get(to_address(address))
        return acct["balance"] if acct else 0

    def credit(self, address: str, amount: int) -> None:
        """Mint native value to *address* (test faucet / genesis allocation)."""
        if amount < 0:
            raise ValidationError("Credit amount must be non-negative")
        self.get_account(address)["balance"] += amount

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("Transfer amount must be non-negative")
        sender_acct = self.get_account(sender)
        if sender_acct["balance"] < amount:
            raise InsufficientBalanceError(
                to_address(sender), "native", sender_acct["balance"], amount,
            )
        sender_acct["balance"] -= amount
        self.get_account(to)["balance"] += amount

    def get_code(self, address: str) -> bytes:
        acct = self.accounts.get(to_address(address))
        return acct["code"] if acct else b""

    def has_code(self, address: str) -> bool:
        return len(self.get_code(address)) > 0

    def get_contract(self, address: str) -> Optional[Contract]:
        return self._contracts.get(to_address(address))

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def _record(self, attr: str, live: Dict[str, Dict[str, Any]], address: str) -> None:
        # frames holding an entry for an address always form an outermost prefix
        for frame in reversed(self._frames):
            saved = getattr(frame, attr)
            if address in saved:
                break
            current = live.get(address)
            saved[address] = _ABSENT if current is None else copy.deepcopy(current)

    def storage_of(self, address: str) -> Dict[str, Any]:
        """Storage of the contract at *address*, journalled for the open frames."""
        self._record("storage", self.contract_state, address)
        return self.contract_state.setdefault(address, {})

    @staticmethod
    def _restore_into(live: Dict[str, Dict[str, Any]], saved: Dict[str, Any]) -> None:
        # in place, so dicts already handed out stay current
        for key, value in saved.items():
            if value is _ABSENT:
                live.pop(key, None)
                continue
            current = live.get(key)
            if current is None:
                live[key] = value
            else:
                current.clear()
                current.update(value)

    def _rollback(self, frame: _Frame) -> None:
        self._restore_into(self.accounts, frame.accounts)
        self._restore_into(self.contract_state, frame.storage)
        del self.logs[frame.log_count:]
        for address in frame.deployed:
            self._contracts.pop(address, None)

    @contextmanager
    def _frame(self) -> Iterator[_Frame]:
        frame = _Frame(len(self.logs))
        self._frames.append(frame)
        try:
            yield frame
        finally:
            self._frames.pop()

    @property
    def depth(self) -> int:
        """Number of open call frames."""
        return len(self._frames)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Commit everything in the block, or nothing if it raises."""
        with self._frame() as frame:
            try:
                yield
            except Exception:
                self._rollback(frame)
                raise

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    def deploy(
        self,
        contract: Contract,
        deployer: str,
        salt: Optional[bytes] = None,
        init_code: Optional[bytes] = None,
        runtime_code: Optional[bytes] = None,
    ) -> Contract:
        """Deploy *contract* with CREATE, or CREATE2 when *salt* is given.

        Raises ``DeploymentError`` if the target address is already
        occupied.
        """
        deployer = to_address(deployer)
        with self.atomic():
            deployer_acct = self.get_account(deployer)
            if salt is None:
                address = compute_create_address(deployer, deployer_acct["nonce"])
            else:
                if init_code is None:
                    raise DeploymentError("CREATE2 deployment requires init code")
                address = compute_create2_address(deployer, salt, init_code)
            deployer_acct["nonce"] += 1

            existing = self.accounts.get(address)
            if existing and (existing["code"] or existing["nonce"]):
                raise DeploymentError(f"Contract already exists at {address}")

            acct = self.get_account(address)
            acct["code"] = runtime_code if runtime_code is not None else contract.runtime_code()
            acct["nonce"] = 1
            contract.bind(self, address)
            self._contracts[address] = contract
            for frame in self._frames:
                frame.deployed.append(address)
            self.storage_of(address)
            contract.on_deploy(deployer)

        logger.debug("Deployed %s at %s (deployer=%s)", contract.code_name, address, deployer)
        return contract

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def call(
        self,
        sender: str,
        target: str,
        value: int = 0,
        data: Optional[CallData] = None,
    ) -> Any:
        """Message call from *sender* to *target*.

        Transfers *value* first, then dispatches *data* to the target
        contract.  A plain value transfer to a contract goes to its
        ``receive`` hook.  Any exception reverts the whole call and
        reaches the caller unchanged.
        """
        sender = to_address(sender)
        target = to_address(target)
        with self.atomic():
            if value:
                self.transfer_native(sender, target, value)

            contract = self._contracts.get(target)
            if data is None:
                if contract is None:
                    return None
                receive = getattr(contract, "receive", None)
                if receive is None:
                    raise Revert(f"{contract.code_name} cannot receive native value")
                return receive(Msg(sender, value))

            if contract is None:
                raise ExternalCallError(f"Call to non-contract account {target}")
            fn = getattr(contract, data.function, None)
            if fn is None or not getattr(fn, "_external", False):
                raise Revert(f"{contract.code_name}: unknown function '{data.function}'")
            if getattr(fn, "_view", False):
                if value:
                    raise Revert(f"{contract.code_name}.{data.function} is not payable")
                return fn(*data.args, **data.kwargs)
            if value and not getattr(fn, "_payable", False):
                raise Revert(f"{contract.code_name}.{data.function} is not payable")
            return fn(Msg(sender, value), *data.args, **data.kwargs)

    def try_call(
        self,
        sender: str,
        target: str,
        data: Optional[CallData] = None,
        value: int = 0,
    ) -> CallResult:
        """Like ``call`` but the outcome is returned as a ``CallResult``.

        Success commits; failure is rolled back and captured.
        """
        try:
            result = self.call(sender, target, value, data)
        except Exception as exc:
            logger.debug("try_call %s -> %s failed: %s", sender, target, exc)
            return CallResult(success=False, error=exc)
        return CallResult(return_value=result)

    def static_call(self, target: str, function: str, *args: Any,
                    sender: str = ZERO_ADDRESS, **kwargs: Any) -> CallResult:
        """Query *target*; state is always restored afterwards."""
        with self._frame() as frame:
            try:
                return self.try_call(sender, target, CallData(function, args, kwargs))
            finally:
                self._rollback(frame)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def record_log(self, address: str, event: str, args: Dict[str, Any]) -> EventLog:
        log = EventLog(address=address, event=event, args=dict(args),
                       log_index=len(self.logs))
        self.logs.append(log)
        return log

    def get_logs(self, address: Optional[Any] = None, event: Optional[str] = None,
                 **args: Any) -> List[EventLog]:
        return filter_logs(self.logs, LogFilter(address=address, event=event, args=args))

    def __repr__(self) -> str:
        return f"<Chain {self.name} id={self.chain_id} accounts={len(self.accounts)}>"

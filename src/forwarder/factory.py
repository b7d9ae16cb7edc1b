"""
Forwarder — Clone Factory

Deploys forwarder clones of one implementation at CREATE2 addresses
derived from the recipient, so that ``predict_address`` gives the same
answer before and after deployment.

Deployment paths
----------------
*   ``deploy``             strict: fails if the forwarder already exists.
*   ``batch_deploy``       strict and all-or-nothing.
*   ``get_or_deploy``      idempotent: returns the existing forwarder.
*   ``deploy_and_forward`` idempotent deployment, then a best-effort
                           sweep of the listed assets; a failing asset is
                           reported, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .address import (
    ZERO_ADDRESS,
    SaltLike,
    clone_init_code,
    derive_salt,
    normalize_salt,
    predict_clone_address,
    to_address,
)
from .contract import Contract, Msg, external, view
from .core import Forwarder, ForwarderImplementation, ForwardResult, forward_asset
from .errors import ConfigurationError, DeploymentError, ValidationError
from . import events

logger = logging.getLogger("forwarder.factory")


@dataclass
class ForwardConfig:
    """One forwarder to deploy in ``deploy_and_forward`` and the assets to sweep.

    A ``None`` or zero-address entry in ``tokens`` means the native asset.
    """
    salt: SaltLike = 0
    tokens: List[Optional[str]] = field(default_factory=list)


@dataclass
class DeploymentRecord:
    implementation: str
    recipient: str
    salt: str
    address: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        return cls(**data)


@dataclass
class SweepReport:
    """Per-forwarder result of ``deploy_and_forward``."""
    address: str
    salt: str
    results: List[ForwardResult] = field(default_factory=list)

    @property
    def failed(self) -> List[ForwardResult]:
        return [r for r in self.results if not r.success]


class CloneFactory(Contract):
    """Deterministic deployer of forwarder clones."""

    code_name = "ForwarderFactory"

    def __init__(self, implementation: ForwarderImplementation):
        super().__init__()
        self.implementation = implementation

    def on_deploy(self, deployer: str) -> None:
        self.storage.update({"deployments": {}, "count": 0})

    # ------------------------------------------------------------------
    # Prediction & records
    # ------------------------------------------------------------------

    @view
    def implementation_address(self) -> str:
        return self.implementation.address

    @view
    def compute_salt(self, recipient: str, salt: SaltLike = 0) -> str:
        return "0x" + derive_salt(recipient, salt).hex()

    @view
    def predict_address(self, recipient: str, salt: SaltLike = 0) -> str:
        return predict_clone_address(self.address, self.implementation.address, recipient, salt)

    def _record_key(self, recipient: str, salt: SaltLike) -> str:
        return f"{self.implementation.address}:{to_address(recipient)}:0x{normalize_salt(salt).hex()}"

    @view
    def deployment_of(self, recipient: str, salt: SaltLike = 0) -> Optional[DeploymentRecord]:
        data = self.storage["deployments"].get(self._record_key(recipient, salt))
        return DeploymentRecord.from_dict(data) if data else None

    @view
    def deployments_for(self, recipient: str) -> List[DeploymentRecord]:
        recipient = to_address(recipient)
        return [DeploymentRecord.from_dict(d) for d in self.storage["deployments"].values()
                if d["recipient"] == recipient]

    @view
    def deployment_count(self) -> int:
        return self.storage["count"]

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    def _deploy(self, recipient: str, salt: SaltLike) -> str:
        recipient = to_address(recipient)
        if recipient == ZERO_ADDRESS:
            raise ConfigurationError("Recipient is the zero address")
        raw_salt = normalize_salt(salt)
        predicted = self.predict_address(recipient, raw_salt)

        instance = self.chain.deploy(
            Forwarder(self.implementation),
            deployer=self.address,
            salt=derive_salt(recipient, raw_salt),
            init_code=clone_init_code(self.implementation.address),
        )
        if instance.address != predicted or not self.chain.has_code(instance.address):
            raise DeploymentError(f"Clone creation failed for {recipient}")
        instance.initialize(Msg(self.address), recipient)

        record = DeploymentRecord(
            implementation=self.implementation.address,
            recipient=recipient,
            salt="0x" + raw_salt.hex(),
            address=instance.address,
        )
        self.storage["deployments"][self._record_key(recipient, raw_salt)] = record.to_dict()
        self.storage["count"] += 1
        self.emit(events.FORWARDER_DEPLOYED, implementation=self.implementation.address,
                  recipient=recipient, address=instance.address)
        logger.info("Deployed forwarder %s for %s", instance.address, recipient)
        return instance.address

    def _get_or_deploy(self, recipient: str, salt: SaltLike) -> str:
        predicted = self.predict_address(recipient, salt)
        if self.chain.has_code(predicted):
            logger.debug("Forwarder for %s already at %s", recipient, predicted)
            return predicted
        return self._deploy(recipient, salt)

    @external
    def deploy(self, msg: Msg, recipient: str, salt: SaltLike = 0) -> str:
        return self._deploy(recipient, salt)

    @external
    def get_or_deploy(self, msg: Msg, recipient: str, salt: SaltLike = 0) -> str:
        return self._get_or_deploy(recipient, salt)

    @external
    def batch_deploy(self, msg: Msg, recipients: List[str], salts: List[SaltLike]) -> List[str]:
        """Deploy one forwarder per ``(recipient, salt)`` pair, or none at all."""
        if len(recipients) != len(salts):
            raise ValidationError(
                f"Array length mismatch: {len(recipients)} recipients, {len(salts)} salts"
            )
        return [self._deploy(recipient, salt) for recipient, salt in zip(recipients, salts)]

    @external
    def deploy_and_forward(self, msg: Msg, recipient: str,
                           configs: List[ForwardConfig]) -> List[SweepReport]:
        reports: List[SweepReport] = []
        for config in configs:
            address = self._get_or_deploy(recipient, config.salt)
            report = SweepReport(address=address, salt="0x" + normalize_salt(config.salt).hex())
            for token in config.tokens:
                report.results.append(forward_asset(self.chain, self.address, address, token))
            reports.append(report)
        return reports

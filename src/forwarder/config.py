"""
Network configuration for forwarder deployments.

A ``NetworkConfig`` names the chain a forwarder lives on, the canonical
destination chain its recipients live on, the bridge contracts it talks
to and which chain adapter drives them.  Known networks ship in
``NETWORKS``; anything else comes from a dict or the environment.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .address import ZERO_ADDRESS, to_address
from .errors import ConfigurationError, ValidationError

ENV_PREFIX = "FORWARDER_"


@dataclass(frozen=True)
class NetworkConfig:
    """Where a forwarder runs and which bridges it uses."""

    name: str
    chain_id: int
    destination_chain_id: int
    omnibridge: str = ZERO_ADDRESS
    native_bridge: str = ZERO_ADDRESS
    message_bridge: str = ZERO_ADDRESS
    adapter: str = "gnosis"

    def validate(self) -> "NetworkConfig":
        """Return a normalised copy, or raise ``ConfigurationError``."""
        if self.chain_id <= 0 or self.destination_chain_id <= 0:
            raise ConfigurationError(f"{self.name}: chain ids must be positive")
        if self.chain_id == self.destination_chain_id:
            raise ConfigurationError(f"{self.name}: source and destination chain are the same")
        normalised = {}
        for key in ("omnibridge", "native_bridge", "message_bridge"):
            try:
                address = to_address(getattr(self, key))
            except ValidationError as exc:
                raise ConfigurationError(f"{self.name}: {key}: {exc}") from exc
            if address == ZERO_ADDRESS:
                raise ConfigurationError(f"{self.name}: {key} is not configured")
            normalised[key] = address
        return replace(self, **normalised)

    def with_overrides(self, **overrides: Any) -> "NetworkConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NetworkConfig":
        try:
            return cls(
                name=data["name"],
                chain_id=int(data["chain_id"]),
                destination_chain_id=int(data["destination_chain_id"]),
                omnibridge=data.get("omnibridge", ZERO_ADDRESS),
                native_bridge=data.get("native_bridge", ZERO_ADDRESS),
                message_bridge=data.get("message_bridge", ZERO_ADDRESS),
                adapter=data.get("adapter", "gnosis"),
            )
        except KeyError as exc:
            raise ConfigurationError(f"Missing network setting: {exc.args[0]}") from exc

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetworkConfig":
        """Start from ``FORWARDER_NETWORK`` (default gnosis) and apply env overrides."""
        env = os.environ if environ is None else environ
        base = get_network(env.get(ENV_PREFIX + "NETWORK", "gnosis"))
        overrides: Dict[str, Any] = {
            "omnibridge": env.get(ENV_PREFIX + "OMNIBRIDGE"),
            "native_bridge": env.get(ENV_PREFIX + "NATIVE_BRIDGE"),
            "message_bridge": env.get(ENV_PREFIX + "MESSAGE_BRIDGE"),
        }
        for key in ("CHAIN_ID", "DESTINATION_CHAIN_ID"):
            raw = env.get(ENV_PREFIX + key)
            if raw is not None:
                try:
                    overrides[key.lower()] = int(raw)
                except ValueError:
                    raise ConfigurationError(f"{ENV_PREFIX}{key} must be an integer: {raw!r}") from None
        return base.with_overrides(**overrides)


NETWORKS: Dict[str, NetworkConfig] = {
    "gnosis": NetworkConfig(
        name="gnosis",
        chain_id=100,
        destination_chain_id=1,
        omnibridge="0xf6a78083ca3e2a662d6dd1703c939c8ace2e268d",
        native_bridge="0x7301cfa0e1756b71869e93d4e4dca5c7d0eb0aa6",
        message_bridge="0x75df5af045d91108662d8080fd1fefad6aa0bb59",
        adapter="gnosis",
    ),
}


def get_network(name: str) -> NetworkConfig:
    try:
        return NETWORKS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(NETWORKS))
        raise ConfigurationError(f"Unknown network '{name}' (known: {known})") from None

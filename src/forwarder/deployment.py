"""
Stack deployment.

``deploy_stack`` is a one-shot orchestration: it builds the chain adapter
from a network configuration, deploys the implementation template and
the factory bound to it, and hands back the wired result.  Nothing from
the orchestration outlives the call.

``deploy_local_stack`` does the same on a fresh in-memory chain with
simulated bridges, for tests, demos and the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .adapters import ChainAdapter, create_adapter
from .address import SaltLike, to_address
from .bridges import BridgeSuite, deploy_simulated_bridges
from .chain import Chain
from .config import NetworkConfig, get_network
from .core import ForwarderImplementation
from .errors import ConfigurationError
from .factory import CloneFactory

logger = logging.getLogger("forwarder.deployment")


@dataclass
class ForwarderStack:
    network: NetworkConfig
    adapter: ChainAdapter
    implementation: ForwarderImplementation
    factory: CloneFactory

    def predict(self, recipient: str, salt: SaltLike = 0) -> str:
        return self.factory.predict_address(recipient, salt)


def deploy_stack(chain: Chain, deployer: str, network: NetworkConfig) -> ForwarderStack:
    """Deploy implementation and factory for *network* on *chain*."""
    network = network.validate()
    if chain.chain_id != network.chain_id:
        raise ConfigurationError(
            f"Network '{network.name}' expects chain {network.chain_id}, "
            f"got {chain.chain_id}"
        )
    adapter = create_adapter(network)
    deployer = to_address(deployer)

    with chain.atomic():
        implementation = chain.deploy(ForwarderImplementation(adapter), deployer=deployer)
        factory = chain.deploy(CloneFactory(implementation), deployer=deployer)

    logger.info("Deployed %s stack on %s: implementation=%s factory=%s",
                network.name, chain.name, implementation.address, factory.address)
    return ForwarderStack(network=network, adapter=adapter,
                          implementation=implementation, factory=factory)


@dataclass
class LocalStack:
    chain: Chain
    bridges: BridgeSuite
    stack: ForwarderStack

    @property
    def factory(self) -> CloneFactory:
        return self.stack.factory


def deploy_local_stack(deployer: str, network: Optional[NetworkConfig] = None,
                       initial_balance: int = 0) -> LocalStack:
    """Fresh chain + simulated bridges + forwarder stack, owned by *deployer*.

    The bridge addresses in *network* (default: gnosis) are replaced by
    the simulated ones.
    """
    base = network or get_network("gnosis")
    chain = Chain(chain_id=base.chain_id, name=f"{base.name}-local")
    if initial_balance:
        chain.credit(deployer, initial_balance)

    bridges = deploy_simulated_bridges(chain, deployer,
                                       foreign_chain_id=base.destination_chain_id)
    local = base.with_overrides(**bridges.addresses())
    return LocalStack(chain=chain, bridges=bridges,
                      stack=deploy_stack(chain, deployer, local))

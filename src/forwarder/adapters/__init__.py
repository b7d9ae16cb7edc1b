"""
Chain adapters, keyed by the ``adapter`` name in a ``NetworkConfig``.
"""

from ..config import NetworkConfig
from ..errors import ConfigurationError
from .base import ChainAdapter
from .gnosis import GnosisAdapter

ADAPTERS = {
    GnosisAdapter.name: GnosisAdapter,
}


def create_adapter(network: NetworkConfig) -> ChainAdapter:
    try:
        adapter_cls = ADAPTERS[network.adapter]
    except KeyError:
        raise ConfigurationError(f"No chain adapter named '{network.adapter}'") from None
    return adapter_cls(network)


__all__ = ["ADAPTERS", "ChainAdapter", "GnosisAdapter", "create_adapter"]

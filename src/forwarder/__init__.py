"""
Bridge Forwarder

Deterministic per-recipient deposit addresses that relay whatever they
receive across a chain-specific bridge.

Features:
- CREATE2 address derivation shared by the factory and off-chain predictors
- Clone factory with strict, idempotent, batch and sweep deployment paths
- One-time-initialised forwarder state machine
- Chain adapters (Gnosis: OmniBridge, xDai bridge, AMB return channel)
- Journalled in-memory chain with simulated bridges for local runs
"""

__version__ = "0.1.0"

from .address import (
    ZERO_ADDRESS, to_address, derive_salt, normalize_salt,
    clone_init_code, compute_create_address, compute_create2_address,
    predict_clone_address,
)
from .errors import (
    ForwarderError, ConfigurationError, StateError, AuthorizationError,
    UnauthorizedSender, ValidationError, InvalidToken,
    InsufficientBalanceError, DeploymentError, ExternalCallError, Revert,
)
from .chain import Chain, CallResult
from .contract import Contract, Msg, CallData, encode_call
from .events import EventLog, LogFilter
from .config import NetworkConfig, NETWORKS, get_network
from .core import Forwarder, ForwarderImplementation, ForwardResult
from .factory import CloneFactory, ForwardConfig, DeploymentRecord, SweepReport
from .adapters import ADAPTERS, ChainAdapter, GnosisAdapter, create_adapter
from .registry import BridgeRegistryClient
from .deployment import ForwarderStack, LocalStack, deploy_stack, deploy_local_stack

__all__ = [
    "ZERO_ADDRESS", "to_address", "derive_salt", "normalize_salt",
    "clone_init_code", "compute_create_address", "compute_create2_address",
    "predict_clone_address",
    "ForwarderError", "ConfigurationError", "StateError", "AuthorizationError",
    "UnauthorizedSender", "ValidationError", "InvalidToken",
    "InsufficientBalanceError", "DeploymentError", "ExternalCallError", "Revert",
    "Chain", "CallResult", "Contract", "Msg", "CallData", "encode_call",
    "EventLog", "LogFilter",
    "NetworkConfig", "NETWORKS", "get_network",
    "Forwarder", "ForwarderImplementation", "ForwardResult",
    "CloneFactory", "ForwardConfig", "DeploymentRecord", "SweepReport",
    "ADAPTERS", "ChainAdapter", "GnosisAdapter", "create_adapter",
    "BridgeRegistryClient",
    "ForwarderStack", "LocalStack", "deploy_stack", "deploy_local_stack",
]

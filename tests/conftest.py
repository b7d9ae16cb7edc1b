"""
Pytest configuration for forwarder tests.
"""
import sys
import os

import pytest

# Importable without installation: put src/ on sys.path.
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
_SRC_DIR = os.path.join(_ROOT, 'src')

for _p in (_ROOT, _SRC_DIR):
	if _p not in sys.path:
		sys.path.insert(0, _p)

from forwarder.contract import Msg  # noqa: E402
from forwarder.deployment import deploy_local_stack  # noqa: E402

DEPLOYER = "0x" + "de" * 20
RECIPIENT = "0x" + "11" * 20
HOLDER = "0x" + "a0" * 20
FOREIGN_TOKEN = "0x" + "f0" * 20


@pytest.fixture
def local():
	"""Gnosis-like chain with simulated bridges and a deployed forwarder stack."""
	return deploy_local_stack(DEPLOYER)


@pytest.fixture
def bridged_token(local):
	"""A mediator-minted token with 1000 units held by HOLDER."""
	mediator = local.bridges.mediator
	token = mediator.deploy_bridged_token(Msg(DEPLOYER), "Dai Stablecoin", "DAI", FOREIGN_TOKEN)
	mediator.handle_bridged_tokens(Msg(DEPLOYER), token.address, HOLDER, 1000)
	return token


@pytest.fixture
def forwarder(local):
	"""RECIPIENT's forwarder, deployed and initialised."""
	address = local.factory.deploy(Msg(HOLDER), RECIPIENT, 0)
	return local.chain.get_contract(address)

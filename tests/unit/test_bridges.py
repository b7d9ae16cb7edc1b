"""
Tests for the simulated bridges and tokens:
  - ERC20Token / BridgedToken
  - OmniMediator (token pairs, relay, outbox)
  - NativeBridge
  - MessageBridge (validators, message context, replay protection)
  - BridgeRegistryClient
"""

import pytest

from forwarder.address import ZERO_ADDRESS, to_address
from forwarder.bridges import CrossChainMessage, deploy_simulated_bridges
from forwarder.chain import Chain
from forwarder.contract import Contract, Msg, encode_call, external
from forwarder.errors import Revert
from forwarder.registry import BridgeRegistryClient
from forwarder.tokens import BridgedToken, ERC20Token

OWNER = to_address("0x" + "de" * 20)
ALICE = to_address("0x" + "11" * 20)
BOB = to_address("0x" + "22" * 20)
FOREIGN = to_address("0x" + "f0" * 20)


class Recorder(Contract):
    """Records what the message bridge reports while it is being called."""

    code_name = "Recorder"

    def on_deploy(self, deployer):
        self.storage["seen"] = []

    @external
    def ping(self, msg, bridge):
        seen = (
            msg.sender,
            self.chain.static_call(bridge, "message_sender").unwrap(),
            self.chain.static_call(bridge, "message_source_chain_id").unwrap(),
        )
        # re-read storage: static calls restore it in place
        self.storage["seen"].append(seen)
        return True

    @external
    def fail(self, msg):
        raise Revert("Recorder: failed on purpose")


def _make_suite():
    chain = Chain(chain_id=100)
    suite = deploy_simulated_bridges(chain, OWNER, foreign_chain_id=1)
    return chain, suite


def _message(target, data, nonce=0, source=1, dest=100, sender=ALICE):
    return CrossChainMessage(nonce=nonce, source_chain_id=source, dest_chain_id=dest,
                             sender=sender, target=target, data=data)


class TestTokens:
    def test_transfer_from_consumes_allowance(self):
        chain = Chain()
        token = chain.deploy(ERC20Token("T", "T", owner=ALICE), deployer=ALICE)
        token.mint(Msg(ALICE), ALICE, 100)
        token.approve(Msg(ALICE), BOB, 30)
        token.transfer_from(Msg(BOB), ALICE, BOB, 20)
        assert token.balance_of(BOB) == 20
        assert token.allowance(ALICE, BOB) == 10
        with pytest.raises(Revert, match="insufficient allowance"):
            token.transfer_from(Msg(BOB), ALICE, BOB, 11)

    def test_zero_transfer_from_without_allowance(self):
        chain = Chain()
        token = chain.deploy(ERC20Token("T", "T", owner=ALICE), deployer=ALICE)
        token.mint(Msg(ALICE), ALICE, 5)
        assert token.transfer_from(Msg(BOB), ALICE, BOB, 0) is True
        assert token.allowance(ALICE, BOB) == 0
        assert token.balance_of(ALICE) == 5

    def test_only_owner_mints(self):
        chain = Chain()
        token = chain.deploy(ERC20Token("T", "T"), deployer=ALICE)
        with pytest.raises(Revert, match="not the owner"):
            token.mint(Msg(BOB), BOB, 1)

    def test_burn_reduces_supply(self):
        chain = Chain()
        token = chain.deploy(ERC20Token("T", "T"), deployer=ALICE)
        token.mint(Msg(ALICE), ALICE, 10)
        token.burn(Msg(ALICE), 4)
        assert token.total_supply() == 6

    def test_bridged_token_metadata(self):
        chain, suite = _make_suite()
        token = suite.mediator.deploy_bridged_token(Msg(OWNER), "Dai", "DAI", FOREIGN)
        assert isinstance(token, BridgedToken)
        assert token.bridge_contract() == suite.mediator.address
        assert token.is_bridge(suite.mediator.address)
        assert not token.is_bridge(ALICE)
        assert token.symbol() == "DAI" and token.decimals() == 18


class TestOmniMediator:
    def test_registry_mapping(self):
        chain, suite = _make_suite()
        token = suite.mediator.deploy_bridged_token(Msg(OWNER), "Dai", "DAI", FOREIGN)
        assert suite.mediator.foreign_token_address(token.address) == FOREIGN
        assert suite.mediator.foreign_token_address(ALICE) == ZERO_ADDRESS

    def test_register_token_pair_owner_only(self):
        chain, suite = _make_suite()
        with pytest.raises(Revert, match="not the owner"):
            suite.mediator.register_token_pair(Msg(ALICE), ALICE, FOREIGN)
        suite.mediator.register_token_pair(Msg(OWNER), ALICE, FOREIGN)
        assert suite.mediator.foreign_token_address(ALICE) == FOREIGN

    def test_relay_burns_bridged_token(self):
        chain, suite = _make_suite()
        mediator = suite.mediator
        token = mediator.deploy_bridged_token(Msg(OWNER), "Dai", "DAI", FOREIGN)
        mediator.handle_bridged_tokens(Msg(OWNER), token.address, ALICE, 100)

        token.approve(Msg(ALICE), mediator.address, 60)
        message_id = mediator.relay_tokens(Msg(ALICE), token.address, BOB, 60)

        assert token.balance_of(ALICE) == 40
        assert token.balance_of(mediator.address) == 0
        assert token.total_supply() == 40
        [record] = mediator.outbound_transfers()
        assert record["receiver"] == BOB
        assert record["amount"] == 60
        assert record["foreign_token"] == FOREIGN
        assert record["message_id"] == message_id
        assert chain.get_logs(event="TokensBridgingInitiated")[0]["value"] == 60

    def test_relay_locks_native_token(self):
        chain, suite = _make_suite()
        mediator = suite.mediator
        token = chain.deploy(ERC20Token("T", "T"), deployer=ALICE)
        token.mint(Msg(ALICE), ALICE, 10)
        token.approve(Msg(ALICE), mediator.address, 10)
        mediator.relay_tokens(Msg(ALICE), token.address, BOB, 10)
        assert token.balance_of(mediator.address) == 10

    def test_relay_without_allowance_leaves_nothing(self):
        chain, suite = _make_suite()
        mediator = suite.mediator
        token = mediator.deploy_bridged_token(Msg(OWNER), "Dai", "DAI", FOREIGN)
        mediator.handle_bridged_tokens(Msg(OWNER), token.address, ALICE, 100)
        with pytest.raises(Revert, match="insufficient allowance"):
            mediator.relay_tokens(Msg(ALICE), token.address, BOB, 60)
        assert mediator.outbound_transfers() == []
        assert token.balance_of(ALICE) == 100

    def test_relay_rejects_zero_amount(self):
        chain, suite = _make_suite()
        with pytest.raises(Revert, match="zero amount"):
            suite.mediator.relay_tokens(Msg(ALICE), FOREIGN, BOB, 0)


class TestNativeBridge:
    def test_relay(self):
        chain, suite = _make_suite()
        chain.credit(ALICE, 50)
        chain.call(ALICE, suite.native_bridge.address, value=50,
                   data=encode_call("relay_tokens", BOB))
        assert chain.balance_of(suite.native_bridge.address) == 50
        [record] = suite.native_bridge.outbound_transfers()
        assert record["receiver"] == BOB and record["amount"] == 50

    def test_relay_requires_value(self):
        chain, suite = _make_suite()
        with pytest.raises(Revert, match="below minimum"):
            chain.call(ALICE, suite.native_bridge.address,
                       data=encode_call("relay_tokens", BOB))


class TestMessageBridge:
    def test_context_visible_only_during_execution(self):
        chain, suite = _make_suite()
        amb = suite.message_bridge
        recorder = chain.deploy(Recorder(), deployer=OWNER)

        message = _message(recorder.address, encode_call("ping", amb.address))
        ok = amb.execute_message(Msg(OWNER), message)
        assert ok is True
        assert recorder.storage["seen"] == [(amb.address, ALICE, 1)]
        assert amb.message_sender() == ZERO_ADDRESS
        assert amb.message_source_chain_id() == 0

    def test_failed_target_is_recorded_not_raised(self):
        chain, suite = _make_suite()
        amb = suite.message_bridge
        recorder = chain.deploy(Recorder(), deployer=OWNER)
        message = _message(recorder.address, encode_call("fail"))
        assert amb.execute_message(Msg(OWNER), message) is False
        assert amb.message_call_status(message.msg_id) is False
        assert chain.get_logs(event="RelayedMessage")[0]["status"] is False

    def test_replay_rejected(self):
        chain, suite = _make_suite()
        amb = suite.message_bridge
        recorder = chain.deploy(Recorder(), deployer=OWNER)
        message = _message(recorder.address, encode_call("ping", amb.address))
        amb.execute_message(Msg(OWNER), message)
        with pytest.raises(Revert, match="already processed"):
            amb.execute_message(Msg(OWNER), message)

    def test_only_validators(self):
        chain, suite = _make_suite()
        with pytest.raises(Revert, match="not a validator"):
            suite.message_bridge.execute_message(Msg(ALICE), _message(ALICE, None))

    def test_wrong_destination_chain(self):
        chain, suite = _make_suite()
        with pytest.raises(Revert, match="for chain 5"):
            suite.message_bridge.execute_message(Msg(OWNER), _message(ALICE, None, dest=5))

    def test_message_id_depends_on_content(self):
        first = _message(ALICE, encode_call("ping", BOB))
        assert first.msg_id == first.compute_hash()
        assert first.msg_id != _message(ALICE, encode_call("ping", BOB), nonce=1).msg_id


class TestRegistryClient:
    def test_bridged_token(self):
        chain, suite = _make_suite()
        token = suite.mediator.deploy_bridged_token(Msg(OWNER), "Dai", "DAI", FOREIGN)
        registry = BridgeRegistryClient(chain, suite.mediator.address)
        assert registry.bridge_contract(token.address).return_value == suite.mediator.address
        assert registry.is_bridge(token.address, suite.mediator.address).return_value is True
        assert registry.has_foreign_asset(token.address)

    def test_plain_token_queries_fail_softly(self):
        chain, suite = _make_suite()
        token = chain.deploy(ERC20Token("T", "T"), deployer=ALICE)
        registry = BridgeRegistryClient(chain, suite.mediator.address)
        assert not registry.bridge_contract(token.address).success
        assert not registry.is_bridge(token.address, suite.mediator.address).success
        assert not registry.has_foreign_asset(token.address)

    def test_query_of_eoa_fails_softly(self):
        chain, suite = _make_suite()
        registry = BridgeRegistryClient(chain, suite.mediator.address)
        assert not registry.bridge_contract(ALICE).success

"""
Tests for the clone factory: prediction, strict / idempotent / batch
deployment, deployment records and deploy_and_forward sweeps.
"""

import pytest

from forwarder.address import ZERO_ADDRESS, derive_salt, predict_clone_address, to_address
from forwarder.contract import Msg
from forwarder.core import Forwarder
from forwarder.errors import ConfigurationError, DeploymentError, ValidationError
from forwarder.factory import DeploymentRecord, ForwardConfig
from forwarder.tokens import ERC20Token

HOLDER = to_address("0x" + "a0" * 20)
ALICE = to_address("0x" + "11" * 20)
BOB = to_address("0x" + "22" * 20)
CALLER = to_address("0x" + "33" * 20)


class TestPrediction:
    def test_predict_matches_free_function(self, local):
        factory = local.factory
        expected = predict_clone_address(factory.address, local.stack.implementation.address,
                                         ALICE, 4)
        assert factory.predict_address(ALICE, 4) == expected

    def test_compute_salt(self, local):
        assert local.factory.compute_salt(ALICE, 1) == "0x" + derive_salt(ALICE, 1).hex()

    def test_implementation_address(self, local):
        assert local.factory.implementation_address() == local.stack.implementation.address

    def test_prediction_holds_after_deploy(self, local):
        predicted = local.factory.predict_address(ALICE, 9)
        assert local.factory.deploy(Msg(CALLER), ALICE, 9) == predicted
        assert local.factory.predict_address(ALICE, 9) == predicted


class TestDeploy:
    def test_deploy_initialises_for_recipient(self, local):
        address = local.factory.deploy(Msg(CALLER), ALICE)
        instance = local.chain.get_contract(address)
        assert isinstance(instance, Forwarder)
        assert instance.recipient() == ALICE

    def test_event(self, local):
        address = local.factory.deploy(Msg(CALLER), ALICE)
        [log] = local.chain.get_logs(address=local.factory.address, event="ForwarderDeployed")
        assert log.args == {"implementation": local.stack.implementation.address,
                            "recipient": ALICE, "address": address}

    def test_deploy_is_strict(self, local):
        local.factory.deploy(Msg(CALLER), ALICE)
        with pytest.raises(DeploymentError, match="already exists"):
            local.factory.deploy(Msg(CALLER), ALICE)
        assert local.factory.deployment_count() == 1

    def test_salts_give_distinct_forwarders(self, local):
        first = local.factory.deploy(Msg(CALLER), ALICE, 0)
        second = local.factory.deploy(Msg(CALLER), ALICE, 1)
        assert first != second

    def test_zero_recipient(self, local):
        with pytest.raises(ConfigurationError, match="zero address"):
            local.factory.deploy(Msg(CALLER), ZERO_ADDRESS)
        assert local.factory.deployment_count() == 0

    def test_records(self, local):
        address = local.factory.deploy(Msg(CALLER), ALICE, 2)
        record = local.factory.deployment_of(ALICE, 2)
        assert record == DeploymentRecord(
            implementation=local.stack.implementation.address,
            recipient=ALICE,
            salt="0x" + "00" * 31 + "02",
            address=address,
        )
        assert local.factory.deployment_of(ALICE, 3) is None
        assert local.factory.deployments_for(ALICE) == [record]
        assert local.factory.deployments_for(BOB) == []
        assert DeploymentRecord.from_dict(record.to_dict()) == record


class TestGetOrDeploy:
    def test_idempotent(self, local):
        first = local.factory.get_or_deploy(Msg(CALLER), ALICE)
        second = local.factory.get_or_deploy(Msg(CALLER), ALICE)
        assert first == second
        assert local.factory.deployment_count() == 1
        assert len(local.chain.get_logs(event="ForwarderDeployed")) == 1


class TestBatchDeploy:
    def test_deploys_each_pair(self, local):
        addresses = local.factory.batch_deploy(Msg(CALLER), [ALICE, BOB], [0, 0])
        assert addresses == [local.factory.predict_address(ALICE), local.factory.predict_address(BOB)]
        assert local.factory.deployment_count() == 2

    def test_length_mismatch(self, local):
        with pytest.raises(ValidationError, match="length mismatch"):
            local.factory.batch_deploy(Msg(CALLER), [ALICE, BOB], [0])

    def test_all_or_nothing(self, local):
        local.factory.deploy(Msg(CALLER), BOB)
        with pytest.raises(DeploymentError):
            local.factory.batch_deploy(Msg(CALLER), [ALICE, BOB], [0, 0])
        assert not local.chain.has_code(local.factory.predict_address(ALICE))
        assert local.factory.deployment_count() == 1


class TestDeployAndForward:
    def test_sweeps_tokens_and_native(self, local, bridged_token):
        predicted = local.factory.predict_address(ALICE)
        bridged_token.transfer(Msg(HOLDER), predicted, 60)
        local.chain.credit(predicted, 8)

        [report] = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(salt=0, tokens=[bridged_token.address, None])],
        )

        assert report.address == predicted
        assert [(r.token, r.amount, r.success) for r in report.results] == [
            (bridged_token.address, 60, True),
            (None, 8, True),
        ]
        assert report.failed == []
        assert bridged_token.balance_of(predicted) == 0
        assert local.chain.balance_of(predicted) == 0

    def test_reuses_existing_forwarder(self, local, bridged_token):
        existing = local.factory.deploy(Msg(CALLER), ALICE)
        bridged_token.transfer(Msg(HOLDER), existing, 5)
        [report] = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(tokens=[bridged_token.address])],
        )
        assert report.address == existing
        assert report.results[0].amount == 5

    def test_empty_balance_is_skipped(self, local, bridged_token):
        [report] = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(tokens=[bridged_token.address, ZERO_ADDRESS])],
        )
        assert [r.skipped for r in report.results] == [True, True]
        assert report.failed == []
        assert local.chain.has_code(report.address)

    def test_failure_is_reported_not_raised(self, local, bridged_token):
        plain = local.chain.deploy(ERC20Token("Plain", "PLN", owner=HOLDER), deployer=HOLDER)
        predicted = local.factory.predict_address(ALICE)
        plain.mint(Msg(HOLDER), predicted, 3)
        bridged_token.transfer(Msg(HOLDER), predicted, 4)

        [report] = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(tokens=[plain.address, bridged_token.address])],
        )
        [failed] = report.failed
        assert failed.token == plain.address
        assert "InvalidToken" in failed.error
        assert report.results[1].amount == 4
        assert plain.balance_of(predicted) == 3

    def test_balance_query_failure(self, local):
        [report] = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(tokens=[BOB])],
        )
        assert report.results[0].success is False

    def test_several_configs(self, local):
        reports = local.factory.deploy_and_forward(
            Msg(CALLER), ALICE, [ForwardConfig(salt=0), ForwardConfig(salt=1)],
        )
        assert [r.address for r in reports] == [local.factory.predict_address(ALICE, 0),
                                                local.factory.predict_address(ALICE, 1)]
        assert reports[1].salt == "0x" + "00" * 31 + "01"

"""
Tests for NetworkConfig: known networks, validation, dict round trip
and environment overrides.
"""

import pytest

from forwarder.config import NETWORKS, NetworkConfig, get_network
from forwarder.errors import ConfigurationError

OMNI = "0x" + "01" * 20
NATIVE = "0x" + "02" * 20
AMB = "0x" + "03" * 20


def _config(**overrides):
    data = dict(name="test", chain_id=100, destination_chain_id=1,
                omnibridge=OMNI, native_bridge=NATIVE, message_bridge=AMB)
    data.update(overrides)
    return NetworkConfig(**data)


class TestKnownNetworks:
    def test_gnosis(self):
        gnosis = get_network("gnosis")
        assert gnosis.chain_id == 100
        assert gnosis.destination_chain_id == 1
        assert gnosis.adapter == "gnosis"

    def test_lookup_is_case_insensitive(self):
        assert get_network("Gnosis") is NETWORKS["gnosis"]

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="Unknown network 'mars'"):
            get_network("mars")

    def test_all_known_networks_validate(self):
        for network in NETWORKS.values():
            network.validate()


class TestValidate:
    def test_returns_checksummed_copy(self):
        validated = _config(omnibridge="0x" + "ab" * 20).validate()
        assert validated.omnibridge.lower() == "0x" + "ab" * 20
        assert validated.omnibridge != "0x" + "ab" * 20

    def test_same_chain(self):
        with pytest.raises(ConfigurationError, match="same"):
            _config(destination_chain_id=100).validate()

    def test_non_positive_chain(self):
        with pytest.raises(ConfigurationError, match="positive"):
            _config(chain_id=0).validate()

    def test_malformed_address(self):
        with pytest.raises(ConfigurationError, match="native_bridge"):
            _config(native_bridge="0x1234").validate()


class TestSerialization:
    def test_dict_round_trip(self):
        config = _config()
        assert NetworkConfig.from_dict(config.to_dict()) == config

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="chain_id"):
            NetworkConfig.from_dict({"name": "x", "destination_chain_id": 1})

    def test_with_overrides_ignores_none(self):
        config = _config()
        assert config.with_overrides(omnibridge=None) == config
        assert config.with_overrides(chain_id=5).chain_id == 5


class TestFromEnv:
    def test_defaults_to_gnosis(self):
        assert NetworkConfig.from_env({}) == get_network("gnosis")

    def test_overrides(self):
        config = NetworkConfig.from_env({
            "FORWARDER_NETWORK": "gnosis",
            "FORWARDER_OMNIBRIDGE": OMNI,
            "FORWARDER_CHAIN_ID": "10200",
            "FORWARDER_DESTINATION_CHAIN_ID": "11155111",
        })
        assert config.omnibridge == OMNI
        assert config.chain_id == 10200
        assert config.destination_chain_id == 11155111
        assert config.native_bridge == get_network("gnosis").native_bridge

    def test_bad_integer(self):
        with pytest.raises(ConfigurationError, match="FORWARDER_CHAIN_ID"):
            NetworkConfig.from_env({"FORWARDER_CHAIN_ID": "lots"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("FORWARDER_MESSAGE_BRIDGE", AMB)
        assert NetworkConfig.from_env().message_bridge == AMB

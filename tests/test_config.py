"""Tests for configuration loading and validation."""

from decimal import Decimal

import pytest

from config import TreasuryConfig
from core.errors import ConfigurationError
from tests.conftest import TEST_KEY, make_config


def test_from_env(monkeypatch):
    monkeypatch.setenv("RPC_URLS", "https://one.example, https://two.example ,")
    monkeypatch.setenv("CHAIN_ID", "11155111")
    monkeypatch.setenv("TREASURY_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("FEE_RESERVE_ETH", "0.002")
    monkeypatch.setenv("MIN_GAS_ETH", "0.005")
    monkeypatch.setenv("AUTO_RECYCLE_ENABLED", "false")
    monkeypatch.setenv("PORT", "9000")

    config = TreasuryConfig.from_env()

    assert config.rpc_urls == ["https://one.example", "https://two.example"]
    assert [e.chain_id for e in config.endpoints] == [11155111, 11155111]
    assert config.private_key == TEST_KEY
    assert config.fee_reserve_eth == Decimal("0.002")
    assert config.min_gas_eth == Decimal("0.005")
    assert config.auto_recycle_enabled is False
    assert config.port == 9000
    config.validate()


def test_from_env_defaults(monkeypatch):
    for name in ("RPC_URLS", "TREASURY_PRIVATE_KEY", "FEE_RESERVE_ETH", "PORT"):
        monkeypatch.delenv(name, raising=False)

    config = TreasuryConfig.from_env()

    assert len(config.rpc_urls) > 1
    assert config.private_key == ""
    assert config.fee_reserve_eth == Decimal("0.003")
    assert config.port == 8080
    config.validate()


def test_from_env_rejects_unparsable_numbers(monkeypatch):
    monkeypatch.setenv("ETH_PRICE", "lots")
    with pytest.raises(ConfigurationError):
        TreasuryConfig.from_env()


def test_from_file(tmp_path, monkeypatch):
    monkeypatch.setenv("TREASURY_PRIVATE_KEY", TEST_KEY)
    monkeypatch.delenv("PORT", raising=False)
    path = tmp_path / "treasury.toml"
    path.write_text(
        'rpc_urls = ["https://one.example", "https://two.example"]\n'
        "chain_id = 5\n"
        "fee_reserve_eth = 0.002\n"
        "probe_timeout = 8\n"
        "port = 8081\n"
    )

    config = TreasuryConfig.from_file(path)

    assert config.rpc_urls == ["https://one.example", "https://two.example"]
    assert config.chain_id == 5
    assert config.fee_reserve_eth == Decimal("0.002")
    assert config.probe_timeout == 8.0
    assert config.port == 8081
    assert config.private_key == TEST_KEY


def test_from_file_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        TreasuryConfig.from_file(tmp_path / "nope.toml")


def test_from_file_rejects_non_list_pool(tmp_path):
    path = tmp_path / "treasury.toml"
    path.write_text('rpc_urls = "https://one.example"\n')
    with pytest.raises(ConfigurationError):
        TreasuryConfig.from_file(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"rpc_urls": []},
        {"rpc_urls": ["ftp://one.example"]},
        {"rpc_urls": ["https://one.example", "https://one.example"]},
        {"private_key": "not-a-key"},
        # 64 hex digits but above the secp256k1 group order
        {"private_key": "0x" + "f" * 64},
        {"coinbase_address": "0x1234"},
        {"eth_price": Decimal("0")},
        {"fee_reserve_eth": Decimal("-0.001")},
        {"connect_attempts": 0},
        {"probe_timeout": 0},
    ],
)
def test_validate_rejects_bad_config(overrides):
    with pytest.raises(ConfigurationError):
        make_config(**overrides).validate()

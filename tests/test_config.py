from __future__ import annotations

import pytest
from pydantic import ValidationError

from nova_wallet.config import (
    ClientConfig,
    EndpointOverride,
    get_config_dir,
    load_config,
    save_config,
)
from nova_wallet.endpoints import get_network_endpoints, list_network_names


def test_missing_file_yields_defaults(tmp_path):
    config = load_config(tmp_path / "config.yaml")
    assert config.default_network == "testnet"
    assert config.log_level == "WARNING"
    assert config.endpoints == {}


def test_env_vars_are_expanded(tmp_path, monkeypatch):
    monkeypatch.setenv("NOVA_TEST_AUTH", "http://auth.internal/api/auth")
    path = tmp_path / "config.yaml"
    path.write_text(
        "default_network: local\n"
        "endpoints:\n"
        "  local:\n"
        "    auth: ${NOVA_TEST_AUTH}\n"
    )
    config = load_config(path)
    assert config.default_network == "local"
    assert config.endpoints["local"].auth == "http://auth.internal/api/auth"


def test_unknown_network_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("default_network: devnet\n")
    with pytest.raises(ValidationError):
        load_config(path)


def test_log_level_is_normalized(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("log_level: info\n")
    assert load_config(path).log_level == "INFO"


def test_unknown_log_level_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("log_level: verbose\n")
    with pytest.raises(ValidationError):
        load_config(path)


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    config = ClientConfig(default_network="mainnet", endpoints={"mainnet": EndpointOverride(accounts="http://x/api")})
    save_config(config, path)
    assert load_config(path) == config


def test_config_dir_from_env(tmp_path, monkeypatch):
    target = tmp_path / "nova-home"
    monkeypatch.setenv("NOVA_CONFIG", str(target))
    assert get_config_dir() == target
    assert target.is_dir()


def test_endpoint_overrides():
    overrides = {"local": EndpointOverride(accounts="http://10.0.0.2:9000/api/accounts")}
    endpoints = get_network_endpoints("local", overrides)
    assert endpoints.accounts_url == "http://10.0.0.2:9000/api/accounts"
    assert endpoints.auth_url == "http://127.0.0.1:3036/api/auth"
    assert endpoints.origin == "http://10.0.0.2:9000"


def test_networks():
    assert list_network_names() == ["local", "testnet", "mainnet"]
    assert get_network_endpoints("mainnet").origin == "https://www.mynth.ai"
    with pytest.raises(KeyError):
        get_network_endpoints("devnet")

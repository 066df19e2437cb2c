import json

import pytest

from link_agent.config import ConfigManager

API_KEY = "ck:tk:secret"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["MAAS_URL", "MAAS_API_KEY", "MAAS_API_VERSION", "LINK_AGENT_DRIVER", "LINK_AGENT_LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path, data):
    path = tmp_path / "agent.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_file_values_merge_with_defaults(tmp_path):
    path = _write(tmp_path, {"maas": {"url": "http://maas:5240/MAAS", "api_key": API_KEY}, "bind_port": "9000"})
    cfg = ConfigManager(path).load_agent_config()
    assert cfg["bind_port"] == 9000
    assert cfg["bind_host"] == "0.0.0.0"
    assert cfg["maas"]["api_version"] == "2.0"
    assert cfg["maas"]["url"] == "http://maas:5240/MAAS"
    assert cfg["backend"]["driver"] == "maas"
    assert cfg["logging"]["level"] == "INFO"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = _write(tmp_path, {"maas": {"url": "http://file", "api_key": API_KEY}})
    monkeypatch.setenv("MAAS_URL", "http://env")
    monkeypatch.setenv("LINK_AGENT_LOG_LEVEL", "DEBUG")
    cfg = ConfigManager(path).load_agent_config()
    assert cfg["maas"]["url"] == "http://env"
    assert cfg["logging"]["level"] == "DEBUG"


def test_env_only_without_file(tmp_path, monkeypatch):
    monkeypatch.setenv("MAAS_URL", "http://env")
    monkeypatch.setenv("MAAS_API_KEY", API_KEY)
    cfg = ConfigManager(str(tmp_path / "missing.json")).load_agent_config()
    assert cfg["maas"]["api_key"] == API_KEY


def test_invalid_json_is_fatal(tmp_path):
    path = tmp_path / "agent.json"
    path.write_text("{not json")
    with pytest.raises(RuntimeError, match="Invalid JSON"):
        ConfigManager(str(path)).load_agent_config()


@pytest.mark.parametrize(
    "maas_cfg, message",
    [
        ({"api_key": API_KEY}, "maas.url"),
        ({"url": "http://maas"}, "maas.api_key"),
        ({"url": "http://maas", "api_key": "only:two"}, "maas.api_key"),
        ({"url": "http://maas", "api_key": API_KEY, "ca_bundle": "/nonexistent/ca.pem"}, "ca_bundle"),
    ],
)
def test_maas_driver_requirements(tmp_path, maas_cfg, message):
    path = _write(tmp_path, {"maas": maas_cfg})
    with pytest.raises(RuntimeError, match=message):
        ConfigManager(path).load_agent_config()


def test_memory_driver_needs_no_maas_settings(tmp_path):
    path = _write(tmp_path, {"backend": {"driver": "memory"}})
    cfg = ConfigManager(path).load_agent_config()
    assert cfg["backend"]["driver"] == "memory"


def test_unknown_driver(tmp_path):
    path = _write(tmp_path, {"backend": {"driver": "carrier-pigeon"}})
    with pytest.raises(RuntimeError, match="carrier-pigeon"):
        ConfigManager(path).load_agent_config()


def test_skip_ssl_verification_normalized(tmp_path):
    path = _write(
        tmp_path, {"maas": {"url": "https://maas", "api_key": API_KEY, "skip_ssl_verification": "yes"}}
    )
    cfg = ConfigManager(path).load_agent_config()
    assert cfg["maas"]["skip_ssl_verification"] is True

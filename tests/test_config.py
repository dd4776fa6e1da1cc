"""Tests for canvas_server.config loading, INI sections and environment overrides."""

import configparser

import pytest

from canvas_server.config import (
    PROJECT_ROOT,
    ServerConfig,
    _load_from_ini,
    config,
    get_config_status,
    load_config,
    print_config_summary,
    use_test_database,
)


@pytest.mark.unit
def test_defaults():
    """ServerConfig defaults match the shipped settings."""
    cfg = ServerConfig()

    assert cfg.server.port == 8000
    assert cfg.fees.mint_fee == 1000
    assert cfg.fees.customization_fee == 500
    assert cfg.fees.fee_sink == "canvas-registry"
    assert cfg.audit.enabled is True
    assert cfg.policies.absolute_collaboration_path == (
        PROJECT_ROOT / "data" / "policies" / "collaboration.yaml"
    )


@pytest.mark.unit
def test_server_and_logging_env_overrides(monkeypatch):
    """CANVAS_HOST, CANVAS_PORT and CANVAS_LOG_LEVEL override the defaults."""
    monkeypatch.setenv("CANVAS_HOST", "127.0.0.1")
    monkeypatch.setenv("CANVAS_PORT", "9100")
    monkeypatch.setenv("CANVAS_LOG_LEVEL", "debug")

    cfg = load_config()

    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 9100
    assert cfg.logging.level == "DEBUG"


@pytest.mark.unit
def test_fee_env_overrides(monkeypatch):
    """Fee environment variables override the defaults."""
    monkeypatch.setenv("CANVAS_MINT_FEE", "250")
    monkeypatch.setenv("CANVAS_CUSTOMIZATION_FEE", "75")
    monkeypatch.setenv("CANVAS_FEE_SINK", "treasury")

    cfg = load_config()

    assert cfg.fees.mint_fee == 250
    assert cfg.fees.customization_fee == 75
    assert cfg.fees.fee_sink == "treasury"


@pytest.mark.unit
def test_policy_db_and_audit_env_overrides(monkeypatch, tmp_path):
    """Database, policy and audit settings follow the environment."""
    monkeypatch.setenv("CANVAS_DB_PATH", str(tmp_path / "registry.db"))
    monkeypatch.setenv("CANVAS_POLICY_PATH", str(tmp_path / "policy.yaml"))
    monkeypatch.setenv("CANVAS_AUDIT_ENABLED", "off")

    cfg = load_config()

    assert cfg.database.absolute_path == tmp_path / "registry.db"
    assert cfg.policies.absolute_collaboration_path == tmp_path / "policy.yaml"
    assert cfg.audit.enabled is False


@pytest.mark.unit
def test_ini_sections():
    """Every INI section is applied to the config."""
    parser = configparser.ConfigParser()
    parser.read_dict(
        {
            "server": {"host": "localhost", "port": "8100"},
            "logging": {"level": "warning", "format": "simple"},
            "fees": {"mint_fee": "10", "customization_fee": "5", "fee_sink": "vault"},
            "policies": {"collaboration_path": "custom/collab.yaml"},
            "audit": {"enabled": "no", "stream_id": "registry_a"},
        }
    )

    cfg = ServerConfig()
    _load_from_ini(parser, cfg)

    assert cfg.server.host == "localhost"
    assert cfg.server.port == 8100
    assert cfg.logging.level == "WARNING"
    assert cfg.logging.format == "simple"
    assert cfg.fees.mint_fee == 10
    assert cfg.fees.customization_fee == 5
    assert cfg.fees.fee_sink == "vault"
    assert cfg.policies.absolute_collaboration_path == PROJECT_ROOT / "custom" / "collab.yaml"
    assert cfg.audit.enabled is False
    assert cfg.audit.stream_id == "registry_a"


@pytest.mark.unit
def test_ini_ignores_unknown_log_format():
    """An unknown log format keeps the default."""
    parser = configparser.ConfigParser()
    parser.read_dict({"logging": {"format": "fancy"}})

    cfg = ServerConfig()
    _load_from_ini(parser, cfg)

    assert cfg.logging.format == "detailed"


@pytest.mark.unit
def test_use_test_database_restores_path(tmp_path):
    """use_test_database restores the original path on exit."""
    original = config.database.path

    with use_test_database(tmp_path / "t.db") as db_path:
        assert config.database.absolute_path == db_path

    assert config.database.path == original


@pytest.mark.unit
def test_config_status_and_summary(capsys):
    """Status and summary report the policy path and fee sink."""
    status = get_config_status()

    assert status["policy_path"] == str(config.policies.absolute_collaboration_path)

    print_config_summary()
    output = capsys.readouterr().out
    assert "Fee sink:" in output
    assert "Policy:" in output

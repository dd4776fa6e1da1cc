"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings.

Usage:
    from canvas_server.config import config

    # Access settings
    print(config.server.port)
    print(config.fees.mint_fee)
    print(config.policies.absolute_collaboration_path)

Environment Variable Mapping:
    CANVAS_HOST               -> server.host
    CANVAS_PORT               -> server.port
    CANVAS_DB_PATH            -> database.path
    CANVAS_LOG_LEVEL          -> logging.level
    CANVAS_MINT_FEE           -> fees.mint_fee
    CANVAS_CUSTOMIZATION_FEE  -> fees.customization_fee
    CANVAS_FEE_SINK           -> fees.fee_sink
    CANVAS_POLICY_PATH        -> policies.collaboration_path
    CANVAS_AUDIT_ENABLED      -> audit.enabled
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


def _resolve(path: str) -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    return PROJECT_ROOT / p


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 8000


@dataclass
class DatabaseSettings:
    """Database configuration."""

    path: str = "data/canvas.db"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to database file."""
        return _resolve(self.path)


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class FeeSettings:
    """Fee schedule applied to paid registry operations.

    Amounts are integer units of the settlement currency. ``fee_sink`` is the
    account that receives every settled fee (the registry's own balance).
    """

    mint_fee: int = 1000
    customization_fee: int = 500
    fee_sink: str = "canvas-registry"


@dataclass
class PolicySettings:
    """Location of the collaboration policy file."""

    collaboration_path: str = "data/policies/collaboration.yaml"

    @property
    def absolute_collaboration_path(self) -> Path:
        """Get absolute path to the collaboration policy YAML."""
        return _resolve(self.collaboration_path)


@dataclass
class AuditSettings:
    """Audit ledger configuration."""

    enabled: bool = True
    stream_id: str = "canvas_registry"


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    fees: FeeSettings = field(default_factory=FeeSettings)
    policies: PolicySettings = field(default_factory=PolicySettings)
    audit: AuditSettings = field(default_factory=AuditSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Database section
    if parser.has_section("database"):
        if parser.has_option("database", "path"):
            cfg.database.path = parser.get("database", "path")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]

    # Fees section
    if parser.has_section("fees"):
        if parser.has_option("fees", "mint_fee"):
            cfg.fees.mint_fee = parser.getint("fees", "mint_fee")
        if parser.has_option("fees", "customization_fee"):
            cfg.fees.customization_fee = parser.getint("fees", "customization_fee")
        if parser.has_option("fees", "fee_sink"):
            cfg.fees.fee_sink = parser.get("fees", "fee_sink")

    # Policies section
    if parser.has_section("policies"):
        if parser.has_option("policies", "collaboration_path"):
            cfg.policies.collaboration_path = parser.get("policies", "collaboration_path")

    # Audit section
    if parser.has_section("audit"):
        if parser.has_option("audit", "enabled"):
            cfg.audit.enabled = _parse_bool(parser.get("audit", "enabled"))
        if parser.has_option("audit", "stream_id"):
            cfg.audit.stream_id = parser.get("audit", "stream_id")


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("CANVAS_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("CANVAS_PORT"):
        cfg.server.port = int(env_port)

    # Database settings
    if env_db := os.getenv("CANVAS_DB_PATH"):
        cfg.database.path = env_db

    # Logging settings
    if env_log := os.getenv("CANVAS_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()

    # Fee settings
    if env_mint_fee := os.getenv("CANVAS_MINT_FEE"):
        cfg.fees.mint_fee = int(env_mint_fee)
    if env_custom_fee := os.getenv("CANVAS_CUSTOMIZATION_FEE"):
        cfg.fees.customization_fee = int(env_custom_fee)
    if env_sink := os.getenv("CANVAS_FEE_SINK"):
        cfg.fees.fee_sink = env_sink

    # Policy + audit settings
    if env_policy := os.getenv("CANVAS_POLICY_PATH"):
        cfg.policies.collaboration_path = env_policy
    if env_audit := os.getenv("CANVAS_AUDIT_ENABLED"):
        cfg.audit.enabled = _parse_bool(env_audit)


def load_config() -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    # Determine which config file to use
    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        config_file = CONFIG_EXAMPLE

    # Load from INI file if available
    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

# Load configuration once at module import time
config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging and the ``/health`` endpoint.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "database_path": str(config.database.absolute_path),
        "policy_path": str(config.policies.absolute_collaboration_path),
        "audit_enabled": config.audit.enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:      {config.server.host}:{config.server.port}")
    print(f"Database:    {config.database.absolute_path}")
    print(f"Policy:      {config.policies.absolute_collaboration_path}")
    print(f"Fees:        mint={config.fees.mint_fee} customize={config.fees.customization_fee}")
    print(f"Fee sink:    {config.fees.fee_sink}")
    print(f"Audit:       {'enabled' if config.audit.enabled else 'disabled'}")
    print(f"Log level:   {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for using a temporary test database.

    This is the recommended way to set up test databases. It properly
    configures the config system to use a temporary database path.

    Usage:
        from canvas_server.config import use_test_database

        def test_something(tmp_path):
            db_path = tmp_path / "test.db"
            with use_test_database(db_path):
                # Database operations will use db_path
                schema.init_database()

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test database path."""
        self.original_path = config.database.path
        config.database.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original database path."""
        if self.original_path is not None:
            config.database.path = self.original_path
        return None

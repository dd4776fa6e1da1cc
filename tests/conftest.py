"""
Shared pytest fixtures for the canvas registry test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary test databases (via the config system's ``use_test_database``)
- Audit stream redirection to ``tmp_path``
- A ready :class:`CanvasEngine` with funded accounts and a small catalog
- FastAPI TestClient instances

Every fixture is function-scoped so tests never share registry state.
"""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import canvas_server.audit.writer as audit_writer
from canvas_server.config import use_test_database
from canvas_server.core.engine import CanvasEngine
from canvas_server.db import schema
from tests.constants import NOW, STARTING_BALANCE, TEST_STREAM

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database file for testing.

    Yields:
        Path to temporary database file

    Cleanup:
        Removes temporary database after test completes
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_canvas.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_db_path: Path) -> Generator[None, None, None]:
    """Initialize a test database with schema and counters but no data."""
    schema.init_database()
    yield


@pytest.fixture(autouse=True)
def audit_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect all audit writes to a temporary directory.

    Applies to every test so nothing ever touches the real ``data/audit/``.
    """
    audit_root = tmp_path / "audit"
    monkeypatch.setattr(audit_writer, "_AUDIT_ROOT", audit_root)
    return audit_root


# ============================================================================
# ENGINE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def engine(test_db) -> CanvasEngine:
    """Engine with default fees and policy, auditing to ``TEST_STREAM``."""
    return CanvasEngine(audit_stream=TEST_STREAM)


@pytest.fixture(scope="function")
def funded(engine: CanvasEngine) -> dict[str, int]:
    """Fund ``alice`` and ``bob``; return account -> balance."""
    balances = {}
    for account in ("alice", "bob"):
        balances[account] = engine.fund_account(account, STARTING_BALANCE)
    return balances


@pytest.fixture(scope="function")
def catalog(engine: CanvasEngine) -> dict[str, int]:
    """
    Define a small trait catalog authored by ``curator``.

    Returns:
        Dict mapping trait name to base rarity:
        - texture: rarity 40, cost 1000
        - glow:    rarity 25, cost 200
        - grain:   rarity 10, cost 0
    """
    traits = {"texture": (40, 1000), "glow": (25, 200), "grain": (10, 0)}
    for name, (rarity, cost) in traits.items():
        engine.define_trait(
            caller="curator",
            name=name,
            base_rarity=rarity,
            customization_cost=cost,
            now=NOW,
        )
    return {name: rarity for name, (rarity, _) in traits.items()}


@pytest.fixture(scope="function")
def minted(engine: CanvasEngine, funded, catalog) -> int:
    """Mint one asset for ``alice`` and return its id."""
    return engine.mint_asset(caller="alice", template="portrait", now=NOW).asset_id


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(engine: CanvasEngine) -> TestClient:
    """TestClient around an app wired to the test engine."""
    from canvas_server.api.server import create_app

    return TestClient(create_app(engine=engine))

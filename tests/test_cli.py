"""
Unit tests for the CLI module (canvas_server/cli.py).

Tests cover:
- Command parsing and dispatch
- init-db, fund and define-trait against a temporary database
- verify-audit exit codes
- run wiring (uvicorn is patched out)
"""

import argparse
from unittest.mock import patch

import pytest

from canvas_server import cli
from canvas_server.audit import append_event
from canvas_server.config import config
from canvas_server.settlement import get_balance

# ============================================================================
# INIT-DB COMMAND TESTS
# ============================================================================


@pytest.mark.unit
def test_cmd_init_db_success():
    """init-db initializes the database and exits 0."""
    with patch("canvas_server.db.schema.init_database") as mock_init:
        result = cli.cmd_init_db(argparse.Namespace())

    assert result == 0
    mock_init.assert_called_once()


@pytest.mark.unit
def test_cmd_init_db_error(capsys):
    """init-db exits 1 when initialization fails."""
    with patch("canvas_server.db.schema.init_database", side_effect=Exception("DB error")):
        result = cli.cmd_init_db(argparse.Namespace())

    assert result == 1
    assert "DB error" in capsys.readouterr().err


@pytest.mark.unit
def test_cmd_init_db_is_idempotent(temp_db_path):
    """init-db succeeds when run twice on the same database."""
    assert cli.cmd_init_db(argparse.Namespace()) == 0
    assert cli.cmd_init_db(argparse.Namespace()) == 0


# ============================================================================
# FUND / DEFINE-TRAIT COMMAND TESTS
# ============================================================================


@pytest.mark.unit
def test_cmd_fund(temp_db_path, capsys):
    """fund credits the named account."""
    result = cli.cmd_fund(argparse.Namespace(account="alice", amount=500))

    assert result == 0
    assert get_balance("alice") == 500
    assert "500" in capsys.readouterr().out


@pytest.mark.unit
def test_cmd_fund_rejects_negative(temp_db_path, capsys):
    """fund exits 1 on a negative amount."""
    result = cli.cmd_fund(argparse.Namespace(account="alice", amount=-1))

    assert result == 1
    assert "non-negative" in capsys.readouterr().err


@pytest.mark.unit
def test_cmd_define_trait(temp_db_path, capsys):
    """define-trait registers a trait and exits 1 on a duplicate."""
    args = argparse.Namespace(name="texture", rarity=40, cost=1000, creator="curator")

    assert cli.cmd_define_trait(args) == 0
    assert "texture" in capsys.readouterr().out
    assert cli.cmd_define_trait(args) == 1
    assert "already defined" in capsys.readouterr().err


# ============================================================================
# VERIFY-AUDIT COMMAND TESTS
# ============================================================================


@pytest.mark.unit
def test_cmd_verify_audit_empty(capsys):
    """verify-audit on an absent stream exits 0."""
    assert cli.cmd_verify_audit(argparse.Namespace(stream="nothing")) == 0
    assert "empty" in capsys.readouterr().out


@pytest.mark.unit
def test_cmd_verify_audit_ok(capsys):
    """verify-audit on a clean stream exits 0."""
    event_id = append_event("cli_stream", "asset.minted", {"asset_id": 1})

    assert cli.cmd_verify_audit(argparse.Namespace(stream="cli_stream")) == 0
    assert event_id in capsys.readouterr().out


@pytest.mark.unit
def test_cmd_verify_audit_corrupt(audit_tmp_dir):
    """verify-audit on a corrupt stream exits 1."""
    audit_tmp_dir.mkdir(parents=True)
    (audit_tmp_dir / f"{config.audit.stream_id}.jsonl").write_text("{broken\n")

    assert cli.cmd_verify_audit(argparse.Namespace(stream=None)) == 1


# ============================================================================
# RUN COMMAND TESTS
# ============================================================================


@pytest.mark.unit
def test_cmd_run_uses_flags():
    """run passes host and port flags through to uvicorn."""
    with (
        patch("canvas_server.db.schema.init_database"),
        patch("canvas_server.config.print_config_summary"),
        patch("uvicorn.run") as mock_run,
    ):
        result = cli.cmd_run(argparse.Namespace(host="127.0.0.1", port=9001))

    assert result == 0
    _, kwargs = mock_run.call_args
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9001


@pytest.mark.unit
def test_cmd_run_init_failure():
    """run exits 1 without starting uvicorn when the database fails."""
    with (
        patch("canvas_server.db.schema.init_database", side_effect=Exception("locked")),
        patch("uvicorn.run") as mock_run,
    ):
        assert cli.cmd_run(argparse.Namespace(host=None, port=None)) == 1

    mock_run.assert_not_called()


# ============================================================================
# MAIN ENTRY POINT TESTS
# ============================================================================


@pytest.mark.unit
def test_main_no_command():
    """main with no command prints help and exits 0."""
    with patch("sys.argv", ["canvas-server"]):
        assert cli.main() == 0


@pytest.mark.unit
def test_main_init_db():
    """main dispatches init-db."""
    with patch("sys.argv", ["canvas-server", "init-db"]):
        with patch("canvas_server.db.schema.init_database") as mock_init:
            assert cli.main() == 0

    mock_init.assert_called_once()


@pytest.mark.unit
def test_main_fund(temp_db_path):
    """main dispatches fund against the test database."""
    with patch("sys.argv", ["canvas-server", "fund", "bob", "42"]):
        assert cli.main() == 0

    assert get_balance("bob") == 42

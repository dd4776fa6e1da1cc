"""
Command-line interface for the canvas registry server.

Provides CLI commands for server management:
- init-db: Initialize the database schema
- fund: Credit an account of the built-in transfer collaborator
- define-trait: Register a trait type in the catalog
- verify-audit: Check the checksum of the last audit event
- run: Start the API server

Usage:
    canvas-server init-db
    canvas-server fund ACCOUNT AMOUNT
    canvas-server define-trait NAME RARITY COST --creator ACCOUNT
    canvas-server verify-audit [--stream STREAM]
    canvas-server run [--port PORT] [--host HOST]

Environment Variables:
    CANVAS_HOST: Host to bind API server (default: 0.0.0.0)
    CANVAS_PORT: Port for API server (default: 8000)
    CANVAS_DB_PATH: SQLite database path (default: data/canvas.db)
    CANVAS_LOG_LEVEL: Root log level (default: INFO)
"""

import argparse
import logging
import sys
import time

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def configure_logging() -> None:
    """Configure the root logger from ``config.logging``."""
    from canvas_server.config import config

    logging.basicConfig(
        level=config.logging.level.upper(),
        format=_LOG_FORMATS.get(config.logging.format, _LOG_FORMATS["detailed"]),
    )


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the database schema.

    Idempotent: existing tables, counters and balances are left untouched.

    Returns:
        0 on success, 1 on error
    """
    from canvas_server.db.schema import init_database

    try:
        init_database()
        print("Database initialized successfully.")
        return 0
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1


def cmd_fund(args: argparse.Namespace) -> int:
    """Credit ``args.account`` with ``args.amount``."""
    from canvas_server.core.engine import CanvasEngine
    from canvas_server.db.errors import DatabaseError
    from canvas_server.db.schema import init_database
    from canvas_server.errors import CanvasError

    try:
        init_database()
        balance = CanvasEngine().fund_account(args.account, args.amount)
    except (CanvasError, DatabaseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Account {args.account!r} balance: {balance}")
    return 0


def cmd_define_trait(args: argparse.Namespace) -> int:
    """Register a trait type; the audit event goes to the configured stream."""
    from canvas_server.core.engine import CanvasEngine
    from canvas_server.db.errors import DatabaseError
    from canvas_server.db.schema import init_database
    from canvas_server.errors import CanvasError

    try:
        init_database()
        definition = CanvasEngine.from_config().define_trait(
            caller=args.creator,
            name=args.name,
            base_rarity=args.rarity,
            customization_cost=args.cost,
            now=int(time.time()),
        )
    except (CanvasError, DatabaseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(
        f"Defined trait {definition.name!r}: rarity {definition.base_rarity}, "
        f"cost {definition.customization_cost}, cap {definition.max_applications}."
    )
    return 0


def cmd_verify_audit(args: argparse.Namespace) -> int:
    """
    Verify the last event of an audit stream.

    Returns:
        0 when the stream is intact or empty, 1 when it is corrupt
    """
    from canvas_server.audit import verify_stream
    from canvas_server.config import config

    stream = args.stream or config.audit.stream_id
    result = verify_stream(stream)
    if result.status == "corrupt":
        print(f"Audit stream {stream!r} is corrupt: {result.error_detail}", file=sys.stderr)
        return 1
    if result.status == "empty":
        print(f"Audit stream {stream!r} is empty.")
    else:
        print(f"Audit stream {stream!r} OK (last event {result.last_event_id}).")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Start the API server with uvicorn.

    Host and port default to ``config.server`` (overridable through
    ``CANVAS_HOST``/``CANVAS_PORT``); command-line flags win.
    """
    import uvicorn

    from canvas_server.api.server import create_app
    from canvas_server.config import config, print_config_summary
    from canvas_server.db.schema import init_database

    host = args.host or config.server.host
    port = args.port or config.server.port

    try:
        init_database()
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1

    print_config_summary()
    try:
        uvicorn.run(create_app(), host=host, port=port, log_level=config.logging.level.lower())
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="canvas-server",
        description="Canvas Registry Server - customizable assets with rarity scoring",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db command
    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the database schema",
        description="Create the registry tables, invariant triggers and counters.",
    )
    init_parser.set_defaults(func=cmd_init_db)

    # fund command
    fund_parser = subparsers.add_parser("fund", help="Credit an account")
    fund_parser.add_argument("account", help="Account identifier")
    fund_parser.add_argument("amount", type=int, help="Amount to credit (non-negative)")
    fund_parser.set_defaults(func=cmd_fund)

    # define-trait command
    trait_parser = subparsers.add_parser("define-trait", help="Register a trait type")
    trait_parser.add_argument("name", help="Unique trait-type name")
    trait_parser.add_argument("rarity", type=int, help="Base rarity (0-100)")
    trait_parser.add_argument("cost", type=int, help="Customization cost")
    trait_parser.add_argument("--creator", required=True, help="Creator account")
    trait_parser.set_defaults(func=cmd_define_trait)

    # verify-audit command
    audit_parser = subparsers.add_parser(
        "verify-audit",
        help="Verify the last audit event checksum",
    )
    audit_parser.add_argument("--stream", help="Audit stream id (default: from config)")
    audit_parser.set_defaults(func=cmd_verify_audit)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the API server",
        description="Initialize the database if needed and start the FastAPI server.",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="API server port (default: 8000, or CANVAS_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 0.0.0.0, or CANVAS_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

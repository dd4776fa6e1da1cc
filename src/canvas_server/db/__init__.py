"""SQLite persistence for the canvas registry.

One module per table family (``assets_repo``, ``catalog_repo``,
``traits_repo``, ``counters_repo``, ``stats_repo``), plus ``schema`` and the
``connection`` primitives. Cursor-level helpers expect to run inside a
caller-owned :func:`~canvas_server.db.connection.connection_scope`.
"""

"""Core orchestration: the registry engine, shared gates and the block clock.

Import from the submodules directly; the collaboration engine depends on
:mod:`canvas_server.core.gates` and the registry engine depends on the
collaboration engine.
"""

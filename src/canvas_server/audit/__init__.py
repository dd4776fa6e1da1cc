"""Audit package - append-only JSONL record of committed operations.

Public surface
--------------
- :func:`append_event`     - append one event to a stream.
- :func:`read_events`      - read a stream back, oldest first.
- :func:`verify_stream`    - check integrity of the last event in a stream.
- :func:`record_committed` - append after commit, logging failures.
- :exc:`AuditWriteError`   - raised when a filesystem write fails.
- :class:`AuditEvents`     - event type constants.

Usage example
-------------
::

    from canvas_server.audit import AuditEvents, AuditWriteError, append_event

    try:
        append_event("canvas_registry", AuditEvents.ASSET_MINTED, {"asset_id": 1})
    except AuditWriteError:
        logger.warning("Audit write failed; operation already committed.")
"""

from canvas_server.audit.events import AuditEvents
from canvas_server.audit.writer import (
    AuditVerifyResult,
    AuditWriteError,
    append_event,
    read_events,
    record_committed,
    verify_stream,
)

__all__ = [
    "AuditEvents",
    "AuditVerifyResult",
    "AuditWriteError",
    "append_event",
    "read_events",
    "record_committed",
    "verify_stream",
]

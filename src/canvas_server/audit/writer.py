"""JSONL audit writer for committed registry operations.

Overview
--------
Every committed top-level operation (mint, trait definition, customization,
lock, collaboration) is recorded as one event in an append-only JSONL stream::

    data/audit/<stream_id>.jsonl

The SQLite database stays the source of truth for registry state; the audit
stream is the structured event record of *how* it got there. Events are
appended only after the operation's transaction commits, so a rejected or
rolled-back operation never produces an event.

Envelope format
---------------
.. code-block:: json

    {
      "event_id":       "a3f91c9e2d4b5e6f...",
      "timestamp":      "2026-02-27T14:23:01.452345+00:00",
      "stream_id":      "canvas_registry",
      "event_type":     "collaboration.completed",
      "schema_version": "1.0",
      "meta":           {"logical_time": 1042},
      "data":           { ... event-specific payload ... },
      "_checksum":      "sha256:b94f3e..."
    }

``_checksum`` is computed over the JSON-serialized envelope body (all fields
**except** ``_checksum`` itself, serialized with ``sort_keys=True``).

Concurrency
-----------
``fcntl.flock(LOCK_EX)`` is held for every append, serialising writers in
one process and across processes on the same host. POSIX only.

Failure isolation
-----------------
:exc:`AuditWriteError` is raised on filesystem failure. Engines catch it,
log a warning and return the committed result; an audit failure never undoes
a committed operation.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from canvas_server.config import PROJECT_ROOT

logger = logging.getLogger(__name__)

# Increment when the envelope format changes in a backwards-incompatible way.
_SCHEMA_VERSION = "1.0"

# Tests monkeypatch this to redirect audit writes into a temporary directory.
_AUDIT_ROOT: Path = PROJECT_ROOT / "data" / "audit"

# Bytes read from the end of the stream when verifying the last event. A
# collaboration event is well under 2 KiB.
_TAIL_CHUNK_BYTES = 16_384


class AuditWriteError(Exception):
    """Raised when an audit append fails due to a filesystem or encoding error.

    Callers catch this, log a warning and carry on.
    """


@dataclass(frozen=True)
class AuditVerifyResult:
    """Result of :func:`verify_stream`.

    Attributes:
        status: ``"ok"``, ``"empty"`` or ``"corrupt"``.
        last_event_id: ``event_id`` of the last valid event, else ``None``.
        error_detail: Failure description for ``"corrupt"``, else ``None``.
    """

    status: Literal["ok", "empty", "corrupt"]
    last_event_id: str | None
    error_detail: str | None


def append_event(
    stream_id: str,
    event_type: str,
    data: dict,
    *,
    meta: dict | None = None,
) -> str:
    """Append one event to the stream's JSONL file and return its event id.

    Args:
        stream_id: Audit stream name; used as the filename stem.
        event_type: Dot-namespaced type, e.g. ``"trait.applied"``.
        data: JSON-serialisable payload.
        meta: Optional diagnostic fields (stored as ``{}`` when ``None``).

    Raises:
        ValueError: ``stream_id`` or ``event_type`` is empty or blank.
        AuditWriteError: The filesystem write or serialisation failed.
    """
    if not stream_id or not stream_id.strip():
        raise ValueError("append_event: stream_id must be a non-empty string.")
    if not event_type or not event_type.strip():
        raise ValueError("append_event: event_type must be a non-empty string.")

    event_id = uuid.uuid4().hex
    envelope_body: dict = {
        "event_id": event_id,
        "timestamp": datetime.now(UTC).isoformat(),
        "stream_id": stream_id,
        "event_type": event_type,
        "schema_version": _SCHEMA_VERSION,
        "meta": meta if meta is not None else {},
        "data": data,
    }

    path = _stream_path(stream_id)
    try:
        checksum = _compute_checksum(envelope_body)
        envelope = {**envelope_body, "_checksum": f"sha256:{checksum}"}
        line = json.dumps(envelope, ensure_ascii=False, sort_keys=True)
        _append_line_locked(path, line)
    except (OSError, TypeError, ValueError) as exc:
        raise AuditWriteError(
            f"Failed to write event {event_id!r} to audit stream {stream_id!r} at {path}: {exc}"
        ) from exc

    logger.debug("audit: appended %r event %s to %s", event_type, event_id, path.name)
    return event_id


def read_events(stream_id: str) -> list[dict]:
    """Return every parseable envelope in the stream, oldest first."""
    path = _stream_path(stream_id)
    if not path.exists():
        return []
    events = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError:
            logger.warning("audit: skipping malformed line in %s", path.name)
    return events


def verify_stream(stream_id: str) -> AuditVerifyResult:
    """Verify JSON validity and checksum of the most recent event in a stream."""
    path = _stream_path(stream_id)
    if not path.exists():
        return AuditVerifyResult(status="empty", last_event_id=None, error_detail=None)

    last_line = _read_last_nonempty_line(path)
    if last_line is None:
        return AuditVerifyResult(status="empty", last_event_id=None, error_detail=None)

    try:
        envelope = json.loads(last_line)
    except json.JSONDecodeError as exc:
        return AuditVerifyResult(
            status="corrupt",
            last_event_id=None,
            error_detail=f"Last line is not valid JSON: {exc}",
        )

    if not isinstance(envelope, dict):
        return AuditVerifyResult(
            status="corrupt",
            last_event_id=None,
            error_detail="Last line deserialised to a non-dict type.",
        )

    recorded = envelope.get("_checksum")
    if not isinstance(recorded, str):
        return AuditVerifyResult(
            status="corrupt",
            last_event_id=None,
            error_detail="Last line is missing or has a non-string '_checksum' field.",
        )

    body = {k: v for k, v in envelope.items() if k != "_checksum"}
    expected = f"sha256:{_compute_checksum(body)}"
    if recorded != expected:
        return AuditVerifyResult(
            status="corrupt",
            last_event_id=envelope.get("event_id"),
            error_detail=(
                f"Checksum mismatch on last event. Recorded: {recorded!r}. "
                f"Expected: {expected!r}."
            ),
        )

    event_id = envelope.get("event_id")
    if not isinstance(event_id, str) or not event_id:
        return AuditVerifyResult(
            status="corrupt",
            last_event_id=None,
            error_detail="Last line is missing a valid 'event_id' string.",
        )

    return AuditVerifyResult(status="ok", last_event_id=event_id, error_detail=None)


def _stream_path(stream_id: str) -> Path:
    return _AUDIT_ROOT / f"{stream_id}.jsonl"


def _compute_checksum(payload: dict) -> str:
    """SHA-256 hex digest of the canonical (``sort_keys=True``) JSON of ``payload``."""
    canonical = json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _append_line_locked(path: Path, line: str) -> None:
    """Append ``line`` plus a newline to ``path`` under an exclusive lock."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fcntl.flock(fh, fcntl.LOCK_EX)
        try:
            fh.write(line + "\n")
            fh.flush()
        finally:
            fcntl.flock(fh, fcntl.LOCK_UN)


def _read_last_nonempty_line(path: Path) -> str | None:
    """Return the last non-blank line, reading at most ``_TAIL_CHUNK_BYTES``."""
    try:
        with path.open("rb") as fh:
            fh.seek(0, 2)
            size = fh.tell()
            if size == 0:
                return None
            fh.seek(max(0, size - _TAIL_CHUNK_BYTES))
            chunk = fh.read()
    except OSError:
        return None

    for line in reversed(chunk.decode("utf-8", errors="replace").splitlines()):
        stripped = line.strip()
        if stripped:
            return stripped
    return None


def record_committed(
    stream_id: str | None,
    event_type: str,
    data: dict,
    *,
    logical_time: int,
) -> str | None:
    """Append an event for an already-committed operation.

    ``stream_id=None`` means auditing is disabled. Write failures are logged
    as WARNING and swallowed: the operation has committed and its result is
    returned regardless.
    """
    if stream_id is None:
        return None
    try:
        return append_event(stream_id, event_type, data, meta={"logical_time": logical_time})
    except AuditWriteError:
        logger.warning(
            "%s audit write failed for stream %r; continuing.",
            event_type,
            stream_id,
            exc_info=True,
        )
        return None

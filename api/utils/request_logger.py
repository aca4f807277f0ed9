"""
MODULE_DESCRIPTION: Request Logger - Append-Only Request Log and Analytics

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Records every research and push request as a sequence of state transitions
(started -> completed | failed). Each transition is a new entry with the same
``id``; entries are never edited in place.

Storage:
    - Memory: ring buffer of the last ``max_entries`` entries, which backs
      every query
    - Development: each entry is also appended to a JSON-lines file, and the
      file is replayed into memory on startup
    - Production: entries are printed to the console only

One ``RequestLogger`` lives on ``app.state`` for the life of the process and
reaches the routes through ``api.dependencies.get_request_logger``. Tests
build their own instance or call ``reset()``.

Persistence failures never propagate to the request being logged; they are
reported on the console and the in-memory copy is kept.
"""

import hashlib
import json
import random
import string
import time
from collections import Counter, deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.utils.debug import print__analytics_debug

RequestType = Literal["research", "push-to-scopestack", "test"]
RequestStatus = Literal["started", "completed", "failed"]


def _new_request_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class RequestLogEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_request_id)
    timestamp: str = Field(default_factory=_now_iso)
    user_request: str
    request_type: RequestType
    status: RequestStatus
    duration: Optional[int] = None
    error_message: Optional[str] = None
    technology: Optional[str] = None
    user_name: Optional[str] = None
    account_slug: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class RequestLogger:
    def __init__(
        self,
        log_file: Optional[str] = None,
        production: bool = False,
        max_entries: int = 1000,
    ):
        self.log_file = Path(log_file) if log_file else None
        self.production = production
        self.max_entries = max_entries
        self._entries: Deque[RequestLogEntry] = deque(maxlen=max_entries)
        if not production:
            self._load_from_file()

    # ==========================================================================
    # PERSISTENCE
    # ==========================================================================
    def _load_from_file(self) -> None:
        if self.log_file is None or not self.log_file.exists():
            return
        try:
            with self.log_file.open("r", encoding="utf-8") as handle:
                for line in handle:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        self._entries.append(RequestLogEntry.model_validate(json.loads(line)))
                    except ValueError:
                        print__analytics_debug("⚠️ Skipping malformed request log line")
        except OSError as e:
            print(f"⚠️ Could not read request log {self.log_file}: {e}", flush=True)
        print__analytics_debug(f"📋 Loaded {len(self._entries)} request log entries")

    def _persist(self, entry: RequestLogEntry) -> None:
        if self.production or self.log_file is None:
            print(
                "📊 REQUEST LOG: "
                + json.dumps(
                    {
                        "timestamp": entry.timestamp,
                        "user": entry.user_name or "Anonymous",
                        "account": entry.account_slug or "N/A",
                        "request": entry.user_request,
                        "type": entry.request_type,
                        "status": entry.status,
                        "duration": f"{entry.duration}ms" if entry.duration is not None else "N/A",
                    }
                ),
                flush=True,
            )
            return
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry.to_wire()) + "\n")

    # ==========================================================================
    # WRITES
    # ==========================================================================
    def log_request(self, entry: RequestLogEntry) -> RequestLogEntry:
        """Append ``entry``; never raises on persistence failure."""
        self._entries.append(entry)
        try:
            self._persist(entry)
        except Exception as e:
            print(f"⚠️ Failed to persist request log entry {entry.id}: {e}", flush=True)
        return entry

    def start(
        self,
        user_request: str,
        request_type: RequestType,
        session_id: Optional[str] = None,
        user_name: Optional[str] = None,
        account_slug: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RequestLogEntry:
        return self.log_request(
            RequestLogEntry(
                user_request=user_request[:500],
                request_type=request_type,
                status="started",
                session_id=session_id,
                user_name=user_name,
                account_slug=account_slug,
                metadata=metadata,
            )
        )

    def _transition(self, started: RequestLogEntry, **changes) -> RequestLogEntry:
        started_ms = datetime.fromisoformat(started.timestamp.replace("Z", "+00:00")).timestamp() * 1000
        entry = started.model_copy(
            update={
                "timestamp": _now_iso(),
                "duration": max(int(time.time() * 1000 - started_ms), 0),
                **changes,
            }
        )
        return self.log_request(entry)

    def complete(
        self,
        started: RequestLogEntry,
        technology: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RequestLogEntry:
        changes: Dict[str, Any] = {"status": "completed"}
        if technology:
            changes["technology"] = technology
        if metadata:
            changes["metadata"] = {**(started.metadata or {}), **metadata}
        return self._transition(started, **changes)

    def fail(self, started: RequestLogEntry, error: Any) -> RequestLogEntry:
        return self._transition(started, status="failed", error_message=str(error))

    def reset(self) -> None:
        self._entries.clear()

    # ==========================================================================
    # QUERIES
    # ==========================================================================
    def get_request_logs(self, limit: int = 100) -> List[RequestLogEntry]:
        """The latest ``limit`` entries, oldest first."""
        if limit <= 0:
            return []
        return list(self._entries)[-limit:]

    def _latest_by_id(self) -> List[RequestLogEntry]:
        latest: Dict[str, RequestLogEntry] = {}
        for entry in self._entries:
            latest[entry.id] = entry
        return list(latest.values())

    def get_analytics(self) -> Dict[str, Any]:
        requests = self._latest_by_id()
        completed = [entry for entry in requests if entry.status == "completed"]
        failed = [entry for entry in requests if entry.status == "failed"]
        durations = [entry.duration for entry in completed if entry.duration is not None]

        technologies = Counter(entry.technology for entry in requests if entry.technology)
        per_day = Counter(entry.timestamp[:10] for entry in requests)
        per_type = Counter(entry.request_type for entry in requests)

        return {
            "totalRequests": len(requests),
            "completedRequests": len(completed),
            "failedRequests": len(failed),
            "averageDuration": round(sum(durations) / len(durations)) if durations else 0,
            "technologies": [
                {"technology": name, "count": count}
                for name, count in technologies.most_common()
            ],
            "requestsByDay": [
                {"date": day, "count": per_day[day]} for day in sorted(per_day)
            ],
            "requestTypes": dict(per_type),
            "recentLogs": [entry.to_wire() for entry in self.get_request_logs(10)],
        }


def get_session_id(request) -> str:
    """Group requests by client IP and user agent."""
    user_agent = request.headers.get("user-agent", "")
    ip = (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or (request.client.host if request.client else "unknown")
    )
    digest = hashlib.sha256(f"{ip}-{user_agent}".encode("utf-8")).hexdigest()
    return f"session_{int(digest[:8], 16)}"

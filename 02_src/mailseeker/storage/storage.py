"""SQLite storage implementation."""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import TraceEvent


class IStorage(Protocol):
    """Persistent storage for bot state and trace events (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # State entries
    async def get_state(self, key: str) -> dict[str, Any] | None:
        """Get the state document stored under key."""
        ...

    async def save_state(self, key: str, value: dict[str, Any]) -> None:
        """Insert or replace the state document stored under key."""
        ...

    async def delete_state(self, key: str) -> None:
        """Delete the state document stored under key."""
        ...

    async def save_states(self, changes: dict[str, dict[str, Any] | None]) -> None:
        """Apply several writes (None deletes) in a single transaction."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        # One connection is shared by all conversations: transactions take turns
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # State entries
    async def get_state(self, key: str) -> dict[str, Any] | None:
        """Get the state document stored under key."""
        conn = self._require_conn()

        async with self._lock:
            cursor = await conn.execute(
                "SELECT value FROM state_entries WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()

        if not row:
            return None

        return json.loads(row[0])

    async def save_state(self, key: str, value: dict[str, Any]) -> None:
        """Insert or replace the state document stored under key."""
        await self.save_states({key: value})

    async def delete_state(self, key: str) -> None:
        """Delete the state document stored under key."""
        await self.save_states({key: None})

    async def save_states(self, changes: dict[str, dict[str, Any] | None]) -> None:
        """Apply several writes (None deletes) in a single transaction."""
        conn = self._require_conn()

        # Serialize everything first: a bad value fails before any statement runs
        rows = {
            key: None if value is None else json.dumps(value, ensure_ascii=False)
            for key, value in changes.items()
        }

        async with self._lock:
            try:
                for key, value in rows.items():
                    if value is None:
                        await conn.execute(
                            "DELETE FROM state_entries WHERE key = ?", (key,)
                        )
                    else:
                        await conn.execute(
                            """
                            INSERT OR REPLACE INTO state_entries (key, value, updated_at)
                            VALUES (?, ?, CURRENT_TIMESTAMP)
                            """,
                            (key, value),
                        )
                await conn.commit()
            except Exception:
                # Previously committed state stays authoritative
                await conn.rollback()
                raise

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()
        data = json.dumps(event.data, ensure_ascii=False, default=str)

        async with self._lock:
            await conn.execute(
                """
                INSERT INTO trace_events (id, event_type, actor, data, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.id or str(uuid.uuid4()),
                    event.event_type,
                    event.actor,
                    data,
                    event.timestamp.isoformat(),
                ),
            )
            await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params: list[Any] = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        async with self._lock:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        async with self._lock:
            for table in ("state_entries", "trace_events"):
                await conn.execute(f"DELETE FROM {table}")

            await conn.commit()

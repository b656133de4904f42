"""Tests for Storage."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from mailseeker.models import TraceEvent
from mailseeker.storage import Storage


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "state_entries" in tables
            assert "trace_events" in tables

    async def test_requires_init(self):
        """Test that using storage before init fails."""
        storage = Storage(":memory:")

        with pytest.raises(RuntimeError, match="Storage not initialized"):
            await storage.get_state("k")


class TestStorageState:
    """Tests for state entries."""

    async def test_get_missing_state(self, storage):
        """Test that a missing key returns None."""
        assert await storage.get_state("msteams/conversations/c1") is None

    async def test_save_and_get_state(self, storage):
        """Test saving and reading back a state document."""
        value = {"MailSeekerBotAccessors.CommandState": "buscar correos de Ana"}
        await storage.save_state("msteams/users/u1", value)

        assert await storage.get_state("msteams/users/u1") == value

    async def test_save_state_replaces(self, storage):
        """Test that saving the same key replaces the document."""
        await storage.save_state("k", {"a": 1})
        await storage.save_state("k", {"b": 2})

        assert await storage.get_state("k") == {"b": 2}

    async def test_delete_state(self, storage):
        """Test deleting a state document."""
        await storage.save_state("k", {"a": 1})
        await storage.delete_state("k")

        assert await storage.get_state("k") is None

    async def test_delete_missing_state(self, storage):
        """Test that deleting a missing key is a no-op."""
        await storage.delete_state("nothing-here")

    async def test_save_states_applies_writes_and_deletes(self, storage):
        """Test that save_states writes and deletes in one call."""
        await storage.save_state("old", {"x": 1})

        await storage.save_states({"new": {"y": 2}, "old": None})

        assert await storage.get_state("new") == {"y": 2}
        assert await storage.get_state("old") is None

    async def test_save_states_is_atomic(self, storage):
        """Test that a failing batch leaves earlier state untouched."""
        await storage.save_state("a", {"v": 1})

        with pytest.raises(TypeError):
            await storage.save_states({"a": {"v": 2}, "b": {"v": object()}})

        assert await storage.get_state("a") == {"v": 1}
        assert await storage.get_state("b") is None

    async def test_failed_flush_keeps_concurrent_flush(self, storage):
        """Test that one conversation's failed batch does not undo another's."""
        results = await asyncio.gather(
            storage.save_states({"conv-a": {"v": 1}, "user-a": {"v": 1}}),
            storage.save_states({"conv-b": {"v": 2}, "user-b": {"v": object()}}),
            return_exceptions=True,
        )

        assert results[0] is None
        assert isinstance(results[1], TypeError)
        assert await storage.get_state("conv-a") == {"v": 1}
        assert await storage.get_state("user-a") == {"v": 1}
        assert await storage.get_state("conv-b") is None

    async def test_concurrent_flushes_and_trace_events(self, storage):
        """Test that interleaved writers all land."""
        await asyncio.gather(
            *(storage.save_states({f"conv-{i}": {"v": i}}) for i in range(5)),
            *(
                storage.save_trace_event(
                    TraceEvent(
                        id=f"trace{i}",
                        event_type="turn_received",
                        actor="test",
                        data={"i": i},
                        timestamp=datetime.now(timezone.utc),
                    )
                )
                for i in range(5)
            ),
        )

        for i in range(5):
            assert await storage.get_state(f"conv-{i}") == {"v": i}
        assert len(await storage.get_trace_events()) == 5

    async def test_non_ascii_values(self, storage):
        """Test that Spanish text survives storage."""
        await storage.save_state("k", {"command": "enséñame la reunión"})

        assert await storage.get_state("k") == {"command": "enséñame la reunión"}


class TestStorageTraceEvents:
    """Tests for TraceEvent storage."""

    async def test_get_trace_events(self, storage):
        """Test retrieving trace events."""
        ts = datetime.now(timezone.utc)
        event1 = TraceEvent(
            id="trace1",
            event_type="turn_received",
            actor="turn_dispatcher",
            data={},
            timestamp=ts,
        )
        event2 = TraceEvent(
            id="trace2",
            event_type="intent_classified",
            actor="intent_router",
            data={"intent": "Mail_Get"},
            timestamp=ts,
        )
        await storage.save_trace_event(event1)
        await storage.save_trace_event(event2)

        events = await storage.get_trace_events()
        assert len(events) == 2

    async def test_get_trace_events_with_limit(self, storage):
        """Test retrieving trace events with limit."""
        ts = datetime.now(timezone.utc)
        for i in range(10):
            event = TraceEvent(
                id=f"trace{i}",
                event_type="test",
                actor="test",
                data={},
                timestamp=ts,
            )
            await storage.save_trace_event(event)

        events = await storage.get_trace_events(limit=5)
        assert len(events) == 5

    async def test_get_trace_events_by_actor(self, storage):
        """Test filtering trace events by actor."""
        ts = datetime.now(timezone.utc)
        for i, actor in enumerate(["mail_search", "intent_router"]):
            await storage.save_trace_event(
                TraceEvent(id=f"t{i}", event_type="test", actor=actor, data={}, timestamp=ts)
            )

        events = await storage.get_trace_events(actor="mail_search")
        assert len(events) == 1
        assert events[0].actor == "mail_search"

    async def test_get_trace_events_by_type(self, storage):
        """Test filtering trace events by type."""
        ts = datetime.now(timezone.utc)
        for i, event_type in enumerate(["type1", "type2"]):
            await storage.save_trace_event(
                TraceEvent(id=f"t{i}", event_type=event_type, actor="a", data={}, timestamp=ts)
            )

        events = await storage.get_trace_events(event_types=["type1"])
        assert len(events) == 1
        assert events[0].event_type == "type1"

    async def test_get_trace_events_after(self, storage):
        """Test that only events newer than `after` are returned, newest first."""
        base = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc)
        for i in range(3):
            await storage.save_trace_event(
                TraceEvent(
                    id=f"t{i}",
                    event_type="test",
                    actor="a",
                    data={"i": i},
                    timestamp=base + timedelta(minutes=i),
                )
            )

        events = await storage.get_trace_events(after=base)
        assert [e.id for e in events] == ["t2", "t1"]

    async def test_trace_event_data_roundtrip(self, storage):
        """Test that event data and timestamp are restored."""
        ts = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc)
        await storage.save_trace_event(
            TraceEvent(
                id="t1",
                event_type="mail_search_completed",
                actor="mail_search",
                data={"fetched": 100, "matched": 2},
                timestamp=ts,
            )
        )

        (event,) = await storage.get_trace_events()
        assert event.data == {"fetched": 100, "matched": 2}
        assert event.timestamp == ts


class TestStorageClear:
    """Tests for clearing storage."""

    async def test_clear_all_data(self, storage):
        """Test clearing all data."""
        await storage.save_state("k", {"a": 1})
        await storage.save_trace_event(
            TraceEvent(
                id="t1",
                event_type="test",
                actor="a",
                data={},
                timestamp=datetime.now(timezone.utc),
            )
        )

        await storage.clear()

        assert await storage.get_state("k") is None
        async with storage._conn.execute("SELECT COUNT(*) FROM trace_events") as cursor:
            count = await cursor.fetchone()
            assert count[0] == 0

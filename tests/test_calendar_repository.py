"""Tests for the calendar repository: item lookup, writes by kind and overrides."""

import pytest

from coachcal.calendar.repository import OVERRIDES, CalendarRepository
from coachcal.errors import NotFoundError, PersistenceError
from coachcal.schemas.calendar_schema import CalendarItemKind, EventType
from tests.conftest import CLIENT_ID, MONDAY, NOW, TRAINER_ID, TUESDAY, at, make_booking, make_event


@pytest.fixture
def repo_store(store):
    store.seed("events", [
        make_event(at(TUESDAY, 9), at(TUESDAY, 10), event_id="e-late"),
        make_event(at(MONDAY, 9), at(MONDAY, 10), event_id="e-early", client_id=CLIENT_ID),
    ])
    store.seed("appointments", [
        make_booking(at(MONDAY, 11), at(MONDAY, 12), booking_id="b-1"),
        make_booking(at(MONDAY, 13), at(MONDAY, 14), booking_id="b-gone", status="cancelled"),
    ])
    return store


class TestLoadAndResolve:
    @pytest.mark.asyncio
    async def test_load_items_sorted_and_tagged(self, repo_store):
        repo = CalendarRepository(repo_store)
        items = await repo.load_items(TRAINER_ID)
        assert [i.id for i in items] == ["e-early", "b-1", "e-late"]
        kinds = {i.id: i.kind for i in items}
        assert kinds["b-1"] is CalendarItemKind.APPOINTMENT
        assert kinds["e-late"] is CalendarItemKind.EVENT

    @pytest.mark.asyncio
    async def test_trainer_appointments_show_as_training(self, repo_store):
        items = await CalendarRepository(repo_store).load_items(TRAINER_ID)
        appointment = next(i for i in items if i.id == "b-1")
        assert appointment.event_type is EventType.TRAINING

    @pytest.mark.asyncio
    async def test_client_sees_only_own_items(self, repo_store):
        items = await CalendarRepository(repo_store).load_items(CLIENT_ID)
        assert [i.id for i in items] == ["e-early", "b-1"]

    @pytest.mark.asyncio
    async def test_resolve_unloaded_appointment(self, repo_store):
        repo = CalendarRepository(repo_store)
        item = await repo.resolve("b-1")
        assert item.kind is CalendarItemKind.APPOINTMENT
        assert item.owner_id == TRAINER_ID

    @pytest.mark.asyncio
    async def test_resolve_uses_cache(self, repo_store):
        repo = CalendarRepository(repo_store)
        await repo.load_items(TRAINER_ID)
        repo_store.fail_next("events", "get")
        item = await repo.resolve("e-late")
        assert item.kind is CalendarItemKind.EVENT

    @pytest.mark.asyncio
    async def test_resolve_unknown(self, repo_store):
        with pytest.raises(NotFoundError):
            await CalendarRepository(repo_store).resolve("nope")

    @pytest.mark.asyncio
    async def test_load_failure_is_persistence_error(self, repo_store):
        repo_store.fail_next("appointments", "select")
        with pytest.raises(PersistenceError):
            await CalendarRepository(repo_store).load_items(TRAINER_ID)


class TestWrites:
    @pytest.mark.asyncio
    async def test_update_event_writes_events_collection(self, repo_store):
        repo = CalendarRepository(repo_store)
        item = await repo.resolve("e-late")
        updated = await repo.update_item(item, {"title": "Planning", "status": "ignored"})
        assert updated.title == "Planning"
        row = await repo_store.get("events", "e-late")
        assert row["title"] == "Planning"
        assert "status" not in row

    @pytest.mark.asyncio
    async def test_update_appointment_stamps_updated_at(self, repo_store):
        later = at(TUESDAY, 8)
        repo = CalendarRepository(repo_store, clock=lambda: later)
        item = await repo.resolve("b-1")
        await repo.update_item(item, {"description": "Bring shoes"})
        row = await repo_store.get("appointments", "b-1")
        assert row["description"] == "Bring shoes"
        assert row["updated_at"] == later

    @pytest.mark.asyncio
    async def test_returned_appointment_reflects_only_written_columns(self, repo_store):
        repo = CalendarRepository(repo_store)
        item = await repo.resolve("b-1")
        updated = await repo.update_item(item, {"title": "Rehab", "event_type": EventType.GROUP})
        assert updated.title == "Rehab"
        assert updated.event_type is item.event_type
        assert "event_type" not in await repo_store.get("appointments", "b-1")

    @pytest.mark.asyncio
    async def test_delete_event_removes_row(self, repo_store):
        repo = CalendarRepository(repo_store)
        await repo.delete_item(await repo.resolve("e-late"))
        assert [row["id"] for row in await repo_store.select("events")] == ["e-early"]

    @pytest.mark.asyncio
    async def test_delete_appointment_cancels(self, repo_store):
        repo = CalendarRepository(repo_store, clock=lambda: NOW)
        await repo.delete_item(await repo.resolve("b-1"))
        row = await repo_store.get("appointments", "b-1")
        assert row["status"] == "cancelled"
        assert row["cancellation_date"] == NOW

    @pytest.mark.asyncio
    async def test_add_event_is_resolvable(self, store):
        repo = CalendarRepository(store)
        item = await repo.add_event({
            "user_id": TRAINER_ID, "title": "Yoga", "start_time": at(MONDAY, 7),
            "end_time": at(MONDAY, 8), "is_recurring": False, "event_type": "group",
        })
        assert item.event_type is EventType.GROUP
        assert (await repo.resolve(item.id)).title == "Yoga"


class TestOverrides:
    @pytest.mark.asyncio
    async def test_save_then_extend_keeps_deleted(self, store):
        repo = CalendarRepository(store)
        await repo.save_override("base", 2, deleted=True)
        override = await repo.save_override("base", 2, title="Moved")
        assert override.deleted is True
        assert override.title == "Moved"
        assert len(await store.select(OVERRIDES)) == 1

    @pytest.mark.asyncio
    async def test_overrides_for_filters_by_base(self, store):
        repo = CalendarRepository(store)
        await repo.save_override("a", 1, title="x")
        await repo.save_override("b", 1, title="y")
        assert [o.base_id for o in await repo.overrides_for(["a"])] == ["a"]
        assert await repo.overrides_for([]) == []

    @pytest.mark.asyncio
    async def test_delete_overrides(self, store):
        repo = CalendarRepository(store)
        await repo.save_override("a", 1, deleted=True)
        await repo.save_override("a", 4, title="x")
        assert await repo.delete_overrides("a") == 2
        assert await repo.overrides_for(["a"]) == []

    @pytest.mark.asyncio
    async def test_delete_overrides_failure_is_reported_not_raised(self, store):
        store.fail_next(OVERRIDES, "delete")
        assert await CalendarRepository(store).delete_overrides("a") is None

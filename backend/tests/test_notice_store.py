"""Tests for SqlNoticeStore against an in-memory SQLite database."""

import asyncio
import datetime

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from transit_board.core.errors import NoticeNotFoundError
from transit_board.core.notice_store import SqlNoticeStore
from transit_board.models.base import Base
from transit_board.schemas.notice import NoticeCreate, NoticeUpdate


def run_with_store(scenario):
    async def run():
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            return await scenario(SqlNoticeStore(async_sessionmaker(engine, expire_on_commit=False)))
        finally:
            await engine.dispose()
    return asyncio.run(run())


def test_create_and_list_active():
    async def scenario(store):
        now = datetime.datetime.now(datetime.timezone.utc)
        await store.create(NoticeCreate(title="Low", content="a", priority="low"))
        await store.create(NoticeCreate(title="High", content="b", priority="high"))
        await store.create(NoticeCreate(title="Off", content="c", priority="high", active=False))
        await store.create(NoticeCreate(
            title="Expired", content="d", priority="high",
            expires_at=now - datetime.timedelta(days=1),
        ))
        await store.create(NoticeCreate(
            title="Later", content="e", priority="medium",
            expires_at=now + datetime.timedelta(days=1),
        ))
        active = await store.list_active()
        everything = await store.list_all()
        return [n.title for n in active], len(everything)

    titles, total = run_with_store(scenario)
    assert titles == ["High", "Later", "Low"]
    assert total == 5


def test_created_notice_fields():
    async def scenario(store):
        return await store.create(NoticeCreate(title="Water", content="Shut off 10-12"))

    notice = run_with_store(scenario)
    assert notice.id
    assert notice.priority == "low"
    assert notice.active is True
    assert notice.expires_at is None
    assert notice.created_at.tzinfo is not None


def test_update_changes_only_sent_fields():
    async def scenario(store):
        created = await store.create(NoticeCreate(title="Water", content="Shut off 10-12", priority="medium"))
        return await store.update(created.id, NoticeUpdate(title="Water main"))

    updated = run_with_store(scenario)
    assert updated.title == "Water main"
    assert updated.content == "Shut off 10-12"
    assert updated.priority == "medium"


def test_update_and_delete_unknown_id():
    async def scenario(store):
        with pytest.raises(NoticeNotFoundError):
            await store.update("nope", NoticeUpdate(title="x"))
        with pytest.raises(NoticeNotFoundError):
            await store.delete("nope")

    run_with_store(scenario)


def test_delete():
    async def scenario(store):
        created = await store.create(NoticeCreate(title="Gone", content="soon"))
        await store.delete(created.id)
        return await store.list_all()

    assert run_with_store(scenario) == []


def test_ping():
    async def scenario(store):
        await store.ping()

    run_with_store(scenario)

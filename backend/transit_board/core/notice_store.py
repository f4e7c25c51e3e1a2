"""Building notices persistence behind one interface."""

import abc
import datetime
import logging
import uuid

from sqlalchemy import case, delete, or_, select, text
from sqlalchemy.exc import SQLAlchemyError

from transit_board.core.errors import NoticeNotFoundError, NoticeStoreError
from transit_board.models.tables import Notice
from transit_board.schemas.notice import PRIORITY_RANK, NoticeCreate, NoticeInfo, NoticeUpdate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _display_order(notices: list[NoticeInfo]) -> list[NoticeInfo]:
    """Highest priority first, newest first within a priority."""
    return sorted(
        notices,
        key=lambda n: (PRIORITY_RANK[n.priority], n.created_at),
        reverse=True,
    )


class NoticeStore(abc.ABC):
    """Create/read/update/delete for notices. Each call is one atomic row operation."""

    @abc.abstractmethod
    async def list_active(self, now: datetime.datetime | None = None) -> list[NoticeInfo]:
        """Active notices that have not expired, in display order."""

    @abc.abstractmethod
    async def list_all(self) -> list[NoticeInfo]:
        ...

    @abc.abstractmethod
    async def create(self, data: NoticeCreate) -> NoticeInfo:
        ...

    @abc.abstractmethod
    async def update(self, notice_id: str, data: NoticeUpdate) -> NoticeInfo:
        """Raises NoticeNotFoundError for an unknown id."""

    @abc.abstractmethod
    async def delete(self, notice_id: str) -> None:
        """Raises NoticeNotFoundError for an unknown id."""

    @abc.abstractmethod
    async def ping(self) -> None:
        """Touch the backing store; raises NoticeStoreError when unreachable."""


class InMemoryNoticeStore(NoticeStore):
    """Process-local store for tests and runs without a database."""

    def __init__(self) -> None:
        self._rows: dict[str, NoticeInfo] = {}

    async def list_active(self, now: datetime.datetime | None = None) -> list[NoticeInfo]:
        now = now or _utcnow()
        return _display_order([
            n for n in self._rows.values()
            if n.active and (n.expires_at is None or n.expires_at > now)
        ])

    async def list_all(self) -> list[NoticeInfo]:
        return _display_order(list(self._rows.values()))

    async def create(self, data: NoticeCreate) -> NoticeInfo:
        notice = NoticeInfo(id=str(uuid.uuid4()), created_at=_utcnow(), **data.model_dump())
        self._rows[notice.id] = notice
        return notice

    async def update(self, notice_id: str, data: NoticeUpdate) -> NoticeInfo:
        current = self._rows.get(notice_id)
        if current is None:
            raise NoticeNotFoundError(notice_id)
        updated = current.model_copy(update=data.changes())
        self._rows[notice_id] = updated
        return updated

    async def delete(self, notice_id: str) -> None:
        if self._rows.pop(notice_id, None) is None:
            raise NoticeNotFoundError(notice_id)

    async def ping(self) -> None:
        return None


class SqlNoticeStore(NoticeStore):
    """Notices table accessed through an async SQLAlchemy session factory."""

    _priority_rank = case(PRIORITY_RANK, value=Notice.priority, else_=0)

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    async def list_active(self, now: datetime.datetime | None = None) -> list[NoticeInfo]:
        now = now or _utcnow()
        stmt = (
            select(Notice)
            .where(Notice.active.is_(True))
            .where(or_(Notice.expires_at.is_(None), Notice.expires_at > now))
            .order_by(self._priority_rank.desc(), Notice.created_at.desc())
        )
        return await self._select(stmt)

    async def list_all(self) -> list[NoticeInfo]:
        stmt = select(Notice).order_by(self._priority_rank.desc(), Notice.created_at.desc())
        return await self._select(stmt)

    async def _select(self, stmt) -> list[NoticeInfo]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [NoticeInfo.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.exception("Failed to read notices")
            raise NoticeStoreError("Failed to read notices") from e

    async def create(self, data: NoticeCreate) -> NoticeInfo:
        try:
            async with self.session_factory() as session:
                row = Notice(id=str(uuid.uuid4()), created_at=_utcnow(), **data.model_dump())
                session.add(row)
                await session.commit()
                return NoticeInfo.model_validate(row)
        except SQLAlchemyError as e:
            logger.exception("Failed to create notice %r", data.title)
            raise NoticeStoreError("Failed to create notice") from e

    async def update(self, notice_id: str, data: NoticeUpdate) -> NoticeInfo:
        try:
            async with self.session_factory() as session:
                row = await session.get(Notice, notice_id)
                if row is None:
                    raise NoticeNotFoundError(notice_id)
                for key, value in data.changes().items():
                    setattr(row, key, value)
                await session.commit()
                return NoticeInfo.model_validate(row)
        except SQLAlchemyError as e:
            logger.exception("Failed to update notice %s", notice_id)
            raise NoticeStoreError("Failed to update notice") from e

    async def delete(self, notice_id: str) -> None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(delete(Notice).where(Notice.id == notice_id))
                if result.rowcount == 0:
                    raise NoticeNotFoundError(notice_id)
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Failed to delete notice %s", notice_id)
            raise NoticeStoreError("Failed to delete notice") from e

    async def ping(self) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Notice store ping failed: %s", e)
            raise NoticeStoreError("Notice store unreachable") from e

"""Base repository with the lookups and writes every table shares."""

from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository:
    """Generic async repository over one ORM model. Callers own the commit."""

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def get_one_by(self, field: str, value: Any) -> T | None:
        """Return the row whose unique *field* equals *value*, if any."""
        stmt = select(self.model_class).where(getattr(self.model_class, field) == value)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> T:
        row = self.model_class(**kwargs)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, row: T, **kwargs: Any) -> T:
        """Assign only attributes whose value differs, so an identical write issues no UPDATE."""
        changed = {key: value for key, value in kwargs.items() if getattr(row, key) != value}
        for key, value in changed.items():
            setattr(row, key, value)
        if changed:
            await self.session.flush()
        return row

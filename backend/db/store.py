from typing import Generic, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound
from db.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class EntityStore(Generic[ModelT]):
    """Lookup/persistence by id for one mapped model. No business rules live here."""

    def __init__(self, session: AsyncSession, model: Type[ModelT], label: Optional[str] = None):
        self.session = session
        self.model = model
        self.label = label or model.__name__

    async def get(self, entity_id: UUID, *, for_update: bool = False, fresh: bool = False) -> ModelT:
        stmt = select(self.model).where(self.model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        if for_update or fresh:
            # Overwrite whatever this session already has in its identity map
            stmt = stmt.execution_options(populate_existing=True)
        res = await self.session.execute(stmt)
        obj = res.scalar_one_or_none()
        if obj is None:
            raise NotFound(self.label, entity_id)
        return obj

    async def list(self, *where, order_by=None) -> Sequence[ModelT]:
        stmt = select(self.model)
        if where:
            stmt = stmt.where(*where)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        res = await self.session.execute(stmt)
        return res.scalars().all()

    async def get_many(self, ids: List[UUID]) -> dict:
        if not ids:
            return {}
        res = await self.session.execute(select(self.model).where(self.model.id.in_(ids)))
        return {obj.id: obj for obj in res.scalars().all()}

    async def save(self, obj: ModelT, *, commit: bool = True) -> ModelT:
        self.session.add(obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(obj)
        else:
            await self.session.flush()
        return obj

    async def delete(self, entity_id: UUID, *, commit: bool = True) -> None:
        obj = await self.get(entity_id)
        await self.session.delete(obj)
        if commit:
            await self.session.commit()

# app/repositories/catalog_repo.py
# 目錄資料 (城市、國家、工作類型、專長、語言、合約類型、狀態) 的唯讀查詢
from typing import Iterable, List, Optional, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import Base
from app.models.catalog import MerchandiserStatus


class CatalogRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _pk(model: Type[Base]):
        return model.__mapper__.primary_key[0]

    async def find_by_id(self, model: Type[Base], item_id: int):
        stmt = select(model).where(self._pk(model) == item_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_by_ids(self, model: Type[Base], ids: Iterable[int]) -> List:
        """一次查詢多筆；不存在的 id 不會出現在結果裡"""
        ids = list(set(ids))
        if not ids:
            return []
        stmt = select(model).where(self._pk(model).in_(ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self, model: Type[Base]) -> List:
        pk = self._pk(model)
        order = model.name if hasattr(model, "name") else pk
        stmt = select(model).order_by(order, pk)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_status_by_name(self, name: str) -> Optional[MerchandiserStatus]:
        stmt = select(MerchandiserStatus).where(MerchandiserStatus.name == name)
        result = await self.db.execute(stmt)
        return result.scalars().first()

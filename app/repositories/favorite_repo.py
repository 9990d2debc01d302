# app/repositories/favorite_repo.py
from typing import List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.favorite import AkzenteFavoriteMerchandiser


class FavoriteRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_pair(self, akzente_id: int, merchandiser_id: int) -> Optional[AkzenteFavoriteMerchandiser]:
        stmt = select(AkzenteFavoriteMerchandiser).where(
            AkzenteFavoriteMerchandiser.akzente_id == akzente_id,
            AkzenteFavoriteMerchandiser.merchandiser_id == merchandiser_id,
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_merchandiser_ids(self, akzente_id: int) -> Set[int]:
        """某位 Akzente 收藏的所有 merchandiser_id (一次查完)"""
        stmt = select(AkzenteFavoriteMerchandiser.merchandiser_id).where(
            AkzenteFavoriteMerchandiser.akzente_id == akzente_id
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def list_by_akzente(self, akzente_id: int) -> List[AkzenteFavoriteMerchandiser]:
        stmt = (
            select(AkzenteFavoriteMerchandiser)
            .where(AkzenteFavoriteMerchandiser.akzente_id == akzente_id)
            .order_by(AkzenteFavoriteMerchandiser.favorite_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, akzente_id: int, merchandiser_id: int) -> AkzenteFavoriteMerchandiser:
        # 重複的 (akzente, merchandiser) 會在 flush 時觸發 IntegrityError (唯一限制)
        favorite = AkzenteFavoriteMerchandiser(akzente_id=akzente_id, merchandiser_id=merchandiser_id)
        self.db.add(favorite)
        await self.db.flush()
        return favorite

    async def remove(self, favorite: AkzenteFavoriteMerchandiser) -> None:
        await self.db.delete(favorite)
        await self.db.flush()

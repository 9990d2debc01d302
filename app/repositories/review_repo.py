# app/repositories/review_repo.py
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.review import MerchandiserReview


class ReviewRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, review_id: int) -> Optional[MerchandiserReview]:
        stmt = select(MerchandiserReview).where(MerchandiserReview.review_id == review_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_pair(self, akzente_id: int, merchandiser_id: int) -> Optional[MerchandiserReview]:
        stmt = select(MerchandiserReview).where(
            MerchandiserReview.akzente_id == akzente_id,
            MerchandiserReview.merchandiser_id == merchandiser_id,
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by_merchandiser(self, merchandiser_id: int) -> List[MerchandiserReview]:
        stmt = (
            select(MerchandiserReview)
            .where(MerchandiserReview.merchandiser_id == merchandiser_id)
            .order_by(MerchandiserReview.created_at.desc(), MerchandiserReview.review_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, review: MerchandiserReview) -> MerchandiserReview:
        self.db.add(review)
        await self.db.flush()
        return review

    async def update(self, review: MerchandiserReview, changes: Dict[str, Any]) -> MerchandiserReview:
        for key, value in changes.items():
            setattr(review, key, value)
        await self.db.flush()
        return review

    async def remove(self, review: MerchandiserReview) -> None:
        await self.db.delete(review)
        await self.db.flush()

    async def stats(self, merchandiser_id: int) -> Tuple[Optional[Any], int]:
        """
        (平均分數, 評價數)，由資料庫計算。
        沒有評價時平均為 None。
        """
        stmt = select(
            func.avg(MerchandiserReview.rating),
            func.count(MerchandiserReview.review_id),
        ).where(MerchandiserReview.merchandiser_id == merchandiser_id)
        result = await self.db.execute(stmt)
        average, count = result.one()
        return average, int(count or 0)

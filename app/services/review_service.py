# app/services/review_service.py
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from app.models.review import MerchandiserReview
from app.repositories.merchandiser_repo import MerchandiserRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.review_schema import ReviewCreate, ReviewStatsOut, ReviewUpdate
from app.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def round_rating(value) -> float:
    """平均分數四捨五入到小數第一位 (3.25 -> 3.3，不是銀行家捨入)"""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _check_rating(rating: Optional[int]) -> None:
    if rating is None or not (MIN_RATING <= rating <= MAX_RATING):
        raise ValidationError(
            f"評分必須介於 {MIN_RATING} 到 {MAX_RATING} 之間", details={"rating": rating}
        )


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ReviewRepository(db)
        self.merchandiser_repo = MerchandiserRepository(db)
        self.identity = IdentityService(db)

    async def review_stats(self, merchandiser_id: int) -> ReviewStatsOut:
        """沒有評價時回傳 0.0 / 0"""
        try:
            average, count = await self.repo.stats(merchandiser_id)
        except SQLAlchemyError as e:
            raise PersistenceError("讀取評分統計失敗") from e
        if count == 0:
            return ReviewStatsOut(average_rating=0.0, review_count=0)
        return ReviewStatsOut(average_rating=round_rating(average), review_count=count)

    async def list_reviews(self, merchandiser_id: int) -> List[MerchandiserReview]:
        merchandiser = await self.merchandiser_repo.get_by_id(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})
        return await self.repo.list_by_merchandiser(merchandiser_id)

    async def create_review(self, reviewer_user_id: int, review_data: ReviewCreate) -> MerchandiserReview:
        """
        (重要) 建立評價
        1. 評價者必須是 Akzente
        2. 不可以評價自己
        3. 同一組 (評價者, merchandiser) 只能有一筆 -> ConflictError
        """
        akzente = await self.identity.find_akzente_by_user_id(reviewer_user_id)
        if akzente is None:
            raise NotFoundError("只有 Akzente 可以評價 Merchandiser", details={"user_id": reviewer_user_id})

        merchandiser = await self.merchandiser_repo.get_by_id(review_data.merchandiser_id)
        if merchandiser is None:
            raise NotFoundError(
                "Merchandiser 不存在", details={"merchandiser_id": review_data.merchandiser_id}
            )

        if akzente.user_id == merchandiser.user_id:
            raise ValidationError("不可以評價自己", details={"user_id": reviewer_user_id})

        _check_rating(review_data.rating)

        conflict = ConflictError(
            "已經評價過這位 Merchandiser",
            details={"akzente_id": akzente.akzente_id, "merchandiser_id": merchandiser.merchandiser_id},
        )
        if await self.repo.get_pair(akzente.akzente_id, merchandiser.merchandiser_id):
            raise conflict

        review = MerchandiserReview(
            akzente_id=akzente.akzente_id,
            merchandiser_id=merchandiser.merchandiser_id,
            rating=review_data.rating,
            review=review_data.review or "",
        )
        try:
            await self.repo.create(review)
            await self.db.commit()
            # created_at 由資料庫產生，commit 後重新讀取
            await self.db.refresh(review)
        except IntegrityError as e:
            # 同時送出的另一筆評價先寫入了
            await self.db.rollback()
            raise conflict from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("建立評價失敗") from e

        logger.info(f"Review {review.review_id} created for merchandiser {merchandiser.merchandiser_id}")
        return review

    async def _get_own_review(self, review_id: int, reviewer_user_id: int) -> MerchandiserReview:
        review = await self.repo.get_by_id(review_id)
        if review is None:
            raise NotFoundError("評價不存在", details={"review_id": review_id})
        akzente = await self.identity.find_akzente_by_user_id(reviewer_user_id)
        if akzente is None or akzente.akzente_id != review.akzente_id:
            # 不是自己的評價就當作不存在
            raise NotFoundError("評價不存在", details={"review_id": review_id})
        return review

    async def update_review(self, review_id: int, reviewer_user_id: int, update_data: ReviewUpdate) -> MerchandiserReview:
        review = await self._get_own_review(review_id, reviewer_user_id)
        changes = update_data.model_dump(exclude_unset=True)
        if "rating" in changes:
            _check_rating(changes["rating"])
        if "review" in changes and changes["review"] is None:
            changes["review"] = ""

        try:
            await self.repo.update(review, changes)
            await self.db.commit()
            await self.db.refresh(review)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("更新評價失敗") from e
        return review

    async def remove_review(self, review_id: int, reviewer_user_id: int) -> None:
        review = await self._get_own_review(review_id, reviewer_user_id)
        try:
            await self.repo.remove(review)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("刪除評價失敗") from e

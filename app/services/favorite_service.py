# app/services/favorite_service.py
import logging
from typing import List, Optional, Set
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PersistenceError
from app.repositories.favorite_repo import FavoriteRepository
from app.repositories.merchandiser_repo import MerchandiserRepository
from app.schemas.merchandiser_schema import FavoriteToggleOut, MerchandiserListItem
from app.services.identity_service import IdentityService
from app.services.merchandiser_file_service import MerchandiserFileService

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = FavoriteRepository(db)
        self.merchandiser_repo = MerchandiserRepository(db)
        self.identity = IdentityService(db)
        self.files = MerchandiserFileService(db)

    async def favorite_ids_for_viewer(self, viewer_user_id: Optional[int]) -> Set[int]:
        """
        viewer 收藏的 merchandiser_id。
        沒登入 / 不是 Akzente / 查詢失敗 -> 空集合 (不丟錯)
        """
        if viewer_user_id is None:
            return set()
        try:
            akzente = await self.identity.find_akzente_by_user_id(viewer_user_id)
            if akzente is None:
                return set()
            return await self.repo.list_merchandiser_ids(akzente.akzente_id)
        except SQLAlchemyError as e:
            logger.warning(f"讀取使用者 {viewer_user_id} 的收藏失敗，全部視為未收藏: {e}")
            return set()

    async def enrich_with_favorite_status(
        self, items: List[MerchandiserListItem], viewer_user_id: Optional[int]
    ) -> List[MerchandiserListItem]:
        """一次讀取 viewer 的收藏，再標記每一筆的 is_favorite"""
        favorite_ids = await self.favorite_ids_for_viewer(viewer_user_id)
        return [
            item.model_copy(update={"is_favorite": item.merchandiser_id in favorite_ids})
            for item in items
        ]

    async def toggle_favorite(self, merchandiser_id: int, viewer_user_id: int) -> FavoriteToggleOut:
        """
        已收藏 -> 取消 (回傳 False)；未收藏 -> 收藏 (回傳 True)。
        同時送出兩次 "收藏" 時，第二筆 insert 會被唯一限制擋下，
        視為已經收藏，不會產生重複資料。
        """
        akzente = await self.identity.find_akzente_by_user_id(viewer_user_id)
        if akzente is None:
            raise NotFoundError("只有 Akzente 可以收藏 Merchandiser", details={"user_id": viewer_user_id})

        merchandiser = await self.merchandiser_repo.get_by_id(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})

        akzente_id = akzente.akzente_id
        existing = await self.repo.get_pair(akzente_id, merchandiser_id)
        try:
            if existing is not None:
                await self.repo.remove(existing)
                await self.db.commit()
                return FavoriteToggleOut(merchandiser_id=merchandiser_id, is_favorite=False)

            await self.repo.create(akzente_id, merchandiser_id)
            await self.db.commit()
        except IntegrityError:
            # 另一個請求已經建立了同一筆收藏 (rollback 後不可再讀取 ORM 物件)
            await self.db.rollback()
            logger.info(
                f"Favorite ({akzente_id}, {merchandiser_id}) already exists, keeping it"
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("更新收藏失敗") from e

        return FavoriteToggleOut(merchandiser_id=merchandiser_id, is_favorite=True)

    async def list_favorite_merchandisers(self, viewer_user_id: int) -> List[MerchandiserListItem]:
        """viewer 收藏的 Merchandiser 列表 (最新收藏在前)"""
        akzente = await self.identity.find_akzente_by_user_id(viewer_user_id)
        if akzente is None:
            return []

        favorites = await self.repo.list_by_akzente(akzente.akzente_id)
        ordered_ids = [favorite.merchandiser_id for favorite in favorites]
        merchandisers = {m.merchandiser_id: m for m in await self.merchandiser_repo.get_many(ordered_ids)}

        items = [
            MerchandiserListItem.model_validate(merchandisers[m_id]).model_copy(update={"is_favorite": True})
            for m_id in ordered_ids
            if m_id in merchandisers
        ]
        return await self.files.attach_portraits(items)

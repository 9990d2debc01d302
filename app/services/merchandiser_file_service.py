# app/services/merchandiser_file_service.py
import logging
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.repositories.merchandiser_file_repo import MerchandiserFileRepository
from app.schemas.merchandiser_schema import FileOut, MerchandiserListItem

logger = logging.getLogger(__name__)


class MerchandiserFileService:
    def __init__(self, db: AsyncSession):
        self.repo = MerchandiserFileRepository(db)

    async def attach_portraits(self, items: List[MerchandiserListItem]) -> List[MerchandiserListItem]:
        """
        列表的大頭照：一次查完整頁，不是每筆各查一次。
        查詢失敗時不影響搜尋結果，portrait 維持 None。
        """
        if not items:
            return items
        try:
            portraits = await self.repo.find_first_by_merchandiser_ids(
                [item.merchandiser_id for item in items], settings.PORTRAIT_FILE_KIND
            )
        except SQLAlchemyError as e:
            logger.warning(f"讀取大頭照失敗，略過: {e}")
            return items

        return [
            item.model_copy(update={"portrait": FileOut.model_validate(portraits[item.merchandiser_id])})
            if item.merchandiser_id in portraits
            else item
            for item in items
        ]

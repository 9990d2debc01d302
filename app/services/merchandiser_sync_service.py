# app/services/merchandiser_sync_service.py
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError
from app.repositories.merchandiser_relation_repo import (
    JobTypeLinkRepository,
    SpecializationLinkRepository,
)

logger = logging.getLogger(__name__)


class MerchandiserSyncService:
    """
    維持 "工作類型 = 專長所屬工作類型的集合" 這個規則。

    專長有資料時，工作類型的集合必須剛好等於專長推導出來的集合；
    專長為空時，工作類型全部刪除。
    兩邊都有的工作類型保持不動 (使用者加的 comment 不會被清掉)。
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.job_types = JobTypeLinkRepository(db)
        self.specializations = SpecializationLinkRepository(db)

    async def resync(self, merchandiser_id: int) -> None:
        """可以重複呼叫；狀態已正確時不會有任何寫入"""
        try:
            required_ids = set(await self.specializations.list_job_type_ids(merchandiser_id))
            links = await self.job_types.list_by_merchandiser(merchandiser_id)
            existing_ids = {link.job_type_id for link in links}

            removed = 0
            for link in links:
                if link.job_type_id not in required_ids:
                    await self.job_types.remove(link)
                    removed += 1

            missing_ids = sorted(required_ids - existing_ids)
            for job_type_id in missing_ids:
                await self.job_types.create(merchandiser_id, {"job_type_id": job_type_id, "comment": None})

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Merchandiser {merchandiser_id} 工作類型同步失敗: {e}", exc_info=True)
            raise PersistenceError(
                "工作類型同步失敗", details={"merchandiser_id": merchandiser_id}
            ) from e

        if removed or missing_ids:
            logger.info(
                f"Merchandiser {merchandiser_id} job types resynced: "
                f"+{len(missing_ids)} -{removed}"
            )

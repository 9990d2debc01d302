# app/repositories/merchandiser_file_repo.py
from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.merchandiser_file import MerchandiserFile, MerchandiserFileKind


class MerchandiserFileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_first_by_merchandiser_ids(
        self, merchandiser_ids: Iterable[int], kind: MerchandiserFileKind
    ) -> Dict[int, MerchandiserFile]:
        """
        一次查詢多位 merchandiser 的某種檔案 (e.g. 大頭照)。
        同一人有多個檔案時，以最早建立的 (file_id 最小) 為準；
        沒有檔案的人不會出現在回傳的 dict 中。
        """
        ids = list(set(merchandiser_ids))
        if not ids:
            return {}

        stmt = (
            select(MerchandiserFile)
            .where(
                MerchandiserFile.merchandiser_id.in_(ids),
                MerchandiserFile.kind == MerchandiserFileKind(kind),
            )
            .order_by(MerchandiserFile.file_id.asc())
        )
        result = await self.db.execute(stmt)

        files: Dict[int, MerchandiserFile] = {}
        for file in result.scalars().all():
            files.setdefault(file.merchandiser_id, file)
        return files

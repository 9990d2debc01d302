# app/repositories/merchandiser_relation_repo.py
# Merchandiser 各個子集合的存取 (工作類型、專長、合約、學歷、經歷、語言)
# 每個 Repository 都只是 "以 merchandiser_id 分組的簡單集合"，
# 這裡只 add / flush / delete，commit 由 Service 決定 (每個集合各自 commit)。
from typing import Any, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.catalog import Specialization
from app.models.merchandiser import (
    LanguageLevel,
    MerchandiserJobType,
    MerchandiserSpecialization,
    MerchandiserLanguage,
    MerchandiserEducation,
    MerchandiserReference,
    MerchandiserContractual,
)
from app.utils.reconciler import CollectionSpec


class RelationRepository:
    """子集合的共用 CRUD。子類別只需指定 model 與 spec。"""

    model = None
    spec: CollectionSpec = None

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _pk(self):
        return getattr(self.model, self.spec.id_attr)

    async def list_by_merchandiser(self, merchandiser_id: int) -> List[Any]:
        # populate_existing: 同一個 session 先前 commit 過的物件也重新讀取
        stmt = (
            select(self.model)
            .where(self.model.merchandiser_id == merchandiser_id)
            .order_by(self._pk)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, merchandiser_id: int, values: Dict[str, Any]) -> Any:
        obj = self.model(merchandiser_id=merchandiser_id, **values)
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def update(self, obj: Any, changes: Dict[str, Any]) -> Any:
        for key, value in changes.items():
            setattr(obj, key, value)
        await self.db.flush()
        return obj

    async def remove(self, obj: Any) -> None:
        await self.db.delete(obj)
        await self.db.flush()


class JobTypeLinkRepository(RelationRepository):
    model = MerchandiserJobType
    spec = CollectionSpec(
        name="job_types",
        id_attr="merchandiser_job_type_id",
        fields=("job_type_id", "comment"),
        required=("job_type_id",),
    )


class SpecializationLinkRepository(RelationRepository):
    model = MerchandiserSpecialization
    spec = CollectionSpec(
        name="specializations",
        id_attr="merchandiser_specialization_id",
        fields=("specialization_id",),
        required=("specialization_id",),
    )

    async def list_job_type_ids(self, merchandiser_id: int) -> List[int]:
        """
        (重要) 專長所屬的工作類型 (不重複)。
        直接用 SQL 查，不依賴 session 中可能尚未載入的 relationship。
        """
        stmt = (
            select(Specialization.job_type_id)
            .join(
                MerchandiserSpecialization,
                MerchandiserSpecialization.specialization_id == Specialization.specialization_id,
            )
            .where(MerchandiserSpecialization.merchandiser_id == merchandiser_id)
            .distinct()
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class ContractualLinkRepository(RelationRepository):
    model = MerchandiserContractual
    spec = CollectionSpec(
        name="contractuals",
        id_attr="merchandiser_contractual_id",
        fields=("contractual_id",),
        required=("contractual_id",),
    )


class EducationRepository(RelationRepository):
    model = MerchandiserEducation
    spec = CollectionSpec(
        name="education",
        id_attr="merchandiser_education_id",
        fields=("institution", "qualification", "graduation_date"),
        required=("institution",),
    )


class ReferenceRepository(RelationRepository):
    model = MerchandiserReference
    spec = CollectionSpec(
        name="references",
        id_attr="merchandiser_reference_id",
        fields=("company", "activity", "industry", "start_date", "end_date"),
        required=("start_date",),
    )


class LanguageLinkRepository(RelationRepository):
    model = MerchandiserLanguage
    spec = CollectionSpec(
        name="languages",
        id_attr="merchandiser_language_id",
        fields=("language_id", "level"),
        required=("language_id",),
        defaults={"level": LanguageLevel.BASIC},
    )

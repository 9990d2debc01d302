# app/services/merchandiser_service.py
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AppError, ConflictError, NotFoundError, PersistenceError, ValidationError
)
from app.models.catalog import City, Contractual, JobType, Language, MerchandiserStatus, Specialization
from app.models.merchandiser import Merchandiser
from app.models.user import UserRoleEnum
from app.repositories.catalog_repo import CatalogRepository
from app.repositories.merchandiser_relation_repo import (
    ContractualLinkRepository,
    EducationRepository,
    JobTypeLinkRepository,
    LanguageLinkRepository,
    ReferenceRepository,
    RelationRepository,
    SpecializationLinkRepository,
)
from app.repositories.merchandiser_repo import MerchandiserRepository
from app.schemas.merchandiser_schema import (
    FilterOptionsOut,
    MerchandiserDetailOut,
    MerchandiserFilter,
    MerchandiserListItem,
    MerchandiserPageOut,
    MerchandiserRegister,
    MerchandiserUpdate,
    SortOption,
)
from app.schemas.catalog_schema import JobTypeOut, StatusOut
from app.schemas.user_schema import UserUpdate
from app.services.favorite_service import FavoriteService
from app.services.identity_service import IdentityService
from app.services.merchandiser_file_service import MerchandiserFileService
from app.services.merchandiser_sync_service import MerchandiserSyncService
from app.services.review_service import ReviewService
from app.utils.patch import Unset, desired_items, field_patch
from app.utils.reconciler import reconcile
from app.utils.search_filters import build_predicates, resolve_sort

logger = logging.getLogger(__name__)

# 子集合的處理順序 (固定)
COLLECTION_ORDER = (
    "job_types",
    "specializations",
    "contractuals",
    "education",
    "references",
    "languages",
)

# 子集合中引用目錄資料的欄位 -> 目錄 Model (新增 / 更新前先確認存在)
CATALOG_REFERENCES: Dict[str, Tuple[str, Type]] = {
    "job_types": ("job_type_id", JobType),
    "specializations": ("specialization_id", Specialization),
    "contractuals": ("contractual_id", Contractual),
    "languages": ("language_id", Language),
}

USER_FIELDS = ("first_name", "last_name", "phone", "email", "gender")
PROFILE_FIELDS = ("birthday", "website", "street", "zip_code", "tax_id", "tax_no", "nationality", "city_id")

# 新註冊的 Merchandiser 預設狀態
DEFAULT_STATUS_NAME = "Neu"


class MerchandiserService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = MerchandiserRepository(db)
        self.catalog = CatalogRepository(db)
        self.identity = IdentityService(db)
        self.sync_service = MerchandiserSyncService(db)
        self.favorites = FavoriteService(db)
        self.reviews = ReviewService(db)
        self.files = MerchandiserFileService(db)
        self.relations: Dict[str, RelationRepository] = {
            "job_types": JobTypeLinkRepository(db),
            "specializations": SpecializationLinkRepository(db),
            "contractuals": ContractualLinkRepository(db),
            "education": EducationRepository(db),
            "references": ReferenceRepository(db),
            "languages": LanguageLinkRepository(db),
        }

    # ==========================================================
    # 讀取
    # ==========================================================

    async def get_detail(self, merchandiser_id: int, viewer_user_id: Optional[int] = None) -> MerchandiserDetailOut:
        """完整資料 (所有子集合 + 評分統計 + viewer 的收藏狀態)，每次都重新讀取"""
        merchandiser = await self.repo.get_detail(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})

        detail = MerchandiserDetailOut.model_validate(merchandiser)
        stats = await self.reviews.review_stats(merchandiser_id)
        favorite_ids = await self.favorites.favorite_ids_for_viewer(viewer_user_id)
        return detail.model_copy(
            update={"review_stats": stats, "is_favorite": merchandiser_id in favorite_ids}
        )

    async def search(
        self,
        filters: Optional[MerchandiserFilter] = None,
        sort: Optional[Sequence[SortOption]] = None,
        page: int = 1,
        limit: Optional[int] = None,
        viewer_user_id: Optional[int] = None,
    ) -> MerchandiserPageOut:
        """
        (核心功能) 搜尋 Merchandiser。
        limit = 0 代表全部回傳 (內部統計用)；沒有結果時回傳空的一頁，不丟錯。
        """
        if limit is None:
            limit = settings.SEARCH_DEFAULT_LIMIT
        if limit < 0:
            raise ValidationError("limit 不可為負數", details={"limit": limit})
        page = max(page, 1)

        predicates = build_predicates(filters)
        sort_keys = resolve_sort(sort)
        try:
            merchandisers, total_count = await self.repo.search(predicates, sort_keys, page, limit)
        except SQLAlchemyError as e:
            logger.error(f"Merchandiser 搜尋失敗: {e}", exc_info=True)
            raise PersistenceError("搜尋失敗") from e

        items = [MerchandiserListItem.model_validate(m) for m in merchandisers]
        items = await self.favorites.enrich_with_favorite_status(items, viewer_user_id)
        items = await self.files.attach_portraits(items)
        return MerchandiserPageOut(items=items, total_count=total_count, page=page, limit=limit)

    async def get_filter_options(self) -> FilterOptionsOut:
        """搜尋畫面的下拉選單 (工作類型、狀態)"""
        job_types = await self.catalog.list_all(JobType)
        statuses = await self.catalog.list_all(MerchandiserStatus)
        return FilterOptionsOut(
            job_types=[JobTypeOut.model_validate(j) for j in job_types],
            statuses=[StatusOut.model_validate(s) for s in statuses],
        )

    async def can_edit(self, merchandiser_id: int, user) -> bool:
        """本人、Akzente 與管理員可以修改 / 刪除"""
        merchandiser = await self.repo.get_by_id(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})
        if user.role in (UserRoleEnum.akzente, UserRoleEnum.admin):
            return True
        return merchandiser.user_id == user.user_id

    # ==========================================================
    # 建立 / 刪除
    # ==========================================================

    async def register(self, user_id: int, data: MerchandiserRegister) -> MerchandiserDetailOut:
        """使用者註冊成 Merchandiser 時建立 Profile"""
        user = await self.identity.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("使用者不存在", details={"user_id": user_id})
        if user.role != UserRoleEnum.merchandiser:
            raise ValidationError("只有 Merchandiser 角色可以建立 Profile", details={"user_id": user_id})
        if await self.repo.get_by_user_id(user_id) is not None:
            raise ConflictError("Profile 已存在", details={"user_id": user_id})

        values = data.model_dump(exclude_unset=True)
        if values.get("city_id") is not None:
            await self._require_catalog(City, values["city_id"], "city_id")

        status = await self.catalog.find_status_by_name(DEFAULT_STATUS_NAME)
        merchandiser = Merchandiser(
            user_id=user_id,
            status_id=status.status_id if status else None,
            **values,
        )
        try:
            await self.repo.create(merchandiser)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Profile 已存在", details={"user_id": user_id}) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("建立 Profile 失敗") from e

        logger.info(f"Merchandiser {merchandiser.merchandiser_id} registered for user {user_id}")
        return await self.get_detail(merchandiser.merchandiser_id)

    async def remove(self, merchandiser_id: int) -> None:
        """軟刪除 (帳號刪除時)，之後搜尋不到也讀取不到"""
        merchandiser = await self.repo.get_by_id(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})
        try:
            await self.repo.soft_remove(merchandiser)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("刪除 Profile 失敗") from e
        logger.info(f"Merchandiser {merchandiser_id} soft-removed")

    # ==========================================================
    # 更新 (重要)
    # ==========================================================

    async def update(self, merchandiser_id: int, payload: MerchandiserUpdate) -> MerchandiserDetailOut:
        """
        部分更新 Merchandiser：
        1. 一般欄位 + 使用者欄位 (有傳才覆蓋)
        2. 各子集合依固定順序逐一 diff，每個集合各自 commit
        3. 最後一定重新同步工作類型 (即使中途失敗)
        4. 回傳重新讀取的完整資料

        子集合失敗時，先前已完成的集合 "不會" 回滾；
        錯誤的 details 會帶 applied_collections / failed_collection。
        """
        merchandiser = await self.repo.get_by_id(merchandiser_id)
        if merchandiser is None:
            raise NotFoundError("Merchandiser 不存在", details={"merchandiser_id": merchandiser_id})

        applied: List[str] = []
        current: Optional[str] = None
        failure: Optional[Exception] = None
        # 只攔 Exception：任務被取消 (CancelledError) 時直接中斷，不再處理後續集合
        try:
            await self._apply_scalar_fields(merchandiser, payload)
            for name in COLLECTION_ORDER:
                patch = field_patch(payload, name)
                if isinstance(patch, Unset):
                    continue
                current = name
                await self._reconcile_collection(merchandiser_id, name, desired_items(patch))
                applied.append(name)
            current = None
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Merchandiser {merchandiser_id} 更新 {current or '基本資料'} 失敗 (已完成: {applied}): {e}"
            )
            failure = e

        try:
            await self.sync_service.resync(merchandiser_id)
        except PersistenceError:
            if failure is None:
                raise
            logger.error(f"Merchandiser {merchandiser_id} 失敗後的工作類型同步也失敗", exc_info=True)

        if failure is not None:
            error = failure if isinstance(failure, AppError) else PersistenceError(f"更新 {current or '基本資料'} 失敗")
            # 基本資料失敗時還沒有處理任何子集合
            if current is not None:
                error.details.update({"applied_collections": applied, "failed_collection": current})
            if error is failure:
                raise error
            raise error from failure

        return await self.get_detail(merchandiser_id)

    async def _apply_scalar_fields(self, merchandiser: Merchandiser, payload: MerchandiserUpdate) -> None:
        present = payload.model_fields_set
        changes = {name: getattr(payload, name) for name in PROFILE_FIELDS if name in present}

        if changes.get("city_id") is not None:
            await self._require_catalog(City, changes["city_id"], "city_id")

        if "status" in present:
            if payload.status is None:
                changes["status_id"] = None
            else:
                status = await self.catalog.find_status_by_name(payload.status)
                if status is None:
                    raise ValidationError(f"狀態 '{payload.status}' 不存在", details={"field": "status"})
                changes["status_id"] = status.status_id

        user_changes = {name: getattr(payload, name) for name in USER_FIELDS if name in present}
        if not changes and not user_changes:
            return

        try:
            if changes:
                await self.repo.update(merchandiser, changes)
            if user_changes:
                await self.identity.update_user(merchandiser.user_id, UserUpdate(**user_changes))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("更新 Profile 基本資料失敗") from e
        except AppError:
            await self.db.rollback()
            raise

    async def _reconcile_collection(self, merchandiser_id: int, name: str, desired: List) -> None:
        repo = self.relations[name]
        await self._validate_references(name, desired)
        try:
            existing = await repo.list_by_merchandiser(merchandiser_id)
            plan = reconcile(existing, desired, repo.spec)

            for row in plan.to_delete:
                await repo.remove(row)
            for row, changes in plan.to_update:
                await repo.update(row, changes)
            for values in plan.to_create:
                await repo.create(merchandiser_id, values)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"更新 {name} 失敗", details={"collection": name}) from e

        logger.info(
            f"Merchandiser {merchandiser_id} {name} reconciled: "
            f"+{len(plan.to_create)} ~{len(plan.to_update)} -{len(plan.to_delete)}"
        )

    async def _validate_references(self, name: str, desired: List) -> None:
        """子集合引用的目錄資料 (工作類型、專長、語言、合約) 必須存在"""
        if name not in CATALOG_REFERENCES:
            return
        field, model = CATALOG_REFERENCES[name]
        referenced = [(index, getattr(item, field, None)) for index, item in enumerate(desired)]
        ids = {ref_id for _, ref_id in referenced if ref_id is not None}
        if not ids:
            return

        found = {getattr(row, field) for row in await self.catalog.find_by_ids(model, ids)}
        for index, ref_id in referenced:
            if ref_id is not None and ref_id not in found:
                raise ValidationError(
                    f"{name}[{index}] 引用的 {field}={ref_id} 不存在",
                    details={"collection": name, "index": index, field: ref_id},
                )

    async def _require_catalog(self, model: Type, item_id: int, field: str) -> None:
        if await self.catalog.find_by_id(model, item_id) is None:
            raise ValidationError(f"{field}={item_id} 不存在", details={"field": field, field: item_id})

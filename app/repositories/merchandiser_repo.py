# app/repositories/merchandiser_repo.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, distinct, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased, selectinload

from app.models.catalog import City, JobType, Language, MerchandiserStatus, Specialization
from app.models.merchandiser import (
    Merchandiser,
    MerchandiserContractual,
    MerchandiserJobType,
    MerchandiserLanguage,
    MerchandiserSpecialization,
)
from app.models.user import User
from app.utils import search_filters as sf

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# 欄位排序鍵 -> 實際欄位 (search_filters.resolve_sort 產生的鍵)
_SORT_COLUMNS = {
    "user.first_name": User.first_name,
    "user.last_name": User.last_name,
    "user.email": User.email,
    "city.name": City.name,
    "status.name": MerchandiserStatus.name,
    "birthday": Merchandiser.birthday,
    "website": Merchandiser.website,
    "street": Merchandiser.street,
    "zip_code": Merchandiser.zip_code,
    "nationality": Merchandiser.nationality,
    "created_at": Merchandiser.created_at,
    "updated_at": Merchandiser.updated_at,
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MerchandiserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Eager Loading 設定 ---

    def _list_options(self):
        """列表需要的關聯 (工作類型 / 合約)"""
        return (
            selectinload(Merchandiser.job_types).selectinload(MerchandiserJobType.job_type),
            selectinload(Merchandiser.contractuals).selectinload(MerchandiserContractual.contractual),
        )

    def _detail_options(self):
        """單筆完整資料需要的所有子集合"""
        return self._list_options() + (
            selectinload(Merchandiser.specializations).selectinload(MerchandiserSpecialization.specialization),
            selectinload(Merchandiser.languages).selectinload(MerchandiserLanguage.language),
            selectinload(Merchandiser.education),
            selectinload(Merchandiser.references),
        )

    # --- 基本 CRUD ---

    async def get_by_id(self, merchandiser_id: int, include_deleted: bool = False) -> Merchandiser | None:
        stmt = select(Merchandiser).where(Merchandiser.merchandiser_id == merchandiser_id)
        if not include_deleted:
            stmt = stmt.where(Merchandiser.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_by_user_id(self, user_id: int) -> Merchandiser | None:
        stmt = select(Merchandiser).where(Merchandiser.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_detail(self, merchandiser_id: int) -> Merchandiser | None:
        """
        (重要) 重新從資料庫讀取整個 aggregate。
        populate_existing 會覆蓋 session 裡已經存在的舊物件，
        確保回傳的是資料庫的最新狀態 (包含 server_default 等)。
        """
        stmt = (
            select(Merchandiser)
            .where(
                Merchandiser.merchandiser_id == merchandiser_id,
                Merchandiser.deleted_at.is_(None),
            )
            .options(*self._detail_options())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_many(self, ids: Iterable[int]) -> List[Merchandiser]:
        ids = list(ids)
        if not ids:
            return []
        stmt = (
            select(Merchandiser)
            .where(Merchandiser.merchandiser_id.in_(ids), Merchandiser.deleted_at.is_(None))
            .options(*self._list_options())
            .order_by(Merchandiser.merchandiser_id.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, merchandiser: Merchandiser) -> Merchandiser:
        self.db.add(merchandiser)
        await self.db.flush()
        return merchandiser

    async def update(self, merchandiser: Merchandiser, changes: Dict[str, Any]) -> Merchandiser:
        for key, value in changes.items():
            setattr(merchandiser, key, value)
        await self.db.flush()
        return merchandiser

    async def soft_remove(self, merchandiser: Merchandiser) -> Merchandiser:
        merchandiser.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
        await self.db.flush()
        return merchandiser

    # --- 搜尋 ---

    def _text_column(self, stmt, target: str):
        """
        把 TextMatch 的 target 對應到欄位。
        一對多的關聯 (工作類型、專長、語言) 每次都用新的 alias join，
        條件之間才不會互相干擾。
        """
        if target == sf.FIRST_NAME:
            return stmt, User.first_name
        if target == sf.LAST_NAME:
            return stmt, User.last_name
        if target == sf.FULL_NAME:
            full_name = func.coalesce(User.first_name, "") + " " + func.coalesce(User.last_name, "")
            return stmt, full_name
        if target == sf.EMAIL:
            return stmt, User.email
        if target == sf.WEBSITE:
            return stmt, Merchandiser.website
        if target == sf.CITY_NAME:
            return stmt, City.name
        if target == sf.ZIP_CODE:
            return stmt, Merchandiser.zip_code
        if target == sf.NATIONALITY:
            return stmt, Merchandiser.nationality
        if target == sf.STATUS_NAME:
            return stmt, MerchandiserStatus.name
        if target == sf.JOB_TYPE_NAME:
            link, label = aliased(MerchandiserJobType), aliased(JobType)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id).join(
                label, label.job_type_id == link.job_type_id
            )
            return stmt, label.name
        if target == sf.SPECIALIZATION_NAME:
            link, label = aliased(MerchandiserSpecialization), aliased(Specialization)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id).join(
                label, label.specialization_id == link.specialization_id
            )
            return stmt, label.name
        if target == sf.LANGUAGE_NAME:
            link, label = aliased(MerchandiserLanguage), aliased(Language)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id).join(
                label, label.language_id == link.language_id
            )
            return stmt, label.name
        raise ValueError(f"Unknown text target: {target}")

    def _id_column(self, stmt, target: str):
        if target == sf.CITY:
            return stmt, Merchandiser.city_id
        if target == sf.COUNTRY:
            return stmt, City.country_id
        if target == sf.JOB_TYPE:
            link = aliased(MerchandiserJobType)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id)
            return stmt, link.job_type_id
        if target == sf.LANGUAGE:
            link = aliased(MerchandiserLanguage)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id)
            return stmt, link.language_id
        if target == sf.SPECIALIZATION:
            link = aliased(MerchandiserSpecialization)
            stmt = stmt.join(link, link.merchandiser_id == Merchandiser.merchandiser_id)
            return stmt, link.specialization_id
        raise ValueError(f"Unknown id target: {target}")

    def _apply_predicate(self, stmt, predicate):
        if isinstance(predicate, sf.TextMatch):
            logger.info(f"Applying text filter {predicate.targets}: {predicate.term}")
            # 使用者輸入的 % 與 _ 當成一般字元
            term = f"%{_escape_like(predicate.term)}%"
            clauses = []
            for target in predicate.targets:
                stmt, column = self._text_column(stmt, target)
                clauses.append(column.ilike(term, escape="\\"))
            return stmt.where(or_(*clauses))

        if isinstance(predicate, sf.ExactMatch):
            logger.info(f"Applying {predicate.target} exact filter: {predicate.value}")
            if predicate.target == sf.GENDER:
                return stmt.where(User.gender == predicate.value)
            raise ValueError(f"Unknown exact target: {predicate.target}")

        if isinstance(predicate, sf.IdSetMatch):
            logger.info(f"Applying {predicate.target} ids filter: {list(predicate.ids)}")
            stmt, column = self._id_column(stmt, predicate.target)
            return stmt.where(column.in_(predicate.ids))

        if isinstance(predicate, sf.RangeMatch):
            logger.info(f"Applying {predicate.target} range filter: {predicate.lower} ~ {predicate.upper}")
            column = getattr(Merchandiser, predicate.target)
            if predicate.lower is not None:
                stmt = stmt.where(column >= predicate.lower)
            if predicate.upper is not None:
                stmt = stmt.where(column <= predicate.upper)
            return stmt

        if isinstance(predicate, sf.BooleanFlagMatch):
            logger.info(f"Applying has-{predicate.target} filter: {predicate.present}")
            column = getattr(Merchandiser, predicate.target)
            if predicate.present:
                return stmt.where(and_(column.isnot(None), column != ""))
            return stmt.where(or_(column.is_(None), column == ""))

        raise ValueError(f"Unknown predicate: {predicate!r}")

    def _matching_ids(self, predicates: Sequence[object]):
        """
        所有條件組成的 id 子查詢。
        一對一的表 (user / city / status) 固定 outer join，
        一對多的表由各條件自行 join (可能有重複列，外層再去重)。
        """
        stmt = (
            select(Merchandiser.merchandiser_id)
            .select_from(Merchandiser)
            .outerjoin(User, User.user_id == Merchandiser.user_id)
            .outerjoin(City, City.city_id == Merchandiser.city_id)
            .outerjoin(MerchandiserStatus, MerchandiserStatus.status_id == Merchandiser.status_id)
            .where(Merchandiser.deleted_at.is_(None))
        )
        for predicate in predicates:
            stmt = self._apply_predicate(stmt, predicate)
        return stmt

    async def search(
        self,
        predicates: Sequence[object],
        sort_keys: Sequence[sf.SortKey],
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Merchandiser], int]:
        """
        (核心功能) 條件搜尋 + 排序 + 分頁。
        - 總數以 COUNT(DISTINCT merchandiser_id) 計算，一對多 join 不會灌水
        - limit == 0 代表 "全部回傳"，不做 offset / limit
        - 排序最後一律加上 merchandiser_id DESC，確保分頁穩定
        """
        matching = self._matching_ids(predicates).subquery()

        count_stmt = select(func.count(distinct(matching.c.merchandiser_id)))
        total_count = (await self.db.execute(count_stmt)).scalar_one()

        order_by = []
        for sort_key in sort_keys:
            column = _SORT_COLUMNS.get(sort_key.key, Merchandiser.created_at)
            order_by.append(column.desc() if sort_key.descending else column.asc())
        order_by.append(Merchandiser.merchandiser_id.desc())

        stmt = (
            select(Merchandiser)
            .outerjoin(User, User.user_id == Merchandiser.user_id)
            .outerjoin(City, City.city_id == Merchandiser.city_id)
            .outerjoin(MerchandiserStatus, MerchandiserStatus.status_id == Merchandiser.status_id)
            .where(Merchandiser.merchandiser_id.in_(select(matching.c.merchandiser_id)))
            .options(*self._list_options())
            .order_by(*order_by)
            .execution_options(populate_existing=True)
        )
        if limit > 0:
            stmt = stmt.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total_count

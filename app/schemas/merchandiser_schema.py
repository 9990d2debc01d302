# app/schemas/merchandiser_schema.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import date, datetime

from app.models.merchandiser import LanguageLevel
from app.models.merchandiser_file import MerchandiserFileKind
from app.schemas.catalog_schema import (
    CityOut, JobTypeOut, SpecializationOut, LanguageOut, ContractualOut, StatusOut
)
from app.schemas.review_schema import ReviewStatsOut
from app.schemas.user_schema import UserOut


# ==========================================================
# 1. 搜尋 (GET /merchandisers)
# ==========================================================

class MerchandiserFilter(BaseModel):
    """
    搜尋條件。前端送的是 camelCase (jobTypeIds, ageRange, hasWebsite ...)，
    snake_case 也接受。
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search: Optional[str] = None
    location: Optional[str] = None
    job_type_ids: Optional[List[int]] = None
    city_ids: Optional[List[int]] = None
    country_ids: Optional[List[int]] = None
    language_ids: Optional[List[int]] = None
    specialization_ids: Optional[List[int]] = None
    # 以名稱模糊比對 (新版前端)
    qualifications: Optional[str] = None
    specializations: Optional[str] = None
    languages: Optional[str] = None
    nationality: Optional[str] = None
    # 完全比對 (不分大小寫)
    gender: Optional[str] = None
    age_range: Optional[str] = None
    # 只接受 "true" / "false" 字串，其他值忽略
    has_website: Optional[str] = None
    status: Optional[str] = None


class SortOption(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_by: str
    order: str = "desc"


# ==========================================================
# 2. 子集合的輸入項目 (PATCH /merchandisers/{id})
#    有 id -> 更新；沒有 id -> 新增；沒出現的現有項目 -> 刪除
# ==========================================================

class JobTypeLinkIn(BaseModel):
    id: Optional[int] = None
    job_type_id: Optional[int] = None
    comment: Optional[str] = None


class SpecializationLinkIn(BaseModel):
    id: Optional[int] = None
    specialization_id: Optional[int] = None


class ContractualLinkIn(BaseModel):
    id: Optional[int] = None
    contractual_id: Optional[int] = None


class EducationIn(BaseModel):
    id: Optional[int] = None
    institution: Optional[str] = Field(None, max_length=255)
    qualification: Optional[str] = Field(None, max_length=255)
    graduation_date: Optional[date] = None


class ReferenceIn(BaseModel):
    id: Optional[int] = None
    company: Optional[str] = Field(None, max_length=255)
    activity: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class LanguageLinkIn(BaseModel):
    id: Optional[int] = None
    language_id: Optional[int] = None
    level: Optional[LanguageLevel] = None

    @field_validator("level", mode="before")
    @classmethod
    def accept_legacy_level_id(cls, v):
        """舊版前端傳 1~5 的數字"""
        if isinstance(v, int) and not isinstance(v, bool):
            return LanguageLevel.from_level_id(v)
        if isinstance(v, str):
            return v.upper()
        return v


class MerchandiserUpdate(BaseModel):
    """
    部分更新：沒傳的欄位完全不動。
    - 一般欄位：有傳就覆蓋 (包含 null)
    - 子集合：沒傳 = 不動，[] 或 null = 全部清空，非空陣列 = 逐筆 diff
    """
    # --- 使用者 (交給 IdentityService) ---
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    gender: Optional[str] = Field(None, max_length=20)

    # --- Merchandiser 本身 ---
    birthday: Optional[date] = None
    website: Optional[str] = Field(None, max_length=500)
    street: Optional[str] = Field(None, max_length=255)
    zip_code: Optional[str] = Field(None, max_length=20)
    tax_id: Optional[str] = Field(None, max_length=50)
    tax_no: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=100)
    city_id: Optional[int] = None
    # 以狀態名稱 (e.g. "Neu", "Team") 指定
    status: Optional[str] = None

    # --- 子集合 ---
    job_types: Optional[List[JobTypeLinkIn]] = None
    specializations: Optional[List[SpecializationLinkIn]] = None
    contractuals: Optional[List[ContractualLinkIn]] = None
    education: Optional[List[EducationIn]] = None
    references: Optional[List[ReferenceIn]] = None
    languages: Optional[List[LanguageLinkIn]] = None


class MerchandiserRegister(BaseModel):
    """使用者註冊成 Merchandiser 時建立的初始資料"""
    birthday: Optional[date] = None
    website: Optional[str] = Field(None, max_length=500)
    street: Optional[str] = Field(None, max_length=255)
    zip_code: Optional[str] = Field(None, max_length=20)
    tax_id: Optional[str] = Field(None, max_length=50)
    tax_no: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=100)
    city_id: Optional[int] = None


# ==========================================================
# 3. 輸出
# ==========================================================

class FileOut(BaseModel):
    file_id: int
    kind: MerchandiserFileKind
    url: str

    class Config:
        from_attributes = True


class MerchandiserJobTypeOut(BaseModel):
    merchandiser_job_type_id: int
    job_type_id: int
    comment: Optional[str] = None
    job_type: Optional[JobTypeOut] = None

    class Config:
        from_attributes = True


class MerchandiserSpecializationOut(BaseModel):
    merchandiser_specialization_id: int
    specialization_id: int
    specialization: Optional[SpecializationOut] = None

    class Config:
        from_attributes = True


class MerchandiserLanguageOut(BaseModel):
    merchandiser_language_id: int
    language_id: int
    level: LanguageLevel
    language: Optional[LanguageOut] = None

    class Config:
        from_attributes = True


class MerchandiserEducationOut(BaseModel):
    merchandiser_education_id: int
    institution: str
    qualification: Optional[str] = None
    graduation_date: Optional[date] = None

    class Config:
        from_attributes = True


class MerchandiserReferenceOut(BaseModel):
    merchandiser_reference_id: int
    company: Optional[str] = None
    activity: Optional[str] = None
    industry: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None

    class Config:
        from_attributes = True


class MerchandiserContractualOut(BaseModel):
    merchandiser_contractual_id: int
    contractual_id: int
    contractual: Optional[ContractualOut] = None

    class Config:
        from_attributes = True


class MerchandiserBase(BaseModel):
    merchandiser_id: int
    user_id: int
    user: Optional[UserOut] = None
    birthday: Optional[date] = None
    website: Optional[str] = None
    street: Optional[str] = None
    zip_code: Optional[str] = None
    nationality: Optional[str] = None
    city_id: Optional[int] = None
    city: Optional[CityOut] = None
    status: Optional[StatusOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# 搜尋列表中的一筆 (附帶 viewer 的收藏狀態與大頭照)
class MerchandiserListItem(MerchandiserBase):
    job_types: List[MerchandiserJobTypeOut] = []
    contractuals: List[MerchandiserContractualOut] = []
    is_favorite: bool = False
    portrait: Optional[FileOut] = None


class MerchandiserPageOut(BaseModel):
    items: List[MerchandiserListItem] = []
    total_count: int = 0
    page: int = 1
    limit: int = 0


# 單一 Merchandiser 的完整資料
class MerchandiserDetailOut(MerchandiserBase):
    tax_id: Optional[str] = None
    tax_no: Optional[str] = None

    job_types: List[MerchandiserJobTypeOut] = []
    specializations: List[MerchandiserSpecializationOut] = []
    languages: List[MerchandiserLanguageOut] = []
    education: List[MerchandiserEducationOut] = []
    references: List[MerchandiserReferenceOut] = []
    contractuals: List[MerchandiserContractualOut] = []

    review_stats: ReviewStatsOut = ReviewStatsOut()
    is_favorite: bool = False


class FavoriteToggleOut(BaseModel):
    merchandiser_id: int
    is_favorite: bool


class FilterOptionsOut(BaseModel):
    job_types: List[JobTypeOut] = []
    statuses: List[StatusOut] = []

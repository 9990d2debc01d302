# app/utils/search_filters.py
# 把前端的篩選條件 (MerchandiserFilter) 轉成與資料庫無關的 "條件物件" 列表，
# 再由 MerchandiserRepository 翻譯成 SQLAlchemy 的 where / join。
# 這一層是純函式，可以直接單元測試。
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# --- 條件物件 ---

@dataclass(frozen=True)
class TextMatch:
    """不分大小寫的子字串比對，targets 之間為 OR"""
    targets: Tuple[str, ...]
    term: str


@dataclass(frozen=True)
class ExactMatch:
    """target 完全等於 value (value 已轉成小寫)"""
    target: str
    value: str


@dataclass(frozen=True)
class IdSetMatch:
    """target 的 id 必須在 ids 之中"""
    target: str
    ids: Tuple[int, ...]


@dataclass(frozen=True)
class RangeMatch:
    """lower <= target <= upper (兩端皆含)，任一端可為 None"""
    target: str
    lower: Optional[date] = None
    upper: Optional[date] = None


@dataclass(frozen=True)
class BooleanFlagMatch:
    """target 是否 "有值" (非 NULL 且非空字串)"""
    target: str
    present: bool


# 可用的 target 名稱 (Repository 負責對應到實際欄位 / join)
FULL_NAME = "full_name"
FIRST_NAME = "first_name"
LAST_NAME = "last_name"
EMAIL = "email"
WEBSITE = "website"
CITY_NAME = "city_name"
ZIP_CODE = "zip_code"
NATIONALITY = "nationality"
GENDER = "gender"
STATUS_NAME = "status_name"
JOB_TYPE_NAME = "job_type_name"
SPECIALIZATION_NAME = "specialization_name"
LANGUAGE_NAME = "language_name"
JOB_TYPE = "job_type"
CITY = "city"
COUNTRY = "country"
LANGUAGE = "language"
SPECIALIZATION = "specialization"
BIRTHDAY = "birthday"


# --- 年齡區間 ---

AGE_BUCKETS = {
    "18-30": (18, 30),
    "31-45": (31, 45),
    "46-60": (46, 60),
    "60+": (60, 120),
}


def parse_age_range(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    "18-30" 這類預設區間，或自訂 "25-35"。
    格式錯誤 / 最小值大於最大值時回傳 None (直接忽略這個條件，不報錯)。
    """
    if not value:
        return None
    value = value.strip()
    if value in AGE_BUCKETS:
        return AGE_BUCKETS[value]

    parts = value.split("-")
    if len(parts) != 2:
        return None
    try:
        min_age = int(parts[0].strip())
        max_age = int(parts[1].strip())
    except ValueError:
        return None
    if min_age < 0 or max_age < min_age:
        return None
    return min_age, max_age


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 2/29 在非閏年退回 2/28
        return today.replace(year=today.year - years, day=28)


def birthday_bounds(min_age: int, max_age: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    年齡 [min_age, max_age] -> 生日區間 (min_birthday, max_birthday)。
    max_age 歲的人最晚可能在 (max_age + 1) 年前的今天出生。
    """
    today = today or date.today()
    max_birthday = _years_before(today, min_age)
    min_birthday = _years_before(today, max_age + 1)
    return min_birthday, max_birthday


# --- hasWebsite ---

def parse_flag(value: Optional[str]) -> Optional[bool]:
    """只接受 "true" / "false" (不分大小寫)，其他值一律視為沒有設定"""
    if value is None:
        return None
    lowered = str(value).strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def _ids(values: Optional[Iterable[int]]) -> Tuple[int, ...]:
    return tuple(values or ())


def build_predicates(filters, today: Optional[date] = None) -> List[object]:
    """
    (核心) MerchandiserFilter -> 條件物件列表。所有條件之間為 AND。
    沒有設定 (或無效) 的欄位不會產生條件。
    """
    predicates: List[object] = []
    if filters is None:
        return predicates

    if filters.search:
        predicates.append(
            TextMatch((FIRST_NAME, LAST_NAME, FULL_NAME, EMAIL, WEBSITE), filters.search)
        )
    if filters.location:
        predicates.append(TextMatch((CITY_NAME, ZIP_CODE), filters.location))
    if filters.qualifications:
        predicates.append(TextMatch((JOB_TYPE_NAME,), filters.qualifications))
    if filters.specializations:
        predicates.append(TextMatch((SPECIALIZATION_NAME,), filters.specializations))
    if filters.languages:
        predicates.append(TextMatch((LANGUAGE_NAME,), filters.languages))

    # ID 列表 (舊版前端仍在使用)
    for target, values in (
        (JOB_TYPE, filters.job_type_ids),
        (CITY, filters.city_ids),
        (COUNTRY, filters.country_ids),
        (LANGUAGE, filters.language_ids),
        (SPECIALIZATION, filters.specialization_ids),
    ):
        ids = _ids(values)
        if ids:
            predicates.append(IdSetMatch(target, ids))

    if filters.nationality:
        predicates.append(TextMatch((NATIONALITY,), filters.nationality))
    if filters.gender and filters.gender.strip():
        predicates.append(ExactMatch(GENDER, filters.gender.strip().lower()))

    has_website = parse_flag(filters.has_website)
    if has_website is not None:
        predicates.append(BooleanFlagMatch(WEBSITE, has_website))

    age_range = parse_age_range(filters.age_range)
    if age_range is not None:
        lower, upper = birthday_bounds(age_range[0], age_range[1], today)
        predicates.append(RangeMatch(BIRTHDAY, lower, upper))
    elif filters.age_range:
        logger.info(f"Ignoring invalid age range: {filters.age_range}")

    if filters.status:
        predicates.append(TextMatch((STATUS_NAME,), filters.status))

    return predicates


# --- 排序 ---

# 前端 (camelCase) 與 snake_case 都接受；對應到 Repository 認得的排序鍵
SORT_FIELDS = {
    "user.firstName": "user.first_name",
    "user.first_name": "user.first_name",
    "firstName": "user.first_name",
    "first_name": "user.first_name",
    "user.lastName": "user.last_name",
    "user.last_name": "user.last_name",
    "lastName": "user.last_name",
    "last_name": "user.last_name",
    "user.email": "user.email",
    "email": "user.email",
    "birthday": "birthday",
    "website": "website",
    "street": "street",
    "zipCode": "zip_code",
    "zip_code": "zip_code",
    "nationality": "nationality",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "city.name": "city.name",
    "status.name": "status.name",
}

DEFAULT_SORT_KEY = "created_at"


@dataclass(frozen=True)
class SortKey:
    key: str
    descending: bool


def resolve_sort(sort_options: Optional[Sequence]) -> List[SortKey]:
    """
    [(order_by, order), ...] -> [SortKey, ...]
    不認得的欄位退回 created_at；沒有任何排序時預設 "最新的在前面"。
    """
    if not sort_options:
        return [SortKey(DEFAULT_SORT_KEY, True)]

    keys: List[SortKey] = []
    for option in sort_options:
        key = SORT_FIELDS.get(option.order_by)
        if key is None:
            logger.info(f"Unknown sort field '{option.order_by}', falling back to {DEFAULT_SORT_KEY}")
            key = DEFAULT_SORT_KEY
        descending = str(option.order or "asc").lower() == "desc"
        keys.append(SortKey(key, descending))
    return keys

# app/models/merchandiser.py
import enum
from sqlalchemy import (
    Column, String, TEXT, Integer, Date, TIMESTAMP, ForeignKey, Enum, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base


class LanguageLevel(str, enum.Enum):
    """語言程度 (有順序性：BASIC < INTERMEDIATE < ADVANCED < FLUENT < NATIVE)"""
    BASIC = "BASIC"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    FLUENT = "FLUENT"
    NATIVE = "NATIVE"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def __lt__(self, other):
        if isinstance(other, LanguageLevel):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, LanguageLevel):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, LanguageLevel):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, LanguageLevel):
            return self.rank >= other.rank
        return NotImplemented

    @classmethod
    def from_level_id(cls, level_id: int) -> "LanguageLevel":
        """舊版前端傳的是 1~5 的數字，無法對應時當作 BASIC"""
        if isinstance(level_id, int) and 1 <= level_id <= len(_LEVEL_ORDER):
            return _LEVEL_ORDER[level_id - 1]
        return cls.BASIC


_LEVEL_ORDER = [
    LanguageLevel.BASIC,
    LanguageLevel.INTERMEDIATE,
    LanguageLevel.ADVANCED,
    LanguageLevel.FLUENT,
    LanguageLevel.NATIVE,
]


class Merchandiser(Base):
    __tablename__ = "merchandisers"

    merchandiser_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    # --- 基本資料 ---
    birthday = Column(Date, nullable=True)
    website = Column(String(500), nullable=True)
    street = Column(String(255), nullable=True)
    zip_code = Column(String(20), nullable=True)
    tax_id = Column(String(50), nullable=True)
    tax_no = Column(String(50), nullable=True)
    nationality = Column(String(100), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.city_id", ondelete="SET NULL"), nullable=True, index=True)
    status_id = Column(Integer, ForeignKey("merchandiser_statuses.status_id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
    # 帳號刪除時只做軟刪除
    deleted_at = Column(TIMESTAMP, nullable=True)

    # --- 1-to-1 / Many-to-1 ---
    user = relationship("User", back_populates="merchandiser", lazy="selectin")
    city = relationship("City", lazy="selectin")
    status = relationship("MerchandiserStatus", lazy="selectin")

    # --- 子集合 (由 MerchandiserService.update 以 diff 方式維護) ---
    job_types = relationship("MerchandiserJobType", back_populates="merchandiser")
    specializations = relationship("MerchandiserSpecialization", back_populates="merchandiser")
    languages = relationship("MerchandiserLanguage", back_populates="merchandiser")
    education = relationship("MerchandiserEducation", back_populates="merchandiser")
    references = relationship("MerchandiserReference", back_populates="merchandiser")
    contractuals = relationship("MerchandiserContractual", back_populates="merchandiser")
    files = relationship("MerchandiserFile", back_populates="merchandiser")


class MerchandiserJobType(Base):
    """
    工作類型資格。這個集合是由專長 "推導" 出來的 (見 MerchandiserSyncService)，
    使用者只能額外加上 comment。
    (注意) 資料庫層沒有 (merchandiser_id, job_type_id) 的唯一限制。
    """
    __tablename__ = "merchandiser_job_types"

    merchandiser_job_type_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    job_type_id = Column(Integer, ForeignKey("job_types.job_type_id", ondelete="RESTRICT"), nullable=False, index=True)
    comment = Column(TEXT, nullable=True)

    merchandiser = relationship("Merchandiser", back_populates="job_types")
    job_type = relationship("JobType", lazy="selectin")


class MerchandiserSpecialization(Base):
    __tablename__ = "merchandiser_specializations"

    merchandiser_specialization_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    specialization_id = Column(Integer, ForeignKey("specializations.specialization_id", ondelete="RESTRICT"), nullable=False, index=True)

    merchandiser = relationship("Merchandiser", back_populates="specializations")
    specialization = relationship("Specialization", lazy="selectin")


class MerchandiserLanguage(Base):
    __tablename__ = "merchandiser_languages"

    merchandiser_language_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(Integer, ForeignKey("languages.language_id", ondelete="RESTRICT"), nullable=False, index=True)
    level = Column(Enum(LanguageLevel, name="language_level_enum"), nullable=False, default=LanguageLevel.BASIC)

    merchandiser = relationship("Merchandiser", back_populates="languages")
    language = relationship("Language", lazy="selectin")


class MerchandiserEducation(Base):
    __tablename__ = "merchandiser_education"

    merchandiser_education_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    institution = Column(String(255), nullable=False)
    qualification = Column(String(255), nullable=True)
    graduation_date = Column(Date, nullable=True)

    merchandiser = relationship("Merchandiser", back_populates="education")


class MerchandiserReference(Base):
    __tablename__ = "merchandiser_references"

    merchandiser_reference_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    company = Column(String(255), nullable=True)
    activity = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    # NULL 表示目前仍在進行中
    end_date = Column(Date, nullable=True)

    merchandiser = relationship("Merchandiser", back_populates="references")


class MerchandiserContractual(Base):
    __tablename__ = "merchandiser_contractuals"

    merchandiser_contractual_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    contractual_id = Column(Integer, ForeignKey("contractuals.contractual_id", ondelete="RESTRICT"), nullable=False, index=True)

    merchandiser = relationship("Merchandiser", back_populates="contractuals")
    contractual = relationship("Contractual", lazy="selectin")

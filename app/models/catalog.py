# app/models/catalog.py
# 唯讀的目錄資料 (城市、國家、工作類型、專長、語言、合約類型、狀態)
# 這些表格的 CRUD 不在本服務範圍內，這裡只負責查詢與關聯
from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base


class Country(Base):
    __tablename__ = "countries"
    country_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)


class City(Base):
    __tablename__ = "cities"
    city_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    country_id = Column(Integer, ForeignKey("countries.country_id", ondelete="RESTRICT"), index=True)

    country = relationship("Country", lazy="selectin")


class JobType(Base):
    __tablename__ = "job_types"
    job_type_id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)

    specializations = relationship("Specialization", back_populates="job_type")


class Specialization(Base):
    __tablename__ = "specializations"
    specialization_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    # 每個專長都屬於 "一個" 工作類型 (分類)
    job_type_id = Column(Integer, ForeignKey("job_types.job_type_id", ondelete="RESTRICT"), nullable=False, index=True)

    job_type = relationship("JobType", back_populates="specializations", lazy="selectin")


class Language(Base):
    __tablename__ = "languages"
    language_id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)


class Contractual(Base):
    __tablename__ = "contractuals"
    contractual_id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)


class MerchandiserStatus(Base):
    __tablename__ = "merchandiser_statuses"
    status_id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False)

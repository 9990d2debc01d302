# app/models/merchandiser_file.py
import enum
from sqlalchemy import Column, String, Integer, ForeignKey, TIMESTAMP, Enum, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class MerchandiserFileKind(str, enum.Enum):
    portrait = "portrait"
    full_body = "full_body"
    cv = "cv"
    other = "other"


class MerchandiserFile(Base):
    """
    已上傳檔案的紀錄 (上傳流程本身不在本服務內)。
    """
    __tablename__ = "merchandiser_files"

    file_id = Column(Integer, primary_key=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(Enum(MerchandiserFileKind, values_callable=lambda obj: [e.value for e in obj]), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    merchandiser = relationship("Merchandiser", back_populates="files")

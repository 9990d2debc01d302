# app/models/favorite.py
from sqlalchemy import Column, Integer, ForeignKey, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class AkzenteFavoriteMerchandiser(Base):
    """Akzente 收藏的 Merchandiser (純關聯，沒有其他欄位)"""
    __tablename__ = "akzente_favorite_merchandisers"
    # 同一組 (akzente, merchandiser) 只能有一筆，避免同時切換時重複建立
    __table_args__ = (
        UniqueConstraint("akzente_id", "merchandiser_id", name="uq_akzente_favorite_merchandiser"),
    )

    favorite_id = Column(Integer, primary_key=True)
    akzente_id = Column(Integer, ForeignKey("akzente.akzente_id", ondelete="CASCADE"), nullable=False, index=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    merchandiser = relationship("Merchandiser", lazy="selectin")

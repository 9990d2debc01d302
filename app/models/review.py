# app/models/review.py
from sqlalchemy import Column, Integer, TEXT, ForeignKey, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class MerchandiserReview(Base):
    __tablename__ = "merchandiser_reviews"
    # 每位 akzente 對同一位 merchandiser 只能評價一次
    __table_args__ = (
        UniqueConstraint("akzente_id", "merchandiser_id", name="uq_merchandiser_review_pair"),
    )

    review_id = Column(Integer, primary_key=True)
    akzente_id = Column(Integer, ForeignKey("akzente.akzente_id", ondelete="CASCADE"), nullable=False, index=True)
    merchandiser_id = Column(Integer, ForeignKey("merchandisers.merchandiser_id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    review = Column(TEXT, nullable=False, default="")

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    akzente = relationship("Akzente", lazy="selectin")

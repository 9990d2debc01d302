# models/user.py
from sqlalchemy import Column, String, Boolean, Enum, Integer, ForeignKey, TIMESTAMP, func
from app.core.database import Base
import enum
from sqlalchemy.orm import relationship

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    merchandiser = "merchandiser"
    akzente = "akzente"
    client = "client"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(50))
    # 小寫儲存 (e.g. "male", "female", "diverse")
    gender = Column(String(20), nullable=True)
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # 關聯設定
    merchandiser = relationship(
        "Merchandiser",
        back_populates="user",
        uselist=False,
    )

    akzente = relationship(
        "Akzente",
        back_populates="user",
        uselist=False,
    )


class Akzente(Base):
    """
    Akzente 員工身分。收藏與評價都是以這個身分 (而非 User) 為單位。
    """
    __tablename__ = "akzente"

    akzente_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User", back_populates="akzente", lazy="selectin")

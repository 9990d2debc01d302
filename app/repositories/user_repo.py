# app/repositories/user_repo.py
# 負責與使用者 (及 Akzente 身分) 相關的資料庫操作
from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.user import User, Akzente

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> User | None:
        """
        透過 user_id 查詢使用者
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def update_user(self, user: User, changes: Dict[str, Any]) -> User:
        """只 flush，commit 由呼叫端決定"""
        for key, value in changes.items():
            setattr(user, key, value)
        await self.db.flush()
        return user

    async def get_akzente_by_user_id(self, user_id: int) -> Akzente | None:
        """
        收藏 / 評價都是以 Akzente 身分為單位，
        不是 Akzente 的使用者會回傳 None
        """
        stmt = select(Akzente).where(Akzente.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

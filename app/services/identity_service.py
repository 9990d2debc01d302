# app/services/identity_service.py
# 使用者身分相關的查詢與更新 (姓名、電話、email)
# Merchandiser 的更新流程透過這裡修改 users 表，不直接碰 UserRepository
import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from app.models.user import Akzente, User
from app.repositories.user_repo import UserRepository
from app.schemas.user_schema import UserUpdate

logger = logging.getLogger(__name__)


class IdentityService:
    def __init__(self, db: AsyncSession):
        self.repo = UserRepository(db)
        self.db = db

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        return await self.repo.get_user_by_id(user_id)

    async def find_akzente_by_user_id(self, user_id: Optional[int]) -> Optional[Akzente]:
        if user_id is None:
            return None
        return await self.repo.get_akzente_by_user_id(user_id)

    async def update_user(self, user_id: int, update_data: UserUpdate) -> User:
        """
        部分更新使用者。email 重複由資料庫的唯一限制擋下，轉成 ConflictError。
        只 flush，由呼叫端 commit。
        """
        user = await self.repo.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("使用者不存在", details={"user_id": user_id})

        changes = update_data.model_dump(exclude_unset=True)
        if not changes:
            return user
        # email 是登入帳號，可以改但不能清空
        if "email" in changes and changes["email"] is None:
            raise ValidationError("email 不可為空", details={"field": "email"})
        try:
            return await self.repo.update_user(user, changes)
        except IntegrityError as e:
            logger.info(f"使用者 {user_id} 的 email 已被其他帳號使用")
            raise ConflictError("email 已被使用", details={"field": "email"}) from e
        except SQLAlchemyError as e:
            logger.error(f"更新使用者 {user_id} 失敗: {e}", exc_info=True)
            raise PersistenceError("更新使用者資料失敗") from e

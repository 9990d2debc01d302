# app/core/security.py
# 負責 JWT 權杖的驗證 (簽發由外部的登入服務負責)
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import get_db
from app.schemas.user_schema import TokenData
from app.repositories.user_repo import UserRepository
from app.models.user import User

# (重要) 定義 Token 從哪裡來 (Authorization Header)
# auto_error=False：沒帶 Token 時交給各個依賴自行決定 (匿名瀏覽 / 401)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def verify_access_token(token: str) -> TokenData | None:
    """
    驗證 JWT，回傳 TokenData (Pydantic Model) 或 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )

        user_id = payload.get("user_id")
        role = payload.get("role")

        if user_id is None or role is None:
            return None

        return TokenData(user_id=user_id, role=role)

    except (JWTError, ValueError):
        return None


async def _load_user(token: str | None, db: AsyncSession) -> User | None:
    if not token:
        return None
    token_data = verify_access_token(token)
    if token_data is None:
        return None
    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model (需要登入的 API)
    """
    user = await _load_user(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="無法驗證憑證",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User | None:
    """
    (新增) 匿名也可以瀏覽的 API 使用：Token 無效時視為未登入
    """
    return await _load_user(token, db)

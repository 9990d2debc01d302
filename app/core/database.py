# app/core/database.py
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """MySQL (aiomysql) 與測試用的 SQLite (aiosqlite) 共用"""
    return create_async_engine(
        url,
        pool_pre_ping=True,  # 取連線前先 PING，避免 MySQL 閒置斷線
        echo=settings.DATABASE_ECHO,
        **kwargs,
    )


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    # expire_on_commit=False：每個集合各自 commit 後，物件仍可讀取
    return sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)

# ORM Model 基底類別
Base = declarative_base()


async def create_schema(bind: AsyncEngine) -> None:
    """建立所有資料表 (測試與本機開發用，正式環境由 migration 負責)"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# (重要) 取得 DB Session 的 Dependency
async def get_db() -> AsyncSession:
    """
    每個請求一個 session。
    請求中途丟錯時，尚未 commit 的變更一律捨棄。
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

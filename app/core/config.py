# app/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、搜尋預設值等)
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 資料庫設定
    DATABASE_URL: str
    # 是否在 console 印出 SQL 語句
    DATABASE_ECHO: bool = False
    # JWT 設定 (本服務只負責驗證，不簽發)
    JWT_SECRET_KEY: str
    # JWT 演算法
    JWT_ALGORITHM: str = "HS256"

    # 搜尋：前端未傳 limit 時的每頁筆數
    SEARCH_DEFAULT_LIMIT: int = 10
    # 列表縮圖使用的檔案種類
    PORTRAIT_FILE_KIND: str = "portrait"

    # 環境變數檔案
    class Config:
        env_file = ".env"

# 建立設定實例
settings = Settings()

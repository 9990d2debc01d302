# app/core/exceptions.py
# 服務層使用的錯誤類型，由 main.py 統一轉換成 HTTP 回應
from typing import Any, Dict, Optional


class AppError(Exception):
    """所有業務錯誤的基底類別"""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class ValidationError(AppError):
    """資料格式錯誤，或引用的關聯資料不存在"""

    status_code = 422


class NotFoundError(AppError):
    """找不到 Profile 或其子資料"""

    status_code = 404


class ConflictError(AppError):
    """重複的評價 / 收藏"""

    status_code = 409


class PersistenceError(AppError):
    """資料庫層級的錯誤，一律往上拋"""

    status_code = 503

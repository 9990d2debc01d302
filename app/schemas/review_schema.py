# app/schemas/review_schema.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


# 1. 建立評價 (Akzente -> Merchandiser)
class ReviewCreate(BaseModel):
    merchandiser_id: int
    # 範圍 (1~5) 由 ReviewService 檢查，錯誤時丟 ValidationError
    rating: int
    review: str = Field("", max_length=5000)


# 2. 修改評價 (所有欄位皆可選)
class ReviewUpdate(BaseModel):
    rating: Optional[int] = None
    review: Optional[str] = Field(None, max_length=5000)


# 3. 回傳的評價
class ReviewOut(BaseModel):
    review_id: int
    akzente_id: int
    merchandiser_id: int
    rating: int
    review: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# 4. 評分統計 (不存資料庫，每次即時計算)
class ReviewStatsOut(BaseModel):
    average_rating: float = 0.0
    review_count: int = 0

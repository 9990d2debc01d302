# app/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, ConfigDict, field_validator
from app.models.user import UserRoleEnum
from typing import Optional


# Token 內的資料 (由外部的登入服務簽發)
class TokenData(BaseModel):
    user_id: int
    role: str


# 巢狀顯示在 Merchandiser 裡的使用者資料
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    role: UserRoleEnum
    is_active: bool = True


# IdentityService.update_user 接受的欄位 (部分更新)
class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    gender: Optional[str] = None

    @field_validator("gender")
    @classmethod
    def lower_gender(cls, v):
        # 搜尋時以小寫完全比對
        return v.strip().lower() if v else v

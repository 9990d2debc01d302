# app/routers/merchandiser_router.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.core.security import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.merchandiser_schema import (
    FavoriteToggleOut,
    FilterOptionsOut,
    MerchandiserDetailOut,
    MerchandiserFilter,
    MerchandiserListItem,
    MerchandiserPageOut,
    MerchandiserRegister,
    MerchandiserUpdate,
    SortOption,
)
from app.schemas.review_schema import ReviewOut, ReviewStatsOut
from app.services.favorite_service import FavoriteService
from app.services.merchandiser_service import MerchandiserService
from app.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/merchandisers",
    tags=["Merchandisers"],
)

_sort_adapter = TypeAdapter(List[SortOption])


def _parse_filters(raw: Optional[str]) -> Optional[MerchandiserFilter]:
    """filters 以 JSON 字串放在 query 中 (e.g. ?filters={"ageRange":"18-30"})"""
    if not raw:
        return None
    try:
        return MerchandiserFilter.model_validate_json(raw)
    except PydanticValidationError as e:
        raise ValidationError("filters 格式錯誤", details={"filters": e.errors(include_url=False, include_context=False)})


def _parse_sort(raw: Optional[str]) -> Optional[List[SortOption]]:
    if not raw:
        return None
    try:
        return _sort_adapter.validate_json(raw)
    except PydanticValidationError as e:
        raise ValidationError("sort 格式錯誤", details={"sort": e.errors(include_url=False, include_context=False)})


@router.get("", response_model=MerchandiserPageOut)
async def search_merchandisers(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=0),
    filters: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    搜尋 Merchandiser (可匿名)。
    limit=0 代表全部回傳。
    """
    service = MerchandiserService(db)
    return await service.search(
        filters=_parse_filters(filters),
        sort=_parse_sort(sort),
        page=page,
        limit=limit,
        viewer_user_id=viewer.user_id if viewer else None,
    )


@router.get("/filter-options", response_model=FilterOptionsOut)
async def get_filter_options(db: AsyncSession = Depends(get_db)):
    service = MerchandiserService(db)
    return await service.get_filter_options()


@router.get("/favorites/me", response_model=List[MerchandiserListItem])
async def list_my_favorites(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """當前 Akzente 收藏的 Merchandiser"""
    service = FavoriteService(db)
    return await service.list_favorite_merchandisers(current_user.user_id)


@router.post("/me", response_model=MerchandiserDetailOut, status_code=status.HTTP_201_CREATED)
async def register_merchandiser(
    data: MerchandiserRegister,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """使用者註冊為 Merchandiser 後建立自己的 Profile"""
    service = MerchandiserService(db)
    return await service.register(current_user.user_id, data)


@router.get("/{merchandiser_id}", response_model=MerchandiserDetailOut)
async def get_merchandiser(
    merchandiser_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    service = MerchandiserService(db)
    return await service.get_detail(merchandiser_id, viewer.user_id if viewer else None)


@router.patch("/{merchandiser_id}", response_model=MerchandiserDetailOut)
async def update_merchandiser(
    merchandiser_id: int,
    payload: MerchandiserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    部分更新。子集合：沒傳 = 不動，[] = 清空，陣列 = 逐筆 diff (有 id 更新、沒 id 新增)
    """
    service = MerchandiserService(db)
    if not await service.can_edit(merchandiser_id, current_user):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "無權限修改此 Profile")
    return await service.update(merchandiser_id, payload)


@router.delete("/{merchandiser_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_merchandiser(
    merchandiser_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MerchandiserService(db)
    if not await service.can_edit(merchandiser_id, current_user):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "無權限刪除此 Profile")
    await service.remove(merchandiser_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{merchandiser_id}/favorite", response_model=FavoriteToggleOut)
async def toggle_favorite(
    merchandiser_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """收藏 / 取消收藏 (切換)"""
    service = FavoriteService(db)
    return await service.toggle_favorite(merchandiser_id, current_user.user_id)


@router.get("/{merchandiser_id}/reviews", response_model=List[ReviewOut])
async def list_reviews(
    merchandiser_id: int,
    db: AsyncSession = Depends(get_db)
):
    service = ReviewService(db)
    return await service.list_reviews(merchandiser_id)


@router.get("/{merchandiser_id}/review-stats", response_model=ReviewStatsOut)
async def get_review_stats(
    merchandiser_id: int,
    db: AsyncSession = Depends(get_db)
):
    service = ReviewService(db)
    return await service.review_stats(merchandiser_id)

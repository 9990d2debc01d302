# app/routers/review_router.py
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.review_schema import ReviewCreate, ReviewOut, ReviewUpdate
from app.services.review_service import ReviewService

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """(Akzente) 評價 Merchandiser，每人對同一位只能評價一次"""
    service = ReviewService(db)
    return await service.create_review(current_user.user_id, review_data)


@router.patch("/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: int,
    update_data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ReviewService(db)
    return await service.update_review(review_id, current_user.user_id, update_data)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ReviewService(db)
    await service.remove_review(review_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.review import MerchandiserReview
from app.models.user import Akzente
from app.repositories.review_repo import ReviewRepository
from app.schemas.review_schema import ReviewCreate, ReviewUpdate
from app.services.review_service import ReviewService, round_rating


def test_round_rating_is_half_up():
    assert round_rating(3.25) == 3.3
    assert round_rating(3.35) == 3.4
    assert round_rating(4) == 4.0
    assert round_rating(None) == 0.0


async def test_second_review_for_same_pair_conflicts(db, factory):
    m = await factory.merchandiser()
    akzente = await factory.akzente()
    service = ReviewService(db)

    first = await service.create_review(akzente.user_id, ReviewCreate(
        merchandiser_id=m.merchandiser_id, rating=4, review="zuverlässig"))
    assert first.review_id is not None
    assert first.created_at is not None

    with pytest.raises(ConflictError):
        await service.create_review(akzente.user_id, ReviewCreate(
            merchandiser_id=m.merchandiser_id, rating=1, review="doch nicht"))

    reviews = await service.list_reviews(m.merchandiser_id)
    assert [(r.rating, r.review) for r in reviews] == [(4, "zuverlässig")]


async def test_unique_constraint_race_is_reported_as_conflict(db, factory, monkeypatch):
    m = await factory.merchandiser()
    akzente = await factory.akzente()
    merchandiser_id, akzente_id, user_id = m.merchandiser_id, akzente.akzente_id, akzente.user_id
    db.add(MerchandiserReview(akzente_id=akzente_id, merchandiser_id=merchandiser_id, rating=4))
    await db.commit()

    # 另一個請求在檢查之後先寫入
    async def not_seen_yet(self, akzente_id, merchandiser_id):
        return None

    monkeypatch.setattr(ReviewRepository, "get_pair", not_seen_yet)
    with pytest.raises(ConflictError):
        await ReviewService(db).create_review(user_id, ReviewCreate(merchandiser_id=merchandiser_id, rating=2))

    count = await db.scalar(
        select(func.count()).select_from(MerchandiserReview)
        .where(MerchandiserReview.merchandiser_id == merchandiser_id)
    )
    assert count == 1


async def test_stats_average_and_count(db, factory):
    m = await factory.merchandiser()
    service = ReviewService(db)
    for rating in (3, 4, 5):
        akzente = await factory.akzente()
        await service.create_review(akzente.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=rating))

    stats = await service.review_stats(m.merchandiser_id)
    assert stats.average_rating == 4.0
    assert stats.review_count == 3


async def test_stats_are_rounded(db, factory):
    m = await factory.merchandiser()
    service = ReviewService(db)
    for rating in (3, 3, 4):
        akzente = await factory.akzente()
        await service.create_review(akzente.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=rating))

    stats = await service.review_stats(m.merchandiser_id)
    assert stats.average_rating == 3.3


async def test_stats_without_reviews(db, factory):
    m = await factory.merchandiser()
    stats = await ReviewService(db).review_stats(m.merchandiser_id)
    assert stats.average_rating == 0.0
    assert stats.review_count == 0


async def test_cannot_review_yourself(db, factory):
    m = await factory.merchandiser()
    # 同一個使用者同時有 Merchandiser 與 Akzente 身分
    db.add(Akzente(user_id=m.user_id))
    await db.commit()

    with pytest.raises(ValidationError):
        await ReviewService(db).create_review(m.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=5))


@pytest.mark.parametrize("rating", [0, 6, -1])
async def test_rating_out_of_range(db, factory, rating):
    m = await factory.merchandiser()
    akzente = await factory.akzente()
    with pytest.raises(ValidationError) as exc_info:
        await ReviewService(db).create_review(akzente.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=rating))
    assert exc_info.value.details == {"rating": rating}


async def test_reviewer_must_be_akzente(db, factory):
    m = await factory.merchandiser()
    other = await factory.merchandiser()
    with pytest.raises(NotFoundError):
        await ReviewService(db).create_review(other.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=3))


async def test_review_unknown_profile(db, factory):
    akzente = await factory.akzente()
    with pytest.raises(NotFoundError):
        await ReviewService(db).create_review(akzente.user_id, ReviewCreate(merchandiser_id=777, rating=3))
    with pytest.raises(NotFoundError):
        await ReviewService(db).list_reviews(777)


async def test_update_and_remove_own_review(db, factory):
    m = await factory.merchandiser()
    akzente = await factory.akzente()
    service = ReviewService(db)
    review = await service.create_review(akzente.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=2))

    updated = await service.update_review(review.review_id, akzente.user_id, ReviewUpdate(rating=5, review=None))
    assert updated.rating == 5
    assert updated.review == ""
    assert (await service.review_stats(m.merchandiser_id)).average_rating == 5.0

    with pytest.raises(ValidationError):
        await service.update_review(review.review_id, akzente.user_id, ReviewUpdate(rating=9))

    await service.remove_review(review.review_id, akzente.user_id)
    assert (await service.review_stats(m.merchandiser_id)).review_count == 0


async def test_cannot_touch_someone_elses_review(db, factory):
    m = await factory.merchandiser()
    author = await factory.akzente()
    stranger = await factory.akzente()
    service = ReviewService(db)
    review = await service.create_review(author.user_id, ReviewCreate(merchandiser_id=m.merchandiser_id, rating=4))

    with pytest.raises(NotFoundError):
        await service.update_review(review.review_id, stranger.user_id, ReviewUpdate(rating=1))
    with pytest.raises(NotFoundError):
        await service.remove_review(review.review_id, stranger.user_id)
    with pytest.raises(NotFoundError):
        await service.remove_review(424242, author.user_id)

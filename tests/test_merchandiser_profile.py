from types import SimpleNamespace

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.user import UserRoleEnum
from app.schemas.merchandiser_schema import MerchandiserRegister
from app.services.merchandiser_service import MerchandiserService


async def test_register_creates_profile_with_default_status(db, catalog, factory):
    user = await factory.user()
    detail = await MerchandiserService(db).register(
        user.user_id, MerchandiserRegister(city_id=catalog.berlin.city_id, zip_code="10115")
    )

    assert detail.user_id == user.user_id
    assert detail.status.name == "Neu"
    assert detail.city.name == "Berlin"
    assert detail.job_types == []
    assert detail.review_stats.review_count == 0


async def test_register_twice_conflicts(db, catalog, factory):
    user = await factory.user()
    service = MerchandiserService(db)
    await service.register(user.user_id, MerchandiserRegister())
    with pytest.raises(ConflictError):
        await service.register(user.user_id, MerchandiserRegister())


async def test_register_requires_merchandiser_role(db, catalog, factory):
    user = await factory.user(role=UserRoleEnum.client)
    with pytest.raises(ValidationError):
        await MerchandiserService(db).register(user.user_id, MerchandiserRegister())


async def test_register_rejects_unknown_city(db, catalog, factory):
    user = await factory.user()
    with pytest.raises(ValidationError):
        await MerchandiserService(db).register(user.user_id, MerchandiserRegister(city_id=55))


async def test_get_detail_unknown_profile(db, catalog):
    with pytest.raises(NotFoundError) as exc_info:
        await MerchandiserService(db).get_detail(31337)
    assert exc_info.value.status_code == 404


async def test_removed_profile_is_gone(db, catalog, factory):
    m = await factory.merchandiser()
    service = MerchandiserService(db)
    await service.remove(m.merchandiser_id)

    with pytest.raises(NotFoundError):
        await service.get_detail(m.merchandiser_id)
    with pytest.raises(NotFoundError):
        await service.remove(m.merchandiser_id)


async def test_filter_options_are_sorted_by_name(db, catalog):
    options = await MerchandiserService(db).get_filter_options()
    assert [j.name for j in options.job_types] == ["Merchandising", "Promotion", "Sales"]
    assert [s.name for s in options.statuses] == ["Neu", "Team"]


async def test_can_edit(db, catalog, factory):
    m = await factory.merchandiser()
    other = await factory.merchandiser()
    service = MerchandiserService(db)

    owner = SimpleNamespace(user_id=m.user_id, role=UserRoleEnum.merchandiser)
    stranger = SimpleNamespace(user_id=other.user_id, role=UserRoleEnum.merchandiser)
    staff = SimpleNamespace(user_id=-1, role=UserRoleEnum.akzente)

    assert await service.can_edit(m.merchandiser_id, owner) is True
    assert await service.can_edit(m.merchandiser_id, stranger) is False
    assert await service.can_edit(m.merchandiser_id, staff) is True
    with pytest.raises(NotFoundError):
        await service.can_edit(999, owner)

from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from app.models.merchandiser import MerchandiserLanguage, MerchandiserSpecialization, MerchandiserJobType
from app.models.user import UserRoleEnum
from app.repositories.favorite_repo import FavoriteRepository
from app.repositories.merchandiser_file_repo import MerchandiserFileRepository
from app.repositories.merchandiser_repo import MerchandiserRepository
from app.schemas.merchandiser_schema import MerchandiserFilter, SortOption
from app.services.merchandiser_service import MerchandiserService
from app.models.favorite import AkzenteFavoriteMerchandiser


def years_ago(years: int, extra_days: int = 0) -> date:
    today = date.today()
    try:
        born = today.replace(year=today.year - years)
    except ValueError:
        born = today.replace(year=today.year - years, day=28)
    return date.fromordinal(born.toordinal() - extra_days)


@pytest.fixture
async def people(db, catalog, factory):
    """
    max   : 男, Berlin, 有網站, 25 歲, Merchandising + Promotion, Deutsch
    erika : 女, Wien, 網站為空字串, 40 歲, Promotion, Englisch, 狀態 Team
    john  : 未填性別, München, 沒有網站, 65 歲
    """
    max_ = await factory.merchandiser(
        first_name="Max", last_name="Muster", email="max@example.com", gender="male",
        website="https://max.example", city_id=catalog.berlin.city_id, zip_code="10115",
        birthday=years_ago(25), nationality="deutsch", status_id=catalog.status_new.status_id,
    )
    erika = await factory.merchandiser(
        first_name="Erika", last_name="Beispiel", email="erika@example.at", gender="female",
        website="", city_id=catalog.vienna.city_id, zip_code="1010",
        birthday=years_ago(40), nationality="österreichisch", status_id=catalog.status_team.status_id,
    )
    john = await factory.merchandiser(
        first_name="John", last_name="Doe", email="john@example.com",
        website=None, city_id=catalog.munich.city_id, zip_code="80331",
        birthday=years_ago(65),
    )
    db.add_all([
        MerchandiserSpecialization(merchandiser_id=max_.merchandiser_id, specialization_id=catalog.shelf_care.specialization_id),
        MerchandiserSpecialization(merchandiser_id=max_.merchandiser_id, specialization_id=catalog.tasting.specialization_id),
        MerchandiserJobType(merchandiser_id=max_.merchandiser_id, job_type_id=catalog.merchandising.job_type_id),
        MerchandiserJobType(merchandiser_id=max_.merchandiser_id, job_type_id=catalog.promotion.job_type_id),
        MerchandiserLanguage(merchandiser_id=max_.merchandiser_id, language_id=catalog.german.language_id),
        MerchandiserSpecialization(merchandiser_id=erika.merchandiser_id, specialization_id=catalog.tasting.specialization_id),
        MerchandiserJobType(merchandiser_id=erika.merchandiser_id, job_type_id=catalog.promotion.job_type_id),
        MerchandiserLanguage(merchandiser_id=erika.merchandiser_id, language_id=catalog.english.language_id),
    ])
    await db.commit()
    return SimpleNamespace(max=max_.merchandiser_id, erika=erika.merchandiser_id, john=john.merchandiser_id)


async def search_ids(db, **kwargs):
    if "filters" in kwargs and isinstance(kwargs["filters"], dict):
        kwargs["filters"] = MerchandiserFilter.model_validate(kwargs["filters"])
    page = await MerchandiserService(db).search(**kwargs)
    return [item.merchandiser_id for item in page.items], page


async def test_default_order_is_newest_first(db, people):
    ids, page = await search_ids(db)
    assert ids == [people.john, people.erika, people.max]
    assert page.total_count == 3
    assert page.page == 1


async def test_zero_matches_returns_empty_page(db, people):
    ids, page = await search_ids(db, filters={"search": "niemand"})
    assert ids == []
    assert page.total_count == 0


async def test_limit_zero_returns_everything(db, catalog, factory, people):
    for i in range(12):
        await factory.merchandiser(first_name=f"Extra{i}")
    ids, page = await search_ids(db, limit=0)
    assert page.total_count == 15
    assert len(ids) == 15
    assert page.limit == 0


async def test_pagination_never_repeats_profiles(db, people):
    # job_type_ids 會讓 max 在 join 後出現兩列
    filters = {"jobTypeIds": [1, 2]}
    first, page = await search_ids(db, filters=filters, limit=1, page=1)
    second, _ = await search_ids(db, filters=filters, limit=1, page=2)
    third, _ = await search_ids(db, filters=filters, limit=1, page=3)

    assert page.total_count == 2
    assert first + second == [people.erika, people.max]
    assert third == []


async def test_count_is_distinct_per_profile(db, people):
    ids, page = await search_ids(db, filters={"specializationIds": [1, 3], "languageIds": [1, 2]})
    assert sorted(ids) == sorted([people.max, people.erika])
    assert page.total_count == 2


async def test_free_text_search(db, people):
    assert (await search_ids(db, filters={"search": "max muster"}))[0] == [people.max]
    assert (await search_ids(db, filters={"search": "MUSTER"}))[0] == [people.max]
    assert (await search_ids(db, filters={"search": "example.at"}))[0] == [people.erika]
    assert (await search_ids(db, filters={"search": "max.example"}))[0] == [people.max]


async def test_location_matches_city_or_zip(db, people):
    assert (await search_ids(db, filters={"location": "wien"}))[0] == [people.erika]
    assert sorted((await search_ids(db, filters={"location": "101"}))[0]) == sorted([people.max, people.erika])


async def test_label_filters(db, people):
    assert sorted((await search_ids(db, filters={"qualifications": "promo"}))[0]) == sorted([people.max, people.erika])
    assert (await search_ids(db, filters={"specializations": "regal"}))[0] == [people.max]
    assert (await search_ids(db, filters={"languages": "engl"}))[0] == [people.erika]
    # 條件之間為 AND
    assert (await search_ids(db, filters={"qualifications": "promo", "languages": "deutsch"}))[0] == [people.max]


async def test_id_filters(db, catalog, people):
    assert (await search_ids(db, filters={"countryIds": [catalog.austria.country_id]}))[0] == [people.erika]
    assert (await search_ids(db, filters={"cityIds": [catalog.munich.city_id]}))[0] == [people.john]


async def test_has_website(db, people):
    assert (await search_ids(db, filters={"hasWebsite": "true"}))[0] == [people.max]
    assert (await search_ids(db, filters={"hasWebsite": "FALSE"}))[0] == [people.john, people.erika]
    ids, page = await search_ids(db, filters={"hasWebsite": "whatever"})
    assert page.total_count == 3


async def test_age_ranges(db, people):
    assert (await search_ids(db, filters={"ageRange": "18-30"}))[0] == [people.max]
    assert (await search_ids(db, filters={"ageRange": "31-45"}))[0] == [people.erika]
    assert (await search_ids(db, filters={"ageRange": "60+"}))[0] == [people.john]
    assert sorted((await search_ids(db, filters={"ageRange": "20-45"}))[0]) == sorted([people.max, people.erika])
    # 無效的區間直接忽略
    assert len((await search_ids(db, filters={"ageRange": "45-20"}))[0]) == 3


async def test_status_and_nationality(db, people):
    assert (await search_ids(db, filters={"status": "tea"}))[0] == [people.erika]
    assert (await search_ids(db, filters={"nationality": "DEUTSCH"}))[0] == [people.max]


async def test_gender_is_exact_and_case_insensitive(db, people):
    # "female" 包含 "male"，但不應該被比對到
    assert (await search_ids(db, filters={"gender": "male"}))[0] == [people.max]
    assert (await search_ids(db, filters={"gender": "FEMALE"}))[0] == [people.erika]
    assert (await search_ids(db, filters={"gender": "fem"}))[0] == []
    # 空白字串視為沒有設定
    assert len((await search_ids(db, filters={"gender": "  "}))[0]) == 3


async def test_wildcards_in_search_are_literal(db, factory, people):
    anna = await factory.merchandiser(first_name="Anna", last_name="Schmidt", email="anna_s@example.com")
    anna_id = anna.merchandiser_id

    # 沒有任何資料含有 "%"，不能變成 "全部符合"
    ids, page = await search_ids(db, filters={"search": "%"})
    assert ids == []
    assert page.total_count == 0
    # "_" 只比對真的含有底線的資料
    assert (await search_ids(db, filters={"search": "_"}))[0] == [anna_id]
    assert (await search_ids(db, filters={"search": "na_s"}))[0] == [anna_id]
    assert (await search_ids(db, filters={"search": "x_m"}))[0] == []


async def test_sorting(db, people):
    ids, _ = await search_ids(db, sort=[SortOption(order_by="user.firstName", order="asc")])
    assert ids == [people.erika, people.john, people.max]

    ids, _ = await search_ids(db, sort=[SortOption(order_by="birthday", order="desc")])
    assert ids == [people.max, people.erika, people.john]

    # 不認得的欄位退回 created_at
    ids, _ = await search_ids(db, sort=[SortOption(order_by="doesNotExist", order="asc")])
    expected, _ = await search_ids(db, sort=[SortOption(order_by="createdAt", order="asc")])
    assert ids == expected
    assert sorted(ids) == sorted([people.max, people.erika, people.john])


async def test_soft_removed_profiles_never_match(db, people):
    await MerchandiserService(db).remove(people.erika)
    ids, page = await search_ids(db, filters={"search": "erika"})
    assert ids == []
    assert page.total_count == 0


async def test_favorite_flags_for_viewer(db, factory, people):
    akzente = await factory.akzente()
    db.add(AkzenteFavoriteMerchandiser(akzente_id=akzente.akzente_id, merchandiser_id=people.erika))
    await db.commit()

    page = await MerchandiserService(db).search(viewer_user_id=akzente.user_id)
    flags = {item.merchandiser_id: item.is_favorite for item in page.items}
    assert flags == {people.john: False, people.erika: True, people.max: False}

    # 匿名 / 非 Akzente -> 全部 False
    anonymous = await MerchandiserService(db).search()
    assert not any(item.is_favorite for item in anonymous.items)
    client = await factory.user(role=UserRoleEnum.client)
    as_client = await MerchandiserService(db).search(viewer_user_id=client.user_id)
    assert not any(item.is_favorite for item in as_client.items)


async def test_favorite_lookup_failure_degrades_to_false(db, factory, people, monkeypatch):
    akzente = await factory.akzente()

    async def broken(self, akzente_id):
        raise OperationalError("SELECT ...", {}, Exception("database is locked"))

    monkeypatch.setattr(FavoriteRepository, "list_merchandiser_ids", broken)
    page = await MerchandiserService(db).search(viewer_user_id=akzente.user_id)
    assert page.total_count == 3
    assert not any(item.is_favorite for item in page.items)


async def test_portraits_are_batched_and_first_wins(db, factory, people):
    await factory.file(people.max, "portrait", "https://cdn/max-1.jpg")
    await factory.file(people.max, "portrait", "https://cdn/max-2.jpg")
    await factory.file(people.erika, "cv", "https://cdn/erika-cv.pdf")

    page = await MerchandiserService(db).search()
    portraits = {item.merchandiser_id: item.portrait for item in page.items}
    assert portraits[people.max].url == "https://cdn/max-1.jpg"
    assert portraits[people.erika] is None
    assert portraits[people.john] is None


async def test_batched_lookup_omits_profiles_without_asset(db, factory, people):
    await factory.file(people.john, "portrait", "https://cdn/john.jpg")
    found = await MerchandiserFileRepository(db).find_first_by_merchandiser_ids(
        [people.max, people.john, people.erika], "portrait"
    )
    assert list(found) == [people.john]
    assert await MerchandiserFileRepository(db).find_first_by_merchandiser_ids([], "portrait") == {}


async def test_portrait_lookup_failure_degrades_to_none(db, factory, people, monkeypatch):
    await factory.file(people.max, "portrait", "https://cdn/max.jpg")

    async def broken(self, merchandiser_ids, kind):
        raise OperationalError("SELECT ...", {}, Exception("timeout"))

    monkeypatch.setattr(MerchandiserFileRepository, "find_first_by_merchandiser_ids", broken)
    page = await MerchandiserService(db).search()
    assert all(item.portrait is None for item in page.items)


async def test_list_items_carry_job_types(db, people):
    page = await MerchandiserService(db).search(filters=MerchandiserFilter(search="max"))
    [item] = page.items
    assert sorted(j.job_type.name for j in item.job_types) == ["Merchandising", "Promotion"]
    assert item.city.name == "Berlin"
    assert item.user.email == "max@example.com"


async def test_repository_search_returns_total(db, people):
    from app.utils.search_filters import IdSetMatch, SortKey

    items, total = await MerchandiserRepository(db).search(
        [IdSetMatch("job_type", (2,))], [SortKey("created_at", True)], page=1, limit=0
    )
    assert total == 2
    assert [m.merchandiser_id for m in items] == [people.erika, people.max]

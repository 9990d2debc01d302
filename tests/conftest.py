import os
import sys
from datetime import date
from types import SimpleNamespace

# 必須在匯入 app 之前設定 (Settings 在匯入時就會讀取)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from app.core.database import build_engine, build_session_factory, create_schema
from app.models import catalog as catalog_models  # noqa: F401  (註冊 Model)
from app.models import favorite, merchandiser_file, review  # noqa: F401
from app.models.catalog import (
    City, Contractual, Country, JobType, Language, MerchandiserStatus, Specialization
)
from app.models.merchandiser import Merchandiser
from app.models.merchandiser_file import MerchandiserFile, MerchandiserFileKind
from app.models.user import Akzente, User, UserRoleEnum


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def catalog(db):
    """測試用的目錄資料"""
    germany = Country(country_id=1, name="Deutschland")
    austria = Country(country_id=2, name="Österreich")
    db.add_all([germany, austria])

    merchandising = JobType(job_type_id=1, name="Merchandising")
    promotion = JobType(job_type_id=2, name="Promotion")
    sales = JobType(job_type_id=3, name="Sales")
    db.add_all([merchandising, promotion, sales])
    await db.flush()

    ns = SimpleNamespace(
        germany=germany,
        austria=austria,
        berlin=City(city_id=1, name="Berlin", country_id=1),
        munich=City(city_id=2, name="München", country_id=1),
        vienna=City(city_id=3, name="Wien", country_id=2),
        merchandising=merchandising,
        promotion=promotion,
        sales=sales,
        shelf_care=Specialization(specialization_id=1, name="Regalpflege", job_type_id=1),
        inventory=Specialization(specialization_id=2, name="Inventur", job_type_id=1),
        tasting=Specialization(specialization_id=3, name="Verkostung", job_type_id=2),
        field_sales=Specialization(specialization_id=4, name="Außendienst", job_type_id=3),
        german=Language(language_id=1, name="Deutsch"),
        english=Language(language_id=2, name="Englisch"),
        freelancer=Contractual(contractual_id=1, name="Freelancer"),
        minijob=Contractual(contractual_id=2, name="Minijob"),
        status_new=MerchandiserStatus(status_id=1, name="Neu"),
        status_team=MerchandiserStatus(status_id=2, name="Team"),
    )
    db.add_all([
        ns.berlin, ns.munich, ns.vienna,
        ns.shelf_care, ns.inventory, ns.tasting, ns.field_sales,
        ns.german, ns.english, ns.freelancer, ns.minijob,
        ns.status_new, ns.status_team,
    ])
    await db.commit()
    return ns


class Factory:
    def __init__(self, db: AsyncSession):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def user(self, role=UserRoleEnum.merchandiser, first_name="Max", last_name="Muster", email=None,
                   gender=None) -> User:
        user = User(
            email=email or f"user{self._next()}@example.com",
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            role=role,
            is_active=True,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def merchandiser(self, first_name="Max", last_name="Muster", email=None, gender=None,
                           **fields) -> Merchandiser:
        user = await self.user(first_name=first_name, last_name=last_name, email=email, gender=gender)
        merchandiser = Merchandiser(user_id=user.user_id, **fields)
        self.db.add(merchandiser)
        await self.db.commit()
        return merchandiser

    async def akzente(self, email=None) -> Akzente:
        user = await self.user(role=UserRoleEnum.akzente, first_name="Anna", last_name="Akzente", email=email)
        akzente = Akzente(user_id=user.user_id)
        self.db.add(akzente)
        await self.db.commit()
        return akzente

    async def file(self, merchandiser_id: int, kind: str, url: str) -> MerchandiserFile:
        file = MerchandiserFile(merchandiser_id=merchandiser_id, kind=MerchandiserFileKind(kind), url=url)
        self.db.add(file)
        await self.db.commit()
        return file


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def today():
    return date(2025, 6, 15)

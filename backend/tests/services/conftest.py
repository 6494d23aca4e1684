"""Service test fixtures — async DB, FastAPI test client, seed data and an in-memory store.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db dependency overridden to use the test session factory
    - db_manager patched so readiness checks hit the test engine
    - Seed fixtures commit through their own session and return plain ids

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific behaviour is not exercised here)
    - memory_store implements the ResourceStore protocol with plain Python so the
      handler tests exercise the query pipeline without SQL
"""

import operator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.core.domain_types import SortDirection
from app.core.errors import InvalidQueryError
from app.core.query_features import IDENTIFIER_FIELD, QuerySpec
from app.db.base import Base
from app.infrastructure.database import (
    DatabaseSessionManager, enable_sqlite_foreign_keys, get_db,
)
import app.infrastructure.database as db_module
from app.main import app
from app.models.tour import Tour
from app.models.user import User


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed data ──────────────────────────────────────────────────

def tour_payload(name: str, price: float, **overrides) -> dict:
    """A valid tour creation body."""
    payload = {
        "name": name,
        "duration": 5,
        "max_group_size": 10,
        "difficulty": "easy",
        "price": price,
        "summary": f"Summary of {name}",
        "image_cover": "tour-cover.jpg",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_tour():
    return tour_payload


SEED_TOURS = [
    tour_payload("The Forest Hiker", 397, ratings_average=4.7, difficulty="easy"),
    tour_payload("The Sea Explorer", 497, ratings_average=4.8, difficulty="medium"),
    tour_payload("The Snow Adventurer", 997, ratings_average=4.5, difficulty="difficult"),
    tour_payload("The City Wanderer", 1197, ratings_average=4.6, difficulty="easy"),
    tour_payload("The Park Camper", 1497, ratings_average=4.9, difficulty="medium"),
]


@pytest.fixture
async def seed_tours(test_session_factory) -> list[UUID]:
    """Insert the five public seed tours; returns their ids in SEED_TOURS order."""
    async with test_session_factory() as session:
        tours = [Tour(**payload) for payload in SEED_TOURS]
        session.add_all(tours)
        await session.commit()
        return [tour.id for tour in tours]


@pytest.fixture
async def secret_tour(test_session_factory) -> UUID:
    async with test_session_factory() as session:
        tour = Tour(**tour_payload("The Hidden Valley", 50, secret_tour=True))
        session.add(tour)
        await session.commit()
        return tour.id


@pytest.fixture
async def seed_users(test_session_factory) -> list[UUID]:
    """Two active users and no inactive ones."""
    async with test_session_factory() as session:
        users = [
            User(name="Laura Wilson", email="laura@example.com"),
            User(name="Jonas Schmedtmann", email="jonas@example.com", role="admin"),
        ]
        session.add_all(users)
        await session.commit()
        return [user.id for user in users]


# ─── In-memory store ────────────────────────────────────────────

_COMPARATORS = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


class InMemoryStore:
    """ResourceStore over a dict; records every QuerySpec it receives."""

    resource_name = "tour"

    def __init__(self):
        self.documents: dict[UUID, dict] = {}
        self.specs: list[QuerySpec] = []

    def _matches(self, document: dict, predicate) -> bool:
        compare = _COMPARATORS.get(predicate.operator)
        if compare is None:
            raise InvalidQueryError(f"Unsupported operator '{predicate.operator}'.", predicate.field)
        current = document.get(predicate.field)
        if isinstance(predicate.value, tuple):
            return any(current == type(current)(v) for v in predicate.value)
        value = predicate.value
        if isinstance(value, str) and not isinstance(current, str):
            value = type(current)(value)
        return compare(current, value)

    async def find(self, spec: QuerySpec) -> list[dict]:
        self.specs.append(spec)
        documents = [
            d for d in self.documents.values()
            if all(self._matches(d, p) for p in spec.predicates)
        ]
        documents.sort(key=lambda d: d[IDENTIFIER_FIELD])
        for key in reversed(spec.sort):
            documents.sort(
                key=lambda d: d[key.field],
                reverse=key.direction == SortDirection.DESC,
            )
        if spec.page is not None:
            documents = documents[spec.page.skip:spec.page.skip + spec.page.limit]
        if spec.projection is not None and spec.projection.include:
            names = (IDENTIFIER_FIELD, *spec.projection.include)
            return [{n: d[n] for n in names if n in d} for d in documents]
        return [dict(d) for d in documents]

    async def find_by_id(self, document_id, expand=()):
        document = self.documents.get(document_id)
        return dict(document) if document is not None else None

    async def create(self, fields):
        document = {IDENTIFIER_FIELD: uuid4(), **fields}
        self.documents[document[IDENTIFIER_FIELD]] = document
        return dict(document)

    async def update_by_id(self, document_id, fields):
        document = self.documents.get(document_id)
        if document is None:
            return None
        document.update(fields)
        return dict(document)

    async def delete_by_id(self, document_id) -> bool:
        return self.documents.pop(document_id, None) is not None


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()

"""SQL Resource Store — the generic store against a real (SQLite) database.

Tests cover:
    - create validates through the resource schema and returns a document without internal fields
    - find compiles filters, sort, projection and pagination
    - Default scopes hide secret tours from every lookup
    - Typed failures: invalid field/operator/value, validation, duplicate key, stale version
    - Expansions on reads; review writes recompute tour ratings
    - Partial updates re-check cross-field rules against the stored document
    - A write and its after_write hook commit together or not at all
"""

from dataclasses import replace
from uuid import uuid4

import pytest

from app.core.errors import (
    ConcurrencyError, DocumentValidationError, DuplicateKeyError, InvalidQueryError,
)
from app.core.query_features import build_query_spec
from app.infrastructure.resource_store import SQLResourceStore
from app.services.resource_definitions import (
    BOOKING_RESOURCE, REVIEW_RESOURCE, TOUR_RESOURCE, USER_RESOURCE,
)


@pytest.fixture
def tour_store(test_db):
    return SQLResourceStore(test_db, TOUR_RESOURCE)


# ─── create / find_by_id ────────────────────────────────────────

async def test_create_returns_document_without_version(tour_store, make_tour):
    document = await tour_store.create(make_tour("The Forest Hiker", 397))

    assert document["name"] == "The Forest Hiker"
    assert document["slug"] == "the-forest-hiker"
    assert document["ratings_average"] == 4.5
    assert document["ratings_quantity"] == 0
    assert "version" not in document
    assert await tour_store.find_by_id(document["id"]) == document


async def test_create_rejects_invalid_document(tour_store, make_tour):
    with pytest.raises(DocumentValidationError) as exc:
        await tour_store.create(make_tour("Short", -1))
    fields = {d["field"] for d in exc.value.details}
    assert {"name", "price"} <= fields


async def test_create_rejects_discount_above_price(tour_store, make_tour):
    with pytest.raises(DocumentValidationError):
        await tour_store.create(make_tour("The Forest Hiker", 100, price_discount=150))


async def test_create_rejects_unknown_keys(tour_store, make_tour):
    with pytest.raises(DocumentValidationError):
        await tour_store.create(make_tour("The Forest Hiker", 100, rating_hack=5))


async def test_create_duplicate_name_raises_duplicate_key(tour_store, make_tour):
    await tour_store.create(make_tour("The Forest Hiker", 397))
    with pytest.raises(DuplicateKeyError):
        await tour_store.create(make_tour("The Forest Hiker", 500))


async def test_find_by_id_missing_returns_none(tour_store):
    assert await tour_store.find_by_id(uuid4()) is None


# ─── find ───────────────────────────────────────────────────────

async def test_find_filters_sorts_and_paginates(tour_store, seed_tours):
    documents = await tour_store.find(build_query_spec(
        {"price": {"gte": "400"}, "sort": "-price", "limit": "2", "page": "2"},
    ))
    assert [d["name"] for d in documents] == ["The Snow Adventurer", "The Sea Explorer"]


async def test_find_membership_filter(tour_store, seed_tours):
    documents = await tour_store.find(build_query_spec(
        {"difficulty": ["medium", "difficult"], "sort": "price"},
    ))
    assert [d["difficulty"] for d in documents] == ["medium", "difficult", "medium"]


async def test_find_projection_include(tour_store, seed_tours):
    documents = await tour_store.find(build_query_spec({"fields": "name,price"}))
    assert len(documents) == 5
    assert all(set(d) == {"id", "name", "price"} for d in documents)


async def test_find_projection_exclude(tour_store, seed_tours):
    documents = await tour_store.find(build_query_spec({"fields": "-summary"}))
    assert "summary" not in documents[0]
    assert "version" in documents[0]


async def test_find_default_order_is_by_identifier(tour_store, seed_tours):
    documents = await tour_store.find(build_query_spec({}))
    ids = [d["id"] for d in documents]
    assert ids == sorted(ids)


async def test_find_hides_secret_tours(tour_store, seed_tours, secret_tour):
    documents = await tour_store.find(build_query_spec({}))
    assert secret_tour not in {d["id"] for d in documents}
    assert await tour_store.find_by_id(secret_tour) is None
    assert await tour_store.update_by_id(secret_tour, {"price": 1}) is None
    assert await tour_store.delete_by_id(secret_tour) is False


@pytest.mark.parametrize("raw", [
    {"nonexistent": "1"},
    {"price": {"near": "1"}},
    {"price": "cheap"},
    {"sort": "popularity"},
    {"fields": "name,-price"},
    {"price": {"gte": ["1", "2"]}},
])
async def test_find_rejects_unrunnable_queries(tour_store, seed_tours, raw):
    with pytest.raises(InvalidQueryError):
        await tour_store.find(build_query_spec(raw))


# ─── update / delete ────────────────────────────────────────────

async def test_update_applies_only_given_fields(tour_store, seed_tours):
    document = await tour_store.update_by_id(
        seed_tours[0], {"name": "The Forest Walker", "price": 350},
    )
    assert document["price"] == 350
    assert document["slug"] == "the-forest-walker"
    assert document["duration"] == 5


async def test_update_rejects_null_for_required_field(tour_store, seed_tours):
    with pytest.raises(DocumentValidationError):
        await tour_store.update_by_id(seed_tours[0], {"price": None})


async def test_update_missing_returns_none(tour_store):
    assert await tour_store.update_by_id(uuid4(), {"price": 1}) is None


async def test_stale_update_raises_concurrency_error(test_session_factory, seed_tours):
    async with test_session_factory() as first, test_session_factory() as second:
        store_a = SQLResourceStore(first, TOUR_RESOURCE)
        store_b = SQLResourceStore(second, TOUR_RESOURCE)
        await store_b.find_by_id(seed_tours[0])

        await store_a.update_by_id(seed_tours[0], {"price": 10})
        with pytest.raises(ConcurrencyError):
            await store_b.update_by_id(seed_tours[0], {"price": 20})


async def test_delete_removes_document(tour_store, seed_tours):
    assert await tour_store.delete_by_id(seed_tours[0]) is True
    assert await tour_store.find_by_id(seed_tours[0]) is None
    assert await tour_store.delete_by_id(seed_tours[0]) is False


# ─── reviews, users, bookings ───────────────────────────────────

async def test_review_write_recomputes_tour_ratings(test_db, seed_tours, seed_users):
    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    tours = SQLResourceStore(test_db, TOUR_RESOURCE)
    tour_id = seed_tours[0]

    first = await reviews.create({"review": "Great", "rating": 5, "tour_id": tour_id, "user_id": seed_users[0]})
    await reviews.create({"review": "Fine", "rating": 4, "tour_id": tour_id, "user_id": seed_users[1]})
    tour = await tours.find_by_id(tour_id)
    assert (tour["ratings_quantity"], tour["ratings_average"]) == (2, 4.5)

    await reviews.update_by_id(first["id"], {"rating": 3})
    tour = await tours.find_by_id(tour_id)
    assert tour["ratings_average"] == 3.5

    await reviews.delete_by_id(first["id"])
    await reviews.delete_by_id((await reviews.find(build_query_spec({})))[0]["id"])
    tour = await tours.find_by_id(tour_id)
    assert (tour["ratings_quantity"], tour["ratings_average"]) == (0, 4.5)


async def test_one_review_per_user_per_tour(test_db, seed_tours, seed_users):
    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    body = {"review": "Great", "rating": 5, "tour_id": seed_tours[0], "user_id": seed_users[0]}
    await reviews.create(body)
    with pytest.raises(DuplicateKeyError):
        await reviews.create(body)


async def test_review_for_unknown_tour_is_rejected(test_db, seed_users):
    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    with pytest.raises(DocumentValidationError):
        await reviews.create({"review": "Great", "tour_id": uuid4(), "user_id": seed_users[0]})


async def test_review_reads_expand_author(test_db, seed_tours, seed_users):
    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    created = await reviews.create(
        {"review": "Great", "rating": 5, "tour_id": seed_tours[0], "user_id": seed_users[0]},
    )
    assert "user" not in created

    document = await reviews.find_by_id(created["id"])
    assert document["user"] == {"id": seed_users[0], "name": "Laura Wilson", "photo": "default.jpg"}

    listed = await reviews.find(build_query_spec({"fields": "review"}))
    assert "user" not in listed[0]


async def test_booking_reads_expand_tour_and_user(test_db, seed_tours, seed_users):
    bookings = SQLResourceStore(test_db, BOOKING_RESOURCE)
    await bookings.create({"tour_id": seed_tours[1], "user_id": seed_users[0], "price": 497})

    [document] = await bookings.find(build_query_spec({}))
    assert document["paid"] is True
    assert document["tour"] == {"id": seed_tours[1], "name": "The Sea Explorer", "duration": 5}
    assert document["user"]["email"] == "laura@example.com"


async def test_user_email_is_lowercased_and_unique(test_db):
    users = SQLResourceStore(test_db, USER_RESOURCE)
    document = await users.create({"name": "Leo Gillespie", "email": "Leo@Example.com"})
    assert document["email"] == "leo@example.com"
    assert document["role"] == "user"
    with pytest.raises(DuplicateKeyError):
        await users.create({"name": "Leo Again", "email": "leo@example.com"})


async def test_user_update_rejects_credentials(test_db, seed_users):
    users = SQLResourceStore(test_db, USER_RESOURCE)
    with pytest.raises(DocumentValidationError):
        await users.update_by_id(seed_users[0], {"password": "pass1234"})


async def test_inactive_users_are_hidden(test_db, seed_users):
    users = SQLResourceStore(test_db, USER_RESOURCE)
    await users.update_by_id(seed_users[0], {"active": False})
    assert await users.find_by_id(seed_users[0]) is None
    assert [d["id"] for d in await users.find(build_query_spec({}))] == [seed_users[1]]


# ─── merged checks on partial updates ───────────────────────────

async def test_discount_alone_is_checked_against_stored_price(tour_store, seed_tours):
    with pytest.raises(DocumentValidationError):
        await tour_store.update_by_id(seed_tours[0], {"price_discount": 1397})

    document = await tour_store.update_by_id(seed_tours[0], {"price_discount": 300})
    assert (document["price"], document["price_discount"]) == (397, 300)


async def test_price_alone_is_checked_against_stored_discount(tour_store, seed_tours):
    await tour_store.update_by_id(seed_tours[0], {"price_discount": 300})

    with pytest.raises(DocumentValidationError):
        await tour_store.update_by_id(seed_tours[0], {"price": 250})
    assert (await tour_store.find_by_id(seed_tours[0]))["price"] == 397


async def test_clearing_discount_allows_lower_price(tour_store, seed_tours):
    await tour_store.update_by_id(seed_tours[0], {"price_discount": 300})
    document = await tour_store.update_by_id(
        seed_tours[0], {"price": 250, "price_discount": None},
    )
    assert (document["price"], document["price_discount"]) == (250, None)


# ─── write + hook atomicity ─────────────────────────────────────

async def _ratings_unavailable(db, entity):
    raise RuntimeError("ratings unavailable")


async def test_failed_hook_rolls_back_create(test_db, seed_tours, seed_users):
    failing = SQLResourceStore(test_db, replace(REVIEW_RESOURCE, after_write=_ratings_unavailable))
    with pytest.raises(RuntimeError):
        await failing.create(
            {"review": "Great", "rating": 5, "tour_id": seed_tours[0], "user_id": seed_users[0]},
        )

    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    assert await reviews.find(build_query_spec({})) == []


async def test_failed_hook_rolls_back_delete(test_db, seed_tours, seed_users):
    reviews = SQLResourceStore(test_db, REVIEW_RESOURCE)
    created = await reviews.create(
        {"review": "Great", "rating": 5, "tour_id": seed_tours[0], "user_id": seed_users[0]},
    )
    failing = SQLResourceStore(test_db, replace(REVIEW_RESOURCE, after_write=_ratings_unavailable))
    with pytest.raises(RuntimeError):
        await failing.delete_by_id(created["id"])

    assert await reviews.find_by_id(created["id"]) is not None
    tour = await SQLResourceStore(test_db, TOUR_RESOURCE).find_by_id(seed_tours[0])
    assert tour["ratings_quantity"] == 1


async def test_hook_sees_pending_write(test_db, seed_tours, seed_users):
    seen = []

    async def record_count(db, entity):
        seen.append(len(await SQLResourceStore(db, REVIEW_RESOURCE).find(build_query_spec({}))))

    recording = SQLResourceStore(test_db, replace(REVIEW_RESOURCE, after_write=record_count))
    await recording.create(
        {"review": "Great", "rating": 5, "tour_id": seed_tours[0], "user_id": seed_users[0]},
    )
    assert seen == [1]


# ─── extreme query values ───────────────────────────────────────

async def test_page_beyond_database_integer_is_empty(tour_store, seed_tours):
    spec = build_query_spec({"page": "99999999999999999999"})
    assert await tour_store.find(spec) == []


async def test_limit_beyond_database_integer_returns_everything(tour_store, seed_tours):
    spec = build_query_spec({"limit": "99999999999999999999"})
    assert len(await tour_store.find(spec)) == 5


async def test_integer_column_accepts_fractional_bound(tour_store, seed_tours):
    assert len(await tour_store.find(build_query_spec({"duration": {"gte": "4.5"}}))) == 5
    assert await tour_store.find(build_query_spec({"duration": {"gte": "5.5"}})) == []
    assert len(await tour_store.find(build_query_spec({"duration": "5.0"}))) == 5
    assert await tour_store.find(build_query_spec({"duration": "4.5"})) == []


async def test_integer_column_accepts_huge_bound(tour_store, seed_tours):
    spec = build_query_spec({"duration": {"lt": "99999999999999999999"}})
    assert len(await tour_store.find(spec)) == 5


# ─── guides ─────────────────────────────────────────────────────

async def test_create_resolves_guide_ids(tour_store, make_tour, seed_users):
    created = await tour_store.create(
        make_tour("The Forest Hiker", 397, guides=[str(u) for u in seed_users]),
    )
    assert "guides" not in created

    document = await tour_store.find_by_id(created["id"], expand=("guides",))
    assert {g["name"] for g in document["guides"]} == {"Laura Wilson", "Jonas Schmedtmann"}
    assert set(document["guides"][0]) == {"id", "name", "email", "photo", "role"}


async def test_unknown_guide_is_rejected(tour_store, make_tour):
    with pytest.raises(DocumentValidationError) as exc:
        await tour_store.create(make_tour("The Forest Hiker", 397, guides=[str(uuid4())]))
    assert exc.value.details[0]["field"] == "guides"

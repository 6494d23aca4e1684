"""Query Features — verifies the immutable filter → sort → fields → paginate chain.

Tests cover:
    - Reserved keys never become predicates; everything else does
    - Bracket operators become one predicate per operator
    - Sort defaults to the identifier; '-' prefix means descending
    - Projection include/exclude parsing and the internal-field default
    - Pagination defaults and total parsing of page/limit
    - Each step returns a new builder and leaves the previous one untouched
"""

from app.core.domain_types import SortDirection
from app.core.query_features import (
    DEFAULT_LIMIT, DEFAULT_PAGE, DEFAULT_PROJECTION, DEFAULT_SORT, EQUALITY,
    FilterPredicate, PageSpec, Projection, QueryFeatures, SortKey,
    build_query_spec, extract_predicates, parse_page, parse_positive_int,
    parse_projection, parse_sort,
)


# ─── filter ─────────────────────────────────────────────────────

def test_reserved_keys_are_not_predicates():
    raw = {"page": "2", "sort": "price", "limit": "10", "fields": "name", "difficulty": "easy"}
    assert extract_predicates(raw) == (
        FilterPredicate("difficulty", EQUALITY, "easy"),
    )


def test_bracket_operators_become_predicates():
    predicates = extract_predicates({"price": {"gte": "50", "lt": "500"}})
    assert set(predicates) == {
        FilterPredicate("price", "gte", "50"),
        FilterPredicate("price", "lt", "500"),
    }


def test_repeated_values_become_membership_predicate():
    predicates = extract_predicates({"difficulty": ["easy", "medium"]})
    assert predicates == (FilterPredicate("difficulty", EQUALITY, ("easy", "medium")),)


def test_unknown_operator_passes_through_unvalidated():
    predicates = extract_predicates({"price": {"near": "50"}})
    assert predicates == (FilterPredicate("price", "near", "50"),)


def test_filter_keeps_scope_predicates_first():
    features = QueryFeatures.scoped({"rating": "5"}, {"tour_id": "t1"}).filter()
    assert features.spec.predicates == (
        FilterPredicate("tour_id", EQUALITY, "t1"),
        FilterPredicate("rating", EQUALITY, "5"),
    )


def test_empty_query_has_no_predicates():
    assert QueryFeatures({}).filter().spec.predicates == ()


# ─── sort ───────────────────────────────────────────────────────

def test_sort_defaults_to_identifier():
    assert parse_sort(None) == DEFAULT_SORT
    assert parse_sort("") == DEFAULT_SORT
    assert parse_sort(" , ") == DEFAULT_SORT


def test_sort_parses_direction_per_key():
    assert parse_sort("-ratings_average,price") == (
        SortKey("ratings_average", SortDirection.DESC),
        SortKey("price", SortDirection.ASC),
    )


def test_sort_ignores_bare_minus():
    assert parse_sort("-,price") == (SortKey("price", SortDirection.ASC),)


# ─── limit_fields ───────────────────────────────────────────────

def test_projection_defaults_to_hiding_internal_fields():
    assert parse_projection(None) == DEFAULT_PROJECTION
    assert "version" in DEFAULT_PROJECTION.exclude


def test_projection_include_list():
    assert parse_projection("name, price") == Projection(include=("name", "price"))


def test_projection_exclude_list():
    assert parse_projection("-summary,-description") == Projection(
        exclude=("summary", "description"),
    )


# ─── paginate ───────────────────────────────────────────────────

def test_pagination_defaults():
    page = parse_page({})
    assert page == PageSpec(DEFAULT_PAGE, DEFAULT_LIMIT)
    assert (page.page, page.limit, page.skip) == (1, 100, 0)


def test_skip_is_limit_times_previous_pages():
    assert parse_page({"page": "3", "limit": "10"}).skip == 20


def test_non_numeric_page_resolves_to_default():
    assert parse_page({"page": "abc"}).page == 1
    assert parse_page({"page": "abc"}).skip == 0


def test_parse_positive_int_is_total():
    assert parse_positive_int(None, 7) == 7
    assert parse_positive_int("", 7) == 7
    assert parse_positive_int("0", 7) == 7
    assert parse_positive_int("-3", 7) == 7
    assert parse_positive_int("3.5", 7) == 7
    assert parse_positive_int("١٢", 7) == 7
    assert parse_positive_int(True, 7) == 7
    assert parse_positive_int(" 12 ", 7) == 12
    assert parse_positive_int(4, 7) == 4


def test_repeated_page_keeps_last_value():
    assert parse_page({"page": ["2", "5"]}).page == 5


# ─── chain ──────────────────────────────────────────────────────

def test_steps_do_not_mutate_previous_builder():
    base = QueryFeatures({"price": "100", "sort": "price"})
    filtered = base.filter()
    sorted_ = filtered.sort()
    assert base.spec.predicates == ()
    assert filtered.spec.sort == ()
    assert sorted_.spec.sort == (SortKey("price"),)
    assert sorted_.spec.predicates == filtered.spec.predicates


def test_builder_copies_raw_query():
    raw = {"price": "100"}
    features = QueryFeatures(raw)
    raw["price"] = "999"
    assert features.filter().spec.predicates[0].value == "100"


def test_unapplied_steps_are_none():
    spec = QueryFeatures({}).filter().spec
    assert spec.projection is None
    assert spec.page is None


def test_build_query_spec_runs_full_chain():
    spec = build_query_spec(
        {"difficulty": "easy", "sort": "-price", "fields": "name", "limit": "5"},
        base_filter={"tour_id": "t1"},
    )
    assert spec.predicates == (
        FilterPredicate("tour_id", EQUALITY, "t1"),
        FilterPredicate("difficulty", EQUALITY, "easy"),
    )
    assert spec.sort == (SortKey("price", SortDirection.DESC),)
    assert spec.projection == Projection(include=("name",))
    assert spec.page == PageSpec(page=1, limit=5)

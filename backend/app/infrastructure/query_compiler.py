"""Query Compiler — turns a QuerySpec into a SQLAlchemy Select.

Invariants:
    - Only mapped column attributes are addressable; anything else → InvalidQueryError
    - Query-string values are cast to the column's Python type before binding
    - The identifier is always projected and always the last sort key (tie-breaker)
    - A QuerySpec without pagination compiles to an unbounded select
    - OFFSET/LIMIT are clamped to a signed 64-bit integer; larger pages are just empty
    - Integer columns accept any number; fractional bounds compare as floats

Design Decisions:
    - Operator vocabulary lives here, not in core: core passes operators through unvalidated
      and this layer is the "store" that rejects what it cannot run
    - Projection realised with load_only + serialisation of the projected fields only
"""

import operator
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy import Float, Select, inspect, literal
from sqlalchemy.orm import InstrumentedAttribute, load_only

from app.core.domain_types import SortDirection
from app.core.errors import InvalidQueryError
from app.core.query_features import (
    EQUALITY, IDENTIFIER_FIELD, FilterPredicate, Projection, QuerySpec, SortKey,
)

# ?price[gte]=50 → Tour.price >= 50
OPERATOR_MAP: dict[str, Callable[[Any, Any], Any]] = {
    EQUALITY: operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

# largest OFFSET/LIMIT any supported database binds
MAX_SQL_INTEGER = 2 ** 63 - 1

_TRUE_WORDS = {"true", "1", "yes"}
_FALSE_WORDS = {"false", "0", "no"}


def column_names(model: type) -> list[str]:
    """Mapped column attribute names in declaration order."""
    return [prop.key for prop in inspect(model).column_attrs]


def resolve_column(model: type, field: str) -> InstrumentedAttribute:
    if field not in column_names(model):
        raise InvalidQueryError(f"Invalid field: {field}.", field)
    return getattr(model, field)


def _python_type(attribute: InstrumentedAttribute) -> type:
    try:
        return attribute.type.python_type
    except NotImplementedError:
        return str


def _to_number(value: str) -> int | float:
    """'4' -> 4, '4.0' -> 4, '4.5' -> 4.5; beyond 64 bits -> float."""
    number = Decimal(value.strip())
    if not number.is_finite():
        raise ValueError(value)
    if abs(number) > MAX_SQL_INTEGER:
        return float(number)
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def _cast(python_type: type, value: str) -> Any:
    if python_type is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(value)
    if python_type is datetime:
        return datetime.fromisoformat(value)
    if python_type is date:
        return date.fromisoformat(value)
    if python_type is int:
        return _to_number(value)
    if python_type in (float, Decimal, uuid.UUID, str):
        return python_type(value)
    raise ValueError(f"cannot filter on {python_type.__name__}")


def coerce_value(attribute: InstrumentedAttribute, value: Any, field: str) -> Any:
    """Cast raw query-string text to the column type; typed values pass through."""
    if isinstance(value, (list, tuple)):
        return tuple(coerce_value(attribute, item, field) for item in value)
    if isinstance(value, dict):
        raise InvalidQueryError(f"Invalid {field}: nested value not supported.", field)
    if not isinstance(value, str):
        return value
    try:
        return _cast(_python_type(attribute), value)
    except (ValueError, TypeError, ArithmeticError):
        raise InvalidQueryError(f"Invalid {field}: {value}.", field)


def _bind(attribute: InstrumentedAttribute, value: Any) -> Any:
    # duration >= 4.5 must not bind 4.5 as an integer parameter
    if isinstance(value, float) and _python_type(attribute) is int:
        return literal(value, Float)
    return value


def build_condition(model: type, predicate: FilterPredicate) -> Any:
    attribute = resolve_column(model, predicate.field)
    compare = OPERATOR_MAP.get(predicate.operator)
    if compare is None:
        raise InvalidQueryError(
            f"Unsupported operator '{predicate.operator}' on {predicate.field}.",
            predicate.field,
        )
    value = coerce_value(attribute, predicate.value, predicate.field)
    if isinstance(value, tuple):
        if predicate.operator != EQUALITY:
            raise InvalidQueryError(
                f"Operator '{predicate.operator}' on {predicate.field} takes a single value.",
                predicate.field,
            )
        return attribute.in_([_bind(attribute, v) for v in value])
    return compare(attribute, _bind(attribute, value))


def build_order(model: type, sort: tuple[SortKey, ...]) -> list[Any]:
    order = []
    for key in sort:
        attribute = resolve_column(model, key.field)
        order.append(attribute.desc() if key.direction == SortDirection.DESC else attribute.asc())
    if IDENTIFIER_FIELD not in {key.field for key in sort}:
        order.append(getattr(model, IDENTIFIER_FIELD).asc())
    return order


def projected_fields(model: type, projection: Projection | None) -> list[str]:
    """Field names to return; the identifier is always included."""
    names = column_names(model)
    if projection is None:
        return names
    exclude = [f for f in projection.exclude if f != IDENTIFIER_FIELD]
    if projection.include and exclude:
        raise InvalidQueryError(
            "Projection cannot mix inclusion and exclusion.", exclude[0],
        )
    for field in (*projection.include, *exclude):
        resolve_column(model, field)
    if projection.include:
        return list(dict.fromkeys((IDENTIFIER_FIELD, *projection.include)))
    return [name for name in names if name not in exclude]


def compile_select(
    model: type, spec: QuerySpec, base: Select,
) -> tuple[Select, list[str]]:
    """Apply filter → sort → projection → pagination to base. Returns (stmt, fields)."""
    stmt = base.where(*(build_condition(model, p) for p in spec.predicates))
    stmt = stmt.order_by(*build_order(model, spec.sort))

    fields = projected_fields(model, spec.projection)
    if len(fields) < len(column_names(model)):
        stmt = stmt.options(load_only(*(getattr(model, f) for f in fields)))

    if spec.page is not None:
        stmt = stmt.offset(min(spec.page.skip, MAX_SQL_INTEGER))
        stmt = stmt.limit(min(spec.page.limit, MAX_SQL_INTEGER))
    return stmt, fields

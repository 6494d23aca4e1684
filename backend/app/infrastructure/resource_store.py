"""SQL Resource Store — one generic ResourceStore implementation over SQLAlchemy async.

Invariants:
    - Every lookup (list, by id, update, delete) honours the resource's default scope
    - Writes are validated against the resource's pydantic schema before touching the ORM
    - SQLAlchemy failures never escape raw: IntegrityError → DuplicateKeyError /
      DocumentValidationError, StaleDataError → ConcurrencyError, rest → DatabaseError
    - Every failed write rolls the session back before the error propagates
    - A write and its after_write hook share one transaction: both commit or neither does
    - Partial updates run the resource's merged check against stored values + patch
    - Reference fields arrive as ids and must all resolve before the write
    - Documents are plain dicts; internal fields are only returned when explicitly projected

Design Decisions:
    - Parametrised by ResourceDefinition instead of one subclass per resource
      (ADR: the capability set is identical, only model/schemas/hooks vary)
    - after_write hooks run after a flush, so their queries see the pending write
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Awaitable, Callable, Mapping, Sequence

from pydantic import BaseModel, ValidationError
from sqlalchemy import Select, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.domain_types import DocumentId
from app.core.errors import (
    ConcurrencyError, DatabaseError, DocumentValidationError, DuplicateKeyError,
    ErrorContext, InvalidQueryError,
)
from app.core.query_features import DEFAULT_PROJECTION, IDENTIFIER_FIELD, QuerySpec
from app.core.resource_protocols import Document
from app.infrastructure.query_compiler import (
    column_names, compile_select, projected_fields,
)

logger = logging.getLogger(__name__)

AfterWriteHook = Callable[[AsyncSession, Any], Awaitable[None]]
MergedCheck = Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class ResourceDefinition:
    """Everything the generic store needs to know about one resource."""
    name: str
    model: type
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    default_scope: Callable[[], Any] | None = None
    default_expand: tuple[str, ...] = ()
    expansion_fields: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    after_write: AfterWriteHook | None = None
    # runs on {**stored, **patch}; raises ValueError
    merged_check: MergedCheck | None = None
    # relation name -> referenced model; writes carry ids
    references: Mapping[str, type] = field(default_factory=dict)


def _validation_details(exc: ValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]


def _is_unique_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return "unique" in text or "duplicate" in text


def to_document(entity: Any, fields: Sequence[str]) -> Document:
    return {name: getattr(entity, name) for name in fields}


class SQLResourceStore:
    """ResourceStore over one AsyncSession and one ResourceDefinition."""

    def __init__(self, db: AsyncSession, resource: ResourceDefinition):
        self.db = db
        self.resource = resource

    @property
    def resource_name(self) -> str:
        return self.resource.name

    @property
    def model(self) -> type:
        return self.resource.model

    # ─── Guards ──────────────────────────────────────────────────

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncGenerator[None, None]:
        """Map SQLAlchemy failures to typed errors, rolling back first."""
        try:
            yield
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"{self.resource_name} integrity error on {operation}: {e.orig}")
            if _is_unique_violation(e):
                raise DuplicateKeyError(self.resource_name) from e
            raise DocumentValidationError(
                self.resource_name,
                [{
                    "field": "",
                    "message": "Integrity constraint violated",
                    "type": "integrity_error",
                }],
            ) from e
        except StaleDataError as e:
            await self.db.rollback()
            raise ConcurrencyError(
                f"{self.resource_name} was modified concurrently, retry the request",
                ErrorContext(resource=self.resource_name),
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{self.resource_name} database error on {operation}: {e}")
            raise DatabaseError("Database operation failed", operation) from e
        except Exception:
            await self.db.rollback()
            raise

    def _validate(
        self, schema: type[BaseModel], fields: Mapping[str, Any], partial: bool,
    ) -> dict[str, Any]:
        try:
            parsed = schema.model_validate(dict(fields))
        except ValidationError as e:
            raise DocumentValidationError(self.resource_name, _validation_details(e)) from e
        return parsed.model_dump(exclude_unset=partial)

    # ─── Select helpers ──────────────────────────────────────────

    def _base_select(self) -> Select:
        stmt = select(self.model)
        if self.resource.default_scope is not None:
            stmt = stmt.where(self.resource.default_scope())
        return stmt

    def _expansion_options(self, relations: Sequence[str]) -> list:
        known = inspect(self.model).relationships.keys()
        options = []
        for relation in relations:
            if relation not in known:
                raise InvalidQueryError(f"Invalid relation: {relation}.", relation)
            options.append(selectinload(getattr(self.model, relation)))
        return options

    def _expandable(self, relations: Sequence[str], fields: Sequence[str]) -> tuple[str, ...]:
        """Drop relations whose local key columns were projected away."""
        known = inspect(self.model).relationships
        return tuple(
            relation for relation in relations
            if relation not in known
            or all(column.key in fields for column in known[relation].local_columns)
        )

    def _related_document(self, relation: str, entity: Any) -> Document:
        fields = self.resource.expansion_fields.get(relation)
        if not fields:
            fields = projected_fields(type(entity), DEFAULT_PROJECTION)
        return to_document(entity, fields)

    def _document(
        self, entity: Any, fields: Sequence[str] | None = None,
        relations: Sequence[str] = (),
    ) -> Document:
        if fields is None:
            fields = projected_fields(self.model, DEFAULT_PROJECTION)
        document = to_document(entity, fields)
        for relation in relations:
            related = getattr(entity, relation)
            if related is None:
                document[relation] = None
            elif isinstance(related, list):
                document[relation] = [self._related_document(relation, r) for r in related]
            else:
                document[relation] = self._related_document(relation, related)
        return document

    async def _load(self, document_id: DocumentId, relations: Sequence[str] = ()) -> Any:
        stmt = (
            self._base_select()
            .where(getattr(self.model, IDENTIFIER_FIELD) == document_id)
            .options(*self._expansion_options(relations))
        )
        async with self._guard("query"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    def _check_merged(self, entity: Any, values: Mapping[str, Any]) -> None:
        if self.resource.merged_check is None:
            return
        merged = {**to_document(entity, column_names(self.model)), **values}
        try:
            self.resource.merged_check(merged)
        except ValueError as e:
            raise DocumentValidationError(
                self.resource_name,
                [{"field": "", "message": str(e), "type": "value_error"}],
            ) from e

    async def _resolve_references(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Swap reference ids for entities; every id must exist."""
        resolved = dict(values)
        for name, model in self.resource.references.items():
            if name not in values:
                continue
            ids = list(dict.fromkeys(values[name]))
            found = []
            if ids:
                stmt = select(model).where(getattr(model, IDENTIFIER_FIELD).in_(ids))
                async with self._guard("query"):
                    result = await self.db.execute(stmt)
                    found = result.scalars().all()
            by_id = {getattr(e, IDENTIFIER_FIELD): e for e in found}
            missing = [str(i) for i in ids if i not in by_id]
            if missing:
                raise DocumentValidationError(
                    self.resource_name,
                    [{
                        "field": name,
                        "message": f"Unknown {name}: {', '.join(missing)}",
                        "type": "reference_error",
                    }],
                )
            resolved[name] = [by_id[i] for i in ids]
        return resolved

    async def _commit(self, entity: Any) -> None:
        """Flush, run the after_write hook, commit. Call inside _guard."""
        if self.resource.after_write is not None:
            await self.db.flush()
            await self.resource.after_write(self.db, entity)
        await self.db.commit()

    # ─── ResourceStore ───────────────────────────────────────────

    async def find(self, spec: QuerySpec) -> list[Document]:
        stmt, fields = compile_select(self.model, spec, self._base_select())
        relations = self._expandable(self.resource.default_expand, fields)
        stmt = stmt.options(*self._expansion_options(relations))
        async with self._guard("query"):
            result = await self.db.execute(stmt)
            entities = result.scalars().all()
        return [self._document(e, fields, relations) for e in entities]

    async def find_by_id(
        self, document_id: DocumentId, expand: Sequence[str] = (),
    ) -> Document | None:
        relations = tuple(dict.fromkeys((*self.resource.default_expand, *expand)))
        entity = await self._load(document_id, relations)
        if entity is None:
            return None
        return self._document(entity, relations=relations)

    async def create(self, fields: Mapping[str, Any]) -> Document:
        values = self._validate(self.resource.create_schema, fields, partial=False)
        values = await self._resolve_references(values)
        entity = self.model(**values)
        async with self._guard("create"):
            self.db.add(entity)
            await self._commit(entity)
        return self._document(entity)

    async def update_by_id(
        self, document_id: DocumentId, fields: Mapping[str, Any],
    ) -> Document | None:
        # assigning a collection needs the current one loaded
        references = tuple(name for name in self.resource.references if name in fields)
        entity = await self._load(document_id, references)
        if entity is None:
            return None
        values = self._validate(self.resource.update_schema, fields, partial=True)
        self._check_merged(entity, values)
        values = await self._resolve_references(values)
        async with self._guard("update"):
            for name, value in values.items():
                setattr(entity, name, value)
            await self._commit(entity)
        return self._document(entity)

    async def delete_by_id(self, document_id: DocumentId) -> bool:
        entity = await self._load(document_id)
        if entity is None:
            return False
        async with self._guard("delete"):
            await self.db.delete(entity)
            await self._commit(entity)
        return True

"""
Base repository providing the database operations shared by every helpdesk model.

Repositories wrap an `AsyncSession` and never commit: they `flush()` to get
generated values (ids, conversation numbers, server timestamps) and leave
the transaction to the caller (a request dependency, a test fixture...).

Subclasses add model-specific queries and can declare:
    guarded_fields:   attributes callers may never set (e.g. folder_id)
    generated_fields: NOT NULL columns filled by other means (e.g. number)
"""
import time
import logging
from typing import TypeVar, Generic, Type, Any, ClassVar
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.database.base import Base
from helpdesk.exceptions.base import (
    RepositoryError,
    DuplicateError,
    NotFoundError,
    InvalidFieldError,
)
from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.validators.exception_validators import (
    find_unknown_model_kwargs,
    find_guarded_kwargs,
    get_required_columns,
    find_unique_conflicts,
)

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic CRUD repository.

    Type Parameters:
        ModelType: the SQLAlchemy model class this repository manages.
    """

    guarded_fields: ClassVar[frozenset[str]] = frozenset()
    generated_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _check_fields(self, operation: str, kwargs: dict) -> None:
        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                f"repo.{operation}.invalid_fields",
                extra={"model": self.model_name, "operation": operation, "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model_name}: {', '.join(unknown)}", fields=unknown
            )

        guarded = find_guarded_kwargs(kwargs, self.guarded_fields)
        if guarded:
            logger.info(
                f"repo.{operation}.guarded_fields",
                extra={"model": self.model_name, "operation": operation, "guarded_fields": sorted(guarded)},
            )
            raise InvalidFieldError(
                f"Field(s) cannot be set directly on {self.model_name}: {', '.join(guarded)}", fields=guarded
            )

    async def create(self, **kwargs) -> ModelType:
        """
        Validate, insert and flush a new entity.

        Raises:
            InvalidFieldError: unknown or guarded field names.
            RepositoryError: a required column is missing.
            DuplicateError: a unique value is already taken.
        """
        logger.debug(
            "repo.create.start",
            extra={"model": self.model_name, "operation": "create", "provided_keys": sorted(kwargs)},
        )

        self._check_fields("create", kwargs)

        required_cols = get_required_columns(self.model, exclude=self.generated_fields)
        missing = [c for c in required_cols if kwargs.get(c) is None]
        if missing:
            logger.info(
                "repo.create.missing_required",
                extra={"model": self.model_name, "operation": "create", "missing_fields": sorted(missing)},
            )
            raise RepositoryError(
                f"Missing required field(s): {', '.join(missing)} for {self.model_name}", fields=missing
            )

        conflicts = await find_unique_conflicts(self.db, self.model, kwargs)
        if conflicts:
            logger.info(
                "repo.create.duplicate_precheck",
                extra={"model": self.model_name, "operation": "create", "conflict_fields": sorted(conflicts)},
            )
            raise DuplicateError(
                f"{self.model_name} already exists for field(s): {', '.join(sorted(conflicts))}",
                fields=sorted(conflicts),
            )

        return await self.add(self.model(**kwargs))

    async def add(self, entity: ModelType) -> ModelType:
        """
        Insert an already built entity, flush and refresh it.

        Used by `create` and by subclasses that need to adjust the instance
        (derived columns) before it is written.
        """
        start = time.perf_counter()
        async with db_error_handler(self.db, self.model_name):
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model_name,
                "operation": "create",
                "id": str(getattr(entity, "id", None)),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    async def save(self, entity: ModelType) -> ModelType:
        """Flush pending changes of a loaded entity and reload server-side values."""
        async with db_error_handler(self.db, self.model_name):
            await self.db.flush()
            await self.db.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: UUID) -> ModelType | None:
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(select(self.model).where(self.model.id == entity_id))
            entity = result.scalar_one_or_none()
        logger.debug(
            "repo.get_by_id",
            extra={"model": self.model_name, "id": str(entity_id), "found": entity is not None},
        )
        return entity

    async def get_by_id_or_raise(self, entity_id: UUID) -> ModelType:
        """
        Raises:
            NotFoundError: no row with this id.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.model_name} with ID {entity_id} not found")
        return entity

    async def find_by_field(self, field: str, value: Any) -> ModelType | None:
        """
        First entity whose `field` equals `value`.

        Raises:
            InvalidFieldError: `field` is not a mapped attribute.
        """
        if find_unknown_model_kwargs(self.model, {field: value}):
            raise InvalidFieldError(f"{self.model_name} has no field '{field}'", fields=[field])

        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(self.model).where(getattr(self.model, field) == value).limit(1)
            )
            return result.scalars().first()

    async def get_all(
        self,
        offset: int = 0,                # how many rows to skip
        limit: int = 100,               # page size
        order_by: str | None = None     # field to sort by, defaults to newest first
    ) -> list[ModelType]:
        query = select(self.model)
        if order_by:
            if hasattr(self.model, order_by):
                query = query.order_by(getattr(self.model, order_by))
            else:
                logger.warning(
                    "repo.get_all.invalid_order_by",
                    extra={"model": self.model_name, "order_by": order_by},
                )
        elif hasattr(self.model, "created_at"):
            query = query.order_by(self.model.created_at.desc())

        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(query.offset(offset).limit(limit))
            entities = list(result.scalars().all())

        logger.debug("repo.get_all", extra={"model": self.model_name, "count": len(entities)})
        return entities

    async def update(self, entity_id: UUID, **kwargs) -> ModelType | None:
        """
        Set attributes on an entity and flush.

        Unlike `create`, None values are applied (they clear nullable columns).

        Returns:
            The updated entity, or None when no row has this id.

        Raises:
            InvalidFieldError: unknown or guarded field names.
            DuplicateError: the new values collide with a unique constraint.
        """
        self._check_fields("update", kwargs)

        entity = await self.get_by_id(entity_id)
        if entity is None:
            logger.warning("repo.update.not_found", extra={"model": self.model_name, "id": str(entity_id)})
            return None

        for field, value in kwargs.items():
            setattr(entity, field, value)
        await self.save(entity)

        logger.debug(
            "repo.update.success",
            extra={"model": self.model_name, "id": str(entity_id), "updated_keys": sorted(kwargs)},
        )
        return entity

    async def delete(self, entity_id: UUID) -> bool:
        """Delete by id; False when nothing matched."""
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(delete(self.model).where(self.model.id == entity_id))

        deleted = result.rowcount > 0
        if deleted:
            logger.debug("repo.delete.success", extra={"model": self.model_name, "id": str(entity_id)})
        else:
            logger.warning("repo.delete.not_found", extra={"model": self.model_name, "id": str(entity_id)})
        return deleted

    async def exists(self, entity_id: UUID) -> bool:
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(select(self.model.id).where(self.model.id == entity_id))
            return result.scalar() is not None

    async def count(self, **filters: Any) -> int:
        """
        Count rows, optionally filtered by equality (`count(mailbox_id=..., status=...)`).
        Unknown filter names and None values are ignored.
        """
        query = select(func.count(self.model.id))
        for field, value in filters.items():
            if hasattr(self.model, field) and value is not None:
                query = query.where(getattr(self.model, field) == value)

        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(query)
            return result.scalar() or 0

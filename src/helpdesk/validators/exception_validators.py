"""
Pre-insert checks used by BaseRepository.create to fail with a clear
repository error before the database rejects a row.
"""

from typing import Iterable

from sqlalchemy import UniqueConstraint, and_, inspect as sa_inspect, select


def find_unknown_model_kwargs(model, kwargs: dict) -> list[str]:
    """
    Keys of `kwargs` that are not mapped attributes (columns or relationships) of `model`.
    """
    allowed = {attr.key for attr in sa_inspect(model).attrs}
    return [k for k in kwargs if k not in allowed]


def find_guarded_kwargs(kwargs: dict, guarded: Iterable[str]) -> list[str]:
    """Keys of `kwargs` that callers are not allowed to set (e.g. 'folder_id')."""
    guarded = set(guarded)
    return [k for k in kwargs if k in guarded]


def get_required_columns(model, exclude: Iterable[str] = ()) -> list[str]:
    """
    NOT NULL columns without a client or server default.

    `exclude` lists columns filled in by other means, such as the conversation
    `number` assigned by a before_insert listener.
    """
    exclude = set(exclude)
    cols = []
    for col in model.__table__.columns:
        if col.name in exclude:
            continue
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.autoincrement is True and col.primary_key
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def get_unique_column_sets(model) -> list[list[str]]:
    """
    Column sets covered by `unique=True`, UniqueConstraint or a unique Index.
    """
    table = model.__table__
    unique_sets = [[col.name] for col in table.columns if col.unique]
    unique_sets += [
        [c.name for c in constraint.columns]
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    ]
    unique_sets += [[c.name for c in idx.columns] for idx in table.indexes if idx.unique]
    return unique_sets


async def find_unique_conflicts(db, model, kwargs: dict) -> set[str]:
    """
    Columns of `kwargs` whose values already exist under a unique constraint.

    Only sets fully present in `kwargs` are checked. Best-effort: a concurrent
    insert can still hit the constraint, which db_error_handler maps to DuplicateError.
    """
    conflicts = set()
    for cols in get_unique_column_sets(model):
        if not all(c in kwargs for c in cols):
            continue
        conditions = [getattr(model, c) == kwargs[c] for c in cols]
        result = await db.execute(select(model).where(and_(*conditions)).limit(1))
        if result.scalars().first() is not None:
            conflicts.update(cols)
    return conflicts

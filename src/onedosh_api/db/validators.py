"""
onedosh_api.db.validators

Uniqueness checks used before inserts/updates.

Responsibilities:
- Run a single existence query per check.
- Translate a hit into a `ConflictError` naming the field.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from onedosh_api.errors import ConflictError


async def ensure_unique(
    session: AsyncSession,
    column: InstrumentedAttribute[Any],
    value: Any,
    *,
    exclude_id: uuid.UUID | None = None,
    field: str | None = None,
) -> None:
    if value is None:
        return

    model = column.class_
    cond = [column == value]
    if exclude_id is not None:
        cond.append(model.id != exclude_id)
    if hasattr(model, "deleted_at"):
        cond.append(model.deleted_at.is_(None))

    taken = (await session.execute(select(exists().where(*cond)))).scalar()
    if taken:
        name = field or column.key
        raise ConflictError(f"{name} already exists", data={"field": name})

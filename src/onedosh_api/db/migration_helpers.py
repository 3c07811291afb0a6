"""
onedosh_api.db.migration_helpers

Existence checks used by Alembic revisions so each step can be re-run safely
against a partially migrated database.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


def _inspector() -> sa.Inspector:
    return sa.inspect(op.get_bind())


def has_table(name: str) -> bool:
    return _inspector().has_table(name)


def has_column(table: str, column: str) -> bool:
    if not has_table(table):
        return False
    return any(c["name"] == column for c in _inspector().get_columns(table))


def has_index(table: str, index: str) -> bool:
    if not has_table(table):
        return False
    return any(i["name"] == index for i in _inspector().get_indexes(table))


def create_table_if_missing(name: str, *columns: sa.SchemaItem) -> None:
    if not has_table(name):
        op.create_table(name, *columns)


def drop_table_if_exists(name: str) -> None:
    if has_table(name):
        op.drop_table(name)


def create_index_if_missing(name: str, table: str, columns: list[str], *, unique: bool = False) -> None:
    if not has_index(table, name):
        op.create_index(name, table, columns, unique=unique)


def drop_index_if_exists(name: str, table: str) -> None:
    if has_index(table, name):
        op.drop_index(name, table_name=table)


def timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]

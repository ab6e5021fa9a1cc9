"""Dialect-specific INSERT constructs with ON CONFLICT support."""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert(session: AsyncSession):
    """Return the `insert` construct supporting ON CONFLICT for the bound dialect, or None."""
    return _DIALECT_INSERTS.get(session.bind.dialect.name)

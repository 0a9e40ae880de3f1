"""Database bootstrap utilities.

Exposes engine construction and the answers table. The DB layer does not
leak into the field engine itself; only the SQL persistence adapter uses it.
"""

from fieldengine.db.base import dispose_engine, get_engine
from fieldengine.db.schema import answers, create_schema, metadata

__all__ = [
    "get_engine",
    "dispose_engine",
    "answers",
    "create_schema",
    "metadata",
]

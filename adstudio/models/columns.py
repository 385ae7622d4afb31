"""
Column helpers shared by the table models.
"""
from sqlalchemy import Column, JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def JSONColumn(**kwargs) -> Column:
    return Column(JSONType, **kwargs)

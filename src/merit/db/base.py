"""Declarative base shared by all ORM models."""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

# BIGINT on PostgreSQL; INTEGER on SQLite so the primary key autoincrements.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Base class for ORM models."""

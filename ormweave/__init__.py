"""ormweave: a fluent SQL query builder and a relation-aware ORM built on Pydantic."""

from .connection import Connection, connect, disconnect, get_connection
from .literals import ColumnLiteral, Literal, literal, string_literal
from .orm import (
    BelongsTo,
    BelongsToMany,
    BelongsToThrough,
    Column,
    CustomRelation,
    HasMany,
    HasManyThrough,
    HasOne,
    HasOneThrough,
    Model,
    ModelList,
    Polymorphic,
)
from .query import Query, Select, Statement

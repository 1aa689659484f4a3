from .casts import BooleanCast, Cast, FloatCast, IntSetCast, JsonCast, StringSetCast
from .column import Column, ColumnDefinition
from .model import Model, ModelMeta
from .model_list import ModelList
from .relations import (
    BelongsTo,
    BelongsToMany,
    BelongsToThrough,
    CustomRelation,
    HasMany,
    HasManyThrough,
    HasOne,
    HasOneThrough,
    Relation,
    RelationAttribute,
)
from .structure import Polymorphic, Structure, StructureRegistry, registry

__all__ = [
    "BooleanCast",
    "Cast",
    "FloatCast",
    "IntSetCast",
    "JsonCast",
    "StringSetCast",
    "Column",
    "ColumnDefinition",
    "Model",
    "ModelMeta",
    "ModelList",
    "BelongsTo",
    "BelongsToMany",
    "BelongsToThrough",
    "CustomRelation",
    "HasMany",
    "HasManyThrough",
    "HasOne",
    "HasOneThrough",
    "Relation",
    "RelationAttribute",
    "Polymorphic",
    "Structure",
    "StructureRegistry",
    "registry",
]

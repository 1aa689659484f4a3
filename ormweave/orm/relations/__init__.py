from .base import LOCAL_LINKING_KEY, Relation, RelationAttribute
from .belongs_to import BelongsTo, BelongsToRelation
from .custom import CustomRelation
from .has_many import HasMany, HasManyRelation
from .has_one import HasOne, HasOneRelation
from .through import (
    BelongsToMany,
    BelongsToManyRelation,
    BelongsToThrough,
    BelongsToThroughRelation,
    HasManyThrough,
    HasManyThroughRelation,
    HasOneThrough,
    HasOneThroughRelation,
    LinkedRelation,
    linking_table_name,
)

__all__ = [
    "LOCAL_LINKING_KEY",
    "Relation",
    "RelationAttribute",
    "BelongsTo",
    "BelongsToRelation",
    "CustomRelation",
    "HasMany",
    "HasManyRelation",
    "HasOne",
    "HasOneRelation",
    "BelongsToMany",
    "BelongsToManyRelation",
    "BelongsToThrough",
    "BelongsToThroughRelation",
    "HasManyThrough",
    "HasManyThroughRelation",
    "HasOneThrough",
    "HasOneThroughRelation",
    "LinkedRelation",
    "linking_table_name",
]

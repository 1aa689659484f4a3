from typing import Any

from ..model_list import ModelList
from .base import Relation, RelationAttribute, declaring_key_value, normalize
from .has_one import HasOneRelation


class HasManyRelation(HasOneRelation):
    """Like HasOne, but every matching reference row belongs to the result, in `order_by` order."""

    def _fetch(self, instance: Any) -> ModelList:
        if declaring_key_value(instance, self.declaring_key) is None:
            return ModelList()
        return self.query(instance).array_list()

    def eager_load(self, instances: list) -> None:
        pending = self.pending(instances)
        related = self._related_by_key(pending)
        for instance in pending:
            value = declaring_key_value(instance, self.declaring_key)
            self.store(instance, ModelList(related.get(normalize(value), []) if value is not None else []))

    def write(self, instance: Any, value: Any) -> None:
        Relation.write(self, instance, value)


class HasMany(RelationAttribute):
    relation_class = HasManyRelation

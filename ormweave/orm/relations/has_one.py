from typing import Any

from ...errors import RelationError
from .base import (
    Relation,
    RelationAttribute,
    declaring_key_value,
    declaring_values,
    find_cached,
    normalize,
    value_of,
)


class HasOneRelation(Relation):
    """The reference row holds `{declaring_table}_{declaring_pk}` pointing back at the declaring row."""

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        super().__init__(attribute, declaring_structure)
        declaring_primary_key = declaring_structure.relation_primary_key()
        self.reference_key = self.key(
            "reference_key", declaring_primary_key.as_foreign_key_for(self.reference_structure.table)
        )
        self.declaring_key = self.key("declaring_key", declaring_primary_key)

    def _fetch(self, instance: Any) -> Any:
        value = declaring_key_value(instance, self.declaring_key)
        if value is None:
            return None
        cached = find_cached(value, self.reference_structure, self.reference_key)
        if cached is not None:
            return cached
        return self.query(instance).single()

    def query(self, instance: Any) -> Any:
        query = self.reference_model.select().where(self.reference_key, value_of(instance, self.declaring_key))
        return self.ordered(query)

    def raw_query(self) -> Any:
        return self.ordered(self.reference_model.select(prepared=False).where(self.reference_key, self.declaring_key))

    def _related_by_key(self, instances: list) -> dict[str, list]:
        values = declaring_values(instances, self.declaring_key)
        related: dict[str, list] = {}
        if not values:
            return related
        query = self.ordered(self.reference_model.select().where_in(self.reference_key, values))
        for reference in query.array():
            related.setdefault(normalize(value_of(reference, self.reference_key)), []).append(reference)
        return related

    def eager_load(self, instances: list) -> None:
        pending = self.pending(instances)
        related = self._related_by_key(pending)
        for instance in pending:
            value = declaring_key_value(instance, self.declaring_key)
            matches = related.get(normalize(value), []) if value is not None else []
            self.store(instance, matches[0] if matches else None)

    def write(self, instance: Any, value: Any) -> None:
        """Move the back reference from the current counterpart to `value`; both are saved with the instance."""
        if value is not None and not isinstance(value, self.reference_model):
            raise RelationError(
                f"`{self.declaring_structure.model.__name__}.{self.name}` expects a "
                f"`{self.reference_model.__name__}`, got `{type(value).__name__}`."
            )
        column = self.reference_structure.get_property(self.reference_key.column)
        previous = self.fetch(instance)
        if previous is not None and previous is not value:
            setattr(previous, column.name, None)
            instance.backbone.save_tasks.append(previous.save)
        if value is not None:
            instance.backbone.save_tasks.append(
                lambda: _attach(value, column.name, value_of(instance, self.declaring_key))
            )
        self.store(instance, value)


def _attach(reference: Any, attribute: str, value: Any) -> None:
    setattr(reference, attribute, value)
    reference.save()


class HasOne(RelationAttribute):
    relation_class = HasOneRelation

from typing import Any

from ...errors import InvalidColumnError, RelationError
from .base import (
    Relation,
    RelationAttribute,
    declaring_key_value,
    declaring_values,
    find_cached,
    normalize,
    value_of,
)


class BelongsToRelation(Relation):
    """The declaring row holds `{reference_table}_{reference_pk}` pointing at one reference row."""

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        super().__init__(attribute, declaring_structure)
        reference_primary_key = self.reference_structure.relation_primary_key()
        self.reference_key = self.key("reference_key", reference_primary_key)
        self.declaring_key = self.key(
            "declaring_key", reference_primary_key.as_foreign_key_for(declaring_structure.table)
        )

    def _fetch(self, instance: Any) -> Any:
        value = declaring_key_value(instance, self.declaring_key)
        if value is None:
            return None
        cached = find_cached(value, self.reference_structure, self.reference_key)
        if cached is not None:
            return cached
        return self.query(instance).single()

    def query(self, instance: Any) -> Any:
        return self.reference_model.select().where(self.reference_key, value_of(instance, self.declaring_key))

    def raw_query(self) -> Any:
        return self.reference_model.select(prepared=False).where(self.reference_key, self.declaring_key)

    def eager_load(self, instances: list) -> None:
        pending = self.pending(instances)
        found: dict[str, Any] = {}
        missing = []
        for value in declaring_values(pending, self.declaring_key):
            cached = find_cached(value, self.reference_structure, self.reference_key)
            if cached is None:
                missing.append(value)
            else:
                found[normalize(value)] = cached
        if missing:
            for reference in self.reference_model.select().where_in(self.reference_key, missing).array():
                found.setdefault(normalize(value_of(reference, self.reference_key)), reference)
        for instance in pending:
            value = declaring_key_value(instance, self.declaring_key)
            self.store(instance, None if value is None else found.get(normalize(value)))

    def write(self, instance: Any, value: Any) -> None:
        """Point the foreign key column at `value` (or clear it with None)."""
        if value is not None and not isinstance(value, self.reference_model):
            raise RelationError(
                f"`{self.declaring_structure.model.__name__}.{self.name}` expects a "
                f"`{self.reference_model.__name__}`, got `{type(value).__name__}`."
            )
        column = self.declaring_structure.column_for_key(self.declaring_key.column)
        if column is None:
            raise InvalidColumnError(
                f"`{self.declaring_structure.model.__name__}` has no column `{self.declaring_key.column}` "
                f"to store relation `{self.name}`."
            )
        setattr(instance, column.name, None if value is None else value_of(value, self.reference_key))
        self.store(instance, value)


class BelongsTo(RelationAttribute):
    relation_class = BelongsToRelation

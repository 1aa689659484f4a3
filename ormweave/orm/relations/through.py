"""Relations that reach the reference table over a linking table.

Every kind here joins the linking table to the reference table and filters
on a linking-table column holding the declaring instance's key. Eager
loading selects that column as `__local_linking_key` and matches each row
to its parent by it.
"""

from typing import Any, ClassVar

from ...literals import ColumnLiteral
from ..model_list import ModelList
from .base import (
    LOCAL_LINKING_KEY,
    Relation,
    RelationAttribute,
    declaring_key_value,
    declaring_values,
    hydrate_linked,
    normalize,
    value_of,
)

_LINKED_KEYS = ("declaring_key", "declaring_linking_key", "reference_key", "reference_linking_key")


class LinkedRelation(Relation):
    """Shared behaviour of the link-table and through relations.

    Subclasses set `linking_table`, the four keys and `join_on`, the pair
    of columns joining the linking table to the reference table.
    """

    many: ClassVar[bool] = True

    linking_table: str
    declaring_key: ColumnLiteral
    declaring_linking_key: ColumnLiteral
    reference_key: ColumnLiteral
    reference_linking_key: ColumnLiteral
    join_on: tuple[ColumnLiteral, ColumnLiteral]

    def _joined(self, query: Any) -> Any:
        return self.ordered(query.join(self.linking_table, lambda q: q.on(*self.join_on)))

    def _empty(self) -> Any:
        return ModelList() if self.many else None

    def _fetch(self, instance: Any) -> Any:
        if declaring_key_value(instance, self.declaring_key) is None:
            return self._empty()
        if self.many:
            return self.query(instance).array_list()
        return self.query(instance).single()

    def query(self, instance: Any) -> Any:
        query = self._joined(self.reference_model.select())
        return query.where(self.declaring_linking_key, value_of(instance, self.declaring_key))

    def raw_query(self) -> Any:
        query = self._joined(self.reference_model.select(prepared=False))
        return query.where(self.declaring_linking_key, self.declaring_key)

    def eager_load(self, instances: list) -> None:
        pending = self.pending(instances)
        values = declaring_values(pending, self.declaring_key)
        related: dict[str, list] = {}
        if values:
            select = [self.reference_model.col("*"), (self.declaring_linking_key, LOCAL_LINKING_KEY)]
            query = self._joined(self.reference_model.select(select)).where_in(self.declaring_linking_key, values)
            for key, reference in hydrate_linked(self.reference_structure, query):
                related.setdefault(normalize(key), []).append(reference)
        for instance in pending:
            value = declaring_key_value(instance, self.declaring_key)
            matches = related.get(normalize(value), []) if value is not None else []
            if self.many:
                self.store(instance, ModelList(matches))
            else:
                self.store(instance, matches[0] if matches else None)


class BelongsToManyRelation(LinkedRelation):
    """Many-to-many over a plain link table named after both tables, e.g. `role_user`."""

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        super().__init__(attribute, declaring_structure)
        self.linking_table = attribute.linking_table or linking_table_name(
            declaring_structure.table, self.reference_structure.table
        )
        declaring_primary_key = declaring_structure.relation_primary_key()
        reference_primary_key = self.reference_structure.relation_primary_key()
        self.declaring_key = self.key("declaring_key", declaring_primary_key)
        self.declaring_linking_key = self.key(
            "declaring_linking_key", declaring_primary_key.as_foreign_key_for(self.linking_table)
        )
        self.reference_key = self.key("reference_key", reference_primary_key.as_foreign_key_for(self.linking_table))
        self.reference_linking_key = self.key("reference_linking_key", reference_primary_key)
        self.join_on = (self.reference_linking_key, self.reference_key)


class HasManyThroughRelation(LinkedRelation):
    """declaring -> linking model -> reference, e.g. country -> user -> post."""

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        super().__init__(attribute, declaring_structure)
        linking_structure = declaring_structure.registry.get(attribute.linking_model())
        self.linking_table = linking_structure.table
        declaring_primary_key = declaring_structure.relation_primary_key()
        linking_primary_key = linking_structure.relation_primary_key()
        self.declaring_key = self.key("declaring_key", declaring_primary_key)
        self.declaring_linking_key = self.key(
            "declaring_linking_key", declaring_primary_key.as_foreign_key_for(self.linking_table)
        )
        self.reference_linking_key = self.key("reference_linking_key", linking_primary_key)
        self.reference_key = self.key(
            "reference_key", linking_primary_key.as_foreign_key_for(self.reference_structure.table)
        )
        self.join_on = (self.reference_key, self.reference_linking_key)


class HasOneThroughRelation(HasManyThroughRelation):
    many = False


class BelongsToThroughRelation(LinkedRelation):
    """The inverse of HasOneThrough, e.g. post -> user -> country."""

    many = False

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        super().__init__(attribute, declaring_structure)
        linking_structure = declaring_structure.registry.get(attribute.linking_model())
        self.linking_table = linking_structure.table
        linking_primary_key = linking_structure.relation_primary_key()
        reference_primary_key = self.reference_structure.relation_primary_key()
        self.declaring_key = self.key("declaring_key", linking_primary_key.as_foreign_key_for(declaring_structure.table))
        self.declaring_linking_key = self.key("declaring_linking_key", linking_primary_key)
        self.reference_linking_key = self.key(
            "reference_linking_key", reference_primary_key.as_foreign_key_for(self.linking_table)
        )
        self.reference_key = self.key("reference_key", reference_primary_key)
        self.join_on = (self.reference_linking_key, self.reference_key)


def linking_table_name(declaring_table: str, reference_table: str) -> str:
    """Default link table: both table names, sorted, joined by `_`."""
    return "_".join(sorted([declaring_table, reference_table]))


class BelongsToMany(RelationAttribute):
    relation_class = BelongsToManyRelation
    key_options = _LINKED_KEYS

    def __init__(self, reference: Any = None, *, linking_table: str = None, **options: Any):
        super().__init__(reference, **options)
        self.linking_table = linking_table


class _Through(RelationAttribute):
    key_options = _LINKED_KEYS

    def __init__(self, reference: Any = None, *, through: Any, **options: Any):
        super().__init__(reference, **options)
        self.through = through

    def linking_model(self) -> type:
        from ...utils.find_model import resolve_model  # pylint: disable=import-outside-toplevel

        return resolve_model(self.through)


class HasManyThrough(_Through):
    relation_class = HasManyThroughRelation


class HasOneThrough(_Through):
    relation_class = HasOneThroughRelation


class BelongsToThrough(_Through):
    relation_class = BelongsToThroughRelation

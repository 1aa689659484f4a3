"""Relation declarations and the strategy objects they resolve to.

A declaration (`posts = HasMany("Post")`) is a class attribute shared by a
model and its subclasses. The first time a model uses it, the model's
structure resolves it into a Relation bound to that model, with its key
columns worked out once.
"""

from abc import ABC, abstractmethod
from numbers import Number
from typing import Any, ClassVar, Iterable, Optional

from ...errors import ImmutableRelationError, ReferenceModelMissingError
from ...literals import ColumnLiteral
from ...query.statement import Statement

LOCAL_LINKING_KEY = "__local_linking_key"


class RelationAttribute:
    """Declares a relation on a model class; reading it on an instance fetches the related value(s)."""

    relation_class: ClassVar[type["Relation"]]
    key_options: ClassVar[tuple[str, ...]] = ("declaring_key", "reference_key")
    requires_reference: ClassVar[bool] = True

    def __init__(self, reference: Any = None, *, eager_load: bool = False, order_by: Any = None, **keys: Optional[str]):
        unknown = set(keys) - set(self.key_options)
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected key option(s): {', '.join(sorted(unknown))}")
        self.reference = reference
        self.eager_load = eager_load
        self.order_by = order_by
        self.keys = keys
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.relation(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reference!r})"

    def create_relation(self, structure: Any) -> "Relation":
        if self.requires_reference and self.reference is None:
            raise ReferenceModelMissingError(structure.model, self.name)
        return self.relation_class(self, structure)


class Relation(ABC):
    """How one relation of one model is fetched, queried and eager loaded."""

    def __init__(self, attribute: RelationAttribute, declaring_structure: Any):
        from ...utils.find_model import resolve_model  # pylint: disable=import-outside-toplevel

        self.attribute = attribute
        self.name = attribute.name
        self.declaring_structure = declaring_structure
        self.grammar = declaring_structure.grammar
        self.reference_structure = None
        if attribute.reference is not None:
            self.reference_structure = declaring_structure.registry.get(resolve_model(attribute.reference))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.declaring_structure.model.__name__}.{self.name}>"

    @property
    def reference_model(self) -> type:
        return self.reference_structure.model

    def key(self, option: str, default: ColumnLiteral) -> ColumnLiteral:
        return compose_key(self.grammar, self.attribute.keys.get(option), default)

    def fetch(self, instance: Any) -> Any:
        """Return the related value(s), from the instance's relation cache when already loaded."""
        relation_cache = instance.backbone.relation_cache
        if self.name not in relation_cache:
            relation_cache[self.name] = self._fetch(instance)
        return relation_cache[self.name]

    @abstractmethod
    def _fetch(self, instance: Any) -> Any:
        """Load the related value(s) for one instance."""

    @abstractmethod
    def query(self, instance: Any) -> Any:
        """Prepared query selecting the related rows of one instance."""

    @abstractmethod
    def raw_query(self) -> Any:
        """Unprepared query relating the reference table to the declaring table by column, for `exists`."""

    @abstractmethod
    def eager_load(self, instances: list) -> None:
        """Fill the relation cache of every instance with as few queries as possible."""

    def write(self, instance: Any, value: Any) -> None:
        raise ImmutableRelationError(self.declaring_structure.model, self.name)

    # helpers shared by the relation kinds

    def pending(self, instances: Iterable[Any]) -> list:
        """Instances whose relation cache does not hold this relation yet."""
        return [instance for instance in instances if self.name not in instance.backbone.relation_cache]

    def ordered(self, query: Any) -> Any:
        return query.conditional(self.attribute.order_by is not None, lambda q: q.order_by(self.attribute.order_by))

    def store(self, instance: Any, value: Any) -> None:
        instance.backbone.relation_cache[self.name] = value


def compose_key(grammar: Any, option: Optional[str], default: ColumnLiteral) -> ColumnLiteral:
    """Use the declared key ("column" or "table.column") or fall back to the default one."""
    if option is None:
        return default
    table, _, column = option.rpartition(".")
    return ColumnLiteral(grammar=grammar, column=column, table=table or default.table)


def value_of(instance: Any, key: ColumnLiteral) -> Any:
    """Value of the column `key` on an instance, looked up by database key."""
    column = type(instance).structure().column_for_key(key.column)
    if column is None:
        return instance.backbone.extras.get(key.column)
    return instance.__dict__.get(column.name)


def declaring_key_value(instance: Any, key: ColumnLiteral) -> Any:
    """Like value_of(), but None and 0 both mean "no relation"."""
    value = value_of(instance, key)
    if value is None or (isinstance(value, Number) and not isinstance(value, bool) and value == 0):
        return None
    return value


def declaring_values(instances: Iterable[Any], key: ColumnLiteral) -> list:
    """Distinct related key values of the instances, in order of appearance."""
    values = {}
    for instance in instances:
        value = declaring_key_value(instance, key)
        if value is not None:
            values.setdefault(normalize(value), value)
    return list(values.values())


def normalize(value: Any) -> str:
    """Key used to match rows to instances; driver types may differ between tables."""
    return str(value)


def find_cached(value: Any, structure: Any, key: ColumnLiteral) -> Any:
    """Find a cached instance of the structure's model whose `key` column equals value."""
    cache = structure.connection.cache
    wanted = normalize(value)
    for model in structure.identity_models():
        if len(structure.primary_key) == 1 and structure.primary_key[0].key == key.column:
            instance = cache.get(model, value)
        else:
            instance = cache.find(model, lambda candidate: normalize(value_of(candidate, key)) == wanted)
        if instance is not None:
            return instance
    return None


def hydrate_linked(structure: Any, query: Any) -> list[tuple[Any, Any]]:
    """Run a model query selecting LOCAL_LINKING_KEY and pair every hydrated instance with its row's key.

    The key is taken from the row itself, so a related instance shared by
    several parents (and therefore cached once) is paired with each of them.
    """
    statement = query.statement()
    rows = Statement(statement.connection, statement.sql, statement.params).array()
    pairs = [(row.get(LOCAL_LINKING_KEY), structure.create_instance(row)) for row in rows]
    instances = list({id(instance): instance for _, instance in pairs}.values())
    structure.eager_load_relations(instances)
    return pairs

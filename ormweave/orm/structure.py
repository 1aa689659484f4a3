"""Structure: per-model metadata (table, columns, relations, polymorphism), built once per class."""

import logging
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from ..errors import (
    InvalidModelError,
    MissingPolymorphicDiscriminatorError,
    MissingPropertyError,
    StructureError,
)
from ..literals import ColumnLiteral
from ..logger import EagerLoadEvent
from .column import ColumnDefinition
from .relations.base import RelationAttribute

logger = logging.getLogger("ormweave")


class Polymorphic(BaseModel):
    """Discriminator column and the subtype each of its values maps to (class or class name)."""

    model_config = {"arbitrary_types_allowed": True}

    column: str
    map: dict[Any, Any] = Field(default_factory=dict)


class ModelOptions(BaseModel):
    """Class keywords of a model, after inheritance."""

    model_config = {"arbitrary_types_allowed": True}

    table: Optional[str] = None
    connection: str = "default"
    polymorphic: Optional[Polymorphic] = None
    polymorphic_parent: Optional[type] = None
    soft_delete: Optional[str] = None
    on_duplicate_key_update: Optional[list[str]] = None


def _split_relation_names(names: Iterable[str]) -> tuple[set[str], dict[str, list[str]]]:
    """Split "posts.comments" style names into top-level names and nested names per top level."""
    top: set[str] = set()
    nested: dict[str, list[str]] = {}
    for name in names:
        head, _, rest = name.partition(".")
        top.add(head)
        if rest:
            nested.setdefault(head, []).append(rest)
    return top, nested


class Structure:
    """Everything the engine knows about one model class."""

    def __init__(self, model: type, registry: "StructureRegistry"):
        options: ModelOptions = model.__model_options__
        self.model = model
        self.registry = registry
        self.table = options.table
        self.connection_name = options.connection
        self.polymorphic = options.polymorphic
        self.soft_delete_column = options.soft_delete
        self.on_duplicate_key_update = options.on_duplicate_key_update
        self.parent: Optional[Structure] = (
            registry.get(options.polymorphic_parent) if options.polymorphic_parent is not None else None
        )
        self.columns: dict[str, ColumnDefinition] = {
            name: ColumnDefinition.from_pydantic_info(name, info) for name, info in model.model_fields.items()
        }
        self._columns_by_key: dict[str, ColumnDefinition] = {}
        for column in self.columns.values():
            self._columns_by_key[column.key] = column
            if column.alias:
                self._columns_by_key.setdefault(column.alias, column)
        self.primary_key: list[ColumnDefinition] = [column for column in self.columns.values() if column.primary_key]
        if not self.primary_key and "id" in self.columns:
            self.primary_key = [self.columns["id"]]
        self.relation_attributes: dict[str, RelationAttribute] = {}
        for klass in reversed(model.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, RelationAttribute):
                    self.relation_attributes[name] = value
        self._relations: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<Structure {self.model.__name__} table={self.table!r}>"

    # connection

    @property
    def connection(self):
        from ..connection import get_connection  # pylint: disable=import-outside-toplevel

        return get_connection(self.connection_name)

    @property
    def grammar(self):
        return self.connection.grammar

    # columns

    def get_property(self, name: str) -> ColumnDefinition:
        """Find a column by attribute name, database key or alias."""
        column = self.columns.get(name) or self._columns_by_key.get(name)
        if column is None:
            raise MissingPropertyError(self.model, name)
        return column

    def column_for_key(self, key: str) -> Optional[ColumnDefinition]:
        return self._columns_by_key.get(key) or self.columns.get(key)

    def has_column(self, name: str) -> bool:
        return name in self.columns or name in self._columns_by_key

    def has_property(self, name: str) -> bool:
        return self.has_column(name) or name in self.relation_attributes

    def is_primary_key(self, name: str) -> bool:
        return any(column.name == name for column in self.primary_key)

    def get_column(self, name: str, table: Optional[str] = None) -> ColumnLiteral:
        """Return the escaped reference to a column (or `*`) of this model's table."""
        key = name if name == "*" else self.get_property(name).key
        return ColumnLiteral(grammar=self.grammar, column=key, table=table or self.table)

    def primary_key_literals(self) -> list[ColumnLiteral]:
        if not self.primary_key:
            raise StructureError(f"`{self.model.__name__}` has no primary key.")
        return [self.get_column(column.name) for column in self.primary_key]

    def relation_primary_key(self) -> ColumnLiteral:
        """The column relations point at: the first primary key column."""
        return self.primary_key_literals()[0]

    def soft_delete_literal(self) -> Optional[ColumnLiteral]:
        if self.soft_delete_column is None:
            return None
        return ColumnLiteral(grammar=self.grammar, column=self.soft_delete_column, table=self.table)

    def primary_key_from_row(self, row: dict[str, Any]) -> Optional[tuple]:
        values = []
        for column in self.primary_key:
            value = row.get(column.key)
            if value is None:
                return None
            values.append(value)
        return tuple(values) if values else None

    def primary_key_of(self, instance: Any) -> Optional[tuple]:
        values = []
        for column in self.primary_key:
            value = instance.__dict__.get(column.name)
            if value is None:
                return None
            values.append(value)
        return tuple(values) if values else None

    # polymorphism

    def discriminator_value_for(self, model: type) -> Any:
        """Return the discriminator value mapped to `model` in this structure's polymorphic map."""
        from ..utils.find_model import resolve_model  # pylint: disable=import-outside-toplevel

        for value, target in self.polymorphic.map.items():
            if resolve_model(target) is model:
                return value
        return None

    def identity_models(self) -> list[type]:
        """Classes whose cached instances can stand for this model: itself and its mapped subtypes."""
        from ..utils.find_model import resolve_model  # pylint: disable=import-outside-toplevel

        models = [self.model]
        if self.polymorphic is not None:
            for target in self.polymorphic.map.values():
                subtype = resolve_model(target)
                if subtype not in models:
                    models.append(subtype)
        return models

    def subtype_for(self, row: dict[str, Any]) -> type:
        from ..utils.find_model import resolve_model  # pylint: disable=import-outside-toplevel

        column = self.polymorphic.column
        if column not in row:
            raise MissingPolymorphicDiscriminatorError(self.model, column)
        value = row[column]
        target = self.polymorphic.map.get(value)
        if target is None and value is not None:
            target = self.polymorphic.map.get(str(value))
        if target is None:
            return self.model
        return resolve_model(target)

    # hydration

    def create_instance(self, row: dict[str, Any]) -> Any:
        """Turn a row into a model instance, reusing the cached one for the same primary key."""
        if self.polymorphic is not None:
            subtype = self.subtype_for(row)
            if subtype is not self.model:
                return self.registry.get(subtype).create_instance(row)
        cache = self.connection.cache
        primary_key = self.primary_key_from_row(row)
        if primary_key is not None:
            cached = cache.get(self.model, primary_key)
            if cached is not None:
                cached.backbone.refresh_extras(row)
                return cached
        instance = self.model.make_instance(row)
        if primary_key is not None:
            cache.set(self.model, primary_key, instance)
        return instance

    # relations

    def get_relation(self, name: str) -> Any:
        relation = self._relations.get(name)
        if relation is None:
            attribute = self.relation_attributes.get(name)
            if attribute is None:
                raise MissingPropertyError(self.model, name)
            relation = self._relations[name] = attribute.create_relation(self)
        return relation

    def relation_names(self) -> list[str]:
        return list(self.relation_attributes)

    @staticmethod
    def _should_load(attribute: RelationAttribute, name: str, enabled: set[str], disabled: set[str]) -> bool:
        if name in disabled:
            return False
        return attribute.eager_load or name in enabled

    def eager_load_relations(
        self,
        instances: list,
        enabled: Iterable[str] = (),
        disabled: Iterable[str] = (),
    ) -> None:
        """Load every eager relation, plus `enabled` minus `disabled`, for all instances at once.

        Polymorphic batches first load the base relations for everyone, then
        the subtype-only relations per subtype group.
        """
        if self.parent is not None:
            self.parent.eager_load_relations(instances, enabled, disabled)
            return
        if not instances:
            return
        enabled, nested = _split_relation_names(enabled)
        disabled = set(disabled)
        loaded: set[str] = set()
        for name, attribute in self.relation_attributes.items():
            if self._should_load(attribute, name, enabled, disabled):
                self.eager_load_relation(name, instances, nested.get(name, ()))
                loaded.add(name)
        if self.polymorphic is None:
            unknown = enabled - loaded - disabled
            if unknown:
                raise MissingPropertyError(self.model, sorted(unknown)[0])
            return
        groups: dict[type, list] = {}
        for instance in instances:
            groups.setdefault(type(instance), []).append(instance)
        for model, group in groups.items():
            if model is self.model:
                continue
            structure = self.registry.get(model)
            for name, attribute in structure.relation_attributes.items():
                if name in loaded or not self._should_load(attribute, name, enabled, disabled):
                    continue
                structure.eager_load_relation(name, group, nested.get(name, ()))

    def eager_load_relation(self, name: str, instances: list, nested: Iterable[str] = ()) -> None:
        relation = self.get_relation(name)
        query_logger = self.connection.logger
        before = query_logger.count()
        relation.eager_load(instances)
        query_logger.log(
            EagerLoadEvent(model=self.model.__name__, relation=name, query_count=query_logger.count() - before)
        )
        nested = list(nested)
        if not nested or relation.reference_structure is None:
            return
        related: dict[int, Any] = {}
        for instance in instances:
            value = instance.backbone.relation_cache.get(name)
            if value is None:
                continue
            for item in value if isinstance(value, list) else [value]:
                related[id(item)] = item
        if related:
            relation.reference_structure.eager_load_relations(list(related.values()), nested)


class StructureRegistry:
    """Builds and memoizes one Structure per model class."""

    def __init__(self):
        self._structures: dict[type, Structure] = {}

    def get(self, model: type) -> Structure:
        structure = self._structures.get(model)
        if structure is None:
            if not isinstance(model, type) or getattr(model, "__model_options__", None) is None:
                raise InvalidModelError(f"{model!r} is not a model class.")
            structure = self._structures[model] = Structure(model, self)
        return structure

    def clear(self) -> None:
        self._structures.clear()


registry = StructureRegistry()

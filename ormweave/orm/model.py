"""Model base class: pydantic models mapped to database tables."""

import datetime
import logging
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic._internal._model_construction import ModelMetaclass

from ..cache import Cache
from ..errors import ImmutableError, NotFoundError
from ..literals import ColumnLiteral
from ..query import Query
from .backbone import Backbone
from .hydratable import Hydratable
from .model_list import ModelList
from .relations.base import RelationAttribute
from .structure import ModelOptions, Structure, registry

logger = logging.getLogger("ormweave")


class ModelMeta(ModelMetaclass):
    """Metaclass for Model: reads the table options given as class keywords.

    Options not given are inherited from the first model base; a subclass
    of a polymorphic model becomes one of its subtypes.
    """

    def __new__(mcs, name, bases, namespace,
                table: Optional[str] = None,
                connection: Optional[str] = None,
                polymorphic: Any = None,
                soft_delete: Optional[str] = None,
                on_duplicate_key_update: Optional[list[str]] = None,
                **kwargs):
        result = super().__new__(mcs, name, bases, namespace, **kwargs)
        if not any(isinstance(base, ModelMeta) for base in bases):
            result.__model_options__ = None
            return result
        parent = next((base for base in bases if getattr(base, "__model_options__", None) is not None), None)
        inherited = parent.__model_options__ if parent is not None else ModelOptions()
        polymorphic_parent = None
        if polymorphic is None and parent is not None:
            polymorphic_parent = parent if inherited.polymorphic is not None else inherited.polymorphic_parent
        result.__model_options__ = ModelOptions(
            table=table or inherited.table or name.lower(),
            connection=connection or inherited.connection,
            polymorphic=polymorphic,
            polymorphic_parent=polymorphic_parent,
            soft_delete=soft_delete or inherited.soft_delete,
            on_duplicate_key_update=on_duplicate_key_update or inherited.on_duplicate_key_update,
        )
        return result


def _as_set(fields: Union[str, Iterable[str]]) -> set[str]:
    return {fields} if isinstance(fields, str) else set(fields)


def _publish(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_dict()
    if isinstance(value, list):
        return [_publish(item) for item in value]
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


class Model(Hydratable, BaseModel, metaclass=ModelMeta):
    """Base class for table models.

    Columns are pydantic fields, optionally annotated with `Column(...)`;
    relations are RelationAttribute class attributes. Class methods build
    queries bound to the model; instances track their modified columns and
    loaded relations in a Backbone.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, ignored_types=(RelationAttribute,))

    _backbone: Optional[Backbone] = PrivateAttr(default=None)

    def __eq__(self, other: Any) -> bool:
        """Compare instances by class and primary key."""
        if not isinstance(other, Model):
            return NotImplemented
        if self is other:
            return True
        key = self.structure().primary_key_of(self)
        return type(self) is type(other) and key is not None and key == other.structure().primary_key_of(other)

    def __hash__(self):
        key = self.structure().primary_key_of(self)
        if key is None:
            return id(self)
        return hash((self.__class__, key))

    def __deepcopy__(self, memo):
        """Return self to avoid copying model instances."""
        return self

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            super().__setattr__(name, value)
            return
        structure = self.structure()
        if name in structure.relation_attributes:
            structure.get_relation(name).write(self, value)
            return
        column = structure.columns.get(name)
        if column is not None and not self.backbone.is_new and (column.immutable or structure.is_primary_key(name)):
            raise ImmutableError(type(self), name)
        super().__setattr__(name, value)
        if column is not None:
            self.backbone.modified.add(name)

    # structure

    @classmethod
    def structure(cls) -> Structure:
        return registry.get(cls)

    @classmethod
    def connection(cls):
        return cls.structure().connection

    @classmethod
    def cache(cls) -> Cache:
        return cls.connection().cache

    @classmethod
    def table(cls) -> str:
        return cls.structure().table

    @classmethod
    def col(cls, key: str, table: Optional[str] = None) -> ColumnLiteral:
        """Escaped reference to one of this model's columns, or `*`."""
        return cls.structure().get_column(key, table)

    # querying

    @classmethod
    def query(cls, prepared: bool = True) -> Query:
        return cls.connection().query(prepared).with_model(cls)

    @classmethod
    def _base_select(cls, keyword: str, keys: Any, prepared: bool) -> Query:
        structure = cls.structure()
        query = getattr(cls.query(prepared), keyword)(keys).from_(structure.table)
        parent = structure.parent
        if parent is not None and parent.polymorphic is not None:
            discriminator = parent.discriminator_value_for(cls)
            if discriminator is not None:
                query.where(ColumnLiteral(grammar=structure.grammar, column=parent.polymorphic.column, table=structure.table), discriminator)
        return query

    @classmethod
    def select(cls, keys: Any = None, prepared: bool = True) -> Query:
        """`select <keys> from <table>`; no keys selects every column of the table."""
        return cls._base_select("select", keys, prepared)

    @classmethod
    def select_distinct(cls, keys: Any = None, prepared: bool = True) -> Query:
        return cls._base_select("select_distinct", keys, prepared)

    @classmethod
    def select_found_rows(cls, keys: Any = None, prepared: bool = True) -> Query:
        return cls._base_select("select_found_rows", keys, prepared)

    @classmethod
    def select_suffix(cls, suffix: str, keys: Any = None, prepared: bool = True) -> Query:
        return cls.query(prepared).select_suffix(suffix, keys).from_(cls.table())

    @classmethod
    def where(cls, *args: Any) -> Query:
        return cls.select().where(*args)

    @classmethod
    def where_in(cls, field: Any, values: Any) -> Query:
        return cls.select().where_in(field, values)

    @classmethod
    def where_not_in(cls, field: Any, values: Any) -> Query:
        return cls.select().where_not_in(field, values)

    @classmethod
    def where_null(cls, field: Any) -> Query:
        return cls.select().where_null(field)

    @classmethod
    def where_not_null(cls, field: Any) -> Query:
        return cls.select().where_not_null(field)

    @classmethod
    def where_exists(cls, query: Query) -> Query:
        return cls.select().where_exists(query)

    @classmethod
    def where_not_exists(cls, query: Query) -> Query:
        return cls.select().where_not_exists(query)

    @classmethod
    def where_has(cls, relation: str, fn: Optional[Callable[[Query], Any]] = None) -> Query:
        return cls.select().where_has(relation, fn)

    @classmethod
    def having(cls, *args: Any) -> Query:
        return cls.select().having(*args)

    # lookups by primary key

    @classmethod
    def _cached(cls, primary_key: Any) -> Optional["Model"]:
        cache = cls.cache()
        for model in cls.structure().identity_models():
            instance = cache.get(model, primary_key)
            if instance is not None:
                return instance
        return None

    @classmethod
    def get(cls, primary_key: Any) -> Optional["Model"]:
        """Return the instance with this primary key (a tuple for composite keys), or None."""
        cached = cls._cached(primary_key)
        if cached is not None:
            return cached
        return cls.select().where_primary_key(cls, primary_key).single()

    @classmethod
    def get_or_fail(cls, primary_key: Any) -> "Model":
        instance = cls.get(primary_key)
        if instance is None:
            raise NotFoundError(cls, primary_key)
        return instance

    @classmethod
    def find(cls, primary_keys: Iterable[Any]) -> ModelList:
        """Return the instances for these primary keys, in the given order, skipping missing ones."""
        primary_keys = list(primary_keys)
        found: dict[str, Model] = {}
        missing = []
        for primary_key in primary_keys:
            cached = cls._cached(primary_key)
            if cached is None:
                missing.append(primary_key)
            else:
                found[Cache.key(primary_key)] = cached
        if missing:
            structure = cls.structure()
            for instance in cls.select().where_primary_key_in(cls, missing).array():
                found[Cache.key(structure.primary_key_of(instance))] = instance
        return ModelList(found[key] for key in map(Cache.key, primary_keys) if key in found)

    @classmethod
    def all(cls, offset: int = 0, limit: int = 20) -> ModelList:
        return cls.select().limit(limit, offset).array_list()

    @classmethod
    def exists(cls, primary_key: Any) -> bool:
        if cls._cached(primary_key) is not None:
            return True
        return cls.select().where_primary_key(cls, primary_key).result_count() > 0

    @classmethod
    def _encode(cls, values: dict[str, Any]) -> dict[str, Any]:
        structure = cls.structure()
        pairs = {}
        for name, value in values.items():
            column = structure.get_property(name)
            pairs[column.key] = column.encode(value)
        return pairs

    @classmethod
    def update(cls, primary_key: Any, values: dict[str, Any]) -> int:
        """Update columns of one row by primary key; a cached instance takes the new values too."""
        structure = cls.structure()
        count = cls.query().update(structure.table, cls._encode(values)).where_primary_key(cls, primary_key).run()
        cached = cls._cached(primary_key)
        if cached is not None:
            for name, value in values.items():
                cached.__dict__[structure.get_property(name).name] = value
        return count

    @classmethod
    def delete(cls, primary_key: Any) -> int:
        """Delete one row by primary key; soft-deleting models only stamp their soft-delete column."""
        structure = cls.structure()
        if structure.soft_delete_column is not None:
            count = cls.update(primary_key, {structure.soft_delete_column: datetime.datetime.now()})
        else:
            count = cls.query().delete_from(structure.table).where_primary_key(cls, primary_key).run()
        cache = cls.cache()
        for model in structure.identity_models():
            cache.unset(model, primary_key)
        logger.debug("Deleted %s %r", cls.__name__, primary_key)
        return count

    # instance state

    @property
    def backbone(self) -> Backbone:
        backbone = self._backbone
        if backbone is None:
            backbone = self._backbone = Backbone(self.structure(), is_new=True)
        return backbone

    @property
    def is_new(self) -> bool:
        return self.backbone.is_new

    def is_modified(self) -> bool:
        return bool(self.backbone.modified)

    @property
    def primary_key_value(self) -> Any:
        """The primary key: a single value, a tuple for composite keys, or None when unset."""
        key = self.structure().primary_key_of(self)
        if key is None or len(key) > 1:
            return key
        return key[0]

    # relations

    def relation(self, name: str) -> Any:
        """Value of a relation, loaded on first access."""
        return self.structure().get_relation(name).fetch(self)

    def query_relation(self, name: str) -> Query:
        """A query selecting this instance's related rows, to refine further."""
        return self.structure().get_relation(name).query(self)

    # persistence

    def _stamp_discriminator(self, structure: Structure) -> None:
        parent = structure.parent
        if parent is None or parent.polymorphic is None:
            return
        column = structure.column_for_key(parent.polymorphic.column)
        if column is not None and self.__dict__.get(column.name) is None:
            value = parent.discriminator_value_for(type(self))
            if value is not None:
                self.__dict__[column.name] = value

    def _insert(self, structure: Structure) -> None:
        self._stamp_discriminator(structure)
        backbone = self.backbone
        explicit = self.model_fields_set | backbone.modified
        pairs = {}
        for column in structure.columns.values():
            if column.computed:
                continue
            value = self.__dict__.get(column.name)
            if value is None and column.name not in explicit:
                continue
            if value is None and structure.is_primary_key(column.name):
                continue
            pairs[column.key] = column.encode(value)
        query = type(self).query().insert_into_values(structure.table, pairs)
        if structure.on_duplicate_key_update:
            query.on_duplicate_key_update(structure.on_duplicate_key_update)
        primary_key = structure.primary_key_of(self)
        if primary_key is None and len(structure.primary_key) == 1:
            primary_key = (query.run_returning(structure.primary_key[0].key),)
        else:
            query.run()
        backbone.is_new = False
        if primary_key is not None:
            row = type(self).select().without_model().where_primary_key(type(self), primary_key).single()
            if row is not None:
                self.hydrate_with(row)
            type(self).cache().set(type(self), primary_key, self)
        logger.debug("Inserted %s %r", type(self).__name__, primary_key)

    def save(self) -> "Model":
        """Insert a new instance, or write the modified columns of a persisted one, then run queued relation writes."""
        structure = self.structure()
        backbone = self.backbone
        if backbone.is_new:
            self._insert(structure)
        elif backbone.modified:
            values = {
                name: self.__dict__.get(name)
                for name in structure.columns
                if name in backbone.modified and not structure.columns[name].computed
            }
            if values:
                pairs = type(self)._encode(values)
                type(self).query().update(structure.table, pairs).where_primary_key(type(self), self.structure().primary_key_of(self)).run()
        backbone.modified.clear()
        backbone.run_save_tasks()
        backbone.relation_cache.clear()
        return self

    def destroy(self) -> None:
        structure = self.structure()
        primary_key = structure.primary_key_of(self)
        if primary_key is None:
            raise NotFoundError(type(self), message=f"Cannot destroy an unsaved `{type(self).__name__}`.")
        type(self).delete(primary_key)
        if structure.soft_delete_column is not None:
            column = structure.column_for_key(structure.soft_delete_column)
            if column is not None:
                self.__dict__[column.name] = datetime.datetime.now()

    def reload(self) -> "Model":
        """Re-read the row, dropping unsaved changes and loaded relations."""
        primary_key = self.structure().primary_key_of(self)
        row = None
        if primary_key is not None:
            row = type(self).select().without_model().where_primary_key(type(self), primary_key).single()
        if row is None:
            raise NotFoundError(type(self), primary_key)
        self.hydrate_with(row)
        self.backbone.relation_cache.clear()
        return self

    # visibility and publishing

    def make_hidden(self, fields: Union[str, Iterable[str]]) -> "Model":
        fields = _as_set(fields)
        self.backbone.hidden |= fields
        self.backbone.visible -= fields
        return self

    def make_visible(self, fields: Union[str, Iterable[str]]) -> "Model":
        fields = _as_set(fields)
        self.backbone.visible |= fields
        self.backbone.hidden -= fields
        return self

    def only(self, fields: Union[str, Iterable[str]]) -> "Model":
        self.backbone.only = _as_set(fields)
        return self

    def _is_visible(self, names: set[str], hidden_by_default: bool) -> bool:
        backbone = self.backbone
        if backbone.only is not None and not names & backbone.only:
            return False
        if names & backbone.hidden:
            return False
        return not hidden_by_default or bool(names & backbone.visible)

    def to_dict(self) -> dict[str, Any]:
        """Visible columns (under their alias) plus loaded or explicitly visible relations."""
        structure = self.structure()
        backbone = self.backbone
        data = {}
        for column in structure.columns.values():
            published = column.alias or column.name
            if not self._is_visible({column.name, published}, column.hidden):
                continue
            data[published] = _publish(self.__dict__.get(column.name))
        for name in structure.relation_attributes:
            loaded = name in backbone.relation_cache
            if not self._is_visible({name}, not loaded):
                continue
            data[name] = _publish(self.relation(name))
        return data

"""Column metadata for models.

Options are attached to a field with `Annotated[int, Column(primary_key=True)]`;
when a model's structure is built, every pydantic field becomes a
ColumnDefinition holding its database key, flags and value conversion.
"""

from __future__ import annotations

import enum
import json
import types
import typing
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.fields import FieldInfo as PydanticFieldInfo
from pydantic_core import PydanticUndefined

from ..expressions import Expression
from ..literals import ColumnLiteral, Literal
from .casts import Cast


@dataclass(frozen=True)
class Column:
    """Per-field column options.

    key: database column name when it differs from the attribute name.
    alias: name used by to_dict().
    hidden: left out of to_dict() unless made visible.
    immutable: cannot be assigned once the instance is persisted.
    computed: read from the database but never written.
    """

    primary_key: bool = False
    key: Optional[str] = None
    alias: Optional[str] = None
    hidden: bool = False
    immutable: bool = False
    computed: bool = False
    cast: Any = None


_adapters: dict[Any, TypeAdapter] = {}


def _adapter_for(annotation: Any) -> TypeAdapter:
    try:
        adapter = _adapters.get(annotation)
    except TypeError:
        return TypeAdapter(annotation)
    if adapter is None:
        adapter = _adapters[annotation] = TypeAdapter(annotation)
    return adapter


def _strip_optional(annotation: Any) -> tuple[Any, bool]:
    """Return (annotation without None, whether None was allowed)."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        arguments = [argument for argument in typing.get_args(annotation) if argument is not type(None)]
        nullable = len(arguments) < len(typing.get_args(annotation))
        if len(arguments) == 1:
            return arguments[0], nullable
        return annotation, nullable
    return annotation, annotation is Any or annotation is None


def _is_json(annotation: Any) -> bool:
    base = typing.get_origin(annotation) or annotation
    if base in (dict, list, tuple, set):
        return True
    return isinstance(base, type) and issubclass(base, BaseModel)


class ColumnDefinition(BaseModel):
    """A model field as a database column."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    key: str
    alias: Optional[str] = None
    annotation: Any = None
    default: Any = None
    nullable: bool = True
    primary_key: bool = False
    hidden: bool = False
    immutable: bool = False
    computed: bool = False
    cast: Any = None
    is_json: bool = False

    @classmethod
    def from_pydantic_info(cls, name: str, info: PydanticFieldInfo) -> ColumnDefinition:
        """Build a ColumnDefinition from Pydantic field info and its Column metadata."""
        options = next((item for item in info.metadata if isinstance(item, Column)), Column())
        annotation, nullable = _strip_optional(info.annotation)
        default = None if info.default is PydanticUndefined else info.default
        if info.default_factory is not None:
            default = info.default_factory()
        cast = options.cast
        if isinstance(cast, type) and issubclass(cast, Cast):
            cast = cast()
        return cls(
            name=name,
            key=options.key or name,
            alias=options.alias,
            annotation=info.annotation,
            default=default,
            nullable=nullable,
            primary_key=options.primary_key,
            hidden=options.hidden,
            immutable=options.immutable,
            computed=options.computed,
            cast=cast,
            is_json=_is_json(annotation),
        )

    def decode(self, value: Any) -> Any:
        """Convert a value read from the database to the field's Python type."""
        if value is None:
            return None
        if self.cast is not None:
            return self.cast.decode(value)
        if self.annotation is None or self.annotation is Any:
            return value
        adapter = _adapter_for(self.annotation)
        if self.is_json and isinstance(value, (str, bytes)):
            return adapter.validate_json(value)
        return adapter.validate_python(value)

    def encode(self, value: Any) -> Any:
        """Convert a Python value to what gets bound for this column."""
        if value is None or isinstance(value, (Expression, Literal, ColumnLiteral)):
            return value
        if self.cast is not None:
            return self.cast.encode(value)
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, BaseModel):
            return value.model_dump_json()
        if self.is_json or isinstance(value, (dict, list, tuple, set)):
            if self.annotation is not None and self.annotation is not Any:
                return _adapter_for(self.annotation).dump_json(value).decode()
            return json.dumps(value)
        return value

"""ModelList: a list of model instances with batch helpers."""

from typing import Any, Callable, Iterable, Optional, Union


class ModelList(list):
    """A plain list of models, plus visibility and eager-loading helpers applied to every item."""

    def __repr__(self) -> str:
        return f"ModelList({list.__repr__(self)})"

    def column(self, name: str) -> list:
        return [getattr(item, name) for item in self]

    def filter(self, predicate: Callable[[Any], bool]) -> "ModelList":
        return ModelList(item for item in self if predicate(item))

    def map(self, fn: Callable[[Any], Any]) -> list:
        return [fn(item) for item in self]

    def first(self) -> Optional[Any]:
        return self[0] if self else None

    def last(self) -> Optional[Any]:
        return self[-1] if self else None

    def is_empty(self) -> bool:
        return len(self) == 0

    def make_hidden(self, fields: Union[str, Iterable[str]]) -> "ModelList":
        for item in self:
            item.make_hidden(fields)
        return self

    def make_visible(self, fields: Union[str, Iterable[str]]) -> "ModelList":
        for item in self:
            item.make_visible(fields)
        return self

    def only(self, fields: Union[str, Iterable[str]]) -> "ModelList":
        for item in self:
            item.only(fields)
        return self

    def eager_load(self, *relations: str) -> "ModelList":
        """Load relations for all items at once, grouped by model class."""
        groups: dict[type, list] = {}
        for item in self:
            groups.setdefault(type(item), []).append(item)
        for model, items in groups.items():
            model.structure().eager_load_relations(items, relations)
        return self

    def to_dicts(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self]

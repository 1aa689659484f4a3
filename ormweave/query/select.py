"""Select lists: ordered (value, alias) entries."""

from typing import Any, Optional, Tuple

from pydantic import BaseModel

from ..expressions import Identifier


class Select(BaseModel):
    """An immutable, ordered select list; empty means "everything"."""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    entries: Tuple[Tuple[Any, Optional[str]], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def add(self, *values: Any, **aliased: Any) -> "Select":
        """Return a copy with `values` appended, then `alias=value` pairs."""
        entries = list(self.entries)
        for value in values:
            entries.append(_entry(value))
        for alias, value in aliased.items():
            entries.append(_aliased_entry(alias, value))
        return Select(entries=tuple(entries))

    def alias(self, value: Any, alias: str) -> "Select":
        return Select(entries=self.entries + ((value, alias),))

    @classmethod
    def of(cls, fields: Any) -> "Select":
        """Build a Select from any accepted select() argument.

        Accepts None, a single value, a list whose entries are values or
        (value, alias) tuples, a dict of {alias: value} or a Select.
        """
        if fields is None:
            return cls()
        if isinstance(fields, Select):
            return fields
        if isinstance(fields, dict):
            return cls().add(**fields)
        if isinstance(fields, (list, tuple)):
            return cls().add(*fields)
        return cls().add(fields)

    def compile(self, query: Any) -> None:
        seen = set()
        first = True
        for value, alias in self.entries:
            if alias is None and isinstance(value, str):
                if value in seen:
                    continue
                seen.add(value)
            if not first:
                query.raw(",")
            first = False
            query.compile_select_value(value)
            if alias is not None:
                query.raw("as")
                query.raw(query.grammar.escape(alias))


def _entry(value: Any) -> Tuple[Any, Optional[str]]:
    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[1], str):
        return value[0], value[1]
    return value, None


def _aliased_entry(alias: str, value: Any) -> Tuple[Any, Optional[str]]:
    if value is True:
        return Identifier(name=alias), None
    return value, alias

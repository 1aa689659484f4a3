"""Expression base: a node that writes itself into a query."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class Expression(BaseModel, ABC):
    """Base for SQL expression nodes.

    The only contract is `compile(query, connection, grammar)`: append text
    and bound parameters to the query, children first-to-last, so that
    parameters stay aligned with their placeholders.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @abstractmethod
    def compile(self, query: Any, connection: Any, grammar: Any) -> None:
        ...  # pylint: disable=unnecessary-ellipsis


class Identifier(Expression):
    """A column or table name, escaped by the query's grammar at compile time."""

    name: str

    def compile(self, query, connection, grammar) -> None:
        query.raw(grammar.escape(self.name))


class Raw(Expression):
    """Raw SQL text."""

    value: str

    def compile(self, query, connection, grammar) -> None:
        query.raw(self.value)

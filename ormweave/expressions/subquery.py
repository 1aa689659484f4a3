"""Expressions wrapping nested queries."""

from typing import Any

from ._bases import Expression


class SubQuery(Expression):
    """A nested query, merged once inside parentheses."""

    query: Any

    def compile(self, query, connection, grammar) -> None:
        query.compile(self.query)


class Variable(Expression):
    """`@name := expression`."""

    name: str
    expression: Any

    def compile(self, query, connection, grammar) -> None:
        query.raw(f"@{self.name} :=")
        query.compile(self.expression)

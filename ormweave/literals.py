"""Literal SQL fragments: raw text and escaped column references."""

from typing import Any, Optional

from pydantic import BaseModel


class Literal(BaseModel):
    """Raw SQL text inserted verbatim, never bound as a parameter."""

    model_config = {"frozen": True}

    value: str

    def __str__(self) -> str:
        return self.value


def literal(value: Any) -> Literal:
    return Literal(value=str(value))


def string_literal(value: Any) -> Literal:
    """Return a single-quoted SQL string literal, doubling embedded quotes."""
    return Literal(value="'" + str(value).replace("'", "''") + "'")


class ColumnLiteral(BaseModel):
    """A reference to `schema`.`table`.`column`, escaped by the grammar that created it."""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    grammar: Any
    column: str
    table: Optional[str] = None
    schema_name: Optional[str] = None

    @property
    def literal(self) -> str:
        parts = []
        if self.schema_name:
            parts.append(self.grammar.escape(self.schema_name))
        if self.table:
            parts.append(self.grammar.escape(self.table))
        parts.append(self.column if self.column == "*" else self.grammar.escape(self.column))
        return ".".join(parts)

    def __str__(self) -> str:
        return self.literal

    def as_foreign_key_for(self, table: str) -> "ColumnLiteral":
        """Name this column would carry as a foreign key on `table`, e.g. user.id -> post.user_id."""
        return ColumnLiteral(grammar=self.grammar, column=f"{self.table}_{self.column}", table=table)

    def with_table(self, table: Optional[str]) -> "ColumnLiteral":
        return ColumnLiteral(grammar=self.grammar, column=self.column, table=table, schema_name=self.schema_name)

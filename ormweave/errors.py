"""Error kinds raised by ormweave.

Every error derives from DatabaseError. Build and lookup errors also derive
from the builtin a caller would naturally catch (ValueError, LookupError,
TypeError).
"""

from typing import Any, Optional, Sequence


class DatabaseError(Exception):
    """Base class for every error raised by ormweave."""


# build

class QueryBuildError(DatabaseError, ValueError):
    """The query could not be assembled."""


class UnbalancedParenthesisError(QueryBuildError):
    """A parenthesis was closed without being opened, or left open."""

    def __init__(self, depth: int):
        self.depth = depth
        if depth < 0:
            message = "Cannot close a parenthesis that was never opened."
        else:
            message = f"Query has {depth} unclosed parenthesis group(s)."
        super().__init__(message)


class PrimaryKeyArityError(QueryBuildError):
    """The number of primary key values does not match the model's key."""

    def __init__(self, model: type, expected: int, given: int):
        self.model = model
        self.expected = expected
        self.given = given
        amount = "few" if given < expected else "many"
        super().__init__(
            f"Too {amount} primary key values for `{model.__name__}`: "
            f"expected {expected}, got {given}."
        )


class MissingClauseError(QueryBuildError):
    """An operation needed a clause the query does not define."""

    def __init__(self, clause: str):
        self.clause = clause
        super().__init__(f"Clause `{clause}` is not defined on this query.")


class MissingModelError(QueryBuildError):
    """A model-aware operation was used on a query without a model."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"`{operation}` requires a query associated with a model.")


# connection

class ConnectionFailedError(DatabaseError):
    """The database could not be reached."""


class NotConnectedError(ConnectionFailedError):
    """An operation needed a connection that is missing or closed."""


class ConnectionNotConfiguredError(ConnectionFailedError, ValueError):
    """No connection was registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No connection configured with name=`{name}`")


class UnsupportedSchemeError(ConnectionFailedError, ValueError):
    """No dialect handles the scheme of a database URL."""

    def __init__(self, scheme: Optional[str]):
        self.scheme = scheme
        super().__init__(f"Unsupported database scheme: {scheme}")


# execution

class ExecutionError(DatabaseError):
    """The driver rejected a statement."""

    def __init__(self, sql: str, params: Sequence[Any], error: BaseException):
        self.sql = sql
        self.params = tuple(params)
        super().__init__(f"{error} (sql: {sql}, params: {self.params!r})")


class NotFoundError(DatabaseError, LookupError):
    """A lookup that must return a record returned nothing."""

    def __init__(self, model: Optional[type] = None, key: Any = None, message: Optional[str] = None):
        self.model = model
        self.key = key
        if message is None:
            if model is None:
                message = "Query returned no results."
            else:
                message = f"No `{model.__name__}` found for primary key {key!r}."
        super().__init__(message)


# structure

class StructureError(DatabaseError, TypeError):
    """A model declaration is invalid or incomplete."""


class InvalidModelError(StructureError):
    """A class used as a model is not one, or cannot be resolved."""


class MissingPropertyError(StructureError):
    """A model has no property with the requested name."""

    def __init__(self, model: type, name: str):
        self.model = model
        self.name = name
        super().__init__(f"`{model.__name__}` has no property `{name}`.")


class InvalidColumnError(StructureError):
    """A column declaration cannot be used the way it was asked to."""


class MissingPolymorphicDiscriminatorError(StructureError):
    """A polymorphic row is missing its discriminator column."""

    def __init__(self, model: type, column: str):
        self.model = model
        self.column = column
        super().__init__(
            f"Row for polymorphic model `{model.__name__}` has no discriminator column `{column}`."
        )


# relations

class RelationError(DatabaseError):
    """A relation could not be resolved or used."""


class ImmutableRelationError(RelationError):
    """A relation that cannot be written was assigned to."""

    def __init__(self, model: type, name: str):
        self.model = model
        self.name = name
        super().__init__(f"Relation `{model.__name__}.{name}` is not writable.")


class ReferenceModelMissingError(RelationError):
    """A relation does not name its target model."""

    def __init__(self, model: type, name: str):
        self.model = model
        self.name = name
        super().__init__(f"Relation `{model.__name__}.{name}` has no reference model.")


# instances

class ImmutableError(DatabaseError, AttributeError):
    """A primary key or immutable column was assigned on a persisted instance."""

    def __init__(self, model: type, name: str):
        self.model = model
        self.name = name
        super().__init__(f"`{model.__name__}.{name}` is immutable once persisted.")


class TransactionError(DatabaseError):
    """A transaction was used in an invalid state."""

"""Statement: executes compiled SQL and shapes the rows (dicts or hydrated models)."""

import logging
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from ..errors import NotFoundError, QueryBuildError

logger = logging.getLogger("ormweave")


class Statement:
    """A compiled statement bound to a connection.

    With a model, rows are hydrated through the model's structure (identity
    cache, polymorphism) and the requested relations are eager loaded once
    for the whole result.
    """

    def __init__(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] = (),
        *,
        model: Optional[type] = None,
        eager_load: Iterable[str] = (),
        eager_load_disable: Iterable[str] = (),
        before_relations: Iterable[Callable[[list], Any]] = (),
    ):
        self.connection = connection
        self.sql = sql
        self.params = list(params)
        self.model = model
        self.eager_load = list(eager_load)
        self.eager_load_disable = list(eager_load_disable)
        self.before_relations = list(before_relations)
        self.row_count: Optional[int] = None

    def __repr__(self) -> str:
        return f"<Statement {self.sql!r} {self.params!r}>"

    def _execute(self):
        if self.model is None and self.eager_load:
            raise QueryBuildError("Eager loading is only available on model queries.")
        cursor = self.connection.execute_raw(self.sql, self.params)
        self.row_count = cursor.rowcount
        return cursor

    @staticmethod
    def _rows(cursor) -> Iterator[dict[str, Any]]:
        columns = [description[0] for description in cursor.description or ()]
        for row in cursor:
            yield dict(zip(columns, row))

    def _create_model(self, row: dict[str, Any]) -> Any:
        return self.model.structure().create_instance(row)

    def _load_relationships(self, models: list) -> None:
        if not models:
            return
        for hook in self.before_relations:
            hook(models)
        self.model.structure().eager_load_relations(models, self.eager_load, self.eager_load_disable)

    def run(self) -> int:
        """Execute and return the number of affected rows."""
        cursor = self._execute()
        cursor.close()
        return self.row_count

    def array(self) -> list:
        cursor = self._execute()
        try:
            rows = list(self._rows(cursor))
        finally:
            cursor.close()
        if self.model is None:
            return rows
        models = [self._create_model(row) for row in rows]
        self._load_relationships(models)
        return models

    def array_list(self) -> list:
        """Like array(), but model results come back as a ModelList."""
        from ..orm.model_list import ModelList  # pylint: disable=import-outside-toplevel

        result = self.array()
        if self.model is not None:
            return ModelList(result)
        return result

    def cursor(self) -> Iterator[Any]:
        """Yield rows one at a time; forward-only and not restartable."""
        cursor = self._execute()
        try:
            for row in self._rows(cursor):
                if self.model is None:
                    yield row
                    continue
                model = self._create_model(row)
                self._load_relationships([model])
                yield model
        finally:
            cursor.close()

    def single(self) -> Any:
        """Return the first row (or model), or None."""
        cursor = self._execute()
        try:
            row = next(self._rows(cursor), None)
        finally:
            cursor.close()
        if row is None or self.model is None:
            return row
        model = self._create_model(row)
        self._load_relationships([model])
        return model

    def single_or_fail(self) -> Any:
        result = self.single()
        if result is None:
            raise NotFoundError(self.model, message=f"Query returned no results: {self.sql}")
        return result

    def fetch_column(self, index: int = 0) -> Any:
        cursor = self._execute()
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            return None
        return row[index]

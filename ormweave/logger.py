"""Query logging: every statement goes to the `ormweave` logger, and optionally to a QueryLogger."""

import logging
from typing import Any, Union

from pydantic import BaseModel

logger = logging.getLogger("ormweave")


class QueryEvent(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    sql: str
    params: tuple[Any, ...] = ()
    duration: float = 0.0


class EagerLoadEvent(BaseModel):
    model: str
    relation: str
    query_count: int = 0


Event = Union[QueryEvent, EagerLoadEvent]


class QueryLogger:
    """Records executed statements and eager loads while enabled.

    Disabled by default; the stdlib logger always receives the statements at
    DEBUG level regardless.
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self.events: list[Event] = []

    def enable(self) -> "QueryLogger":
        self.enabled = True
        return self

    def disable(self) -> "QueryLogger":
        self.enabled = False
        return self

    def clear(self) -> None:
        self.events.clear()

    def log(self, event: Event) -> None:
        if isinstance(event, QueryEvent):
            logger.debug("%s %r (%.2f ms)", event.sql, event.params, event.duration * 1000)
        else:
            logger.debug("Eager loaded %s.%s in %d queries", event.model, event.relation, event.query_count)
        if self.enabled:
            self.events.append(event)

    @property
    def queries(self) -> list[QueryEvent]:
        return [event for event in self.events if isinstance(event, QueryEvent)]

    def count(self) -> int:
        """Number of statements recorded."""
        return len(self.queries)

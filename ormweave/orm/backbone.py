"""Per-instance bookkeeping that is not a column value."""

from typing import Any, Callable, Optional


class Backbone:
    """State the ORM keeps next to each model instance.

    relation_cache: loaded relation values by relation name.
    modified: column names assigned since the last save.
    save_tasks: callables queued by relation writes, run after save().
    extras: `__`-prefixed row values that are not columns (e.g. `__local_linking_key`).
    hidden / visible / only: to_dict() visibility overrides.
    """

    def __init__(self, structure: Any, is_new: bool = True, extras: Optional[dict[str, Any]] = None):
        self.structure = structure
        self.is_new = is_new
        self.extras: dict[str, Any] = dict(extras or {})
        self.relation_cache: dict[str, Any] = {}
        self.modified: set[str] = set()
        self.save_tasks: list[Callable[[], Any]] = []
        self.hidden: set[str] = set()
        self.visible: set[str] = set()
        self.only: Optional[set[str]] = None

    def __repr__(self) -> str:
        return f"<Backbone {self.structure.model.__name__} new={self.is_new} modified={sorted(self.modified)}>"

    def refresh_extras(self, row: dict[str, Any]) -> None:
        """Take the non-column values of a newer row for an already hydrated instance."""
        for key, value in row.items():
            if key.startswith("__"):
                self.extras[key] = value

    def run_save_tasks(self) -> None:
        tasks, self.save_tasks = self.save_tasks, []
        for task in tasks:
            task()

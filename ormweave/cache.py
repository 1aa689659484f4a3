"""Identity cache: at most one live instance per (model class, primary key)."""

import threading
from typing import Any, Callable, Iterable, Optional


class Cache:
    """Per-connection identity map keyed by model class and stringified primary key.

    Composite keys are joined with `|`, so ("a|b", "c") and ("a", "b|c")
    collide; keep `|` out of composite key parts.
    """

    SEPARATOR = "|"

    def __init__(self):
        self._instances: dict[type, dict[str, Any]] = {}
        self._lock = threading.RLock()

    @classmethod
    def key(cls, primary_key: Any) -> str:
        if isinstance(primary_key, (list, tuple)):
            if len(primary_key) == 1:
                return str(primary_key[0])
            return cls.SEPARATOR.join(str(part) for part in primary_key)
        return str(primary_key)

    def get(self, model: type, primary_key: Any) -> Optional[Any]:
        with self._lock:
            return self._instances.get(model, {}).get(self.key(primary_key))

    def has(self, model: type, primary_key: Any) -> bool:
        with self._lock:
            return self.key(primary_key) in self._instances.get(model, {})

    def set(self, model: type, primary_key: Any, instance: Any) -> None:
        with self._lock:
            self._instances.setdefault(model, {})[self.key(primary_key)] = instance

    def unset(self, model: type, primary_key: Any) -> None:
        with self._lock:
            self._instances.get(model, {}).pop(self.key(primary_key), None)

    def find(self, model: type, predicate: Callable[[Any], bool]) -> Optional[Any]:
        """Return the first cached instance of model matching predicate."""
        with self._lock:
            instances = list(self._instances.get(model, {}).values())
        for instance in instances:
            if predicate(instance):
                return instance
        return None

    def instances(self, model: type) -> list[Any]:
        with self._lock:
            return list(self._instances.get(model, {}).values())

    def keys(self, model: type) -> list[str]:
        with self._lock:
            return list(self._instances.get(model, {}))

    def flush(self, model: Optional[type] = None) -> None:
        """Forget every instance, or only those of one model."""
        with self._lock:
            if model is None:
                self._instances.clear()
            else:
                self._instances.pop(model, None)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(instances) for instances in self._instances.values())

    def __contains__(self, item: Iterable[Any]) -> bool:
        model, primary_key = item
        return self.has(model, primary_key)

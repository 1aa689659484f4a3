"""Casts convert between stored column values and Python values."""

import json
from abc import ABC, abstractmethod
from typing import Any


class Cast(ABC):
    """Two-way conversion attached to a column with Column(cast=...)."""

    @abstractmethod
    def decode(self, value: Any) -> Any:
        """Stored value -> Python value."""

    @abstractmethod
    def encode(self, value: Any) -> Any:
        """Python value -> stored value."""


class BooleanCast(Cast):
    def decode(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() not in ("", "0", "false", "no")
        return bool(value)

    def encode(self, value: Any) -> int:
        return 1 if value else 0


class FloatCast(Cast):
    def decode(self, value: Any) -> float:
        return float(value)

    def encode(self, value: Any) -> float:
        return float(value)


class JsonCast(Cast):
    def decode(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            value = value.decode()
        if isinstance(value, str):
            return json.loads(value)
        return value

    def encode(self, value: Any) -> str:
        return json.dumps(value)


class IntSetCast(Cast):
    """Comma-separated integers, e.g. "1,2,3" <-> [1, 2, 3]."""

    def decode(self, value: Any) -> list[int]:
        if isinstance(value, int):
            return [value]
        return [int(part) for part in str(value).split(",") if part.strip()]

    def encode(self, value: Any) -> str:
        return ",".join(str(int(part)) for part in value)


class StringSetCast(Cast):
    """Comma-separated strings, e.g. "a,b" <-> ["a", "b"]."""

    def decode(self, value: Any) -> list[str]:
        return [part for part in str(value).split(",") if part]

    def encode(self, value: Any) -> str:
        return ",".join(str(part) for part in value)

"""Hydratable mixin: instance-building from raw row data."""

from typing import Any

from .backbone import Backbone


class Hydratable:
    """Mixin that builds persisted instances from database rows (hydration)."""

    @classmethod
    def split_row(cls, row: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Split a row into decoded column values by attribute name, and `__` extras."""
        structure = cls.structure()
        values: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for key, value in row.items():
            column = structure.column_for_key(key)
            if column is not None:
                values[column.name] = column.decode(value)
            elif key.startswith("__"):
                extras[key] = value
        return values, extras

    @classmethod
    def make_instance(cls, row: dict[str, Any]) -> Any:
        """Make a persisted instance from a row, without running validation."""
        values, extras = cls.split_row(row)
        instance = cls.model_construct(**values)
        instance._backbone = Backbone(cls.structure(), is_new=False, extras=extras)
        return instance

    def hydrate_with(self, row: dict[str, Any]) -> None:
        """Overwrite this instance's column values from a fresh row, mutating it in place."""
        values, extras = self.split_row(row)
        self.__dict__.update(values)
        self.backbone.extras.update(extras)
        self.backbone.modified.clear()

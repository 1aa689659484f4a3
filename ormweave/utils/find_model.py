"""Resolve model references given as classes, class names or callables."""

from typing import Any, Iterable

from ..errors import InvalidModelError


def _get_subclasses(base: type) -> Iterable[type]:
    """Recursively yield all subclasses of base in depth-first order."""
    for subclass in base.__subclasses__()[::-1]:
        yield from _get_subclasses(subclass)
        yield subclass


def find_model(name: str):
    """Return the unique model class named `name`, or None.

    Raises if multiple models match.
    """
    from ..orm.model import Model  # pylint: disable=import-outside-toplevel

    models = []
    for subclass in _get_subclasses(Model):
        if subclass.__name__ == name and subclass not in models:
            models.append(subclass)
    if len(models) > 1:
        raise InvalidModelError(f"More than one model found with name `{name}`")
    if len(models) == 0:
        return None
    return models[0]


def resolve_model(reference: Any) -> type:
    """Turn a relation or polymorphic-map target into a model class."""
    if isinstance(reference, str):
        model = find_model(reference)
        if model is None:
            raise InvalidModelError(f"No model found with name `{reference}`")
        return model
    if isinstance(reference, type):
        return reference
    if callable(reference):
        return resolve_model(reference())
    raise InvalidModelError(f"Cannot resolve {reference!r} to a model.")

from typing import Any

from ...errors import RelationError
from .base import Relation, RelationAttribute


class CustomRelation(RelationAttribute):
    """Declares a relation implemented by a user-supplied Relation subclass.

    Extra keyword arguments are kept in `options` for that class to read.
    """

    requires_reference = False

    def __init__(self, relation_class: type, reference: Any = None, *, eager_load: bool = False, **options: Any):
        if not (isinstance(relation_class, type) and issubclass(relation_class, Relation)):
            raise RelationError(f"{relation_class!r} is not a Relation subclass.")
        super().__init__(reference, eager_load=eager_load)
        self.relation_class = relation_class
        self.options = options

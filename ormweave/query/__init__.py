from .paginated import Paginated
from .query import CLAUSE_ORDER, Clause, Query, clause_key
from .select import Select
from .statement import Statement

__all__ = ["CLAUSE_ORDER", "Clause", "Paginated", "Query", "Select", "Statement", "clause_key"]

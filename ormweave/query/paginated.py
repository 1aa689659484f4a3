"""A page of results with its position in the full result set."""

from typing import Any

from pydantic import BaseModel


class Paginated(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    items: list[Any]
    offset: int
    limit: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total

    @property
    def page(self) -> int:
        """1-based page number."""
        return self.offset // self.limit + 1 if self.limit else 1

    @property
    def pages(self) -> int:
        if not self.limit:
            return 1
        return max(1, -(-self.total // self.limit))

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

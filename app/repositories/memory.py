"""In-process repository backed by a dict."""
from typing import Optional

from app.repositories.base import ModelT, Repository


class InMemoryRepository(Repository[ModelT]):
    """Repository holding records in process memory; contents are lost on restart."""

    def __init__(self, model: type[ModelT]):
        """Initialize an empty repository for `model` records."""
        self.model = model
        self._items: dict[str, ModelT] = {}

    async def get(self, item_id: str) -> Optional[ModelT]:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item is not None else None

    async def list_all(self) -> list[ModelT]:
        return [item.model_copy(deep=True) for item in self._items.values()]

    async def add(self, item: ModelT) -> ModelT:
        if item.id in self._items:
            raise ValueError(f"Duplicate {self.model.__name__} id: {item.id}")
        self._items[item.id] = item.model_copy(deep=True)
        return item

    async def save(self, item: ModelT) -> ModelT:
        if item.id not in self._items:
            raise KeyError(item.id)
        self._items[item.id] = item.model_copy(deep=True)
        return item

    async def count(self) -> int:
        return len(self._items)

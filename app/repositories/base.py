"""Repository interface - storage access for one collection of records."""
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class Repository(ABC, Generic[ModelT]):
    """
    Storage for records of one model type, keyed by their `id` field.

    Records returned by a repository are detached copies: changes are only
    stored by passing the record back to `save`.
    """

    model: type[ModelT]

    @abstractmethod
    async def get(self, item_id: str) -> Optional[ModelT]:
        """Return the record with `item_id`, or None."""

    @abstractmethod
    async def list_all(self) -> list[ModelT]:
        """Return all records in insertion order."""

    @abstractmethod
    async def add(self, item: ModelT) -> ModelT:
        """Store a new record."""

    @abstractmethod
    async def save(self, item: ModelT) -> ModelT:
        """
        Replace the stored record that has the same id.

        Raises:
            KeyError: If no record with that id exists
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored records."""

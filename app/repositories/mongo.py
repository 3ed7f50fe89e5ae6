"""MongoDB repository using Motor (async driver)."""
from enum import Enum
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from app.repositories.base import ModelT, Repository

# Records are addressed by their own string id; Mongo's _id is never exposed.
_PROJECTION = {"_id": 0}


def _to_document(item: ModelT) -> dict:
    """Dump a record into a BSON-encodable dict."""
    doc = item.model_dump()
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in doc.items()
    }


class MongoRepository(Repository[ModelT]):
    """Repository stored in one MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection, model: type[ModelT]):
        """Initialize repository over `collection` holding `model` records."""
        self.collection = collection
        self.model = model

    async def get(self, item_id: str) -> Optional[ModelT]:
        doc = await self.collection.find_one({"id": item_id}, _PROJECTION)
        if not doc:
            return None
        return self.model.model_validate(doc)

    async def list_all(self) -> list[ModelT]:
        cursor = self.collection.find({}, _PROJECTION).sort("_id", 1)
        docs = await cursor.to_list(length=None)
        return [self.model.model_validate(doc) for doc in docs]

    async def add(self, item: ModelT) -> ModelT:
        await self.collection.insert_one(_to_document(item))
        return item

    async def save(self, item: ModelT) -> ModelT:
        result = await self.collection.replace_one({"id": item.id}, _to_document(item))
        if result.matched_count == 0:
            raise KeyError(item.id)
        return item

    async def count(self) -> int:
        return await self.collection.count_documents({})

"""Collection registry: in-memory repositories or MongoDB via Motor (async driver)."""
import asyncio
import logging
from collections import defaultdict

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings
from app.models.activity import Alert, Donation, ScheduleItem, Tip, TokenBurn, TokenMint
from app.models.goal import Goal
from app.models.pledge import Pledge
from app.models.user import Patient, User
from app.repositories.base import Repository
from app.repositories.memory import InMemoryRepository
from app.repositories.mongo import MongoRepository
from app.utils.patient_ids import normalize_patient_id

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "goals": Goal,
    "pledges": Pledge,
    "patients": Patient,
    "users": User,
    "alerts": Alert,
    "tips": Tip,
    "schedule": ScheduleItem,
    "token_mints": TokenMint,
    "token_burns": TokenBurn,
    "donations": Donation,
}


class Database:
    """Repositories for every collection, plus per-patient write locks."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    def __init__(self):
        """Create an unconnected registry."""
        self.repositories: dict[str, Repository] = {}
        self._patient_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def in_memory(cls) -> "Database":
        """Build a registry backed by empty in-memory repositories."""
        instance = cls()
        instance.repositories = {
            name: InMemoryRepository(model) for name, model in COLLECTIONS.items()
        }
        return instance

    @property
    def connected(self) -> bool:
        return bool(self.repositories)

    async def connect(self) -> None:
        """Connect to MongoDB if configured, otherwise fall back to process memory."""
        if settings.mongodb_url:
            self.client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
            self.db = self.client[settings.mongodb_db_name]
            self.repositories = {
                name: MongoRepository(self.db[name], model)
                for name, model in COLLECTIONS.items()
            }
            logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)
        else:
            self.repositories = {
                name: InMemoryRepository(model) for name, model in COLLECTIONS.items()
            }
            logger.info("Using in-memory repositories; data resets on restart")

        if settings.seed_demo_data:
            from app.seed import seed_demo_data

            await seed_demo_data(self)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB and drop repository handles."""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")
        self.repositories = {}

    def __getitem__(self, name: str) -> Repository:
        """Get the repository for a collection."""
        if not self.repositories:
            raise RuntimeError("Database not connected")
        return self.repositories[name]

    def patient_lock(self, patient_id: str) -> asyncio.Lock:
        """
        Lock serializing pledge writes for one patient.

        Callers pass the resolved canonical id; "#"-prefixed forms share its lock.
        """
        return self._patient_locks[normalize_patient_id(patient_id)]


# Global database instance
database = Database()


async def get_database() -> Database:
    """Dependency to get database instance."""
    if not database.connected:
        raise RuntimeError("Database not connected")
    return database

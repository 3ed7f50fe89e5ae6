"""Reset a MongoDB database to the demo organization.

Usage:
    python scripts/reset_demo_data.py \\
        --mongodb-url mongodb://localhost:27017 \\
        --db-name rdm_health
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from app.database import COLLECTIONS, Database
from app.repositories.mongo import MongoRepository
from app.seed import seed_demo_data

logger = logging.getLogger("reset_demo_data")


async def reset_demo_data(mongodb_url: str, db_name: str) -> None:
    """Delete every document in the app's collections and reseed them."""
    client = AsyncIOMotorClient(mongodb_url, tz_aware=True)
    try:
        mongo_db = client[db_name]

        for name in COLLECTIONS:
            result = await mongo_db[name].delete_many({})
            logger.info("Deleted %d documents from %s", result.deleted_count, name)

        database = Database()
        database.repositories = {
            name: MongoRepository(mongo_db[name], model) for name, model in COLLECTIONS.items()
        }
        await seed_demo_data(database)
    finally:
        client.close()
    logger.info("Demo data restored in %s", db_name)


def main():
    parser = argparse.ArgumentParser(description="Reset MongoDB to the demo organization")
    parser.add_argument("--mongodb-url", required=True, help="MongoDB connection URL")
    parser.add_argument("--db-name", default="rdm_health", help="Database name")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(reset_demo_data(args.mongodb_url, args.db_name))


if __name__ == "__main__":
    main()

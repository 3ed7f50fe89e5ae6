"""Tests for the demo data reset script."""
import importlib.util
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "reset_demo_data.py"


def _load_script():
    loader_spec = importlib.util.spec_from_file_location("reset_demo_data", SCRIPT)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module


@pytest.mark.asyncio
class TestResetDemoData:
    """Tests for reset_demo_data."""

    async def test_clears_every_collection_and_reseeds(self):
        """Test all app collections are emptied before seeding."""
        from app.database import COLLECTIONS

        script = _load_script()
        collections = {}

        def collection(name):
            mock = collections.setdefault(name, MagicMock())
            mock.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
            return mock

        mongo_db = MagicMock()
        mongo_db.__getitem__.side_effect = collection
        client = MagicMock()
        client.__getitem__.return_value = mongo_db

        with patch.object(script, "AsyncIOMotorClient", return_value=client), \
                patch.object(script, "seed_demo_data", new=AsyncMock()) as seed:
            await script.reset_demo_data("mongodb://test", "rdm_test")

        assert set(collections) == set(COLLECTIONS)
        client.__getitem__.assert_called_once_with("rdm_test")
        seeded = seed.await_args[0][0]
        assert set(seeded.repositories) == set(COLLECTIONS)
        client.close.assert_called_once()

    async def test_client_closed_when_seeding_fails(self):
        """Test the Mongo client is closed even if seeding raises."""
        script = _load_script()

        collection = MagicMock()
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
        mongo_db = MagicMock()
        mongo_db.__getitem__.return_value = collection
        client = MagicMock()
        client.__getitem__.return_value = mongo_db

        with patch.object(script, "AsyncIOMotorClient", return_value=client), \
                patch.object(script, "seed_demo_data", new=AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError):
                await script.reset_demo_data("mongodb://test", "rdm_test")

        client.close.assert_called_once()

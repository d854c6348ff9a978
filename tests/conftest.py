"""Shared fixtures for docmcp tests."""

import asyncio
import os
import pytest
from pathlib import Path

from docmcp.db.sqlite import DocumentStore


@pytest.fixture
def tmp_docmcp_dir(tmp_path):
    """Point the data directory at a temp directory for isolated tests."""
    data_dir = tmp_path / ".docmcp"
    data_dir.mkdir()
    (data_dir / "logs").mkdir()
    os.environ["DOCMCP_DATA_DIR"] = str(data_dir)

    # Config reads env at import; patch the class attributes directly
    from docmcp import config
    original = {
        k: getattr(config.Config, k)
        for k in ("DATA_DIR", "LOG_DIR", "DB_PATH", "LOG_FILE", "ERROR_LOG")
    }
    config.Config.DATA_DIR = data_dir
    config.Config.LOG_DIR = data_dir / "logs"
    config.Config.DB_PATH = data_dir / "documents.db"
    config.Config.LOG_FILE = data_dir / "logs" / "docmcp.log"
    config.Config.ERROR_LOG = data_dir / "logs" / "docmcp-errors.log"

    yield data_dir

    for key, value in original.items():
        setattr(config.Config, key, value)
    os.environ.pop("DOCMCP_DATA_DIR", None)


SALES = [
    {"id": "t1", "customer_name": "Contoso", "service_name": "Storage",
     "service_family": "Infrastructure", "amount": 100},
    {"id": "t2", "customer_name": "Contoso", "service_name": "Compute",
     "service_family": "Infrastructure", "amount": 250},
    {"id": "t3", "customer_name": "Contoso", "service_name": "Storage",
     "service_family": "Infrastructure", "amount": 50},
    {"id": "t4", "customer_name": "Fabrikam", "service_name": "Analytics",
     "service_family": "Data", "amount": 75},
]


async def _open_seeded(path: Path) -> DocumentStore:
    store = DocumentStore(db_path=path)
    await store.initialize()
    for ts, doc in enumerate(SALES, start=1000):
        await store.upsert("sales", "transactions", doc, ts=ts)
    await store.create_container("sales", "empty")
    return store


@pytest.fixture
async def store(tmp_path):
    """An open DocumentStore seeded with sales/transactions, t1 oldest."""
    store = await _open_seeded(tmp_path / "documents.db")
    yield store
    await store.close()


@pytest.fixture
def sync_store(tmp_path):
    """Same seeded store, for synchronous tests (TestClient runs its own loop)."""
    store = asyncio.run(_open_seeded(tmp_path / "documents.db"))
    yield store
    asyncio.run(store.close())
